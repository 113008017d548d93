"""Tests für das Konfigurationssystem, den Snapshot und die CLI."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import (
    BookingConfig,
    BookingLimits,
    DayHours,
    GridConfig,
    Level3Hours,
    Level4Hours,
    PlannedClosure,
)
from config.defaults import (
    default_booking_config,
    default_level3_hours,
    default_level4_hours,
)
from config.manager import ConfigManager
from models.booking_snapshot import BookingSnapshot
from models.slot import Slot, WorkshopContext


def _utc(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 6, day, hour, tzinfo=timezone.utc)


def _manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(tmp_path / "booking_config.yaml")


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_limits(self):
        """4 Slots pro Tag, 14 Slots pro 7 Tage, 7 Tage sichtbar."""
        config = default_booking_config()
        assert config.limits.max_slots_per_day == 4
        assert config.limits.max_slots_per_week == 14
        assert config.limits.visibility_days == 7
        assert config.timezone == "UTC"

    def test_default_level3_hours(self):
        hours = default_level3_hours()
        assert hours.days["Monday"].start_hour == 9
        assert hours.days["Saturday"].end_hour == 16
        assert hours.days["Sunday"].closed is True

    def test_default_level4_unrestricted(self):
        assert default_level4_hours().is_unrestricted

    def test_no_default_closures(self):
        assert default_booking_config().restrictions.planned_closures == []


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_day_hours_inverted_raises(self):
        with pytest.raises(ValidationError):
            DayHours(start_hour=17, end_hour=9)

    def test_closed_day_ignores_order(self):
        assert DayHours(start_hour=17, end_hour=9, closed=True).closed

    def test_weekday_names_normalized(self):
        hours = Level3Hours(days={"monday": DayHours(), " FRIDAY ": DayHours()})
        assert set(hours.days) == {"Monday", "Friday"}

    def test_unknown_weekday_raises(self):
        with pytest.raises(ValidationError):
            Level3Hours(days={"Funday": DayHours()})

    def test_level4_hour_range(self):
        with pytest.raises(ValidationError):
            Level4Hours(start_hour=24, end_hour=6)

    def test_level4_overnight(self):
        assert Level4Hours(start_hour=22, end_hour=6).is_overnight
        assert not Level4Hours(start_hour=12, end_hour=14).is_overnight

    def test_closure_end_before_start_raises(self):
        with pytest.raises(ValidationError):
            PlannedClosure(id=1, start_date=_utc(12), end_date=_utc(10))

    def test_closure_empty_interval_raises(self):
        with pytest.raises(ValidationError):
            PlannedClosure(id=1, start_date=_utc(12), end_date=_utc(12))

    def test_closure_mixed_zones_raises(self):
        with pytest.raises(ValidationError):
            PlannedClosure(id=1, start_date=datetime(2024, 6, 10), end_date=_utc(12))

    def test_negative_limit_raises(self):
        with pytest.raises(ValidationError):
            BookingLimits(max_slots_per_day=-1)

    def test_zero_limits_allowed(self):
        limits = BookingLimits(max_slots_per_day=0, max_slots_per_week=0)
        assert limits.max_slots_per_day == 0

    def test_visibility_days_range(self):
        with pytest.raises(ValidationError):
            BookingLimits(visibility_days=0)

    def test_grid_range(self):
        with pytest.raises(ValidationError):
            GridConfig(start_hour=10, end_hour=10)

    def test_unknown_timezone_raises(self):
        with pytest.raises(ValidationError):
            BookingConfig(timezone="Mars/Olympus_Mons")

    def test_frozen_restrictions(self):
        hours = Level4Hours(start_hour=22, end_hour=6)
        with pytest.raises(ValidationError):
            hours.start_hour = 1


# ─── RASTERBEREICH PRO ROLLE ──────────────────────────────────────────────────

class TestGridHours:
    def test_visible_range_ignores_closed_days(self):
        hours = Level3Hours(days={
            "Monday": DayHours(start_hour=9, end_hour=17),
            "Saturday": DayHours(start_hour=10, end_hour=20),
            "Sunday": DayHours(closed=True),
        })
        assert hours.visible_range == (9, 20)

    def test_visible_range_all_closed(self):
        assert Level3Hours(days={"Monday": DayHours(closed=True)}).visible_range is None

    def test_role3_uses_opening_hours(self):
        config = default_booking_config()
        assert config.grid_hours_for_role(3) == (9, 17)

    def test_other_roles_use_grid(self):
        config = default_booking_config()
        for role in (1, 2, 4):
            assert config.grid_hours_for_role(role) == (0, 24)


# ─── YAML SPEICHERN / LADEN ───────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren, vollständiger Roundtrip."""
        config = default_booking_config().model_copy(update={"facility_name": "Test-Werkstatt"})
        mgr = _manager(tmp_path)
        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load()
        assert loaded.facility_name == "Test-Werkstatt"
        assert loaded.limits == config.limits
        assert loaded.restrictions.level3 == config.restrictions.level3

    def test_saved_file_has_comments(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        mgr.save(default_booking_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert text.startswith("# ====")
        assert "Kontingente" in text
        assert "= 2 Stunden" in text

    def test_closures_roundtrip(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        config, _ = mgr.add_closure(default_booking_config(), _utc(10), _utc(12))
        mgr.save(config)
        loaded = mgr.load()
        closure = loaded.restrictions.planned_closures[0]
        assert closure.start_date == _utc(10)
        assert closure.end_date == _utc(12)

    def test_first_run_check_no_file(self, tmp_path: Path):
        """first_run_check gibt True zurück wenn keine Config existiert."""
        assert _manager(tmp_path).first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        mgr.save(default_booking_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        """Laden einer nicht-existenten Datei → FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(tmp_path / "not_there.yaml")

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        path = tmp_path / "booking_config.yaml"
        path.write_text("limits:\n  max_slots_per_day: -3\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            ConfigManager(path).load()

    def test_load_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "booking_config.yaml"
        path.write_text("", encoding="utf-8")
        assert ConfigManager(path).load().limits.max_slots_per_day == 4


# ─── GEPLANTE SCHLIESSUNGEN ───────────────────────────────────────────────────

class TestClosureManagement:
    def test_ids_increment(self):
        mgr = ConfigManager()
        config, first = mgr.add_closure(default_booking_config(), _utc(10), _utc(12))
        config, second = mgr.add_closure(config, _utc(3), _utc(4))
        assert (first.id, second.id) == (1, 2)
        # sortiert nach Beginn
        assert [c.id for c in config.restrictions.planned_closures] == [2, 1]

    def test_add_does_not_mutate_original(self):
        original = default_booking_config()
        ConfigManager().add_closure(original, _utc(10), _utc(12))
        assert original.restrictions.planned_closures == []

    def test_add_invalid_interval_raises(self):
        with pytest.raises(ValueError):
            ConfigManager().add_closure(default_booking_config(), _utc(12), _utc(10))

    def test_remove(self):
        mgr = ConfigManager()
        config, closure = mgr.add_closure(default_booking_config(), _utc(10), _utc(12))
        config, removed = mgr.remove_closure(config, closure.id)
        assert removed is True
        assert config.restrictions.planned_closures == []

    def test_remove_unknown_id(self):
        config, removed = ConfigManager().remove_closure(default_booking_config(), 99)
        assert removed is False


# ─── SNAPSHOT ─────────────────────────────────────────────────────────────────

class TestBookingSnapshot:
    def _make(self, **kwargs) -> BookingSnapshot:
        data = dict(
            slots_by_day={"Thu 6": {"10:00": Slot(), "10:30": Slot(is_booked=True)}},
            role=2,
        )
        data.update(kwargs)
        return BookingSnapshot(**data)

    def test_slot_at(self):
        snapshot = self._make()
        assert snapshot.slot_at("Thu 6", "10:30").is_booked
        assert snapshot.slot_at("Thu 6", "11:00") is None
        assert snapshot.slot_at("Fri 7", "10:00") is None

    def test_invalid_role_raises(self):
        with pytest.raises(ValidationError):
            self._make(role=5)

    def test_malformed_label_raises(self):
        with pytest.raises(ValidationError):
            self._make(slots_by_day={"Thursday": {"10:00": Slot()}})

    def test_malformed_preselected_key_raises(self):
        with pytest.raises(ValidationError):
            self._make(preselected_keys=["not-a-key"])

    def test_naive_committed_treated_as_utc(self):
        snapshot = self._make(committed_slots=[datetime(2024, 6, 6, 10, 0)])
        assert snapshot.committed_slots[0] == _utc(6, 10)

    def test_summary_contains_key_info(self):
        summary = self._make(equipment_name="Laser Cutter").summary()
        assert "Laser Cutter" in summary
        assert "Rolle: 2" in summary
        assert "1 gebucht" in summary

    def test_save_and_load_json(self, tmp_path: Path):
        """Snapshot → JSON → Snapshot Roundtrip."""
        snapshot = self._make(
            committed_slots=[_utc(6, 8)],
            preselected_keys=["2024-06-06T10:00:00.000Z|2024-06-06T10:30:00.000Z"],
            workshop=WorkshopContext(current_workshop_id=3, current_occurrence_ids=[7]),
        )
        path = tmp_path / "snapshot.json"
        snapshot.save_json(path)
        loaded = BookingSnapshot.load_json(path)
        assert loaded == snapshot

    def test_load_json_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            BookingSnapshot.load_json(tmp_path / "does_not_exist.json")


# ─── MAIN.PY CLI ──────────────────────────────────────────────────────────────

class TestCli:
    def test_help(self):
        """main.py --help gibt Usage aus."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_config_show_no_file(self):
        """config show ohne Konfiguration → Fehlermeldung."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code != 0

    def test_setup_then_show(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            assert runner.invoke(cli, ["setup"]).exit_code == 0
            assert Path("config/booking_config.yaml").exists()
            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 0
            assert "Makerspace" in result.output

    def test_closures_add_list_remove(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["setup"])
            result = runner.invoke(cli, ["closures", "add", "2024-06-10", "2024-06-12"])
            assert result.exit_code == 0
            result = runner.invoke(cli, ["closures", "list"])
            assert "2024-06-10" in result.output
            assert runner.invoke(cli, ["closures", "remove", "1"]).exit_code == 0
            assert runner.invoke(cli, ["closures", "remove", "1"]).exit_code != 0

    def test_closures_add_inverted_fails(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["setup"])
            result = runner.invoke(cli, ["closures", "add", "2024-06-12", "2024-06-10"])
            assert result.exit_code != 0

    def test_generate_and_select(self):
        """generate → select: Ergebnis wird als Tabelle ausgegeben."""
        from click.testing import CliRunner
        from main import cli
        from engine.calendar import BookingCalendar
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["setup"])
            result = runner.invoke(cli, ["generate", "--seed", "1"])
            assert result.exit_code == 0
            assert Path("output/snapshot.json").exists()

            day = BookingCalendar.for_now().generate_day_labels(7)[-1]
            result = runner.invoke(cli, ["select", "-c", day, "23:30"])
            assert result.exit_code == 0
            assert "Auswahl" in result.output

    def test_check_malformed_coordinate(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["setup"])
            runner.invoke(cli, ["generate"])
            result = runner.invoke(cli, ["check", "Thursday", "10:00"])
            assert result.exit_code == 1
            assert "Ungültige Koordinate" in result.output

    def test_grid_command_exists(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["grid", "--help"])
        assert result.exit_code == 0
        assert "--week" in result.output
