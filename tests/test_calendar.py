"""Tests für das Kalendermodell: Labels, Monatswechsel, Auswahl-Schlüssel."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from engine.calendar import (
    BookingCalendar,
    format_day_label,
    generate_time_labels,
    partition_into_weeks,
)
from models.timeslot import CellCoordinate, MalformedCoordinate, SelectionEntry


# ─── ZEITLABELS ───────────────────────────────────────────────────────────────

class TestTimeLabels:
    def test_half_hour_marks(self):
        """Halbstunden-Marken in [start, end), zweistellig formatiert."""
        assert generate_time_labels(9, 11) == ["09:00", "09:30", "10:00", "10:30"]

    def test_full_day(self):
        labels = generate_time_labels(0, 24)
        assert len(labels) == 48
        assert labels[0] == "00:00"
        assert labels[-1] == "23:30"

    def test_empty_range(self):
        assert generate_time_labels(5, 5) == []

    def test_restartable(self):
        """Reine Funktion: gleiche Grenzen → gleiche Folge."""
        assert generate_time_labels(8, 12) == generate_time_labels(8, 12)

    def test_inverted_bounds_raise(self):
        with pytest.raises(ValueError):
            generate_time_labels(10, 9)

    def test_out_of_range_raise(self):
        with pytest.raises(ValueError):
            generate_time_labels(0, 25)


# ─── TAGESLABELS ──────────────────────────────────────────────────────────────

class TestDayLabels:
    def test_consecutive_days_from_today(self):
        cal = BookingCalendar(today=date(2024, 6, 25))
        assert cal.generate_day_labels(3) == ["Tue 25", "Wed 26", "Thu 27"]

    def test_across_month_end(self):
        cal = BookingCalendar(today=date(2024, 6, 29))
        assert cal.generate_day_labels(4) == ["Sat 29", "Sun 30", "Mon 1", "Tue 2"]

    def test_zero_count(self):
        assert BookingCalendar(today=date(2024, 6, 25)).generate_day_labels(0) == []

    def test_format_day_label_no_padding(self):
        assert format_day_label(date(2024, 8, 8)) == "Thu 8"

    def test_partition_into_weeks(self):
        cal = BookingCalendar(today=date(2024, 6, 1))
        labels = cal.generate_day_labels(10)
        weeks = partition_into_weeks(labels)
        assert [len(w) for w in weeks] == [7, 3]
        assert [l for w in weeks for l in w] == labels

    def test_partition_invalid_week_size(self):
        with pytest.raises(ValueError):
            partition_into_weeks(["Mon 3"], week_size=0)


# ─── MONATSWECHSEL-REGEL ──────────────────────────────────────────────────────

class TestRollover:
    def test_rollover_to_next_month(self):
        """Heute = 25., Label-Tag 3 → nächster Monat."""
        cal = BookingCalendar(today=date(2024, 6, 25))
        assert cal.resolve_date("Wed 3") == date(2024, 7, 3)

    def test_no_rollover_before_threshold(self):
        """Heute ≤ 20. → immer aktueller Monat, auch für kleinere Tage."""
        cal = BookingCalendar(today=date(2024, 6, 15))
        assert cal.resolve_date("Mon 3") == date(2024, 6, 3)

    def test_no_rollover_at_threshold(self):
        cal = BookingCalendar(today=date(2024, 6, 20))
        assert cal.resolve_date("Mon 3") == date(2024, 6, 3)

    def test_same_month_for_later_day(self):
        cal = BookingCalendar(today=date(2024, 6, 25))
        assert cal.resolve_date("Thu 27") == date(2024, 6, 27)

    def test_today_resolves_to_today(self):
        cal = BookingCalendar(today=date(2024, 6, 25))
        assert cal.resolve_date("Tue 25") == date(2024, 6, 25)

    def test_december_rolls_into_next_year(self):
        cal = BookingCalendar(today=date(2024, 12, 28))
        assert cal.resolve_date("Thu 2") == date(2025, 1, 2)

    def test_generated_labels_resolve_back(self):
        """Alle erzeugten Labels lösen auf genau ihre Tage auf."""
        cal = BookingCalendar(today=date(2024, 1, 27))
        labels = cal.generate_day_labels(14)
        resolved = [cal.resolve_date(l) for l in labels]
        assert resolved == [date(2024, 1, 27 + i) if 27 + i <= 31
                            else date(2024, 2, 27 + i - 31) for i in range(14)]

    def test_nonexistent_date_raises(self):
        """"Sun 31" im Juni gibt es nicht → MalformedCoordinate statt stiller Korrektur."""
        cal = BookingCalendar(today=date(2024, 6, 10))
        with pytest.raises(MalformedCoordinate):
            cal.resolve_date("Sun 31")


# ─── ABSOLUTE ZEITPUNKTE ──────────────────────────────────────────────────────

class TestAbsoluteDate:
    def test_resolve_in_utc(self):
        cal = BookingCalendar(today=date(2024, 6, 25))
        assert cal.resolve_absolute_date("Wed 26", "10:30") == datetime(
            2024, 6, 26, 10, 30, tzinfo=timezone.utc)

    def test_resolve_in_zone(self):
        tz = ZoneInfo("America/Toronto")
        cal = BookingCalendar(today=date(2024, 6, 25), tz=tz)
        instant = cal.resolve_absolute_date("Wed 3", "10:00")
        assert instant == datetime(2024, 7, 3, 10, 0, tzinfo=tz)
        assert instant.astimezone(timezone.utc).hour == 14

    def test_local_day_uses_calendar_zone(self):
        tz = ZoneInfo("America/Toronto")
        cal = BookingCalendar(today=date(2024, 6, 25), tz=tz)
        late_utc = datetime(2024, 6, 27, 2, 0, tzinfo=timezone.utc)   # 22:00 Toronto am 26.
        assert cal.local_day(late_utc) == date(2024, 6, 26)

    def test_entry_key_format(self):
        cal = BookingCalendar(today=date(2024, 6, 25))
        entry = cal.entry_for("Wed 26", "10:00")
        assert entry.key == "2024-06-26T10:00:00.000Z|2024-06-26T10:30:00.000Z"

    def test_datetime_today_is_truncated(self):
        cal = BookingCalendar(today=datetime(2024, 6, 25, 18, 0))
        assert cal.today == date(2024, 6, 25)


# ─── FEHLERHAFTE KOORDINATEN ──────────────────────────────────────────────────

class TestMalformed:
    @pytest.mark.parametrize("label", ["Thu8", "Foo 3", "Thu x", "", "Thu 0", "Thu 32"])
    def test_bad_day_label(self, label):
        cal = BookingCalendar(today=date(2024, 6, 25))
        with pytest.raises(MalformedCoordinate):
            cal.resolve_absolute_date(label, "10:00")

    @pytest.mark.parametrize("label", ["9:00", "10:15", "25:00", "10-00", "ab:cd"])
    def test_bad_time_label(self, label):
        cal = BookingCalendar(today=date(2024, 6, 25))
        with pytest.raises(MalformedCoordinate):
            cal.resolve_absolute_date("Wed 26", label)

    def test_malformed_is_value_error(self):
        assert issubclass(MalformedCoordinate, ValueError)

    def test_cell_coordinate_validates(self):
        with pytest.raises(MalformedCoordinate):
            CellCoordinate("Thursday 8", "10:00")

    def test_cell_coordinate_parts(self):
        coord = CellCoordinate("Thu 8", "16:30")
        assert coord.weekday_name == "Thursday"
        assert coord.day_of_month == 8
        assert (coord.hour, coord.minute) == (16, 30)


# ─── AUSWAHL-EINTRÄGE ─────────────────────────────────────────────────────────

class TestSelectionEntry:
    def test_from_key(self):
        entry = SelectionEntry.from_key("2024-06-26T10:00:00.000Z|2024-06-26T10:30:00.000Z")
        assert entry.start == datetime(2024, 6, 26, 10, 0, tzinfo=timezone.utc)
        assert entry.end == datetime(2024, 6, 26, 10, 30, tzinfo=timezone.utc)

    def test_equality_on_instants_not_strings(self):
        """Gleiche Zeitpunkte in verschiedenen Zonen sind derselbe Eintrag."""
        tz = ZoneInfo("America/Toronto")
        a = SelectionEntry.starting_at(datetime(2024, 6, 26, 6, 0, tzinfo=tz))
        b = SelectionEntry.starting_at(datetime(2024, 6, 26, 10, 0, tzinfo=timezone.utc))
        assert a == b
        assert len({a, b}) == 1
        assert a.key == b.key

    def test_key_without_milliseconds_parses(self):
        entry = SelectionEntry.from_key("2024-06-26T10:00:00+00:00|2024-06-26T10:30:00+00:00")
        assert entry.key == "2024-06-26T10:00:00.000Z|2024-06-26T10:30:00.000Z"

    @pytest.mark.parametrize("key", [
        "2024-06-26T10:00:00.000Z",
        "garbage|garbage",
        "2024-06-26T10:00:00|2024-06-26T10:30:00",
        "2024-06-26T10:30:00.000Z|2024-06-26T10:00:00.000Z",
    ])
    def test_bad_keys(self, key):
        with pytest.raises(MalformedCoordinate):
            SelectionEntry.from_key(key)
