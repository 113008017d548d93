"""Konfigurationsmanager: Laden, Speichern, Validieren und interaktives Bearbeiten.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import (
    BookingConfig,
    BookingLimits,
    DayHours,
    Level3Hours,
    Level4Hours,
    PlannedClosure,
    WEEKDAY_NAMES,
)

logger = logging.getLogger(__name__)

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Gerätebuchung: Buchungskonfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "limits": (
        "Kontingente",
        "Ein Slot = 30 Minuten. Wochenlimit gilt für JEDES 7-Tage-Fenster,\n"
        "nicht nur für Kalenderwochen. 0 = keine Buchung erlaubt.",
    ),
    "grid": (
        "Raster",
        "Sichtbarer Stundenbereich (Rolle 3 sieht nur ihre Öffnungszeiten).",
    ),
    "restrictions": (
        "Einschränkungen",
        "level3: Öffnungszeiten pro Wochentag, level4: tägliches Sperrfenster,\n"
        "planned_closures: geplante Schließungen (nur Rolle 3).",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "booking_config.yaml"

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is not None:
            self.DEFAULT_CONFIG = Path(path)

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> BookingConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py setup' aus, um die Buchung einzurichten."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            config = BookingConfig.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e
        logger.info(f"Konfiguration geladen: {target}")
        return config

    # ─── Speichern ───

    def save(self, config: BookingConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: BookingConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        limits_map = CommentedMap(cm["limits"])
        limits_map.yaml_add_eol_comment("= 2 Stunden", "max_slots_per_day")
        cm["limits"] = limits_map

        return cm

    # ─── Geplante Schließungen ───

    def add_closure(self, config: BookingConfig, start: datetime,
                    end: datetime) -> tuple[BookingConfig, PlannedClosure]:
        """Fügt eine Schließung hinzu; die ID ist max(bestehende) + 1."""
        closures = list(config.restrictions.planned_closures)
        next_id = max((c.id for c in closures), default=0) + 1
        closure = PlannedClosure(id=next_id, start_date=start, end_date=end)
        closures.append(closure)
        closures.sort(key=lambda c: c.start_date)
        logger.info(f"Schließung {next_id} hinzugefügt: {start} – {end}")
        return self._with_closures(config, closures), closure

    def remove_closure(self, config: BookingConfig,
                       closure_id: int) -> tuple[BookingConfig, bool]:
        """Entfernt eine Schließung. Gibt (Config, True) zurück wenn etwas entfernt wurde."""
        before = config.restrictions.planned_closures
        closures = [c for c in before if c.id != closure_id]
        return self._with_closures(config, closures), len(closures) < len(before)

    def _with_closures(self, config: BookingConfig,
                       closures: list[PlannedClosure]) -> BookingConfig:
        restrictions = config.restrictions.model_copy(
            update={"planned_closures": closures}
        )
        return config.model_copy(update={"restrictions": restrictions})

    # ─── Interaktives Bearbeiten ───

    def edit_interactive(self, config: BookingConfig) -> BookingConfig:
        """Interaktives Bearbeitungsmenü für die Konfiguration."""
        while True:
            console.print()
            console.print(Panel(
                "[bold]Konfiguration bearbeiten[/bold]",
                border_style="cyan",
            ))
            console.print("  [bold]1.[/bold] Kontingente (Slots pro Tag / 7 Tage)")
            console.print("  [bold]2.[/bold] Öffnungszeiten Rolle 3")
            console.print("  [bold]3.[/bold] Sperrfenster Rolle 4")
            console.print("  [bold]0.[/bold] Speichern & Zurück")

            choice = Prompt.ask("\nAuswahl", default="0")

            if choice == "1":
                config = config.model_copy(
                    update={"limits": self._edit_limits(config.limits)}
                )
            elif choice == "2":
                restrictions = config.restrictions.model_copy(
                    update={"level3": self._edit_level3(config.restrictions.level3)}
                )
                config = config.model_copy(update={"restrictions": restrictions})
            elif choice == "3":
                restrictions = config.restrictions.model_copy(
                    update={"level4": self._edit_level4(config.restrictions.level4)}
                )
                config = config.model_copy(update={"restrictions": restrictions})
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Ungültige Auswahl.[/yellow]")

        return config

    def _edit_limits(self, limits: BookingLimits) -> BookingLimits:
        """Kontingente interaktiv anpassen."""
        per_day = IntPrompt.ask("Max. Slots pro Tag", default=limits.max_slots_per_day)
        per_week = IntPrompt.ask("Max. Slots pro 7 Tage",
                                 default=limits.max_slots_per_week)
        days = IntPrompt.ask("Sichtbare Tage", default=limits.visibility_days)
        return BookingLimits(max_slots_per_day=per_day,
                             max_slots_per_week=per_week,
                             visibility_days=days)

    def _edit_level3(self, level3: Level3Hours) -> Level3Hours:
        """Öffnungszeiten pro Wochentag interaktiv anpassen."""
        table = Table(box=box.SIMPLE)
        table.add_column("Tag", style="bold")
        table.add_column("Aktuell")
        for name in WEEKDAY_NAMES:
            hours = level3.days.get(name)
            if hours is None:
                table.add_row(name, "[dim]keine Einschränkung[/dim]")
            elif hours.closed:
                table.add_row(name, "[red]geschlossen[/red]")
            else:
                table.add_row(name, f"{hours.start_hour:02d}:00 – {hours.end_hour:02d}:00")
        console.print(table)

        if not Confirm.ask("Änderungen vornehmen?", default=False):
            return level3

        days = dict(level3.days)
        for name in WEEKDAY_NAMES:
            current = days.get(name, DayHours())
            if Confirm.ask(f"{name} geschlossen?", default=current.closed):
                days[name] = DayHours(closed=True)
                continue
            start = IntPrompt.ask(f"{name} Beginn (Stunde)", default=current.start_hour)
            end = IntPrompt.ask(f"{name} Ende (Stunde)", default=current.end_hour)
            days[name] = DayHours(start_hour=start, end_hour=end)
        return Level3Hours(days=days)

    def _edit_level4(self, level4: Level4Hours) -> Level4Hours:
        """Sperrfenster interaktiv anpassen (0/0 = keine Sperre)."""
        start = IntPrompt.ask("Sperre ab (Stunde)", default=level4.start_hour)
        end = IntPrompt.ask("Sperre bis (Stunde)", default=level4.end_hour)
        return Level4Hours(start_hour=start, end_hour=end)
