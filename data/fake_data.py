"""Testdaten-Generator für das Buchungsraster.

Erzeugt einen realistischen BookingSnapshot mit absichtlichen Engpässen:
  1. Fremdbuchungen: ~15 % der Zellen sind von anderen Mitgliedern belegt
  2. Wartung: einzelne Zellen sind nicht verfügbar
  3. Workshop-Block: Tag 2, 10:00–12:00 für einen Workshop reserviert
  4. Eigene Buchungen: an den ersten Tagen schon je 2 eigene Slots
     → Tages- und 7-Tage-Limit greifen früh
"""

import random
from datetime import datetime, timezone
from typing import Optional

from config.schema import BookingConfig
from engine.calendar import BookingCalendar, generate_time_labels
from models.booking_snapshot import BookingSnapshot
from models.slot import Slot, WorkshopContext

_EQUIPMENT_NAMES = [
    "Laser Cutter", "CNC Router", "3D Printer (Prusa)", "Vinyl Cutter",
    "Embroidery Machine", "Table Saw", "Soldering Station",
]

_WORKSHOP_NAMES = [
    "Intro to Laser Cutting", "CNC Basics", "3D Printing 101",
    "Sewing Fundamentals", "Woodshop Safety",
]


class FakeSnapshotGenerator:
    """Generiert einen vollständigen Snapshot auf Basis der BookingConfig."""

    def __init__(self, config: BookingConfig, calendar: BookingCalendar,
                 role: int = 2, seed: Optional[int] = None) -> None:
        self.config = config
        self.calendar = calendar
        self.role = role
        self.rng = random.Random(seed)

    def generate(self, own_days: int = 3, own_per_day: int = 2) -> BookingSnapshot:
        start_hour, end_hour = self.config.grid_hours_for_role(self.role)
        time_labels = generate_time_labels(start_hour, end_hour)
        day_labels = self.calendar.generate_day_labels(self.config.limits.visibility_days)

        workshop_name = self.rng.choice(_WORKSHOP_NAMES)
        workshop_occurrence = self.rng.randint(100, 999)
        workshop_times = {"10:00", "10:30", "11:00", "11:30"}

        slots_by_day: dict[str, dict[str, Slot]] = {}
        committed: list[datetime] = []
        slot_id = 1

        for day_idx, day_label in enumerate(day_labels):
            day_slots: dict[str, Slot] = {}
            own_left = own_per_day if day_idx < own_days else 0
            for time_label in time_labels:
                if day_idx == 1 and time_label in workshop_times:
                    slot = Slot(slot_id=slot_id, reserved_for_workshop=True,
                                workshop_name=workshop_name,
                                workshop_occurrence_id=workshop_occurrence)
                elif own_left and time_label >= "12:00":
                    slot = Slot(slot_id=slot_id, is_booked=True, booked_by_me=True)
                    committed.append(
                        self.calendar.resolve_absolute_date(day_label, time_label)
                        .astimezone(timezone.utc)
                    )
                    own_left -= 1
                else:
                    r = self.rng.random()
                    if r < 0.15:
                        slot = Slot(slot_id=slot_id, is_booked=True)
                    elif r < 0.20:
                        slot = Slot(slot_id=slot_id, is_available=False)
                    else:
                        slot = Slot(slot_id=slot_id)
                day_slots[time_label] = slot
                slot_id += 1
            slots_by_day[day_label] = day_slots

        return BookingSnapshot(
            slots_by_day=slots_by_day,
            role=self.role,
            committed_slots=committed,
            preselected_keys=[],
            workshop=WorkshopContext(),
            equipment_name=self.rng.choice(_EQUIPMENT_NAMES),
            created_at=datetime.now(timezone.utc),
        )

    def print_summary(self, snapshot: BookingSnapshot) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht des erzeugten Snapshots aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        cells = [s for times in snapshot.slots_by_day.values() for s in times.values()]
        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        table.add_row("Tage", str(len(snapshot.slots_by_day)),
                      ", ".join(snapshot.day_labels))
        table.add_row("Zellen", str(len(cells)), f"Rolle {snapshot.role}")
        table.add_row("Fremdbuchungen",
                      str(sum(1 for s in cells if s.is_booked and not s.booked_by_me)), "")
        table.add_row("Nicht verfügbar",
                      str(sum(1 for s in cells if not s.is_available)), "")
        table.add_row("Workshop-Reservierungen",
                      str(sum(1 for s in cells if s.reserved_for_workshop)),
                      next((s.workshop_name for s in cells if s.workshop_name), ""))
        table.add_row("Eigene Buchungen", str(len(snapshot.committed_slots)), "")
        console.print(table)
