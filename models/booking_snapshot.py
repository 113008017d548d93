"""BookingSnapshot: alles, was die Sitzungsschicht vor dem Rendern liefert (Pydantic v2)."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.slot import Slot, WorkshopContext
from models.timeslot import SelectionEntry, parse_day_label, parse_time_label

logger = logging.getLogger(__name__)


class BookingSnapshot(BaseModel):
    """Unveränderlicher Stand für eine Buchungssitzung.

    Wird pro Render neu geliefert; die Engine liest nur daraus.
    """

    # Tageslabel → Zeitlabel → Slot
    slots_by_day: dict[str, dict[str, Slot]]
    # Rolle des Nutzers (1–4)
    role: int = Field(ge=1, le=4)
    # Startzeitpunkte der bereits gebuchten eigenen Slots
    committed_slots: list[datetime] = []
    # Vorausgewählte Slots ("startISO|endISO")
    preselected_keys: list[str] = []
    workshop: WorkshopContext = Field(default_factory=WorkshopContext)
    equipment_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("slots_by_day")
    @classmethod
    def _check_labels(cls, v: dict[str, dict[str, Slot]]) -> dict[str, dict[str, Slot]]:
        for day_label, times in v.items():
            parse_day_label(day_label)
            for time_label in times:
                parse_time_label(time_label)
        return v

    @field_validator("committed_slots")
    @classmethod
    def _aware_instants(cls, v: list[datetime]) -> list[datetime]:
        # Ohne Zeitzone gelieferte Zeitpunkte gelten als UTC
        return [dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc) for dt in v]

    @field_validator("preselected_keys")
    @classmethod
    def _check_keys(cls, v: list[str]) -> list[str]:
        for key in v:
            SelectionEntry.from_key(key)
        return v

    # ─── Zugriff ───

    def slot_at(self, day_label: str, time_label: str) -> Optional[Slot]:
        return self.slots_by_day.get(day_label, {}).get(time_label)

    @property
    def day_labels(self) -> list[str]:
        return list(self.slots_by_day)

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Snapshot."""
        cells = [s for times in self.slots_by_day.values() for s in times.values()]
        lines = [
            f"Gerät: {self.equipment_name}" if self.equipment_name else "",
            f"Rolle: {self.role}",
            f"Tage: {len(self.slots_by_day)}",
            f"Zellen: {len(cells)} "
            f"({sum(1 for s in cells if s.is_available)} verfügbar, "
            f"{sum(1 for s in cells if s.is_booked)} gebucht)",
            f"Workshop-Reservierungen: "
            f"{sum(1 for s in cells if s.reserved_for_workshop)}",
            f"Eigene Buchungen: {len(self.committed_slots)}",
            f"Vorauswahl: {len(self.preselected_keys)}",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Persistenz ───

    def save_json(self, path: Path) -> None:
        """Speichert den Snapshot als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "BookingSnapshot":
        """Lädt einen gespeicherten Snapshot aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            snapshot = cls.model_validate_json(f.read())
        logger.info(f"Snapshot geladen: {path} ({len(snapshot.slots_by_day)} Tage)")
        return snapshot
