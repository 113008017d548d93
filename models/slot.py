"""Datenmodell für einen buchbaren 30-Minuten-Slot (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Slot(BaseModel):
    """Zustand einer Rasterzelle, wie ihn die Persistenzschicht liefert.

    Nur lesend: Lebenszyklus gehört der Buchungs-/Persistenzschicht.
    """
    model_config = ConfigDict(frozen=True)

    slot_id: Optional[int] = None
    is_available: bool = True
    is_booked: bool = False
    booked_by_me: bool = False
    reserved_for_workshop: bool = False
    workshop_name: Optional[str] = None
    workshop_occurrence_id: Optional[int] = None   # gesetzt wenn reserved_for_workshop


class WorkshopReservation(BaseModel):
    """Eintrag in der separaten Workshop-Slot-Tabelle."""
    model_config = ConfigDict(frozen=True)

    workshop_name: str
    occurrence_id: Optional[int] = None


class WorkshopContext(BaseModel):
    """Workshop-Reservierungen plus der gerade bearbeitete Workshop (falls vorhanden)."""
    model_config = ConfigDict(frozen=True)

    # Tageslabel → Zeitlabel → Reservierung
    workshop_slots: dict[str, dict[str, WorkshopReservation]] = Field(default_factory=dict)
    current_workshop_id: Optional[int] = None
    current_workshop_name: Optional[str] = None
    current_occurrence_ids: list[int] = Field(default_factory=list)

    def reservation_at(self, day_label: str, time_label: str) -> Optional[WorkshopReservation]:
        return self.workshop_slots.get(day_label, {}).get(time_label)

    def belongs_to_current(self, occurrence_id: Optional[int],
                           workshop_name: Optional[str]) -> bool:
        """True wenn die Reservierung zum gerade bearbeiteten Workshop gehört.

        Ohne Occurrence-ID wird über den Workshop-Namen verglichen.
        """
        if occurrence_id is not None:
            return occurrence_id in self.current_occurrence_ids
        return (
            self.current_workshop_name is not None
            and workshop_name == self.current_workshop_name
        )
