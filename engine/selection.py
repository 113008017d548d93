"""SlotSelector – Auswahlzustand einer Buchungssitzung.

Jede Zelle ist entweder ausgewählt oder nicht. Übergänge nur per toggle():

  nicht ausgewählt → ausgewählt   Zulässigkeit UND Kontingent müssen passen
  ausgewählt → nicht ausgewählt   immer erlaubt

Abgelehnte Toggles ändern nichts und hinterlassen genau eine Fehlermeldung
(error_message), die beim nächsten erfolgreichen Toggle gelöscht wird.
Die Freigabe ist nur ein Hinweis für die Oberfläche: Verfügbarkeit und
Kontingent müssen beim Absenden serverseitig erneut geprüft werden.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel

from config.schema import BookingLimits, RestrictionSet
from engine.calendar import BookingCalendar
from engine.quota import QuotaReason, QuotaTracker
from engine.restrictions import RestrictionReason, is_admissible
from models.booking_snapshot import BookingSnapshot
from models.slot import Slot
from models.timeslot import SelectionEntry

logger = logging.getLogger(__name__)

SelectionCallback = Callable[[list[str]], None]


class SelectionState(str, Enum):
    UNSELECTED = "unselected"
    SELECTED = "selected"


class ToggleResult(BaseModel):
    """Ergebnis eines Toggles."""

    accepted: bool
    state: SelectionState               # Zustand der Zelle NACH dem Toggle
    reason: Optional[Union[RestrictionReason, QuotaReason]] = None
    message: Optional[str] = None
    selection: list[str]                # Alle ausgewählten Schlüssel, in Auswahlreihenfolge


class SlotSelector:
    """Verwaltet die Auswahl einer Sitzung und prüft jeden Toggle.

    Verwendung:
        selector = SlotSelector(calendar, snapshot, config.restrictions,
                                config.limits, on_selection_changed=submit_form.update)
        result = selector.toggle("Thu 8", "10:00")
    """

    def __init__(
        self,
        calendar: BookingCalendar,
        snapshot: BookingSnapshot,
        restrictions: RestrictionSet,
        limits: Optional[BookingLimits] = None,
        on_selection_changed: Optional[SelectionCallback] = None,
    ) -> None:
        self.calendar = calendar
        self.snapshot = snapshot
        self.restrictions = restrictions
        self.limits = limits or BookingLimits()
        self._on_selection_changed = on_selection_changed
        self.error_message: Optional[str] = None

        self.quota = QuotaTracker(
            calendar,
            committed=snapshot.committed_slots,
            max_per_day=self.limits.max_slots_per_day,
            max_per_week=self.limits.max_slots_per_week,
            first_visible_day=self._first_visible_day(),
        )

        self._selection: list[SelectionEntry] = []
        for key in snapshot.preselected_keys:
            entry = SelectionEntry.from_key(key)
            if entry not in self._selection:
                self._selection.append(entry)

    # ─── Zustand ──────────────────────────────────────────────────────────────

    @property
    def selected_entries(self) -> list[SelectionEntry]:
        return list(self._selection)

    @property
    def selected_keys(self) -> list[str]:
        return [e.key for e in self._selection]

    def is_selected(self, day_label: str, time_label: str) -> bool:
        return self.calendar.entry_for(day_label, time_label) in self._selection

    def state_of(self, day_label: str, time_label: str) -> SelectionState:
        if self.is_selected(day_label, time_label):
            return SelectionState.SELECTED
        return SelectionState.UNSELECTED

    # ─── Übergänge ────────────────────────────────────────────────────────────

    def toggle(self, day_label: str, time_label: str,
               now: Optional[datetime] = None) -> ToggleResult:
        """Schaltet eine Zelle um. Wirft nur bei ungültigen Labels (MalformedCoordinate)."""
        now = now or datetime.now(self.calendar.tz)
        entry = self.calendar.entry_for(day_label, time_label)

        if entry in self._selection:
            self._selection.remove(entry)
            logger.info(f"Abgewählt: {day_label} {time_label}")
            return self._accept(SelectionState.UNSELECTED)

        slot = self.snapshot.slot_at(day_label, time_label) or Slot(is_available=False)
        admissibility = is_admissible(
            day_label, time_label,
            role=self.snapshot.role,
            restrictions=self.restrictions,
            now=now,
            calendar=self.calendar,
            slot=slot,
            workshop=self.snapshot.workshop,
        )
        if not admissibility.admissible:
            return self._reject(admissibility.reason, admissibility.message)

        decision = self.quota.can_add(entry, self._selection)
        if not decision.allowed:
            return self._reject(decision.reason, decision.message)

        self._selection.append(entry)
        logger.info(f"Ausgewählt: {day_label} {time_label} ({len(self._selection)} gesamt)")
        return self._accept(SelectionState.SELECTED)

    def clear(self) -> None:
        """Verwirft die gesamte Auswahl."""
        self._selection = []
        self.error_message = None
        self._notify()

    # ─── Hilfen ───────────────────────────────────────────────────────────────

    def _accept(self, state: SelectionState) -> ToggleResult:
        self.error_message = None
        self._notify()
        return ToggleResult(accepted=True, state=state, selection=self.selected_keys)

    def _reject(self, reason: Union[RestrictionReason, QuotaReason],
                message: str) -> ToggleResult:
        self.error_message = message
        logger.debug(f"Toggle abgelehnt ({reason.value}): {message}")
        return ToggleResult(
            accepted=False,
            state=SelectionState.UNSELECTED,
            reason=reason,
            message=message,
            selection=self.selected_keys,
        )

    def _notify(self) -> None:
        if self._on_selection_changed is not None:
            self._on_selection_changed(self.selected_keys)

    def _first_visible_day(self) -> date:
        labels = self.snapshot.day_labels
        if not labels:
            return self.calendar.today
        return min(self.calendar.resolve_date(label) for label in labels)

    def __repr__(self) -> str:
        return f"SlotSelector({len(self._selection)} ausgewählt, Rolle {self.snapshot.role})"
