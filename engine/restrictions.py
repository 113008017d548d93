"""Zulässigkeitsprüfung einer Rasterzelle (unabhängig vom Kontingent).

Reihenfolge der Prüfungen (die erste Verletzung wird gemeldet):
  1. Vergangenheit           (alle Rollen)
  2. Öffnungszeiten          (Rolle 3)
  3. Sperrfenster            (Rolle 4)
  4. Geplante Schließung     (Rolle 3)
  5. Workshop-Reservierung
  6. Bereits gebucht
  7. Nicht verfügbar

Alle Funktionen sind rein: keine Seiteneffekte, kein Zugriff auf die Uhr.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from config.schema import RestrictionSet
from engine.calendar import BookingCalendar
from models.slot import Slot, WorkshopContext
from models.timeslot import CellCoordinate

logger = logging.getLogger(__name__)


class RestrictionReason(str, Enum):
    PAST_SLOT = "past_slot"
    ADMIN_RESTRICTED = "admin_restricted"
    PLANNED_CLOSURE = "planned_closure"
    RESERVED_FOR_OTHER_WORKSHOP = "reserved_for_other_workshop"
    ALREADY_BOOKED = "already_booked"
    UNAVAILABLE = "unavailable"


class Admissibility(BaseModel):
    """Ergebnis der Zulässigkeitsprüfung einer Zelle."""

    admissible: bool
    reason: Optional[RestrictionReason] = None
    message: Optional[str] = None
    booked_by_me: bool = False   # nur für ALREADY_BOOKED, ändert die Zulässigkeit nicht

    @classmethod
    def ok(cls) -> "Admissibility":
        return cls(admissible=True)

    @classmethod
    def reject(cls, reason: RestrictionReason, message: str,
               booked_by_me: bool = False) -> "Admissibility":
        return cls(admissible=False, reason=reason, message=message,
                   booked_by_me=booked_by_me)


class _CheckContext:
    """Gemeinsame Eingaben aller Einzelprüfungen einer Zelle."""

    def __init__(
        self,
        coord: CellCoordinate,
        role: int,
        restrictions: RestrictionSet,
        now: datetime,
        calendar: BookingCalendar,
        slot: Optional[Slot],
        workshop: Optional[WorkshopContext],
    ) -> None:
        self.coord = coord
        self.role = role
        self.restrictions = restrictions
        self.now = calendar.localize(now)
        self.calendar = calendar
        self.slot = slot
        self.workshop = workshop
        self._instant: Optional[datetime] = None

    @property
    def instant(self) -> datetime:
        if self._instant is None:
            self._instant = self.calendar.resolve_absolute_date(
                self.coord.day_label, self.coord.time_label)
        return self._instant


# ── Einzelne Prüfungen ────────────────────────────────────────────────────────

def _check_past(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.instant < ctx.now:
        return Admissibility.reject(
            RestrictionReason.PAST_SLOT,
            f"{ctx.coord} is in the past and can no longer be booked.",
        )
    return None


def _check_level3_hours(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.role != 3:
        return None
    weekday = ctx.coord.weekday_name
    hours = ctx.restrictions.level3.days.get(weekday)
    if hours is None:
        return None
    if hours.closed:
        return Admissibility.reject(
            RestrictionReason.ADMIN_RESTRICTED,
            f"Equipment bookings are closed on {weekday}s.",
        )
    hour = ctx.coord.hour
    if hour < hours.start_hour or hour >= hours.end_hour:
        return Admissibility.reject(
            RestrictionReason.ADMIN_RESTRICTED,
            f"On {weekday}s equipment can only be booked between "
            f"{hours.start_hour:02d}:00 and {hours.end_hour:02d}:00.",
        )
    return None


def _check_level4_hours(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.role != 4:
        return None
    window = ctx.restrictions.level4
    if window.is_unrestricted:
        return None
    hour = ctx.coord.hour
    if window.is_overnight:
        blocked = hour >= window.start_hour or hour < window.end_hour
    else:
        blocked = window.start_hour <= hour < window.end_hour
    if blocked:
        return Admissibility.reject(
            RestrictionReason.ADMIN_RESTRICTED,
            f"Equipment cannot be booked between {window.start_hour:02d}:00 "
            f"and {window.end_hour:02d}:00.",
        )
    return None


def _check_planned_closures(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.role != 3:
        return None
    for closure in ctx.restrictions.planned_closures:
        start = ctx.calendar.localize(closure.start_date)
        end = ctx.calendar.localize(closure.end_date)
        if start <= ctx.instant < end:
            return Admissibility.reject(
                RestrictionReason.PLANNED_CLOSURE,
                f"The facility is closed from {start:%Y-%m-%d %H:%M} "
                f"to {end:%Y-%m-%d %H:%M} (planned closure #{closure.id}).",
            )
    return None


def _check_workshop_reservation(ctx: _CheckContext) -> Optional[Admissibility]:
    workshop = ctx.workshop or WorkshopContext()
    occurrence_id: Optional[int] = None
    name: Optional[str] = None
    reserved = False

    if ctx.slot is not None and ctx.slot.reserved_for_workshop:
        reserved = True
        occurrence_id = ctx.slot.workshop_occurrence_id
        name = ctx.slot.workshop_name
    else:
        reservation = workshop.reservation_at(ctx.coord.day_label, ctx.coord.time_label)
        if reservation is not None:
            reserved = True
            occurrence_id = reservation.occurrence_id
            name = reservation.workshop_name

    if not reserved or workshop.belongs_to_current(occurrence_id, name):
        return None
    label = f"workshop '{name}'" if name else "another workshop"
    return Admissibility.reject(
        RestrictionReason.RESERVED_FOR_OTHER_WORKSHOP,
        f"{ctx.coord} is reserved for {label}.",
    )


def _check_booked(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.slot is None or not ctx.slot.is_booked:
        return None
    if ctx.slot.booked_by_me:
        return Admissibility.reject(
            RestrictionReason.ALREADY_BOOKED,
            f"You have already booked {ctx.coord}.",
            booked_by_me=True,
        )
    return Admissibility.reject(
        RestrictionReason.ALREADY_BOOKED,
        f"{ctx.coord} is already booked by another member.",
    )


def _check_available(ctx: _CheckContext) -> Optional[Admissibility]:
    if ctx.slot is not None and not ctx.slot.is_available:
        return Admissibility.reject(
            RestrictionReason.UNAVAILABLE,
            f"{ctx.coord} is not available for booking.",
        )
    return None


_CHECKS: list[Callable[[_CheckContext], Optional[Admissibility]]] = [
    _check_past,
    _check_level3_hours,
    _check_level4_hours,
    _check_planned_closures,
    _check_workshop_reservation,
    _check_booked,
    _check_available,
]


# ── Öffentliche API ───────────────────────────────────────────────────────────

def evaluate_all(
    day_label: str,
    time_label: str,
    role: int,
    restrictions: RestrictionSet,
    now: datetime,
    calendar: BookingCalendar,
    slot: Optional[Slot] = None,
    workshop: Optional[WorkshopContext] = None,
) -> list[Admissibility]:
    """Alle verletzten Prüfungen einer Zelle in Prioritätsreihenfolge (für Tooltips).

    Wirft MalformedCoordinate bei ungültigen Labels.
    """
    ctx = _CheckContext(CellCoordinate(day_label, time_label), role, restrictions,
                        now, calendar, slot, workshop)
    failures = []
    for check in _CHECKS:
        result = check(ctx)
        if result is not None:
            failures.append(result)
    return failures


def is_admissible(
    day_label: str,
    time_label: str,
    role: int,
    restrictions: RestrictionSet,
    now: datetime,
    calendar: BookingCalendar,
    slot: Optional[Slot] = None,
    workshop: Optional[WorkshopContext] = None,
) -> Admissibility:
    """Darf die Zelle (ohne Kontingent-Betrachtung) ausgewählt werden?

    Gibt die erste verletzte Prüfung zurück. Ohne ``slot`` entfallen die
    slotbezogenen Prüfungen (gebucht, verfügbar, Reservierungs-Flag).
    """
    ctx = _CheckContext(CellCoordinate(day_label, time_label), role, restrictions,
                        now, calendar, slot, workshop)
    for check in _CHECKS:
        result = check(ctx)
        if result is not None:
            logger.debug(f"{ctx.coord} abgelehnt: {result.reason.value}")
            return result
    return Admissibility.ok()
