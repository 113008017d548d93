"""Kontingentprüfung: Slots pro Kalendertag und pro rollierendem 7-Tage-Fenster.

Das Wochenlimit ist NICHT an Kalenderwochen gebunden. Jeder Tag mit
eigener Aktivität (Buchung oder Auswahl), der Tag des Kandidaten und die
7 Tage vor dem ersten sichtbaren Rastertag gelten als möglicher
Fensterbeginn D. Für jedes Fenster [D, D+7), das den Kandidaten enthält,
wird gezählt. Überschreitet auch nur eines das Limit, wird abgelehnt.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Union

from pydantic import BaseModel

from engine.calendar import BookingCalendar
from models.timeslot import SLOT_MINUTES, SelectionEntry

logger = logging.getLogger(__name__)

WINDOW_DAYS = 7
DEFAULT_MAX_SLOTS_PER_DAY = 4
DEFAULT_MAX_SLOTS_PER_WEEK = 14


class QuotaReason(str, Enum):
    DAILY_QUOTA_EXCEEDED = "daily_quota_exceeded"
    WEEKLY_QUOTA_EXCEEDED = "weekly_quota_exceeded"


class QuotaDecision(BaseModel):
    """Ergebnis einer Kontingentprüfung."""

    allowed: bool
    reason: Optional[QuotaReason] = None
    message: Optional[str] = None
    window_start: Optional[date] = None   # inklusive
    window_end: Optional[date] = None     # exklusive
    count: Optional[int] = None           # Slots inkl. Kandidat

    @classmethod
    def ok(cls) -> "QuotaDecision":
        return cls(allowed=True)


def format_slot_duration(slots: int) -> str:
    """4 → "2 hours", 1 → "30 minutes", 3 → "1.5 hours"."""
    minutes = slots * SLOT_MINUTES
    if minutes < 60:
        return f"{minutes} minutes"
    hours = minutes / 60
    if hours == 1:
        return "1 hour"
    return f"{hours:g} hours"


class QuotaTracker:
    """Prüft, ob ein weiterer Slot in die Tages- und 7-Tage-Kontingente passt.

    Hält selbst keinen Auswahlzustand: die aktuelle Auswahl wird bei jedem
    Aufruf übergeben, das Ergebnis verändert nichts.
    """

    def __init__(
        self,
        calendar: BookingCalendar,
        committed: Iterable[datetime] = (),
        max_per_day: int = DEFAULT_MAX_SLOTS_PER_DAY,
        max_per_week: int = DEFAULT_MAX_SLOTS_PER_WEEK,
        first_visible_day: Optional[date] = None,
    ) -> None:
        if max_per_day < 0 or max_per_week < 0:
            raise ValueError(
                f"Kontingente dürfen nicht negativ sein: {max_per_day}/{max_per_week}")
        self.calendar = calendar
        self.committed: frozenset[datetime] = frozenset(
            calendar.localize(dt) for dt in committed
        )
        self.max_per_day = max_per_day
        self.max_per_week = max_per_week
        self.first_visible_day = first_visible_day or calendar.today

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def can_add(
        self,
        candidate: Union[SelectionEntry, datetime],
        selections: Iterable[SelectionEntry] = (),
        removing: Optional[SelectionEntry] = None,
    ) -> QuotaDecision:
        """Passt ``candidate`` zusätzlich zu Buchungen + Auswahl in beide Kontingente?"""
        start = candidate.start if isinstance(candidate, SelectionEntry) else candidate
        start = self.calendar.localize(start)
        mine = self._mine(selections, removing)
        mine.discard(start)

        per_day = Counter(self.calendar.local_day(i) for i in mine)
        candidate_day = self.calendar.local_day(start)

        decision = self._check_daily(candidate_day, per_day)
        if decision.allowed:
            decision = self._check_weekly(candidate_day, per_day)
        if not decision.allowed:
            logger.debug(f"Kontingent verletzt für {start.isoformat()}: {decision.reason.value}")
        return decision

    def usage(self, selections: Iterable[SelectionEntry] = ()) -> dict[date, int]:
        """Anzahl eigener Slots (Buchungen + Auswahl) pro Kalendertag."""
        counts = Counter(self.calendar.local_day(i) for i in self._mine(selections))
        return dict(sorted(counts.items()))

    def anchor_days(self, selections: Iterable[SelectionEntry] = (),
                    candidate_day: Optional[date] = None) -> list[date]:
        """Alle möglichen Fensteranfänge in Prüfreihenfolge."""
        per_day = self.usage(selections)
        return self._anchors(per_day, candidate_day)

    # ─── Einzelne Prüfungen ───────────────────────────────────────────────────

    def _check_daily(self, candidate_day: date, per_day: Counter) -> QuotaDecision:
        if self.max_per_day == 0:
            return QuotaDecision(
                allowed=False,
                reason=QuotaReason.DAILY_QUOTA_EXCEEDED,
                message="Daily limit reached: 0 slots allowed per day.",
                window_start=candidate_day,
                window_end=candidate_day + timedelta(days=1),
                count=1,
            )
        count = per_day[candidate_day] + 1
        if count > self.max_per_day:
            return QuotaDecision(
                allowed=False,
                reason=QuotaReason.DAILY_QUOTA_EXCEEDED,
                message=(
                    f"Daily limit reached for {candidate_day:%a %b %d}: you can book "
                    f"up to {format_slot_duration(self.max_per_day)} "
                    f"({self.max_per_day} slots) per day."
                ),
                window_start=candidate_day,
                window_end=candidate_day + timedelta(days=1),
                count=count,
            )
        return QuotaDecision.ok()

    def _check_weekly(self, candidate_day: date, per_day: Counter) -> QuotaDecision:
        if self.max_per_week == 0:
            return QuotaDecision(
                allowed=False,
                reason=QuotaReason.WEEKLY_QUOTA_EXCEEDED,
                message="Weekly limit reached: 0 slots allowed in any 7-day period.",
                window_start=candidate_day,
                window_end=candidate_day + timedelta(days=WINDOW_DAYS),
                count=1,
            )
        for anchor in self._anchors(per_day, candidate_day):
            window_end = anchor + timedelta(days=WINDOW_DAYS)
            if not anchor <= candidate_day < window_end:
                continue
            count = 1 + sum(n for day, n in per_day.items() if anchor <= day < window_end)
            if count > self.max_per_week:
                last_day = window_end - timedelta(days=1)
                return QuotaDecision(
                    allowed=False,
                    reason=QuotaReason.WEEKLY_QUOTA_EXCEEDED,
                    message=(
                        f"Weekly limit reached: this would make {count} slots between "
                        f"{anchor:%a %b %d} and {last_day:%a %b %d}. You can book up to "
                        f"{format_slot_duration(self.max_per_week)} "
                        f"({self.max_per_week} slots) in any 7-day period."
                    ),
                    window_start=anchor,
                    window_end=window_end,
                    count=count,
                )
        return QuotaDecision.ok()

    # ─── Hilfen ───────────────────────────────────────────────────────────────

    def _mine(self, selections: Iterable[SelectionEntry],
              removing: Optional[SelectionEntry] = None) -> set[datetime]:
        """Startzeitpunkte aller eigenen Slots; doppelte Einträge zählen einmal."""
        mine = set(self.committed)
        mine.update(self.calendar.localize(e.start) for e in selections)
        if removing is not None:
            mine.discard(self.calendar.localize(removing.start))
        return mine

    def _anchors(self, per_day: dict[date, int], candidate_day: Optional[date]) -> list[date]:
        """Aktivitätstage zuerst, dann Kandidatentag, dann die Tage vor dem Raster.

        Gemeldet wird das erste verletzte Fenster in dieser Reihenfolge.
        """
        anchors = sorted(per_day)
        extra = [candidate_day] if candidate_day is not None else []
        # Fenster, die vor dem sichtbaren Raster begonnen haben
        extra += sorted(self.first_visible_day - timedelta(days=offset)
                        for offset in range(1, WINDOW_DAYS + 1))
        for day in extra:
            if day not in anchors:
                anchors.append(day)
        return anchors

    def __repr__(self) -> str:
        return (
            f"QuotaTracker({len(self.committed)} gebucht, "
            f"{self.max_per_day}/Tag, {self.max_per_week}/7 Tage)"
        )
