"""Kalendermodell: Übersetzung zwischen Rasterkoordinaten und absoluten Zeitpunkten.

Das Raster beschriftet Tage nur mit Wochentag + Tag des Monats ("Thu 8").
Welcher Monat gemeint ist, entscheidet die Monatswechsel-Regel:

    Tag im Label < heutiger Tag  UND  heutiger Tag > 20  →  Folgemonat
    sonst                                                →  aktueller Monat

Alle Datumsberechnungen (Kontingentfenster, Vergangenheits-Check,
Schließungen) laufen über ``BookingCalendar.resolve_absolute_date``.
Nur so bleiben die Daten zwischen den Komponenten synchron.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Sequence

from models.timeslot import (
    MalformedCoordinate,
    SelectionEntry,
    WEEKDAY_ABBREVS,
    parse_day_label,
    parse_time_label,
)

logger = logging.getLogger(__name__)

# Ab diesem Tag des Monats werden kleinere Tageszahlen dem Folgemonat zugeordnet
ROLLOVER_THRESHOLD_DAY = 20


def generate_time_labels(start_hour: int, end_hour: int) -> list[str]:
    """Alle Halbstunden-Marken in [start_hour, end_hour) als "HH:MM"."""
    if not (0 <= start_hour <= 24 and 0 <= end_hour <= 24):
        raise ValueError(f"Stunden außerhalb 0–24: {start_hour}, {end_hour}")
    if start_hour > end_hour:
        raise ValueError(f"start_hour ({start_hour}) > end_hour ({end_hour})")
    labels = []
    for hour in range(start_hour, end_hour):
        labels.append(f"{hour:02d}:00")
        labels.append(f"{hour:02d}:30")
    return labels


def partition_into_weeks(day_labels: Sequence[str], week_size: int = 7) -> list[list[str]]:
    """Gruppiert Tageslabels für die Darstellung in Wochenblöcke."""
    if week_size < 1:
        raise ValueError(f"week_size muss >= 1 sein, ist {week_size}")
    return [list(day_labels[i:i + week_size])
            for i in range(0, len(day_labels), week_size)]


def format_day_label(day: date) -> str:
    """date → "Thu 8"."""
    return f"{WEEKDAY_ABBREVS[day.weekday()]} {day.day}"


class BookingCalendar:
    """Bezugsdatum + Zeitzone für die Auflösung von Rasterkoordinaten.

    Verwendung:
        cal = BookingCalendar(today=date(2024, 6, 25), tz=ZoneInfo("America/Toronto"))
        cal.resolve_absolute_date("Wed 3", "10:00")   # → 2024-07-03 10:00 (Toronto)
    """

    def __init__(self, today: date, tz: Optional[tzinfo] = None) -> None:
        if isinstance(today, datetime):
            today = today.date()
        self.today = today
        self.tz = tz or timezone.utc

    @classmethod
    def for_now(cls, tz: Optional[tzinfo] = None) -> "BookingCalendar":
        tz = tz or timezone.utc
        return cls(today=datetime.now(tz).date(), tz=tz)

    # ─── Rasterform ───

    def generate_day_labels(self, count: int) -> list[str]:
        """``count`` aufeinanderfolgende Tage ab heute ("Thu 8", "Fri 9", ...)."""
        if count < 0:
            raise ValueError(f"count muss >= 0 sein, ist {count}")
        return [format_day_label(self.today + timedelta(days=i)) for i in range(count)]

    # ─── Auflösung ───

    def resolve_date(self, day_label: str) -> date:
        """Kalenderdatum eines Tageslabels nach der Monatswechsel-Regel."""
        abbrev, day_of_month = parse_day_label(day_label)
        year, month = self.today.year, self.today.month
        if self.today.day > ROLLOVER_THRESHOLD_DAY and day_of_month < self.today.day:
            month += 1
            if month > 12:
                month = 1
                year += 1
        try:
            resolved = date(year, month, day_of_month)
        except ValueError as e:
            raise MalformedCoordinate(
                f"Tageslabel {day_label!r} ergibt kein gültiges Datum "
                f"({year}-{month:02d}-{day_of_month:02d})"
            ) from e
        if WEEKDAY_ABBREVS[resolved.weekday()] != abbrev:
            logger.warning(
                f"Tageslabel {day_label!r} passt nicht zum aufgelösten Datum "
                f"{resolved.isoformat()} ({WEEKDAY_ABBREVS[resolved.weekday()]})"
            )
        return resolved

    def resolve_absolute_date(self, day_label: str, time_label: str) -> datetime:
        """Absoluter, zeitzonenbehafteter Startzeitpunkt einer Rasterzelle."""
        hour, minute = parse_time_label(time_label)
        return datetime.combine(self.resolve_date(day_label), time(hour, minute),
                                tzinfo=self.tz)

    def entry_for(self, day_label: str, time_label: str) -> SelectionEntry:
        """Auswahl-Eintrag [start, start + 30 min) einer Rasterzelle."""
        return SelectionEntry.starting_at(self.resolve_absolute_date(day_label, time_label))

    # ─── Hilfen ───

    def localize(self, dt: datetime) -> datetime:
        """Naive Zeitpunkte gelten als Ortszeit des Kalenders."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.tz)
        return dt

    def local_day(self, instant: datetime) -> date:
        """Kalendertag eines Zeitpunkts in der Zeitzone des Kalenders."""
        return self.localize(instant).astimezone(self.tz).date()

    def __repr__(self) -> str:
        return f"BookingCalendar(today={self.today.isoformat()}, tz={self.tz})"
