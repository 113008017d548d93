"""Koordinaten im Buchungsraster: Tageslabel, Zeitlabel und Auswahl-Einträge."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

SLOT_MINUTES = 30
SLOT_DURATION = timedelta(minutes=SLOT_MINUTES)

WEEKDAY_ABBREVS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WEEKDAY_FULL = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

_DAY_LABEL_RE = re.compile(r"^([A-Za-z]{3}) (\d{1,2})$")
_TIME_LABEL_RE = re.compile(r"^(\d{2}):(\d{2})$")


class MalformedCoordinate(ValueError):
    """Tages-/Zeitlabel oder Auswahl-Schlüssel nicht interpretierbar.

    Deutet auf einen Fehler bei der Rastererzeugung hin, nicht auf eine
    Nutzereingabe. Wird daher immer geworfen, nie still ersetzt.
    """


def parse_day_label(label: str) -> tuple[str, int]:
    """"Thu 8" → ("Thu", 8)."""
    m = _DAY_LABEL_RE.match(label.strip()) if isinstance(label, str) else None
    if m is None:
        raise MalformedCoordinate(f"Ungültiges Tageslabel: {label!r}")
    abbrev = m.group(1).capitalize()
    if abbrev not in WEEKDAY_FULL:
        raise MalformedCoordinate(f"Unbekannter Wochentag in Tageslabel: {label!r}")
    day = int(m.group(2))
    if not 1 <= day <= 31:
        raise MalformedCoordinate(f"Tag des Monats außerhalb 1–31: {label!r}")
    return abbrev, day


def parse_time_label(label: str) -> tuple[int, int]:
    """"08:30" → (8, 30). Nur volle und halbe Stunden sind gültig."""
    m = _TIME_LABEL_RE.match(label.strip()) if isinstance(label, str) else None
    if m is None:
        raise MalformedCoordinate(f"Ungültiges Zeitlabel: {label!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute not in (0, 30):
        raise MalformedCoordinate(f"Zeitlabel außerhalb des Halbstundenrasters: {label!r}")
    return hour, minute


@dataclass(frozen=True)
class CellCoordinate:
    """Eine Zelle im Buchungsraster (Tageslabel × Zeitlabel).

    Immutable (frozen=True) damit es als Dict-Key / Set-Element nutzbar ist.
    Die Labels werden beim Erzeugen geprüft.
    """

    day_label: str
    time_label: str

    def __post_init__(self) -> None:
        parse_day_label(self.day_label)
        parse_time_label(self.time_label)

    @property
    def weekday_abbrev(self) -> str:
        return parse_day_label(self.day_label)[0]

    @property
    def weekday_name(self) -> str:
        """Voller Tagesname ("Thu" → "Thursday")."""
        return WEEKDAY_FULL[self.weekday_abbrev]

    @property
    def day_of_month(self) -> int:
        return parse_day_label(self.day_label)[1]

    @property
    def hour(self) -> int:
        return parse_time_label(self.time_label)[0]

    @property
    def minute(self) -> int:
        return parse_time_label(self.time_label)[1]

    def __str__(self) -> str:
        return f"{self.day_label} {self.time_label}"


def _iso_utc(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + \
        f"{instant.microsecond // 1000:03d}Z"


def _parse_iso(text: str) -> datetime:
    value = text.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise MalformedCoordinate(f"Ungültiger Zeitstempel: {text!r}") from e
    if parsed.tzinfo is None:
        raise MalformedCoordinate(f"Zeitstempel ohne Zeitzone: {text!r}")
    return parsed


@dataclass(frozen=True)
class SelectionEntry:
    """Ein ausgewählter Slot als absolutes Intervall [start, end).

    Gleichheit gilt auf dem Zeitpunkt-Paar, nicht auf dem String. Die
    kanonische Serialisierung ist "startISO|endISO" (UTC, Millisekunden, "Z").
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise MalformedCoordinate("SelectionEntry braucht zeitzonenbehaftete Zeitpunkte")
        if self.end <= self.start:
            raise MalformedCoordinate(
                f"SelectionEntry: Ende {self.end} liegt nicht nach Start {self.start}")

    @classmethod
    def starting_at(cls, start: datetime) -> "SelectionEntry":
        return cls(start=start, end=start + SLOT_DURATION)

    @classmethod
    def from_key(cls, key: str) -> "SelectionEntry":
        """Parst "startISO|endISO" zurück in einen Eintrag."""
        parts = key.split("|") if isinstance(key, str) else []
        if len(parts) != 2:
            raise MalformedCoordinate(f"Ungültiger Auswahl-Schlüssel: {key!r}")
        return cls(start=_parse_iso(parts[0]), end=_parse_iso(parts[1]))

    @property
    def key(self) -> str:
        return f"{_iso_utc(self.start)}|{_iso_utc(self.end)}"

    def __str__(self) -> str:
        return self.key
