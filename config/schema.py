from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]


# ─── ÖFFNUNGSZEITEN ROLLE 3 ───

class DayHours(BaseModel):
    """Öffnungszeiten eines einzelnen Wochentags für Rolle 3."""
    model_config = ConfigDict(frozen=True)

    # Erste buchbare Stunde (inklusive)
    start_hour: int = Field(9, ge=0, le=24)
    # Letzte Stunde (exklusive)
    end_hour: int = Field(17, ge=0, le=24)
    # Ganzer Tag gesperrt
    closed: bool = False

    @model_validator(mode='after')
    def _check_order(self):
        if not self.closed and self.start_hour > self.end_hour:
            raise ValueError(
                f"start_hour ({self.start_hour}) > end_hour ({self.end_hour})")
        return self


class Level3Hours(BaseModel):
    """Öffnungszeiten pro Wochentag (Schlüssel: voller englischer Tagesname).

    Tage ohne Eintrag sind nicht eingeschränkt.
    """
    model_config = ConfigDict(frozen=True)

    days: dict[str, DayHours] = Field(default_factory=dict)

    @field_validator("days")
    @classmethod
    def _known_weekdays(cls, v: dict[str, DayHours]) -> dict[str, DayHours]:
        normalized = {}
        for name, hours in v.items():
            key = name.strip().capitalize()
            if key not in WEEKDAY_NAMES:
                raise ValueError(f"Unbekannter Wochentag: {name!r}")
            normalized[key] = hours
        return normalized

    @property
    def visible_range(self) -> Optional[tuple[int, int]]:
        """(früheste Startstunde, späteste Endstunde) über alle offenen Tage."""
        open_days = [h for h in self.days.values() if not h.closed]
        if not open_days:
            return None
        return (
            min(h.start_hour for h in open_days),
            max(h.end_hour for h in open_days),
        )


# ─── SPERRZEITEN ROLLE 4 ───

class Level4Hours(BaseModel):
    """Tägliches Sperrfenster für Rolle 4.

    start_hour > end_hour bedeutet Sperre über Mitternacht (z.B. 22 → 6).
    {0, 0} = keine Einschränkung.
    """
    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(0, ge=0, le=23)
    end_hour: int = Field(0, ge=0, le=23)

    @property
    def is_unrestricted(self) -> bool:
        return self.start_hour == 0 and self.end_hour == 0

    @property
    def is_overnight(self) -> bool:
        return self.start_hour > self.end_hour


# ─── GEPLANTE SCHLIESSUNGEN ───

class PlannedClosure(BaseModel):
    """Geplante Schließung [start_date, end_date), gilt nur für Rolle 3."""
    model_config = ConfigDict(frozen=True)

    id: int
    start_date: datetime
    end_date: datetime

    @model_validator(mode='after')
    def _check_interval(self):
        if (self.start_date.tzinfo is None) != (self.end_date.tzinfo is None):
            raise ValueError(
                f"Schließung {self.id}: Start und Ende müssen beide mit "
                f"oder beide ohne Zeitzone angegeben werden")
        if self.end_date <= self.start_date:
            raise ValueError(
                f"Schließung {self.id}: end_date muss nach start_date liegen")
        return self


class RestrictionSet(BaseModel):
    """Alle Einschränkungsquellen einer Buchungssitzung (nur lesend genutzt)."""
    model_config = ConfigDict(frozen=True)

    # Öffnungszeiten pro Wochentag (Rolle 3)
    level3: Level3Hours = Field(default_factory=Level3Hours)
    # Tägliches Sperrfenster (Rolle 4)
    level4: Level4Hours = Field(default_factory=Level4Hours)
    # Geplante Schließungen (nur Rolle 3)
    planned_closures: list[PlannedClosure] = Field(default_factory=list)


# ─── KONTINGENTE ───

class BookingLimits(BaseModel):
    """Buchungskontingente und Sichtbarkeit."""
    # Max. Slots pro Kalendertag (ein Slot = 30 Minuten)
    max_slots_per_day: int = Field(4, ge=0,
        description="Max. Slots pro Kalendertag")
    # Max. Slots in jedem rollierenden 7-Tage-Fenster
    max_slots_per_week: int = Field(14, ge=0,
        description="Max. Slots pro rollierendem 7-Tage-Fenster")
    # Wie viele Tage im Voraus gebucht werden kann
    visibility_days: int = Field(7, ge=1, le=60,
        description="Sichtbare/buchbare Tage ab heute")


# ─── RASTER ───

class GridConfig(BaseModel):
    """Sichtbarer Stundenbereich des Buchungsrasters."""
    start_hour: int = Field(0, ge=0, le=23)
    end_hour: int = Field(24, ge=1, le=24)

    @model_validator(mode='after')
    def _check_range(self):
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"Raster: start_hour ({self.start_hour}) muss kleiner "
                f"als end_hour ({self.end_hour}) sein")
        return self


# ─── GESAMT-CONFIG ───

class BookingConfig(BaseModel):
    """Gesamtkonfiguration der Gerätebuchung."""
    # Name der Einrichtung
    facility_name: str = Field("Makerspace",
        description="Name der Einrichtung")
    # Zeitzone, in der Tageslabels und Kalendertage interpretiert werden
    timezone: str = Field("UTC",
        description="IANA-Zeitzone, z.B. America/Toronto")
    # Kontingente
    limits: BookingLimits = Field(default_factory=BookingLimits)
    # Sichtbarer Stundenbereich
    grid: GridConfig = Field(default_factory=GridConfig)
    # Einschränkungen nach Rolle
    restrictions: RestrictionSet = Field(default_factory=RestrictionSet)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unbekannte Zeitzone: {v!r}") from e
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def grid_hours_for_role(self, role: int) -> tuple[int, int]:
        """Stundenbereich des Rasters; Rolle 3 sieht nur die Öffnungszeiten."""
        if role == 3:
            visible = self.restrictions.level3.visible_range
            if visible is not None:
                return visible
        return self.grid.start_hour, self.grid.end_hour
