from config.schema import (
    BookingConfig,
    BookingLimits,
    DayHours,
    GridConfig,
    Level3Hours,
    Level4Hours,
    RestrictionSet,
)


def default_level3_hours() -> Level3Hours:
    """Standard-Öffnungszeiten für Rolle 3.

    Mo–Fr  09:00 - 17:00
    Sa     10:00 - 16:00
    So     geschlossen
    """
    weekday = DayHours(start_hour=9, end_hour=17)
    return Level3Hours(days={
        "Monday": weekday,
        "Tuesday": weekday,
        "Wednesday": weekday,
        "Thursday": weekday,
        "Friday": weekday,
        "Saturday": DayHours(start_hour=10, end_hour=16),
        "Sunday": DayHours(closed=True),
    })


def default_level4_hours() -> Level4Hours:
    """Rolle 4: keine Sperrzeit (Zugang rund um die Uhr)."""
    return Level4Hours(start_hour=0, end_hour=0)


def default_restrictions() -> RestrictionSet:
    return RestrictionSet(
        level3=default_level3_hours(),
        level4=default_level4_hours(),
        planned_closures=[],
    )


def default_booking_config() -> BookingConfig:
    """Komplette Default-Konfiguration: 4 Slots/Tag, 14 Slots/7 Tage, 7 Tage sichtbar."""
    return BookingConfig(
        facility_name="Makerspace",
        timezone="UTC",
        limits=BookingLimits(
            max_slots_per_day=4,
            max_slots_per_week=14,
            visibility_days=7,
        ),
        grid=GridConfig(start_hour=0, end_hour=24),
        restrictions=default_restrictions(),
    )
