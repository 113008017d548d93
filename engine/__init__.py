"""Buchungs-Engine: Kalendermodell, Zulässigkeit, Kontingente, Auswahl."""

from .calendar import (
    BookingCalendar,
    generate_time_labels,
    partition_into_weeks,
)
from .restrictions import Admissibility, RestrictionReason, evaluate_all, is_admissible
from .quota import QuotaDecision, QuotaReason, QuotaTracker
from .selection import SelectionState, SlotSelector, ToggleResult

__all__ = [
    "BookingCalendar",
    "generate_time_labels",
    "partition_into_weeks",
    "Admissibility",
    "RestrictionReason",
    "evaluate_all",
    "is_admissible",
    "QuotaDecision",
    "QuotaReason",
    "QuotaTracker",
    "SelectionState",
    "SlotSelector",
    "ToggleResult",
]
