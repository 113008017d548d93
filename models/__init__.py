from models.timeslot import CellCoordinate, MalformedCoordinate, SelectionEntry
from models.slot import Slot, WorkshopContext, WorkshopReservation
from models.booking_snapshot import BookingSnapshot

__all__ = [
    "CellCoordinate",
    "MalformedCoordinate",
    "SelectionEntry",
    "Slot",
    "WorkshopContext",
    "WorkshopReservation",
    "BookingSnapshot",
]
