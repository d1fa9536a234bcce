"""
States
------

The enumerations shared by the in-memory fleet and the database models.
"""

from enum import Enum
from typing import Dict, FrozenSet


class BikeType(str, Enum):
    """We subclass string to make json serialization work."""
    STANDARD = "standard"
    E_BIKE = "e-bike"


class BikeStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    ON_TRIP = "on_trip"
    MAINTENANCE = "maintenance"


VALID_TRANSITIONS: Dict[BikeStatus, FrozenSet[BikeStatus]] = {
    BikeStatus.AVAILABLE: frozenset({BikeStatus.RESERVED, BikeStatus.ON_TRIP, BikeStatus.MAINTENANCE}),
    BikeStatus.RESERVED: frozenset({BikeStatus.AVAILABLE, BikeStatus.ON_TRIP, BikeStatus.MAINTENANCE}),
    BikeStatus.ON_TRIP: frozenset({BikeStatus.AVAILABLE, BikeStatus.MAINTENANCE}),
    BikeStatus.MAINTENANCE: frozenset({BikeStatus.AVAILABLE}),
}
"""Maps each bike status to the statuses it may move to."""


class StationStatus(str, Enum):
    ACTIVE = "active"
    OUT_OF_SERVICE = "out_of_service"


class RentalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ReservationStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    USED = "used"
    CANCELLED = "cancelled"

    @staticmethod
    def terminating_types():
        """The statuses that end a reservation."""
        return ReservationStatus.EXPIRED, ReservationStatus.USED, ReservationStatus.CANCELLED
