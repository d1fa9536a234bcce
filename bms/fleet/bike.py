"""
Bike
----

A bike in the fleet. The bike tracks its own status, and only allows the
status to move along the transitions in
:data:`~bms.fleet.states.VALID_TRANSITIONS`. Where the bike is docked is
owned by the :class:`~bms.fleet.station.Station`, which keeps
:attr:`Bike.station_id` in step.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from bms.fleet.results import OperationResult, Operation, ErrorKind
from bms.fleet.states import BikeType, BikeStatus, VALID_TRANSITIONS


class InvalidTransitionError(Exception):
    """Raised when a bike is asked to move to a status it cannot reach from its current one."""

    def __init__(self, bike_id: str, current: BikeStatus, requested: BikeStatus, reason: Optional[str] = None):
        self.bike_id = bike_id
        self.current = current
        self.requested = requested
        self.reason = reason
        message = f"Bike {bike_id} cannot go from {current.value} to {requested.value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class Bike:

    def __init__(self, bike_id: str, bike_type: BikeType = BikeType.STANDARD):
        if not isinstance(bike_id, str) or not bike_id.strip():
            raise ValueError("Bike ID must be a non-empty string")

        try:
            bike_type = BikeType(bike_type)
        except ValueError:
            raise ValueError(f"Invalid bike type: {bike_type}")

        self.id = bike_id
        self.type = bike_type
        self.status = BikeStatus.AVAILABLE
        self.station_id: Optional[str] = None
        """The station the bike is docked in, if any."""

        self.reserved_by: Optional[str] = None
        self.reservation_expiry: Optional[datetime] = None
        self.created_at = datetime.now()
        self.updated_at = self.created_at

    def is_valid_transition(self, new_status: BikeStatus) -> bool:
        return new_status in VALID_TRANSITIONS[self.status]

    def change_status(self, new_status: BikeStatus, reason: Optional[str] = None):
        """
        Moves the bike to a new status.

        :raises InvalidTransitionError: If the transition table does not allow it.
        """
        new_status = BikeStatus(new_status)
        if not self.is_valid_transition(new_status):
            raise InvalidTransitionError(self.id, self.status, new_status, reason)

        if self.status is BikeStatus.RESERVED:
            self.reserved_by = None
            self.reservation_expiry = None

        self.status = new_status
        self.updated_at = datetime.now()

    def reserve(self, user_id: str, hold_minutes: int = 15) -> OperationResult:
        """Places a time limited hold on the bike for the given user."""
        if self.status is not BikeStatus.AVAILABLE:
            return OperationResult.fail(
                Operation.RESERVATION_FAILED, ErrorKind.INVALID_STATE,
                f"Cannot reserve bike {self.id}. Current status: {self.status.value}"
            )

        self.change_status(BikeStatus.RESERVED, "reservation")
        self.reserved_by = user_id
        self.reservation_expiry = datetime.now() + timedelta(minutes=hold_minutes)

        return OperationResult.ok(
            Operation.RESERVATION_CREATED, f"Bike {self.id} reserved successfully", bike=self
        )

    def release_reservation(self):
        """Drops the hold on a reserved bike, making it available again."""
        if self.status is BikeStatus.RESERVED:
            self.change_status(BikeStatus.AVAILABLE, "reservation released")

    def is_reserved_by_other(self, user_id: Optional[str]) -> bool:
        return self.status is BikeStatus.RESERVED and self.reserved_by != user_id

    def is_reservation_expired(self, now: Optional[datetime] = None) -> bool:
        if self.reservation_expiry is None:
            return False
        return (now or datetime.now()) > self.reservation_expiry

    @property
    def is_available(self) -> bool:
        return self.status is BikeStatus.AVAILABLE

    @property
    def is_reserved(self) -> bool:
        return self.status is BikeStatus.RESERVED

    def info(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "station_id": self.station_id,
            "reserved_by": self.reserved_by,
            "reservation_expiry": self.reservation_expiry,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<Bike {self.id} [{self.type.value}] {self.status.value}>"
