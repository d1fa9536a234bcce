"""
Results
-------

Every mutating operation on the fleet returns an :class:`OperationResult`
rather than raising. Failures carry an :class:`ErrorKind` and enough
occupancy context (a :class:`StationInfo`) for the caller to explain the
failure to a rider or operator.
"""

from enum import Enum
from typing import Optional, Dict, Any, List


class Operation(str, Enum):
    """Tags the outcome of a fleet operation. We subclass string to make json serialization work."""

    RETURN_SUCCESS = "return_success"
    RETURN_FAILED_STATION_FULL = "return_failed_station_full"
    RETURN_FAILED_STATION_OOS = "return_failed_station_oos"

    CHECKOUT_SUCCESS = "checkout_success"
    CHECKOUT_FAILED_STATION_EMPTY = "checkout_failed_station_empty"
    CHECKOUT_FAILED_STATION_OOS = "checkout_failed_station_oos"
    CHECKOUT_FAILED_NO_BIKE = "checkout_failed_no_bike"

    MANUAL_MOVE_SUCCESS = "manual_move_success"
    MANUAL_MOVE_FAILED = "manual_move_failed"

    RESERVATION_CREATED = "reservation_created"
    RESERVATION_FAILED = "reservation_failed"
    RESERVATION_EXPIRED = "reservation_expired"
    RESERVATION_USED = "reservation_used"
    RESERVATION_CANCELLED = "reservation_cancelled"

    STATION_ADDED = "station_added"
    STATION_OOS = "station_out_of_service"
    STATION_ACTIVE = "station_active"

    BIKE_ADDED = "bike_added"
    BIKE_STATUS_CHANGED = "bike_status_changed"

    OPERATION_FAILED = "operation_failed"


class ErrorKind(str, Enum):
    """The kinds of failure an operation can report."""

    NOT_FOUND = "not_found"
    """A station, bike, rental or reservation is unknown."""

    INVALID_STATE = "invalid_state"
    """An illegal bike transition, or a station that is out of service."""

    CAPACITY_VIOLATION = "capacity_violation"
    """Returning to a full station, or checking out of an empty one."""

    OWNERSHIP_VIOLATION = "ownership_violation"
    """The user does not hold the rental or reservation the operation needs."""

    CONCURRENCY_INCONSISTENCY = "concurrency_inconsistency"
    """Validation found the occupancy counts out of step."""

    MOVE_ROLLBACK_FAILED = "move_rollback_failed"
    """A manual move failed and so did the compensating return. The bike is docked nowhere."""


class StationInfo:
    """A point-in-time copy of the occupancy figures of a station."""

    __slots__ = ("station_id", "capacity", "bikes_available", "free_docks",
                 "occupied_docks", "is_empty", "is_full", "status")

    def __init__(self, station_id, capacity, bikes_available, free_docks, occupied_docks, is_empty, is_full, status):
        self.station_id = station_id
        self.capacity = capacity
        self.bikes_available = bikes_available
        self.free_docks = free_docks
        self.occupied_docks = occupied_docks
        self.is_empty = is_empty
        self.is_full = is_full
        self.status = status

    def serialize(self) -> Dict[str, Any]:
        return {
            "station_id": self.station_id,
            "capacity": self.capacity,
            "bikes_available": self.bikes_available,
            "free_docks": self.free_docks,
            "occupied_docks": self.occupied_docks,
            "is_empty": self.is_empty,
            "is_full": self.is_full,
            "status": self.status,
        }

    def __eq__(self, other):
        return isinstance(other, StationInfo) and self.serialize() == other.serialize()

    def __repr__(self):
        return f"<StationInfo {self.station_id} {self.bikes_available}/{self.capacity} {self.status}>"


class OperationResult:
    """
    The structured outcome of a fleet operation.

    :param success: Whether the operation changed the fleet as requested.
    :param operation: The tag describing what happened.
    :param message: A human readable explanation.
    :param error: The kind of failure, if any.
    :param station_info: The occupancy of the station involved, after the operation.
    """

    def __init__(
        self, success: bool, operation: Operation, message: str, *,
        error: Optional[ErrorKind] = None,
        station_info: Optional[StationInfo] = None,
        rental=None, bike=None, reservation=None,
        rollback: Optional[bool] = None,
        **extra
    ):
        if success and error is not None:
            raise ValueError("A successful result cannot carry an error kind.")

        self.success = success
        self.operation = operation
        self.message = message
        self.error = error
        self.station_info = station_info
        self.rental = rental
        self.bike = bike
        self.reservation = reservation
        self.rollback = rollback
        self.extra = extra

    @classmethod
    def ok(cls, operation: Operation, message: str, **kwargs) -> 'OperationResult':
        return cls(True, operation, message, **kwargs)

    @classmethod
    def fail(cls, operation: Operation, error: ErrorKind, message: str, **kwargs) -> 'OperationResult':
        return cls(False, operation, message, error=error, **kwargs)

    def __bool__(self):
        return self.success

    def serialize(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "operation": self.operation,
            "message": self.message,
        }

        if self.error is not None:
            data["error"] = self.error
        if self.station_info is not None:
            data["station_info"] = self.station_info.serialize()
        if self.rental is not None:
            data["rental"] = self.rental.serialize()
        if self.bike is not None:
            data["bike"] = self.bike.info()
        if self.reservation is not None:
            data["reservation"] = self.reservation.serialize()
        if self.rollback is not None:
            data["rollback"] = self.rollback

        for key, value in self.extra.items():
            data[key] = value.serialize() if isinstance(value, StationInfo) else value

        return data

    def __repr__(self):
        return f"<OperationResult {self.operation.value} success={self.success}>"


class ValidationReport:
    """The outcome of a read-only consistency check."""

    def __init__(self, errors: List[str], stats: Optional[Dict[str, Any]] = None):
        self.errors = list(errors)
        self.stats = stats if stats is not None else {}

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Optional[ErrorKind]:
        return None if self.is_valid else ErrorKind.CONCURRENCY_INCONSISTENCY

    def serialize(self) -> Dict[str, Any]:
        data = {"is_valid": self.is_valid, "errors": list(self.errors)}
        if self.error is not None:
            data["error"] = self.error
        if self.stats:
            data["stats"] = dict(self.stats)
        return data

    def __eq__(self, other):
        return isinstance(other, ValidationReport) and self.serialize() == other.serialize()

    def __repr__(self):
        return f"<ValidationReport valid={self.is_valid} errors={len(self.errors)}>"
