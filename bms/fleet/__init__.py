"""
Fleet
-----

The in-memory model of the stations and bikes, and the rules that keep
their occupancy consistent. Nothing in this package is asynchronous or
touches the database.
"""

from .bike import Bike, InvalidTransitionError
from .manager import BMSManager, FleetEvent
from .rental import Rental
from .results import OperationResult, Operation, ErrorKind, StationInfo, ValidationReport
from .states import BikeType, BikeStatus, StationStatus, RentalStatus, ReservationStatus
from .station import Station, StationReservation

__all__ = [
    "Bike", "InvalidTransitionError", "BMSManager", "FleetEvent", "Rental", "OperationResult", "Operation",
    "ErrorKind", "StationInfo", "ValidationReport", "BikeType", "BikeStatus", "StationStatus", "RentalStatus",
    "ReservationStatus", "Station", "StationReservation"
]
