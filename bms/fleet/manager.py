"""
BMS Manager
-----------

Coordinates the stations and bikes of the fleet.

Responsibilities
================

- registering stations and bikes
- renting and returning bikes, with at most one active rental per user
- reserving bikes, with at most one active reservation per user
- moving bikes between stations on behalf of an operator
- validating the occupancy accounting across the whole system

The manager is purely in-memory and synchronous. It never touches the
database; :class:`~bms.service.fleet.FleetService` wraps it with locking
and persistence. Other modules keep up to date with the fleet by
subscribing to the events on :attr:`BMSManager.hub`.
"""

from copy import deepcopy
from datetime import datetime
from typing import Dict, Optional, List, Any, Set

from bms import logger
from bms.config import DEFAULT_CAPACITY
from bms.events import EventHub, EventList
from bms.fleet.bike import Bike, InvalidTransitionError
from bms.fleet.rental import Rental
from bms.fleet.results import OperationResult, Operation, ErrorKind, ValidationReport, StationInfo
from bms.fleet.station import Station, StationReservation
from bms.fleet.states import BikeType, BikeStatus, StationStatus


class FleetEvent(EventList):

    def rental_started(self, rental: Rental):
        """A bike was checked out by a rider."""

    def bike_returned(self, rental: Rental, station_info: StationInfo):
        """A rider docked their bike, completing the rental."""

    def bike_moved(self, bike_id: str, from_station_id: str, to_station_id: str, operator_id: str):
        """An operator moved a bike between stations."""

    def reservation_expired(self, reservation: StationReservation):
        """A reservation lapsed without being used."""


def _empty_stats() -> Dict[str, int]:
    return {
        "total_operations": 0,
        "successful_docks": 0,
        "failed_docks": 0,
        "successful_undocks": 0,
        "failed_undocks": 0,
        "blocked_operations": 0,
    }


class BMSManager:

    def __init__(self):
        self.stations: Dict[str, Station] = {}
        self.bikes: Dict[str, Bike] = {}
        self.active_rentals: Dict[str, Rental] = {}
        """Maps user ids to their active rental."""

        self.stranded_bikes: Set[str] = set()
        """Bikes lost by a manual move whose rollback failed. They are docked nowhere."""

        self.stats = _empty_stats()
        self.hub = EventHub(FleetEvent)

    def add_station(self, station_id: str, capacity: int = DEFAULT_CAPACITY, **options) -> OperationResult:
        if not isinstance(station_id, str) or not station_id.strip():
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE,
                                        "Station ID must be a non-empty string")

        if station_id in self.stations:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE,
                                        f"Station {station_id} already exists")

        try:
            station = Station(station_id, capacity, **options)
        except ValueError as error:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE, str(error))

        self.stations[station_id] = station
        return OperationResult.ok(Operation.STATION_ADDED, f"Station {station_id} added successfully",
                                  station_info=station.info())

    def add_bike(self, bike_id: str, station_id: str, bike_type: BikeType = BikeType.STANDARD) -> OperationResult:
        """Creates a new bike and docks it at the given station."""
        if bike_id in self.bikes:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE,
                                        f"Bike {bike_id} already exists")

        station = self.stations.get(station_id)
        if station is None:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.NOT_FOUND,
                                        f"Station {station_id} does not exist")

        try:
            bike = Bike(bike_id, bike_type)
        except ValueError as error:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE, str(error))

        dock_result = station.return_bike(bike)
        if not dock_result:
            return OperationResult.fail(
                Operation.OPERATION_FAILED, dock_result.error,
                f"Bike {bike_id} could not be docked at station {station_id}: {dock_result.message}",
                station_info=dock_result.station_info
            )

        self.bikes[bike_id] = bike
        self.stats["total_operations"] += 1
        self.stats["successful_docks"] += 1
        return OperationResult.ok(Operation.BIKE_ADDED, f"Bike {bike_id} added and docked at station {station_id}",
                                  station_info=dock_result.station_info, bike=bike)

    def rent_bike(self, user_id: str, station_id: str, bike_id: Optional[str] = None) -> OperationResult:
        """
        Checks a bike out of a station for a user.

        The manager is the authority on the one active rental per user rule,
        so callers need not check it first. A reservation the user holds here
        is used by the checkout. One they hold at another station is cancelled,
        and the result carries it along with its ``reservation_outcome``.
        """
        self.stats["total_operations"] += 1

        station = self.stations.get(station_id)
        if station is None:
            self.stats["failed_undocks"] += 1
            return OperationResult.fail(Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.NOT_FOUND,
                                        f"Station {station_id} does not exist")

        if user_id in self.active_rentals:
            self.stats["failed_undocks"] += 1
            return OperationResult.fail(
                Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.OWNERSHIP_VIOLATION,
                f"User {user_id} already has an active rental", station_info=station.info(),
                rental=self.active_rentals[user_id]
            )

        result = station.checkout_bike(bike_id, user_id)

        if not result:
            self.stats["failed_undocks"] += 1
            if result.error is ErrorKind.CAPACITY_VIOLATION:
                self.stats["blocked_operations"] += 1
            return result

        bike = result.bike
        self.stats["successful_undocks"] += 1

        if result.reservation is not None:
            if result.reservation.bike_id not in (None, bike.id):
                self._release_hold(result.reservation)
            result.extra["reservation_outcome"] = Operation.RESERVATION_USED
        else:
            elsewhere = self.active_reservation(user_id)
            if elsewhere is not None:
                self.stations[elsewhere.station_id].cancel_reservation(user_id)
                self._release_hold(elsewhere)
                logger.info("Reservation for user %s at station %s cancelled by their rental at %s",
                            user_id, elsewhere.station_id, station_id)
                result.reservation = elsewhere
                result.extra["reservation_outcome"] = Operation.RESERVATION_CANCELLED

        rental = Rental(user_id, bike.id, station_id)
        self.active_rentals[user_id] = rental
        result.rental = rental

        self.hub.emit(FleetEvent.rental_started, rental)
        return result

    def return_bike(self, user_id: str, bike_id: str, station_id: str) -> OperationResult:
        """Docks a rented bike at a station, completing the user's rental."""
        self.stats["total_operations"] += 1

        rental = self.active_rentals.get(user_id)
        if rental is None:
            return OperationResult.fail(Operation.RETURN_FAILED_STATION_FULL, ErrorKind.OWNERSHIP_VIOLATION,
                                        f"User {user_id} has no active rental")

        if rental.bike_id != bike_id:
            return OperationResult.fail(Operation.RETURN_FAILED_STATION_FULL, ErrorKind.OWNERSHIP_VIOLATION,
                                        f"User {user_id} did not rent bike {bike_id}", rental=rental)

        station = self.stations.get(station_id)
        if station is None:
            return OperationResult.fail(Operation.RETURN_FAILED_STATION_FULL, ErrorKind.NOT_FOUND,
                                        f"Station {station_id} does not exist", rental=rental)

        bike = self.bikes.get(bike_id)
        if bike is None:
            return OperationResult.fail(Operation.RETURN_FAILED_STATION_FULL, ErrorKind.NOT_FOUND,
                                        f"Bike {bike_id} does not exist", rental=rental)

        result = station.return_bike(bike)
        result.rental = rental

        if not result:
            self.stats["failed_docks"] += 1
            if result.error is ErrorKind.CAPACITY_VIOLATION:
                self.stats["blocked_operations"] += 1
            return result

        self.stats["successful_docks"] += 1
        rental.complete(station_id)
        del self.active_rentals[user_id]

        self.hub.emit(FleetEvent.bike_returned, rental, result.station_info)
        return result

    def reserve_bike(self, user_id: str, station_id: str, bike_id: Optional[str] = None,
                     hold_minutes: Optional[int] = None, extension_minutes: int = 0) -> OperationResult:
        """
        Places a soft hold on a bike at a station for a user.

        :param hold_minutes: How long to hold the bike. Defaults to the hold time of the station.
        :param extension_minutes: Extra minutes on top of the hold, as loyal riders get.
        """
        self.stats["total_operations"] += 1

        station = self.stations.get(station_id)
        if station is None:
            return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.NOT_FOUND,
                                        f"Station {station_id} does not exist")

        lapsed = station.expire_reservation(user_id)
        if lapsed is not None:
            self._release_hold(lapsed)
            logger.info("Reservation for user %s at station %s expired", user_id, station_id)
            self.hub.emit(FleetEvent.reservation_expired, lapsed)

        if hold_minutes is None:
            hold_minutes = station.reservation_hold_minutes
        hold_minutes += extension_minutes

        if self.active_reservation(user_id) is not None:
            return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.INVALID_STATE,
                                        f"User {user_id} already has an active reservation",
                                        station_info=station.info())

        if user_id in self.active_rentals:
            return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.INVALID_STATE,
                                        f"User {user_id} already has an active rental",
                                        station_info=station.info())

        if not station.is_active or station.is_empty:
            return station.create_reservation(user_id, hold_minutes)

        if bike_id is not None:
            bike = station.docked_bikes.get(bike_id)
            if bike is None:
                return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.NOT_FOUND,
                                            f"Bike {bike_id} not found at station {station_id}",
                                            station_info=station.info())
        else:
            bike = station.random_available_bike()
            if bike is None:
                return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.NOT_FOUND,
                                            f"No available bikes to reserve at station {station_id}",
                                            station_info=station.info())

        bike_result = bike.reserve(user_id, hold_minutes)
        if not bike_result:
            bike_result.station_info = station.info()
            return bike_result

        result = station.create_reservation(user_id, hold_minutes, bike_id=bike.id)
        result.bike = bike
        bike.reservation_expiry = result.reservation.expires_at
        return result

    def cancel_reservation(self, user_id: str) -> OperationResult:
        self.stats["total_operations"] += 1

        reservation = self.active_reservation(user_id)
        if reservation is None:
            return OperationResult.fail(Operation.RESERVATION_FAILED, ErrorKind.NOT_FOUND,
                                        f"User {user_id} has no active reservation")

        station = self.stations[reservation.station_id]
        station.cancel_reservation(user_id)
        self._release_hold(reservation)

        return OperationResult.ok(Operation.RESERVATION_CANCELLED,
                                  f"Reservation at station {station.id} cancelled",
                                  station_info=station.info(), reservation=reservation)

    def expire_reservations(self, now: Optional[datetime] = None) -> List[StationReservation]:
        """Sweeps every station for lapsed reservations, releasing the bikes they held."""
        expired = []
        for station in self.stations.values():
            for reservation in station.expire_old_reservations(now):
                self._release_hold(reservation)
                expired.append(reservation)

        for reservation in expired:
            logger.info("Reservation for user %s at station %s expired", reservation.user_id, reservation.station_id)
            self.hub.emit(FleetEvent.reservation_expired, reservation)

        return expired

    def active_reservation(self, user_id: str) -> Optional[StationReservation]:
        for station in self.stations.values():
            reservation = station.active_reservation(user_id)
            if reservation is not None:
                return reservation
        return None

    def manual_move_bike(self, bike_id: str, from_station_id: str, to_station_id: str,
                         operator_id: str) -> OperationResult:
        """
        Moves a bike between stations on behalf of an operator.

        The move is a checkout at the source followed by a return at the
        destination. If the return fails, the bike is returned to the source
        to restore the occupancy of both stations. If that compensating return
        fails too, the bike is docked nowhere, and the result reports
        :attr:`~bms.fleet.results.ErrorKind.MOVE_ROLLBACK_FAILED`.
        """
        self.stats["total_operations"] += 1

        from_station = self.stations.get(from_station_id)
        if from_station is None:
            return OperationResult.fail(Operation.MANUAL_MOVE_FAILED, ErrorKind.NOT_FOUND,
                                        f"Source station {from_station_id} does not exist")

        to_station = self.stations.get(to_station_id)
        if to_station is None:
            return OperationResult.fail(Operation.MANUAL_MOVE_FAILED, ErrorKind.NOT_FOUND,
                                        f"Destination station {to_station_id} does not exist")

        bike = self.bikes.get(bike_id)
        if bike is None:
            return OperationResult.fail(Operation.MANUAL_MOVE_FAILED, ErrorKind.NOT_FOUND,
                                        f"Bike {bike_id} does not exist")

        if from_station_id == to_station_id:
            return OperationResult.fail(Operation.MANUAL_MOVE_FAILED, ErrorKind.INVALID_STATE,
                                        f"Bike {bike_id} is already at station {to_station_id}",
                                        station_info=from_station.info())

        checkout_result = from_station.checkout_bike(bike_id, operator_id)
        if not checkout_result:
            return OperationResult.fail(
                Operation.MANUAL_MOVE_FAILED, checkout_result.error,
                f"Failed to checkout bike from {from_station_id}: {checkout_result.message}",
                station_info=from_station.info(), from_station_info=from_station.info()
            )

        return_result = to_station.return_bike(bike)
        if not return_result:
            rollback_result = from_station.return_bike(bike)

            if not rollback_result:
                self.stranded_bikes.add(bike_id)
                logger.critical(
                    "MANUAL MOVE ROLLBACK FAILED: bike %s is docked at neither %s nor %s (%s)",
                    bike_id, from_station_id, to_station_id, rollback_result.message
                )
                return OperationResult.fail(
                    Operation.MANUAL_MOVE_FAILED, ErrorKind.MOVE_ROLLBACK_FAILED,
                    f"Failed to dock bike at {to_station_id}: {return_result.message}. "
                    f"Rollback failed: {rollback_result.message}. "
                    f"Bike {bike_id} is not docked at any station",
                    station_info=to_station.info(), rollback=False,
                    from_station_info=from_station.info(), to_station_info=to_station.info()
                )

            logger.info("MANUAL MOVE: bike %s could not be moved to %s, rolled back to %s",
                        bike_id, to_station_id, from_station_id)
            return OperationResult.fail(
                Operation.MANUAL_MOVE_FAILED, return_result.error,
                f"Failed to dock bike at {to_station_id}: {return_result.message}. Rollback successful",
                station_info=to_station.info(), rollback=True,
                from_station_info=from_station.info(), to_station_info=to_station.info()
            )

        logger.info("MANUAL MOVE: bike %s moved from %s to %s by operator %s",
                    bike_id, from_station_id, to_station_id, operator_id)
        self.hub.emit(FleetEvent.bike_moved, bike_id, from_station_id, to_station_id, operator_id)

        return OperationResult.ok(
            Operation.MANUAL_MOVE_SUCCESS,
            f"Bike {bike_id} successfully moved from {from_station_id} to {to_station_id}",
            station_info=to_station.info(), bike=bike, operator_id=operator_id,
            from_station_info=from_station.info(), to_station_info=to_station.info()
        )

    def set_bike_status(self, bike_id: str, status: BikeStatus) -> OperationResult:
        """Lets an operator take a bike into or out of maintenance."""
        self.stats["total_operations"] += 1

        bike = self.bikes.get(bike_id)
        if bike is None:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.NOT_FOUND,
                                        f"Bike {bike_id} does not exist")

        status = BikeStatus(status)
        if status not in (BikeStatus.AVAILABLE, BikeStatus.MAINTENANCE):
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE,
                                        f"Bikes may only be set to available or maintenance, not {status.value}",
                                        bike=bike)

        try:
            bike.change_status(status, "operator")
        except InvalidTransitionError as error:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.INVALID_STATE, str(error), bike=bike)

        station = self.stations.get(bike.station_id) if bike.station_id is not None else None
        return OperationResult.ok(Operation.BIKE_STATUS_CHANGED, f"Bike {bike_id} is now {status.value}",
                                  bike=bike, station_info=station.info() if station is not None else None)

    def set_station_status(self, station_id: str, status: StationStatus) -> OperationResult:
        station = self.stations.get(station_id)
        if station is None:
            return OperationResult.fail(Operation.OPERATION_FAILED, ErrorKind.NOT_FOUND,
                                        f"Station {station_id} not found")

        if StationStatus(status) is StationStatus.OUT_OF_SERVICE:
            return station.set_out_of_service()
        return station.set_active()

    def validate_system_state(self) -> ValidationReport:
        """
        Cross checks the stations against the bike registry and rentals.

        Every bike should be either docked or on an active rental. This is a
        self-test, and is never run automatically.
        """
        errors = []
        total_docked = 0
        total_rented = len(self.active_rentals)

        for station_id, station in self.stations.items():
            report = station.validate_state()
            if not report.is_valid:
                errors.append(f"Station {station_id}: {', '.join(report.errors)}")
            total_docked += len(station.docked_bikes)

        total_bikes = len(self.bikes)
        accounted = total_docked + total_rented

        if accounted != total_bikes:
            errors.append(f"Bike count mismatch: {accounted} accounted vs {total_bikes} total")
        if total_docked < 0:
            errors.append("System has negative docked bike count")
        for bike_id in sorted(self.stranded_bikes):
            errors.append(f"Bike {bike_id} is stranded after a failed manual move rollback")

        return ValidationReport(errors, stats={
            "total_bikes": total_bikes,
            "total_docked_bikes": total_docked,
            "total_rented_bikes": total_rented,
            "accounted_bikes": accounted,
        })

    def overview(self) -> Dict[str, Any]:
        return {
            "total_stations": len(self.stations),
            "total_bikes": len(self.bikes),
            "active_rentals": len(self.active_rentals),
            "stations": [station.info().serialize() for station in self.stations.values()],
            "stats": dict(self.stats),
            "success_rate": self.success_rate(),
        }

    def success_rate(self) -> int:
        total = self.stats["total_operations"]
        if total == 0:
            return 100
        successful = self.stats["successful_docks"] + self.stats["successful_undocks"]
        return round(successful / total * 100)

    def load_station(self, station: Station):
        """Registers an already built station, as when rebuilding from the database."""
        self.stations[station.id] = station

    def load_bike(self, bike: Bike, station_id: Optional[str] = None):
        """Registers an already built bike, docking it directly without any checks."""
        self.bikes[bike.id] = bike
        if station_id is not None:
            self.stations[station_id].docked_bikes[bike.id] = bike
            bike.station_id = station_id

    def load_rental(self, rental: Rental):
        self.active_rentals[rental.user_id] = rental

    def load_reservation(self, reservation: StationReservation):
        self.stations[reservation.station_id].reservations[reservation.user_id] = reservation

    def snapshot(self) -> Dict[str, Any]:
        """Copies the whole fleet state, so it can be put back with :meth:`restore`."""
        return deepcopy({
            "stations": self.stations,
            "bikes": self.bikes,
            "active_rentals": self.active_rentals,
            "stranded_bikes": self.stranded_bikes,
            "stats": self.stats,
        })

    def restore(self, snapshot: Dict[str, Any]):
        self.stations = snapshot["stations"]
        self.bikes = snapshot["bikes"]
        self.active_rentals = snapshot["active_rentals"]
        self.stranded_bikes = snapshot["stranded_bikes"]
        self.stats = snapshot["stats"]

    def _release_hold(self, reservation: StationReservation):
        if reservation.bike_id is None:
            return
        bike = self.bikes.get(reservation.bike_id)
        if bike is not None and bike.is_reserved and bike.reserved_by == reservation.user_id:
            bike.release_reservation()
