"""
Station
-------

A docking station holds up to ``capacity`` bikes. The station owns the
occupancy accounting, which must hold after every operation:

- ``bikes_available == len(docked_bikes)``
- ``free_docks == capacity - bikes_available``
- ``len(docked_bikes) <= capacity``

Bikes leave a station through :meth:`Station.checkout_bike` and arrive
through :meth:`Station.return_bike`. Neither raises for a business rule
violation; they return an :class:`~bms.fleet.results.OperationResult`
describing what happened along with the new occupancy.

Reservations are soft holds. They do not take a bike out of the dock, they
only stop other riders from taking it until the hold expires.
"""

import random
from datetime import datetime, timedelta
from typing import Dict, Optional, List, Any

from bms import logger
from bms.config import MIN_CAPACITY, MAX_CAPACITY, DEFAULT_CAPACITY, DEFAULT_HOLD_MINUTES
from bms.fleet.bike import Bike, InvalidTransitionError
from bms.fleet.results import OperationResult, Operation, ErrorKind, StationInfo, ValidationReport
from bms.fleet.states import StationStatus, BikeStatus, ReservationStatus


class StationReservation:
    """A soft hold a user has on a station, and optionally on a specific bike in it."""

    def __init__(self, user_id: str, station_id: str, expires_at: datetime, *,
                 bike_id: Optional[str] = None, created_at: Optional[datetime] = None,
                 status: ReservationStatus = ReservationStatus.ACTIVE, reservation_id: Optional[int] = None):
        self.id = reservation_id
        self.user_id = user_id
        self.station_id = station_id
        self.bike_id = bike_id
        self.created_at = created_at if created_at is not None else datetime.now()
        self.expires_at = expires_at
        self.status = status

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """A reservation past its expiry is treated as inactive, even before the sweep marks it."""
        return self.status is ReservationStatus.ACTIVE and self.expires_at > (now or datetime.now())

    def has_lapsed(self, now: Optional[datetime] = None) -> bool:
        """Still marked active, but past its expiry."""
        return self.status is ReservationStatus.ACTIVE and self.expires_at <= (now or datetime.now())

    def serialize(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "station_id": self.station_id,
            "bike_id": self.bike_id,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "status": self.status,
        }

    def __repr__(self):
        return f"<StationReservation {self.user_id}@{self.station_id} {self.status.value}>"


class Station:

    def __init__(
        self, station_id: str, capacity: int = DEFAULT_CAPACITY, *,
        name: Optional[str] = None, status: StationStatus = StationStatus.ACTIVE,
        latitude: Optional[float] = None, longitude: Optional[float] = None, address: Optional[str] = None,
        reservation_hold_minutes: int = DEFAULT_HOLD_MINUTES
    ):
        if not isinstance(station_id, str) or not station_id.strip():
            raise ValueError("Station ID must be a non-empty string")
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
            raise ValueError("Station capacity must be a positive number")

        self.id = station_id
        self.name = name or f"Station {station_id}"
        self._capacity = max(MIN_CAPACITY, min(capacity, MAX_CAPACITY))
        self.status = StationStatus(status)
        self.latitude = latitude
        self.longitude = longitude
        self.address = address
        self.reservation_hold_minutes = reservation_hold_minutes

        self.docked_bikes: Dict[str, Bike] = {}
        """Maps bike ids to the bikes in the occupied docks."""

        self.reservations: Dict[str, StationReservation] = {}
        """Maps user ids to their most recent soft hold on this station."""

        self.created_at = datetime.now()
        self.updated_at = self.created_at

        logger.debug("Station %s (%s) initialized with capacity %s, status: %s",
                     self.id, self.name, self.capacity, self.status.value)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def bikes_available(self) -> int:
        return len(self.docked_bikes)

    @property
    def occupied_docks(self) -> int:
        return len(self.docked_bikes)

    @property
    def free_docks(self) -> int:
        return self.capacity - self.bikes_available

    @property
    def is_empty(self) -> bool:
        return len(self.docked_bikes) == 0

    @property
    def is_full(self) -> bool:
        return len(self.docked_bikes) >= self.capacity

    @property
    def is_active(self) -> bool:
        return self.status is StationStatus.ACTIVE

    @property
    def is_out_of_service(self) -> bool:
        return self.status is StationStatus.OUT_OF_SERVICE

    def info(self) -> StationInfo:
        return StationInfo(
            station_id=self.id,
            capacity=self.capacity,
            bikes_available=self.bikes_available,
            free_docks=self.free_docks,
            occupied_docks=self.occupied_docks,
            is_empty=self.is_empty,
            is_full=self.is_full,
            status=self.status,
        )

    def serialize(self) -> Dict[str, Any]:
        """Serializes the station, its occupancy, and its docked bikes."""
        data = {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "reservation_hold_minutes": self.reservation_hold_minutes,
            "bikes": [bike.info() for bike in self.docked_bikes.values()],
            "active_reservations": len(self.active_reservations()),
            "updated_at": self.updated_at,
        }
        data.update(self.info().serialize())
        return data

    def validate_state(self) -> ValidationReport:
        """
        Checks the occupancy invariants without changing anything.

        Calling this twice with no mutation in between gives equal reports.
        """
        errors = []
        docked = len(self.docked_bikes)

        if docked < 0:
            errors.append("Negative bike count detected")
        if docked > self.capacity:
            errors.append(f"Over-capacity: {docked}/{self.capacity}")
        if self.free_docks < 0:
            errors.append("Negative free dock count")
        if self.bikes_available != docked or self.free_docks != self.capacity - docked:
            errors.append("Occupancy accounting mismatch")

        for bike_id, bike in self.docked_bikes.items():
            if bike.id != bike_id or bike.station_id != self.id:
                errors.append(f"Bike {bike_id} is docked here but located at {bike.station_id}")
            if bike.status is BikeStatus.ON_TRIP:
                errors.append(f"Bike {bike_id} is docked here but on a trip")

        return ValidationReport(errors)

    def return_bike(self, bike: Bike) -> OperationResult:
        """Docks a bike in any free dock, making it available."""
        self.updated_at = datetime.now()

        if self.is_out_of_service:
            return OperationResult.fail(
                Operation.RETURN_FAILED_STATION_OOS, ErrorKind.INVALID_STATE,
                f"Cannot return bike {bike.id}. Station {self.id} is out of service",
                station_info=self.info()
            )

        if self.is_full:
            logger.info("BLOCKED: Attempt to return bike %s to full station %s", bike.id, self.id)
            return OperationResult.fail(
                Operation.RETURN_FAILED_STATION_FULL, ErrorKind.CAPACITY_VIOLATION,
                f"Cannot return bike {bike.id}. Station {self.id} is full - no free docks ({self.free_docks} free)",
                station_info=self.info()
            )

        if bike.id in self.docked_bikes:
            return OperationResult.fail(
                Operation.RETURN_FAILED_STATION_FULL, ErrorKind.INVALID_STATE,
                f"Bike {bike.id} is already docked at station {self.id}",
                station_info=self.info()
            )

        if bike.status is not BikeStatus.AVAILABLE:
            try:
                bike.change_status(BikeStatus.AVAILABLE, "bike return")
            except InvalidTransitionError as error:
                return OperationResult.fail(
                    Operation.RETURN_FAILED_STATION_FULL, ErrorKind.INVALID_STATE,
                    f"Invalid bike state transition: {error}",
                    station_info=self.info()
                )

        self.docked_bikes[bike.id] = bike
        bike.station_id = self.id

        logger.info("Bike %s returned to station %s (%s/%s bikes, %s free docks)",
                    bike.id, self.id, self.bikes_available, self.capacity, self.free_docks)

        return OperationResult.ok(
            Operation.RETURN_SUCCESS, f"Bike {bike.id} successfully returned to station {self.id}",
            station_info=self.info(), bike=bike
        )

    def checkout_bike(self, bike_id: Optional[str] = None, user_id: Optional[str] = None) -> OperationResult:
        """
        Undocks a bike, putting it on a trip.

        :param bike_id: The specific bike to take. If omitted, the user's reserved bike
            is taken, or else a random available one.
        :param user_id: The user taking the bike, used to honour their reservation.
        """
        self.updated_at = datetime.now()

        if self.is_out_of_service:
            return OperationResult.fail(
                Operation.CHECKOUT_FAILED_STATION_OOS, ErrorKind.INVALID_STATE,
                f"Cannot checkout bike. Station {self.id} is out of service",
                station_info=self.info()
            )

        if self.is_empty:
            logger.info("BLOCKED: Attempt to checkout from empty station %s", self.id)
            return OperationResult.fail(
                Operation.CHECKOUT_FAILED_STATION_EMPTY, ErrorKind.CAPACITY_VIOLATION,
                f"Cannot checkout bike. Station {self.id} is empty ({self.bikes_available} bikes available)",
                station_info=self.info()
            )

        self._release_expired_holds()

        if bike_id is not None:
            bike = self.docked_bikes.get(bike_id)
            if bike is None:
                return OperationResult.fail(
                    Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.NOT_FOUND,
                    f"Bike {bike_id} not found at station {self.id}",
                    station_info=self.info()
                )
            if bike.is_reserved_by_other(user_id):
                return OperationResult.fail(
                    Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.OWNERSHIP_VIOLATION,
                    f"Bike {bike_id} is reserved by another rider",
                    station_info=self.info()
                )
        else:
            bike = self._reserved_bike_for(user_id) or self.random_available_bike()
            if bike is None:
                return OperationResult.fail(
                    Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.NOT_FOUND,
                    f"No available bikes at station {self.id}",
                    station_info=self.info()
                )

        try:
            bike.change_status(BikeStatus.ON_TRIP, "bike checkout")
        except InvalidTransitionError as error:
            return OperationResult.fail(
                Operation.CHECKOUT_FAILED_NO_BIKE, ErrorKind.INVALID_STATE,
                f"Invalid bike state transition: {error}",
                station_info=self.info()
            )

        del self.docked_bikes[bike.id]
        bike.station_id = None

        used_reservation = None
        reservation = self.reservations.get(user_id) if user_id is not None else None
        if reservation is not None and reservation.is_active():
            reservation.status = ReservationStatus.USED
            used_reservation = reservation

        logger.info("Bike %s checked out from station %s (%s/%s bikes, %s free docks)",
                    bike.id, self.id, self.bikes_available, self.capacity, self.free_docks)

        return OperationResult.ok(
            Operation.CHECKOUT_SUCCESS, f"Bike {bike.id} successfully checked out from station {self.id}",
            station_info=self.info(), bike=bike, reservation=used_reservation
        )

    def random_available_bike(self) -> Optional[Bike]:
        """Picks uniformly at random among the docked bikes that are available."""
        available = [bike for bike in self.docked_bikes.values() if bike.status is BikeStatus.AVAILABLE]
        if not available:
            return None
        return random.choice(available)

    def create_reservation(self, user_id: str, hold_minutes: Optional[int] = None, *,
                           bike_id: Optional[str] = None) -> OperationResult:
        """Places a soft hold on the station for a user, expiring after ``hold_minutes``."""
        if not self.is_active:
            return OperationResult.fail(
                Operation.RESERVATION_FAILED, ErrorKind.INVALID_STATE,
                f"Station {self.id} is out of service", station_info=self.info()
            )

        if self.is_empty:
            return OperationResult.fail(
                Operation.RESERVATION_FAILED, ErrorKind.CAPACITY_VIOLATION,
                f"No bikes available at station {self.id}", station_info=self.info()
            )

        if hold_minutes is None:
            hold_minutes = self.reservation_hold_minutes

        reservation = StationReservation(
            user_id, self.id, datetime.now() + timedelta(minutes=hold_minutes), bike_id=bike_id
        )
        self.reservations[user_id] = reservation

        return OperationResult.ok(
            Operation.RESERVATION_CREATED, f"Reservation created at station {self.id} for user {user_id}",
            station_info=self.info(), reservation=reservation
        )

    def cancel_reservation(self, user_id: str) -> Optional[StationReservation]:
        """Cancels the user's active reservation here, returning it if there was one."""
        reservation = self.active_reservation(user_id)
        if reservation is None:
            return None
        reservation.status = ReservationStatus.CANCELLED
        return reservation

    def active_reservation(self, user_id: str, now: Optional[datetime] = None) -> Optional[StationReservation]:
        reservation = self.reservations.get(user_id)
        if reservation is not None and reservation.is_active(now):
            return reservation
        return None

    def active_reservations(self, now: Optional[datetime] = None) -> List[StationReservation]:
        return [reservation for reservation in self.reservations.values() if reservation.is_active(now)]

    def expire_old_reservations(self, now: Optional[datetime] = None) -> List[StationReservation]:
        """Marks every active reservation past its expiry as expired. Nothing is deleted."""
        now = now or datetime.now()
        expired = []

        for reservation in self.reservations.values():
            if reservation.has_lapsed(now):
                reservation.status = ReservationStatus.EXPIRED
                expired.append(reservation)

        return expired

    def expire_reservation(self, user_id: str, now: Optional[datetime] = None) -> Optional[StationReservation]:
        """
        Expires the user's reservation here if it has lapsed but not yet been swept.
        A new reservation for the user replaces the old one, so it must be expired first.
        """
        reservation = self.reservations.get(user_id)
        if reservation is None or not reservation.has_lapsed(now):
            return None
        reservation.status = ReservationStatus.EXPIRED
        return reservation

    def set_out_of_service(self) -> OperationResult:
        self.status = StationStatus.OUT_OF_SERVICE
        self.updated_at = datetime.now()
        logger.info("Station %s set to out of service", self.id)
        return OperationResult.ok(Operation.STATION_OOS, f"Station {self.id} set to out of service",
                                  station_info=self.info())

    def set_active(self) -> OperationResult:
        self.status = StationStatus.ACTIVE
        self.updated_at = datetime.now()
        logger.info("Station %s set to active", self.id)
        return OperationResult.ok(Operation.STATION_ACTIVE, f"Station {self.id} set to active",
                                  station_info=self.info())

    def _reserved_bike_for(self, user_id: Optional[str]) -> Optional[Bike]:
        if user_id is None:
            return None
        for bike in self.docked_bikes.values():
            if bike.is_reserved and bike.reserved_by == user_id:
                return bike
        return None

    def _release_expired_holds(self):
        """Frees bikes whose hold has lapsed, so a checkout never waits on the sweep."""
        now = datetime.now()
        for bike in self.docked_bikes.values():
            if bike.is_reserved and bike.is_reservation_expired(now):
                bike.release_reservation()

    def __repr__(self):
        return f"<Station {self.id} {self.bikes_available}/{self.capacity} {self.status.value}>"
