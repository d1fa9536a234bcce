from datetime import datetime, timedelta

import pytest

from bms.config import MAX_CAPACITY
from bms.fleet import Bike, BikeStatus, Station, StationStatus, ErrorKind, Operation, ReservationStatus


def assert_occupancy_consistent(station: Station):
    assert station.bikes_available == len(station.docked_bikes)
    assert station.free_docks == station.capacity - station.bikes_available
    assert len(station.docked_bikes) <= station.capacity
    assert station.validate_state().is_valid


def filled_station(capacity=3, bikes=0) -> Station:
    station = Station("STN001", capacity)
    for number in range(bikes):
        assert station.return_bike(Bike(f"BIKE{number:03d}"))
    return station


class TestStationCreation:

    def test_defaults(self):
        station = Station("STN001")
        assert station.capacity == 10
        assert station.is_active
        assert station.is_empty
        assert station.name == "Station STN001"

    def test_capacity_clamped(self):
        """Assert that the capacity is clamped to the maximum."""
        assert Station("STN001", MAX_CAPACITY + 5).capacity == MAX_CAPACITY

    @pytest.mark.parametrize("capacity", [0, -1, 2.5, "3", True])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            Station("STN001", capacity)

    def test_invalid_id(self):
        with pytest.raises(ValueError):
            Station("  ")

    def test_capacity_is_immutable(self):
        station = Station("STN001", 3)
        with pytest.raises(AttributeError):
            station.capacity = 5


class TestReturn:

    def test_return(self):
        """Assert that returning a bike docks it and makes it available."""
        station = filled_station()
        bike = Bike("BIKE100")
        bike.change_status(BikeStatus.ON_TRIP)

        result = station.return_bike(bike)

        assert result
        assert result.operation is Operation.RETURN_SUCCESS
        assert bike.status is BikeStatus.AVAILABLE
        assert bike.station_id == station.id
        assert result.station_info.bikes_available == 1
        assert result.station_info.free_docks == 2
        assert_occupancy_consistent(station)

    def test_return_to_full_station(self):
        """Assert that a full station turns away a return, and nothing changes."""
        station = filled_station(capacity=2, bikes=2)
        bike = Bike("BIKE100")
        bike.change_status(BikeStatus.ON_TRIP)

        result = station.return_bike(bike)

        assert not result
        assert result.operation is Operation.RETURN_FAILED_STATION_FULL
        assert result.error is ErrorKind.CAPACITY_VIOLATION
        assert "full" in result.message
        assert result.station_info.is_full
        assert bike.status is BikeStatus.ON_TRIP
        assert bike.station_id is None
        assert_occupancy_consistent(station)

    def test_return_to_out_of_service_station(self):
        station = filled_station()
        station.set_out_of_service()

        result = station.return_bike(Bike("BIKE100"))

        assert result.operation is Operation.RETURN_FAILED_STATION_OOS
        assert result.error is ErrorKind.INVALID_STATE
        assert station.is_empty

    def test_return_bike_already_docked(self):
        station = filled_station(bikes=1)
        bike = station.docked_bikes["BIKE000"]

        result = station.return_bike(bike)

        assert result.error is ErrorKind.INVALID_STATE
        assert station.bikes_available == 1

    def test_return_bike_from_maintenance(self):
        """Assert that a bike coming back from maintenance is docked as available."""
        station = filled_station()
        bike = Bike("BIKE100")
        bike.change_status(BikeStatus.MAINTENANCE)

        assert station.return_bike(bike)
        assert bike.status is BikeStatus.AVAILABLE

    def test_fill_to_capacity(self):
        """Assert that a station accepts exactly ``capacity`` bikes."""
        station = filled_station(capacity=3)
        results = [station.return_bike(Bike(f"BIKE{number}")) for number in range(4)]

        assert [bool(result) for result in results] == [True, True, True, False]
        assert station.is_full
        assert station.free_docks == 0
        assert_occupancy_consistent(station)


class TestCheckout:

    def test_checkout(self):
        """Assert that checking out puts the bike on a trip and frees a dock."""
        station = filled_station(bikes=2)

        result = station.checkout_bike("BIKE000", "rider")

        assert result
        assert result.operation is Operation.CHECKOUT_SUCCESS
        assert result.bike.status is BikeStatus.ON_TRIP
        assert result.bike.station_id is None
        assert "BIKE000" not in station.docked_bikes
        assert result.station_info.bikes_available == 1
        assert_occupancy_consistent(station)

    def test_checkout_random_bike(self):
        """Assert that without a bike id, an available bike is chosen."""
        station = filled_station(bikes=3)
        station.docked_bikes["BIKE001"].change_status(BikeStatus.MAINTENANCE)

        for _ in range(2):
            result = station.checkout_bike()
            assert result
            assert result.bike.id != "BIKE001"

        result = station.checkout_bike()
        assert result.operation is Operation.CHECKOUT_FAILED_NO_BIKE
        assert result.error is ErrorKind.NOT_FOUND

    def test_checkout_empty_station(self):
        station = filled_station()

        result = station.checkout_bike()

        assert result.operation is Operation.CHECKOUT_FAILED_STATION_EMPTY
        assert result.error is ErrorKind.CAPACITY_VIOLATION
        assert result.station_info.is_empty

    def test_checkout_out_of_service(self):
        station = filled_station(bikes=1)
        station.set_out_of_service()

        result = station.checkout_bike()

        assert result.operation is Operation.CHECKOUT_FAILED_STATION_OOS
        assert result.error is ErrorKind.INVALID_STATE
        assert station.bikes_available == 1

    def test_checkout_missing_bike(self):
        station = filled_station(bikes=1)
        result = station.checkout_bike("BIKE999")
        assert result.operation is Operation.CHECKOUT_FAILED_NO_BIKE
        assert result.error is ErrorKind.NOT_FOUND

    def test_checkout_bike_in_maintenance(self):
        """Assert that a bike in maintenance cannot be checked out, even by id."""
        station = filled_station(bikes=1)
        station.docked_bikes["BIKE000"].change_status(BikeStatus.MAINTENANCE)

        result = station.checkout_bike("BIKE000")

        assert result.error is ErrorKind.INVALID_STATE
        assert station.bikes_available == 1

    def test_checkout_return_inverse(self):
        """Assert that a checkout followed by a return of the same bike restores the occupancy."""
        station = filled_station(bikes=2)
        before = station.info()

        checkout = station.checkout_bike("BIKE001")
        station.return_bike(checkout.bike)

        assert station.info() == before
        assert_occupancy_consistent(station)


class TestReservations:

    def test_create_reservation(self):
        station = filled_station(bikes=1)

        result = station.create_reservation("rider", 5)

        assert result.operation is Operation.RESERVATION_CREATED
        assert result.reservation.status is ReservationStatus.ACTIVE
        assert station.active_reservation("rider") is result.reservation
        assert station.bikes_available == 1

    def test_reservation_uses_station_hold_time(self):
        station = Station("STN001", 3, reservation_hold_minutes=30)
        station.return_bike(Bike("BIKE000"))

        reservation = station.create_reservation("rider").reservation

        assert reservation.expires_at > datetime.now() + timedelta(minutes=29)

    def test_reserve_empty_station(self):
        result = filled_station().create_reservation("rider")
        assert result.error is ErrorKind.CAPACITY_VIOLATION

    def test_reserve_out_of_service_station(self):
        station = filled_station(bikes=1)
        station.set_out_of_service()
        assert station.create_reservation("rider").error is ErrorKind.INVALID_STATE

    def test_reserved_bike_skipped_by_random_checkout(self):
        """Assert that another rider never gets a reserved bike at random."""
        station = filled_station(bikes=2)
        station.docked_bikes["BIKE000"].reserve("holder")

        result = station.checkout_bike(user_id="other")

        assert result.bike.id == "BIKE001"
        assert station.checkout_bike(user_id="other").error is ErrorKind.NOT_FOUND

    def test_reserved_bike_refused_to_others(self):
        station = filled_station(bikes=1)
        station.docked_bikes["BIKE000"].reserve("holder")

        result = station.checkout_bike("BIKE000", "other")

        assert result.error is ErrorKind.OWNERSHIP_VIOLATION
        assert station.bikes_available == 1

    def test_holder_gets_reserved_bike(self):
        """Assert that the holder takes their reserved bike, marking the reservation used."""
        station = filled_station(bikes=3)
        station.docked_bikes["BIKE002"].reserve("holder")
        reservation = station.create_reservation("holder", bike_id="BIKE002").reservation

        result = station.checkout_bike(user_id="holder")

        assert result.bike.id == "BIKE002"
        assert result.reservation is reservation
        assert reservation.status is ReservationStatus.USED
        assert station.active_reservation("holder") is None

    def test_lapsed_hold_released_on_checkout(self):
        """Assert that a hold past its expiry does not stop a checkout."""
        station = filled_station(bikes=1)
        bike = station.docked_bikes["BIKE000"]
        bike.reserve("holder")
        bike.reservation_expiry = datetime.now() - timedelta(seconds=1)

        result = station.checkout_bike("BIKE000", "other")

        assert result
        assert result.bike is bike

    def test_lazy_expiry(self):
        """Assert that a reservation past its expiry reads as inactive before the sweep."""
        station = filled_station(bikes=1)
        reservation = station.create_reservation("rider", 1).reservation

        later = datetime.now() + timedelta(minutes=2)
        assert station.active_reservation("rider", later) is None
        assert reservation.status is ReservationStatus.ACTIVE

    def test_expire_old_reservations(self):
        """Assert that the sweep marks lapsed reservations expired without deleting them."""
        station = filled_station(bikes=1)
        old = station.create_reservation("old", 1).reservation
        fresh = station.create_reservation("fresh", 30).reservation

        expired = station.expire_old_reservations(datetime.now() + timedelta(minutes=2))

        assert expired == [old]
        assert old.status is ReservationStatus.EXPIRED
        assert fresh.status is ReservationStatus.ACTIVE
        assert "old" in station.reservations

    def test_expire_reservation(self):
        """Assert that only a lapsed reservation of the given user is expired."""
        station = filled_station(bikes=1)
        reservation = station.create_reservation("rider", 1).reservation

        assert station.expire_reservation("rider") is None
        assert station.expire_reservation("nobody") is None

        later = datetime.now() + timedelta(minutes=2)
        assert station.expire_reservation("rider", later) is reservation
        assert reservation.status is ReservationStatus.EXPIRED
        assert station.expire_reservation("rider", later) is None

    def test_cancel_reservation(self):
        station = filled_station(bikes=1)
        station.create_reservation("rider")

        reservation = station.cancel_reservation("rider")

        assert reservation.status is ReservationStatus.CANCELLED
        assert station.cancel_reservation("rider") is None


class TestValidation:

    def test_valid_station(self):
        assert filled_station(bikes=2).validate_state().is_valid

    def test_validation_is_idempotent(self):
        """Assert that validating twice gives the same report and changes nothing."""
        station = filled_station(bikes=2)
        station.docked_bikes["BIKE000"].station_id = "elsewhere"
        before = station.info()

        first, second = station.validate_state(), station.validate_state()

        assert first == second
        assert not first.is_valid
        assert station.info() == before

    def test_detects_over_capacity(self):
        station = filled_station(capacity=1, bikes=1)
        bike = Bike("BIKE100")
        station.docked_bikes[bike.id] = bike
        bike.station_id = station.id

        report = station.validate_state()

        assert any("Over-capacity" in error for error in report.errors)
        assert any("Negative free dock" in error for error in report.errors)

    def test_detects_bike_on_trip_in_dock(self):
        station = filled_station(bikes=1)
        station.docked_bikes["BIKE000"].status = BikeStatus.ON_TRIP
        assert not station.validate_state().is_valid


class TestStatus:

    def test_toggle_status(self):
        station = filled_station()

        result = station.set_out_of_service()
        assert result.operation is Operation.STATION_OOS
        assert station.status is StationStatus.OUT_OF_SERVICE

        result = station.set_active()
        assert result.operation is Operation.STATION_ACTIVE
        assert station.is_active

    def test_serialize(self):
        data = filled_station(bikes=1).serialize()
        assert data["bikes_available"] == 1
        assert data["free_docks"] == 2
        assert [bike["id"] for bike in data["bikes"]] == ["BIKE000"]
