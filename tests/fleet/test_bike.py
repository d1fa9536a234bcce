from datetime import datetime, timedelta

import pytest

from bms.fleet import Bike, BikeStatus, BikeType, InvalidTransitionError, ErrorKind, Operation
from bms.fleet.states import VALID_TRANSITIONS

ALLOWED = [(current, target) for current, targets in VALID_TRANSITIONS.items() for target in targets]
FORBIDDEN = [
    (current, target) for current in BikeStatus for target in BikeStatus
    if target not in VALID_TRANSITIONS[current]
]


def bike_in(status: BikeStatus) -> Bike:
    bike = Bike("BIKE001")
    bike.status = status
    return bike


class TestBikeCreation:

    def test_new_bike_is_available(self):
        """Assert that a new bike starts out available and undocked."""
        bike = Bike("BIKE001", BikeType.E_BIKE)
        assert bike.status is BikeStatus.AVAILABLE
        assert bike.type is BikeType.E_BIKE
        assert bike.station_id is None

    def test_type_from_string(self):
        """Assert that the bike type can be given by value."""
        assert Bike("BIKE001", "e-bike").type is BikeType.E_BIKE

    @pytest.mark.parametrize("bike_id", ["", "   ", None, 7])
    def test_invalid_id(self, bike_id):
        """Assert that a bike needs a non-empty string id."""
        with pytest.raises(ValueError):
            Bike(bike_id)

    def test_invalid_type(self):
        """Assert that an unknown bike type is rejected."""
        with pytest.raises(ValueError, match="Invalid bike type"):
            Bike("BIKE001", "tandem")


class TestTransitions:

    @pytest.mark.parametrize("current,target", ALLOWED)
    def test_allowed_transition(self, current, target):
        """Assert that every transition in the table succeeds."""
        bike = bike_in(current)
        assert bike.is_valid_transition(target)
        bike.change_status(target)
        assert bike.status is target

    @pytest.mark.parametrize("current,target", FORBIDDEN)
    def test_forbidden_transition(self, current, target):
        """Assert that every transition missing from the table is rejected, and leaves the bike alone."""
        bike = bike_in(current)
        assert not bike.is_valid_transition(target)
        with pytest.raises(InvalidTransitionError):
            bike.change_status(target)
        assert bike.status is current

    def test_same_status_is_forbidden(self):
        """Assert that a bike cannot transition to the status it already has."""
        with pytest.raises(InvalidTransitionError):
            Bike("BIKE001").change_status(BikeStatus.AVAILABLE)

    def test_error_names_the_transition(self):
        bike = bike_in(BikeStatus.MAINTENANCE)
        with pytest.raises(InvalidTransitionError) as error:
            bike.change_status(BikeStatus.ON_TRIP, "bike checkout")
        assert error.value.current is BikeStatus.MAINTENANCE
        assert error.value.requested is BikeStatus.ON_TRIP
        assert "bike checkout" in str(error.value)

    def test_change_updates_timestamp(self):
        bike = Bike("BIKE001")
        before = bike.updated_at
        bike.change_status(BikeStatus.MAINTENANCE)
        assert bike.updated_at >= before


class TestReservation:

    def test_reserve(self):
        """Assert that reserving a bike holds it for the user."""
        bike = Bike("BIKE001")
        result = bike.reserve("rider", 10)

        assert result
        assert result.operation is Operation.RESERVATION_CREATED
        assert bike.is_reserved
        assert bike.reserved_by == "rider"
        assert bike.reservation_expiry > datetime.now() + timedelta(minutes=9)

    @pytest.mark.parametrize("status", [BikeStatus.RESERVED, BikeStatus.ON_TRIP, BikeStatus.MAINTENANCE])
    def test_reserve_unavailable(self, status):
        """Assert that only an available bike can be reserved."""
        result = bike_in(status).reserve("rider")
        assert not result
        assert result.error is ErrorKind.INVALID_STATE

    def test_release(self):
        """Assert that releasing a reservation clears the holder."""
        bike = Bike("BIKE001")
        bike.reserve("rider")
        bike.release_reservation()

        assert bike.is_available
        assert bike.reserved_by is None
        assert bike.reservation_expiry is None

    def test_leaving_reserved_clears_holder(self):
        """Assert that checking out a reserved bike drops the hold."""
        bike = Bike("BIKE001")
        bike.reserve("rider")
        bike.change_status(BikeStatus.ON_TRIP)
        assert bike.reserved_by is None

    def test_reservation_expiry(self):
        bike = Bike("BIKE001")
        assert not bike.is_reservation_expired()
        bike.reserve("rider", 5)
        assert not bike.is_reservation_expired()
        assert bike.is_reservation_expired(datetime.now() + timedelta(minutes=6))

    def test_reserved_by_other(self):
        bike = Bike("BIKE001")
        bike.reserve("rider")
        assert bike.is_reserved_by_other("someone else")
        assert bike.is_reserved_by_other(None)
        assert not bike.is_reserved_by_other("rider")
