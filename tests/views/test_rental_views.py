from aiohttp.test_utils import TestClient

from bms.config import api_root
from bms.serializer import JSendSchema, Many
from bms.serializer.models import RentalSchema, ReservationSchema


class TestRentalsView:

    async def test_get_rentals(self, client: TestClient, random_station, app_fleet):
        await app_fleet.rent_bike("rider", random_station.id)
        await app_fleet.rent_bike("other", random_station.id)

        resp = await client.get(f'{api_root}/rentals')
        data = JSendSchema.of(rentals=Many(RentalSchema())).load(await resp.json())

        assert sorted(rental["user_id"] for rental in data["data"]["rentals"]) == ["other", "rider"]

    async def test_filter_by_user(self, client: TestClient, random_station, app_fleet):
        await app_fleet.rent_bike("rider", random_station.id)
        await app_fleet.rent_bike("other", random_station.id)

        resp = await client.get(f'{api_root}/rentals', params={"user_id": "other"})
        data = JSendSchema.of(rentals=Many(RentalSchema())).load(await resp.json())

        assert [rental["user_id"] for rental in data["data"]["rentals"]] == ["other"]


class TestRentalView:

    async def test_get_rental(self, client: TestClient, random_station, app_fleet):
        """Assert that a completed rental shows where it ended and what it cost."""
        rental = (await app_fleet.rent_bike("rider", random_station.id)).rental
        await app_fleet.return_bike("rider", rental.bike_id, random_station.id)

        resp = await client.get(f'{api_root}/rentals/{rental.id}')
        data = JSendSchema.of(rental=RentalSchema()).load(await resp.json())

        assert data["data"]["rental"]["return_station_id"] == random_station.id
        assert data["data"]["rental"]["price"] == 0.1

    async def test_get_missing_rental(self, client: TestClient):
        resp = await client.get(f'{api_root}/rentals/999')
        assert resp.status == 404


class TestReservationsView:

    async def test_get_reservations(self, client: TestClient, random_station, app_fleet):
        """Assert that cancelled reservations are listed along with active ones."""
        await app_fleet.reserve_bike("rider", random_station.id)
        await app_fleet.cancel_reservation("rider")
        await app_fleet.reserve_bike("other", random_station.id)

        resp = await client.get(f'{api_root}/reservations', params={"station_id": random_station.id})
        data = JSendSchema.of(reservations=Many(ReservationSchema())).load(await resp.json())

        statuses = {
            reservation["user_id"]: reservation["status"].value
            for reservation in data["data"]["reservations"]
        }
        assert statuses == {"rider": "cancelled", "other": "active"}

    async def test_filter_by_user(self, client: TestClient, random_station, app_fleet):
        await app_fleet.reserve_bike("rider", random_station.id)
        await app_fleet.reserve_bike("other", random_station.id)

        resp = await client.get(f'{api_root}/reservations', params={"user_id": "rider"})
        data = JSendSchema.of(reservations=Many(ReservationSchema())).load(await resp.json())

        assert [reservation["user_id"] for reservation in data["data"]["reservations"]] == ["rider"]
