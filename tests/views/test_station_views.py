import asyncio

from aiohttp.test_utils import TestClient

from bms.config import api_root
from bms.fleet import BikeStatus, StationStatus
from bms.serializer import JSendSchema, JSendStatus, Many
from bms.serializer.models import StationSchema, BikeSchema, ReservationSchema
from bms.views.utils import ResultSchema


class TestStationsView:

    async def test_get_stations(self, client: TestClient, random_station):
        """Assert that anyone can get the entire list of stations."""
        resp = await client.get(f'{api_root}/stations')

        schema = JSendSchema.of(stations=Many(StationSchema()))
        data = schema.load(await resp.json())

        assert data["status"] == JSendStatus.SUCCESS
        assert len(data["data"]["stations"]) == 1
        assert data["data"]["stations"][0]["id"] == random_station.id
        assert data["data"]["stations"][0]["bikes_available"] == 2

    async def test_add_station(self, client: TestClient, app_fleet):
        resp = await client.post(f'{api_root}/stations', json={"id": "STN100", "capacity": 6, "name": "Central"})

        data = ResultSchema.load(await resp.json())

        assert resp.status == 201
        assert data["data"]["result"]["station_info"]["capacity"] == 6
        assert app_fleet.station("STN100").name == "Central"

    async def test_add_duplicate_station(self, client: TestClient, random_station):
        resp = await client.post(f'{api_root}/stations', json={"id": random_station.id})

        data = ResultSchema.load(await resp.json())

        assert resp.status == 409
        assert data["status"] == JSendStatus.FAIL
        assert "already exists" in data["data"]["message"]


class TestStationView:

    async def test_get_station(self, client: TestClient, random_station):
        resp = await client.get(f'{api_root}/stations/{random_station.id}')

        data = JSendSchema.of(station=StationSchema()).load(await resp.json())

        assert data["data"]["station"]["free_docks"] == 2
        assert len(data["data"]["station"]["bikes"]) == 2

    async def test_get_missing_station(self, client: TestClient):
        resp = await client.get(f'{api_root}/stations/nowhere')

        data = JSendSchema().load(await resp.json())

        assert resp.status == 404
        assert data["status"] == JSendStatus.FAIL
        assert data["data"]["params"] == {"station_id": "nowhere"}

    async def test_out_of_service(self, client: TestClient, random_station, app_fleet):
        """Assert that an operator can take a station out of service."""
        resp = await client.patch(f'{api_root}/stations/{random_station.id}', json={"status": "out_of_service"})

        data = ResultSchema.load(await resp.json())

        assert resp.status == 200
        assert data["data"]["result"]["operation"].value == "station_out_of_service"
        assert app_fleet.station(random_station.id).status is StationStatus.OUT_OF_SERVICE

    async def test_bad_status(self, client: TestClient, random_station):
        resp = await client.patch(f'{api_root}/stations/{random_station.id}', json={"status": "closed"})
        assert resp.status == 400


class TestStationBikesView:

    async def test_get_bikes(self, client: TestClient, random_station):
        resp = await client.get(f'{api_root}/stations/{random_station.id}/bikes')

        data = JSendSchema.of(bikes=Many(BikeSchema())).load(await resp.json())

        assert sorted(bike["id"] for bike in data["data"]["bikes"]) == sorted(random_station.docked_bikes)


class TestStationRentalsView:

    async def test_rent(self, client: TestClient, random_station, app_fleet):
        """Assert that a rider can rent a bike from a station."""
        resp = await client.post(f'{api_root}/stations/{random_station.id}/rentals', json={"user_id": "rider"})

        data = ResultSchema.load(await resp.json())
        result = data["data"]["result"]

        assert resp.status == 201
        assert result["success"]
        assert result["station_info"]["bikes_available"] == 1
        assert result["rental"]["user_id"] == "rider"
        assert app_fleet.active_rental("rider").bike_id == result["bike"]["id"]

    async def test_rent_twice(self, client: TestClient, random_station):
        """Assert that a rider with a rental cannot start another."""
        url = f'{api_root}/stations/{random_station.id}/rentals'
        await client.post(url, json={"user_id": "rider"})

        resp = await client.post(url, json={"user_id": "rider"})
        data = ResultSchema.load(await resp.json())

        assert resp.status == 403
        assert data["data"]["result"]["error"].value == "ownership_violation"

    async def test_rent_from_empty_station(self, client: TestClient, app_fleet):
        await app_fleet.add_station("EMPTY", 2)

        resp = await client.post(f'{api_root}/stations/EMPTY/rentals', json={"user_id": "rider"})
        data = ResultSchema.load(await resp.json())

        assert resp.status == 409
        assert data["data"]["result"]["operation"].value == "checkout_failed_station_empty"
        assert data["data"]["result"]["station_info"]["is_empty"]

    async def test_rent_missing_bike(self, client: TestClient, random_station):
        resp = await client.post(
            f'{api_root}/stations/{random_station.id}/rentals', json={"user_id": "rider", "bike_id": "nope"}
        )
        assert resp.status == 404

    async def test_rent_with_reservation_elsewhere(self, client: TestClient, random_station, app_fleet):
        """Assert that the reservation a rider gives up by renting elsewhere is reported back."""
        await app_fleet.add_station("OTHER", 2)
        await app_fleet.add_bike("B1", "OTHER")
        await app_fleet.reserve_bike("rider", "OTHER", "B1")

        resp = await client.post(f'{api_root}/stations/{random_station.id}/rentals', json={"user_id": "rider"})
        result = ResultSchema.load(await resp.json())["data"]["result"]

        assert resp.status == 201
        assert result["reservation_outcome"].value == "reservation_cancelled"
        assert result["reservation"]["station_id"] == "OTHER"
        assert app_fleet.bike("B1").status is BikeStatus.AVAILABLE


class TestStationReturnsView:

    async def test_return(self, client: TestClient, random_station, app_fleet):
        rental = (await app_fleet.rent_bike("rider", random_station.id)).rental

        resp = await client.post(
            f'{api_root}/stations/{random_station.id}/returns', json={"user_id": "rider", "bike_id": rental.bike_id}
        )
        data = ResultSchema.load(await resp.json())
        result = data["data"]["result"]

        assert resp.status == 200
        assert result["operation"].value == "return_success"
        assert result["rental"]["status"].value == "completed"
        assert result["rental"]["price"] == 0.1
        assert result["flex_deducted"] == 0.0
        assert result["loyalty_tier"].value == "entry"
        assert result["discount_percentage"] == 0
        assert app_fleet.bike(rental.bike_id).status is BikeStatus.AVAILABLE

    async def test_return_to_full_station(self, client: TestClient, app_fleet):
        await app_fleet.add_station("FULL", 1)
        await app_fleet.add_station("START", 2)
        await app_fleet.add_bike("B1", "FULL")
        await app_fleet.add_bike("B2", "START")
        await app_fleet.rent_bike("rider", "START", "B2")

        resp = await client.post(f'{api_root}/stations/FULL/returns', json={"user_id": "rider", "bike_id": "B2"})
        data = ResultSchema.load(await resp.json())

        assert resp.status == 409
        assert data["data"]["result"]["error"].value == "capacity_violation"
        assert "full" in data["data"]["message"]
        assert app_fleet.active_rental("rider") is not None

    async def test_return_without_rental(self, client: TestClient, random_station):
        bike_id = next(iter(random_station.docked_bikes))

        resp = await client.post(
            f'{api_root}/stations/{random_station.id}/returns', json={"user_id": "rider", "bike_id": bike_id}
        )

        assert resp.status == 403

    async def test_return_earns_reward(self, client: TestClient, app_fleet):
        """Assert that returning to a station that is low on bikes earns flex dollars."""
        await app_fleet.add_station("START", 2)
        await app_fleet.add_station("LOW", 10)
        await app_fleet.add_bike("B1", "START")
        await app_fleet.rent_bike("rider", "START", "B1")

        await client.post(f'{api_root}/stations/LOW/returns', json={"user_id": "rider", "bike_id": "B1"})
        await asyncio.gather(*client.app["rewarder"].pending)

        resp = await client.get(f'{api_root}/users/rider/flex')
        data = await resp.json()

        assert data["data"]["balance"] == 1.0


class TestStationReservationsView:

    async def test_reserve(self, client: TestClient, random_station, app_fleet):
        resp = await client.post(
            f'{api_root}/stations/{random_station.id}/reservations', json={"user_id": "rider", "hold_minutes": 5}
        )
        data = ResultSchema.load(await resp.json())
        result = data["data"]["result"]

        assert resp.status == 201
        assert result["reservation"]["status"].value == "active"
        assert app_fleet.bike(result["bike"]["id"]).status is BikeStatus.RESERVED

    async def test_get_reservations(self, client: TestClient, random_station, app_fleet):
        await app_fleet.reserve_bike("rider", random_station.id)

        resp = await client.get(f'{api_root}/stations/{random_station.id}/reservations')
        data = JSendSchema.of(reservations=Many(ReservationSchema())).load(await resp.json())

        assert [reservation["user_id"] for reservation in data["data"]["reservations"]] == ["rider"]

    async def test_reserve_twice(self, client: TestClient, random_station):
        url = f'{api_root}/stations/{random_station.id}/reservations'
        await client.post(url, json={"user_id": "rider"})

        resp = await client.post(url, json={"user_id": "rider"})

        assert resp.status == 409
