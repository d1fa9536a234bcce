from aiohttp.test_utils import TestClient

from bms.config import api_root
from bms.serializer import JSendSchema, Many
from bms.serializer.models import StationNotificationSchema
from bms.service.notifications import NotificationType


class TestStationNotificationsView:

    async def test_no_notifications(self, client: TestClient, random_station):
        """Assert that a station with bikes and free docks is not worth a notice."""
        resp = await client.get(f'{api_root}/notifications/stations')
        data = await resp.json()

        assert resp.status == 200
        assert data["data"]["notifications"] == []

    async def test_empty_and_full(self, client: TestClient, random_station, app_fleet):
        await app_fleet.add_station("FULL", 1)
        await app_fleet.add_bike("B1", "FULL")
        await app_fleet.rent_bike("first", random_station.id)
        await app_fleet.rent_bike("second", random_station.id)

        resp = await client.get(f'{api_root}/notifications/stations')
        data = JSendSchema.of(notifications=Many(StationNotificationSchema())).load(await resp.json())
        notifications = {notice["station_id"]: notice for notice in data["data"]["notifications"]}

        assert notifications[random_station.id]["type"] is NotificationType.STATION_EMPTY
        assert notifications["FULL"]["type"] is NotificationType.STATION_FULL
        assert "full" in notifications["FULL"]["message"]
        assert len(notifications) == 2
