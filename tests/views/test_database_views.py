from aiohttp.test_utils import TestClient

from bms import models
from bms.config import api_root
from bms.fleet import BikeStatus
from bms.views.utils import ResultSchema


async def test_rental_lifecycle(database_client: TestClient):
    """Assert that a rental made over the api is written to the database."""
    await database_client.post(f'{api_root}/stations', json={"id": "S1", "capacity": 2})
    await database_client.post(f'{api_root}/stations', json={"id": "S2", "capacity": 2})
    await database_client.post(f'{api_root}/bikes', json={"id": "B1", "station_id": "S1"})

    resp = await database_client.post(f'{api_root}/stations/S1/rentals', json={"user_id": "rider"})
    rental = ResultSchema.load(await resp.json())["data"]["result"]["rental"]

    assert resp.status == 201
    assert (await models.Bike.filter(id="B1").first()).status is BikeStatus.ON_TRIP

    resp = await database_client.post(f'{api_root}/stations/S2/returns', json={"user_id": "rider", "bike_id": "B1"})

    assert resp.status == 200
    assert (await models.Bike.filter(id="B1").first()).station_id == "S2"

    resp = await database_client.get(f'{api_root}/rentals/{rental["id"]}')
    data = await resp.json()
    assert data["data"]["rental"]["status"] == "completed"
