import json
from itertools import count

import pytest
from aiohttp.test_utils import TestClient
from faker import Faker
from tortoise import Tortoise, connections

from bms.app import build_app
from bms.fleet import BMSManager, Bike, Station, BikeType
from bms.service import FleetService, FlexDollarService, ReturnRewarder
from bms.store import MemoryStore, DatabaseStore

fake = Faker()


@pytest.fixture
def database_url():
    return "sqlite://:memory:"


@pytest.fixture
async def database(database_url):
    await Tortoise.init(
        db_url=database_url,
        modules={'models': ['bms.models']}
    )
    await Tortoise.generate_schemas(safe=True)
    yield
    await connections.close_all()


@pytest.fixture
def id_factory():
    """Makes unique ids with a readable prefix."""
    counter = count(1)

    def make_id(prefix: str) -> str:
        return f"{prefix}{next(counter):03d}-{fake.lexify('????').upper()}"

    return make_id


@pytest.fixture
def manager() -> BMSManager:
    return BMSManager()


@pytest.fixture
def station_factory(manager, id_factory):
    def create_station(capacity=4, bikes=0, bike_type=BikeType.STANDARD) -> Station:
        station_id = id_factory("STN")
        manager.add_station(station_id, capacity, name=fake.street_name())
        for _ in range(bikes):
            manager.add_bike(id_factory("BIKE"), station_id, bike_type)
        return manager.stations[station_id]

    return create_station


@pytest.fixture
def random_bike(id_factory) -> Bike:
    """A bike that is not docked anywhere."""
    return Bike(id_factory("BIKE"))


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def flex(store) -> FlexDollarService:
    return FlexDollarService(store)


@pytest.fixture
def fleet(store, flex) -> FleetService:
    return FleetService(store, flex, config_path=None)


@pytest.fixture
def rewarder(fleet, flex) -> ReturnRewarder:
    rewarder = ReturnRewarder(flex)
    rewarder.attach(fleet.hub)
    return rewarder


@pytest.fixture
def database_store(database) -> DatabaseStore:
    return DatabaseStore()


@pytest.fixture
def database_fleet(database_store) -> FleetService:
    return FleetService(database_store, config_path=None)


@pytest.fixture
async def client(aiohttp_client) -> TestClient:
    """A client for an app that keeps the fleet in memory."""
    app = build_app(store=MemoryStore(), config_path=None)
    return await aiohttp_client(app)


@pytest.fixture
async def database_client(aiohttp_client) -> TestClient:
    """A client for an app backed by an in-memory sqlite database."""
    app = build_app("sqlite://:memory:", config_path=None)
    yield await aiohttp_client(app)


@pytest.fixture
def app_fleet(client) -> FleetService:
    return client.app["fleet"]


@pytest.fixture
async def random_station(app_fleet, id_factory):
    """A station with two standard bikes and room for two more."""
    station_id = id_factory("STN")
    await app_fleet.add_station(station_id, 4, name=fake.street_name())
    for _ in range(2):
        await app_fleet.add_bike(id_factory("BIKE"), station_id)
    return app_fleet.station(station_id)


@pytest.fixture
def station_config() -> str:
    """A station configuration with a maintenance bike and a station out of service."""
    return json.dumps({
        "version": "1.0",
        "stations": [
            {
                "id": "STN001",
                "name": fake.street_name(),
                "status": "active",
                "latitude": float(fake.latitude()),
                "longitude": float(fake.longitude()),
                "address": fake.address(),
                "capacity": 4,
                "reservationHoldTimeMinutes": 15,
                "bikes": [
                    {"id": "BIKE001", "type": "standard", "status": "available"},
                    {"id": "BIKE002", "type": "e-bike", "status": "maintenance"},
                ]
            },
            {
                "id": "STN002",
                "name": fake.street_name(),
                "status": "out_of_service",
                "latitude": float(fake.latitude()),
                "longitude": float(fake.longitude()),
                "address": fake.address(),
                "capacity": 2,
                "reservationHoldTimeMinutes": 10,
                "bikes": []
            },
        ]
    })
