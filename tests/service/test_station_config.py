import json

import pytest

from bms.fleet import BikeStatus, StationStatus
from bms.service import StationConfigError, load_station_config
from bms.service.station_config import apply_station_config


@pytest.fixture
def config_file(tmp_path):
    def write_config(content) -> str:
        path = tmp_path / "stations.json"
        path.write_text(content if isinstance(content, str) else json.dumps(content))
        return str(path)

    return write_config


def test_load(config_file, station_config):
    config = load_station_config(config_file(station_config))

    assert config["version"] == "1.0"
    assert config["stations"][0]["reservation_hold_minutes"] == 15
    assert [bike["id"] for bike in config["stations"][0]["bikes"]] == ["BIKE001", "BIKE002"]


def test_missing_file(tmp_path):
    with pytest.raises(StationConfigError, match="not found"):
        load_station_config(str(tmp_path / "missing.json"))


def test_invalid_json(config_file):
    with pytest.raises(StationConfigError, match="not valid json"):
        load_station_config(config_file("{ stations: "))


@pytest.mark.parametrize("field", ["capacity", "reservationHoldTimeMinutes", "bikes", "latitude"])
def test_missing_station_field(config_file, station_config, field):
    """Assert that every station field is required."""
    config = json.loads(station_config)
    del config["stations"][0][field]

    with pytest.raises(StationConfigError, match="invalid"):
        load_station_config(config_file(config))


def test_invalid_bike_type(config_file, station_config):
    config = json.loads(station_config)
    config["stations"][0]["bikes"][0]["type"] = "tandem"

    with pytest.raises(StationConfigError):
        load_station_config(config_file(config))


def test_duplicate_bike_ids(config_file, station_config):
    config = json.loads(station_config)
    config["stations"][1]["bikes"] = [{"id": "BIKE001", "type": "standard", "status": "available"}]

    with pytest.raises(StationConfigError, match="unique"):
        load_station_config(config_file(config))


def test_apply(manager, config_file, station_config):
    failures = apply_station_config(manager, load_station_config(config_file(station_config)))

    assert failures == []
    assert manager.stations["STN001"].bikes_available == 2
    assert manager.stations["STN001"].reservation_hold_minutes == 15
    assert manager.bikes["BIKE002"].status is BikeStatus.MAINTENANCE
    assert manager.stations["STN002"].status is StationStatus.OUT_OF_SERVICE
    assert manager.validate_system_state().is_valid


def test_apply_overfull_station(manager, config_file, station_config):
    """Assert that bikes beyond a station's capacity are reported rather than docked."""
    config = json.loads(station_config)
    config["stations"][1]["status"] = "active"
    config["stations"][1]["bikes"] = [
        {"id": f"EXTRA{number}", "type": "standard", "status": "available"} for number in range(3)
    ]

    failures = apply_station_config(manager, load_station_config(config_file(config)))

    assert len(failures) == 1
    assert manager.stations["STN002"].is_full
    assert "EXTRA2" not in manager.bikes
