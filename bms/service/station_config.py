"""
Station Config
--------------

Loads the stations and bikes the fleet is seeded with when the database
is empty. The file is described by :class:`~bms.serializer.config.FleetConfigSchema`.
"""

import json
from typing import Dict, Any, List

from marshmallow import ValidationError

from bms import logger
from bms.fleet import BMSManager, BikeStatus, StationStatus, OperationResult
from bms.serializer.config import FleetConfigSchema


class StationConfigError(Exception):
    """Raised when the station configuration file is missing or malformed."""


def load_station_config(path: str) -> Dict[str, Any]:
    """
    Reads and validates a station configuration file.

    :raises StationConfigError: If the file cannot be read or is invalid.
    """
    try:
        with open(path, "r") as config_file:
            raw = json.load(config_file)
    except FileNotFoundError:
        raise StationConfigError(f"Configuration file not found: {path}")
    except json.JSONDecodeError as error:
        raise StationConfigError(f"Configuration file {path} is not valid json: {error}")

    try:
        config = FleetConfigSchema().load(raw)
    except ValidationError as error:
        raise StationConfigError(f"Configuration file {path} is invalid: {error.messages}")

    station_ids = [station["id"] for station in config["stations"]]
    if len(set(station_ids)) != len(station_ids):
        raise StationConfigError("Station ids in the configuration must be unique")

    bike_ids = [bike["id"] for station in config["stations"] for bike in station["bikes"]]
    if len(set(bike_ids)) != len(bike_ids):
        raise StationConfigError("Bike ids in the configuration must be unique")

    logger.info("Loaded configuration version %s with %s stations", config["version"], len(config["stations"]))
    return config


def apply_station_config(manager: BMSManager, config: Dict[str, Any]) -> List[OperationResult]:
    """
    Adds the configured stations and bikes to the manager. Bikes
    configured for maintenance are docked and then taken out of service,
    every other bike is docked as available.

    :return: The failed results, for example a station configured with more bikes than docks.
    """
    failures = []

    for station in config["stations"]:
        result = manager.add_station(
            station["id"], station["capacity"], name=station["name"],
            latitude=station["latitude"], longitude=station["longitude"], address=station["address"],
            reservation_hold_minutes=station["reservation_hold_minutes"]
        )
        if not result:
            failures.append(result)
            continue

        for bike in station["bikes"]:
            result = manager.add_bike(bike["id"], station["id"], bike["type"])
            if not result:
                failures.append(result)
            elif bike["status"] == BikeStatus.MAINTENANCE.value:
                manager.set_bike_status(bike["id"], BikeStatus.MAINTENANCE)

        if station["status"] == "out_of_service":
            manager.set_station_status(station["id"], StationStatus.OUT_OF_SERVICE)

    for failure in failures:
        logger.warning("Could not apply configuration: %s", failure.message)

    return failures
