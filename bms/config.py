import os

server_mode = os.getenv("SERVER_MODE", "development")
"""The operational mode of the server."""

database_url = os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
"""The tortoise connection string for the database."""

station_config_path = os.getenv("STATION_CONFIG_PATH", None)
"""A json file of stations and bikes to seed an empty database with."""

sentry_dsn = os.getenv("SENTRY_DSN", None)
"""The sentry DSN errors are reported to outside development."""

api_root = "/api/v1"
"""The base url for the api."""

MIN_CAPACITY = 1
"""The fewest docks a station may have."""

MAX_CAPACITY = 20
"""The most docks a station may have."""

DEFAULT_CAPACITY = 10

DEFAULT_HOLD_MINUTES = int(os.getenv("DEFAULT_HOLD_MINUTES", 15))
"""How long a reservation holds a bike unless the station says otherwise."""

RESERVATION_SWEEP_SECONDS = int(os.getenv("RESERVATION_SWEEP_SECONDS", 60))
"""How often lapsed reservations are expired."""

REWARD_OCCUPANCY_THRESHOLD = 0.25
"""Returning a bike to a station below this fraction of capacity earns a reward."""

REWARD_AMOUNT = 1.0
"""The flex dollars awarded for a rebalancing return."""
