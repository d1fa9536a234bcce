"""
App
-----
"""

from typing import Optional

import sentry_sdk
from aiohttp import web
from aiohttp_apispec import setup_aiohttp_apispec
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from bms import server_mode, logger
from bms.config import api_root, database_url, sentry_dsn, station_config_path
from bms.service import FleetService, FlexDollarService, ReturnRewarder
from bms.service.background.reservation_expirer import ReservationExpirer
from bms.signals import register_signals
from bms.store import Store, DatabaseStore
from bms.version import __version__, name
from bms.views import register_views


def build_app(db_uri: Optional[str] = None, *, store: Optional[Store] = None,
              config_path: Optional[str] = station_config_path):
    """
    Sets up the app.

    :param db_uri: The database to connect to, if no store is given.
    :param store: A store to use in place of the database.
    :param config_path: A station configuration to seed an empty fleet with.
    """
    app = web.Application()

    app['database_uri'] = db_uri if db_uri is not None else database_url
    app['store'] = store if store is not None else DatabaseStore()
    app['flex'] = FlexDollarService(app['store'])
    app['fleet'] = FleetService(app['store'], app['flex'], config_path=config_path)

    # reward riders for returns that rebalance the fleet
    app['rewarder'] = ReturnRewarder(app['flex'])
    app['rewarder'].attach(app['fleet'].hub)

    app['reservation_expirer'] = ReservationExpirer(app['fleet'])

    # set up the background tasks
    register_signals(
        app, init_database=isinstance(app['store'], DatabaseStore), debug=server_mode == "development"
    )

    # register views
    register_views(app, api_root)

    setup_aiohttp_apispec(
        app=app, title=name, version=__version__, url=f"{api_root}/docs",
        info={"description": "Manages the stations and bikes of a bike sharing fleet."},
    )

    # set up sentry exception tracking
    if server_mode != "development" and sentry_dsn is not None:
        logger.info("Starting Sentry Logging")
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[AioHttpIntegration()],
            environment=server_mode,
            release=f"{name}@{__version__}"
        )

    return app
