"""
Signals
-------

Defines a number of signals that the aiohttp server uses
to facilitate some of the advanced functionality.

Each signal must accept an the ``app`` argument.
"""
import asyncio
from asyncio import CancelledError
from contextlib import suppress

from aiohttp.abc import Application
from tortoise import Tortoise, connections

from bms import logger
from bms.service.rebuildable import rebuild_all


async def initialize_database(app: Application):
    """Initializes and generates the schema for our database."""
    await Tortoise.init(
        db_url=app['database_uri'],
        modules={'models': ['bms.models']}
    )
    await Tortoise.generate_schemas(safe=True)


async def close_database_connections(app: Application):
    """Closes the open database connections."""
    await connections.close_all()


async def rebuild_fleet_state(app: Application):
    """Rebuilds the in-memory state from the store."""
    await rebuild_all(app.values())


async def debug_event_loop(app: Application):
    """Logs slow callbacks and coroutines that are never awaited."""
    asyncio.get_running_loop().set_debug(True)


async def start_background_tasks(app: Application):
    """Starts the background tasks."""
    logger.info("Starting Background Tasks")
    loop = asyncio.get_event_loop()
    app['reservation_sweeper'] = loop.create_task(app['reservation_expirer'].run())


async def finish_pending_rewards(app: Application):
    """Waits for the flex dollar awards that are still being made."""
    pending = list(app['rewarder'].pending)
    if pending:
        await asyncio.gather(*pending)


async def stop_background_tasks(app: Application):
    """
    Stops the background tasks.

    .. note: We suppress CancelledError so that coroutines that do not handle it don't cause issues.
    """
    app['reservation_sweeper'].cancel()
    with suppress(CancelledError):
        await app['reservation_sweeper']


def register_signals(app, init_database=True, debug=False):
    """
    Registers all the signals at the appropriate hooks. The fleet is
    rebuilt before the reservation sweep starts, and pending rewards
    are awaited before the database is closed.
    """
    if debug:
        app.on_startup.append(debug_event_loop)
    if init_database:
        app.on_startup.append(initialize_database)

    app.on_startup.append(rebuild_fleet_state)
    app.on_startup.append(start_background_tasks)

    app.on_shutdown.append(finish_pending_rewards)

    app.on_cleanup.append(stop_background_tasks)
    if init_database:
        app.on_cleanup.append(close_database_connections)
