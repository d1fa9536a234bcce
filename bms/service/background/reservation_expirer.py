from asyncio import sleep
from datetime import timedelta

from bms import logger
from bms.config import RESERVATION_SWEEP_SECONDS
from bms.service.fleet import FleetService


class ReservationExpirer:
    """
    This background service expires lapsed reservations, handing the bikes
    they held back to the station. Reads already ignore lapsed reservations,
    so the sweep only needs to be frequent enough to keep the bikes moving.
    """

    def __init__(self, fleet: FleetService):
        self._fleet = fleet

    async def sweep(self):
        expired = await self._fleet.expire_reservations()
        if expired:
            logger.info("Expired %s reservations", len(expired))
        return expired

    async def run(self, interval: timedelta = None):
        """Runs the sweep at most once every ``interval``."""
        if interval is None:
            interval = timedelta(seconds=RESERVATION_SWEEP_SECONDS)

        while True:
            await sleep(interval.total_seconds())
            try:
                await self.sweep()
            except Exception:
                logger.exception("Reservation sweep failed")
