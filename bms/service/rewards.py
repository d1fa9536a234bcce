"""
Rewards
-------

Flex dollars are a store credit riders earn by helping to rebalance the
fleet, and spend automatically against the price of their rentals.

Riders earn :data:`~bms.config.REWARD_AMOUNT` for returning a bike to a
station that is still below :data:`~bms.config.REWARD_OCCUPANCY_THRESHOLD`
of its capacity once the bike is docked. The award is made in the
background, and a failure to make it never affects the return.
"""

import asyncio
from typing import Optional, List

from bms import logger
from bms.config import REWARD_AMOUNT, REWARD_OCCUPANCY_THRESHOLD
from bms.fleet import Rental, StationInfo, FleetEvent
from bms.ledger import FlexTransaction, FlexTransactionType
from bms.store import Store


class FlexDollarService:
    """Keeps the flex dollar ledger of every user."""

    def __init__(self, store: Store):
        self.store = store
        self._lock = asyncio.Lock()

    async def balance(self, user_id: str) -> float:
        return await self.store.get_balance(user_id)

    async def history(self, user_id: str) -> List[FlexTransaction]:
        return await self.store.get_flex_transactions(user_id)

    async def award(self, user_id: str, amount: float, description: str, *,
                    station_id: Optional[str] = None, rental_id: Optional[int] = None, using_db=None) -> float:
        """
        Awards flex dollars to a user.

        :return: The new balance.
        :raises ValueError: If the amount is not positive.
        """
        if amount <= 0:
            raise ValueError("Award amount must be positive")

        async with self._lock:
            transaction = await self.store.add_flex_transaction(
                user_id, amount, FlexTransactionType.AWARD, description=description,
                station_id=station_id, rental_id=rental_id, using_db=using_db
            )

        logger.info("Awarded %.2f flex dollars to %s: %s", amount, user_id, description)
        return transaction.balance_after

    async def deduct(self, user_id: str, amount: float, description: str, *,
                     rental_id: Optional[int] = None, using_db=None) -> float:
        """
        Spends as much of the requested amount as the user's balance covers.

        :return: The amount actually deducted, which may be zero.
        """
        async with self._lock:
            balance = await self.store.get_balance(user_id, using_db)
            deducted = round(min(balance, amount), 2)
            if deducted <= 0:
                return 0.0

            await self.store.add_flex_transaction(
                user_id, -deducted, FlexTransactionType.DEDUCT, description=description,
                rental_id=rental_id, using_db=using_db
            )

        logger.info("Deducted %.2f flex dollars from %s: %s", deducted, user_id, description)
        return deducted


def qualifies_for_reward(station_info: StationInfo, threshold: float = REWARD_OCCUPANCY_THRESHOLD) -> bool:
    """Checks whether the occupancy after a return is low enough to earn a reward."""
    return station_info.bikes_available / station_info.capacity < threshold


class ReturnRewarder:
    """
    Listens for returns on a hub and awards flex dollars for
    those that leave the station under stocked.
    """

    def __init__(self, flex: FlexDollarService, amount: float = REWARD_AMOUNT,
                 threshold: float = REWARD_OCCUPANCY_THRESHOLD):
        self.flex = flex
        self.amount = amount
        self.threshold = threshold
        self.pending = set()
        """The award tasks still running."""

    def attach(self, hub):
        hub.subscribe(FleetEvent.bike_returned, self.bike_returned)

    def bike_returned(self, rental: Rental, station_info: StationInfo):
        if not qualifies_for_reward(station_info, self.threshold):
            return

        task = asyncio.ensure_future(self._award(rental, station_info))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def _award(self, rental: Rental, station_info: StationInfo):
        try:
            await self.flex.award(
                rental.user_id, self.amount,
                f"Returned bike {rental.bike_id} to under stocked station {station_info.station_id}",
                station_id=station_info.station_id, rental_id=rental.id
            )
        except Exception:
            logger.exception("Could not award flex dollars to %s for rental %s", rental.user_id, rental.id)
