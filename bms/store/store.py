"""
This module hosts the abstract base class for all stores.
The class defines the "contract" that every storage backend
must adhere to. The fleet itself lives in memory, in the
:class:`~bms.fleet.manager.BMSManager`, and a store only keeps
a durable copy of it, along with the history that the manager
forgets (completed rentals, past reservations and the flex ledger).

Every write accepts a ``using_db`` connection so that the writes
of a single operation can share one transaction, opened with
:meth:`Store.transaction`.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, AsyncContextManager

from bms.fleet import BMSManager, Bike, Rental, Station, StationReservation
from bms.ledger import FlexTransaction, FlexTransactionType


class Store(ABC):
    """The abstract store interface."""

    @abstractmethod
    def transaction(self) -> AsyncContextManager:
        """
        Opens a transaction. Writes made with the yielded
        connection are committed together, or not at all.
        """

    @abstractmethod
    async def load_fleet(self, manager: BMSManager) -> int:
        """
        Loads the stored stations, bikes, active rentals
        and active reservations into the manager.

        :return: The number of stations loaded.
        """

    @abstractmethod
    async def save_station(self, station: Station, using_db=None):
        """Adds or updates a station."""

    @abstractmethod
    async def save_bike(self, bike: Bike, using_db=None):
        """Adds or updates a bike, including the dock it is in."""

    @abstractmethod
    async def save_rental(self, rental: Rental, using_db=None):
        """Adds or updates a rental, setting its id if it is new."""

    @abstractmethod
    async def save_reservation(self, reservation: StationReservation, using_db=None):
        """Adds or updates a reservation, setting its id if it is new."""

    @abstractmethod
    async def get_rentals(self, *, user_id: Optional[str] = None) -> List[Rental]:
        """Gets all rentals, active and completed, optionally for a single user."""

    @abstractmethod
    async def get_rental(self, rental_id: int) -> Optional[Rental]:
        """Gets a single rental by id."""

    @abstractmethod
    async def get_reservations(self, *, user_id: Optional[str] = None,
                               station_id: Optional[str] = None) -> List[StationReservation]:
        """Gets all reservations, in any status, matching the given filters."""

    @abstractmethod
    async def get_balance(self, user_id: str, using_db=None) -> float:
        """Gets the flex dollar balance of a user. Unknown users have none."""

    @abstractmethod
    async def add_flex_transaction(
        self, user_id: str, amount: float, transaction_type: FlexTransactionType, *,
        description: Optional[str] = None, rental_id: Optional[int] = None,
        station_id: Optional[str] = None, using_db=None
    ) -> FlexTransaction:
        """Applies an amount to the balance of a user and records it in their history."""

    @abstractmethod
    async def get_flex_transactions(self, user_id: str) -> List[FlexTransaction]:
        """Gets the flex dollar history of a user, oldest first."""
