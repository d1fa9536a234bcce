from contextlib import asynccontextmanager
from copy import copy
from itertools import count
from typing import Optional, List, Dict, Any

from bms.fleet import BMSManager, Bike, Rental, Station, StationReservation, ReservationStatus
from bms.ledger import FlexTransaction, FlexTransactionType
from bms.store.store import Store


class MemoryStore(Store):
    """
    Emulates a database by doing all the operations in memory.
    Nothing survives a restart, but a manager can still be
    rebuilt from the same store within one process.
    """

    def __init__(self):
        self.stations: Dict[str, Dict[str, Any]] = {}
        self.bikes: Dict[str, Dict[str, Any]] = {}
        self.rentals: Dict[int, Rental] = {}
        self.reservations: Dict[int, StationReservation] = {}
        self.balances: Dict[str, float] = {}
        self.flex_transactions: List[FlexTransaction] = []

        self._rental_ids = count(1)
        self._reservation_ids = count(1)
        self._transaction_ids = count(1)

    @asynccontextmanager
    async def transaction(self):
        yield None

    async def load_fleet(self, manager: BMSManager) -> int:
        for row in self.stations.values():
            manager.load_station(Station(**row))

        for row in self.bikes.values():
            bike = Bike(row["bike_id"], row["type"])
            bike.status = row["status"]
            bike.reserved_by = row["reserved_by"]
            bike.reservation_expiry = row["reservation_expiry"]
            manager.load_bike(bike, row["station_id"])

        for rental in self.rentals.values():
            if rental.is_active:
                manager.load_rental(copy(rental))

        for reservation in self.reservations.values():
            if reservation.status is ReservationStatus.ACTIVE:
                manager.load_reservation(copy(reservation))

        return len(self.stations)

    async def save_station(self, station: Station, using_db=None):
        self.stations[station.id] = {
            "station_id": station.id,
            "capacity": station.capacity,
            "name": station.name,
            "status": station.status,
            "latitude": station.latitude,
            "longitude": station.longitude,
            "address": station.address,
            "reservation_hold_minutes": station.reservation_hold_minutes,
        }

    async def save_bike(self, bike: Bike, using_db=None):
        self.bikes[bike.id] = {
            "bike_id": bike.id,
            "type": bike.type,
            "status": bike.status,
            "station_id": bike.station_id,
            "reserved_by": bike.reserved_by,
            "reservation_expiry": bike.reservation_expiry,
        }

    async def save_rental(self, rental: Rental, using_db=None):
        if rental.id is None:
            rental.id = next(self._rental_ids)
        self.rentals[rental.id] = copy(rental)

    async def save_reservation(self, reservation: StationReservation, using_db=None):
        if reservation.id is None:
            reservation.id = next(self._reservation_ids)
        self.reservations[reservation.id] = copy(reservation)

    async def get_rentals(self, *, user_id: Optional[str] = None) -> List[Rental]:
        return [
            rental for rental in self.rentals.values()
            if user_id is None or rental.user_id == user_id
        ]

    async def get_rental(self, rental_id: int) -> Optional[Rental]:
        return self.rentals.get(rental_id)

    async def get_reservations(self, *, user_id: Optional[str] = None,
                               station_id: Optional[str] = None) -> List[StationReservation]:
        return [
            reservation for reservation in self.reservations.values()
            if (user_id is None or reservation.user_id == user_id)
            and (station_id is None or reservation.station_id == station_id)
        ]

    async def get_balance(self, user_id: str, using_db=None) -> float:
        return self.balances.get(user_id, 0.0)

    async def add_flex_transaction(
        self, user_id: str, amount: float, transaction_type: FlexTransactionType, *,
        description: Optional[str] = None, rental_id: Optional[int] = None,
        station_id: Optional[str] = None, using_db=None
    ) -> FlexTransaction:
        balance = round(self.balances.get(user_id, 0.0) + amount, 2)
        self.balances[user_id] = balance

        transaction = FlexTransaction(
            user_id, amount, transaction_type, balance,
            description=description, rental_id=rental_id, station_id=station_id,
            transaction_id=next(self._transaction_ids)
        )
        self.flex_transactions.append(transaction)
        return transaction

    async def get_flex_transactions(self, user_id: str) -> List[FlexTransaction]:
        return [transaction for transaction in self.flex_transactions if transaction.user_id == user_id]
