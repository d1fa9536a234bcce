"""
Database Store
--------------

Persists the fleet with tortoise. Each operation of the
:class:`~bms.service.fleet.FleetService` writes inside a single
:func:`~tortoise.transactions.in_transaction` block, so the database
never holds half of an operation.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Type

from tortoise import Model
from tortoise.transactions import in_transaction

from bms import models
from bms.fleet import BMSManager, Bike, Rental, Station, StationReservation, RentalStatus, ReservationStatus
from bms.ledger import FlexTransaction, FlexTransactionType
from bms.store.store import Store


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    """Tortoise hands back aware datetimes, while the fleet works in naive local time."""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


async def _upsert(model: Type[Model], pk, values: Dict[str, Any], using_db=None) -> Model:
    instance = await model.filter(id=pk).using_db(using_db).first()
    if instance is None:
        return await model.create(id=pk, using_db=using_db, **values)
    instance.update_from_dict(values)
    await instance.save(using_db=using_db)
    return instance


def _to_rental(rental: models.Rental) -> Rental:
    domain = Rental(
        rental.user_id, rental.bike_id, rental.station_id,
        start_time=_naive(rental.start_time), rental_id=rental.id
    )
    domain.end_time = _naive(rental.end_time)
    domain.return_station_id = rental.return_station_id
    domain.status = rental.status
    domain.price = rental.price
    return domain


def _to_reservation(reservation: models.Reservation) -> StationReservation:
    return StationReservation(
        reservation.user_id, reservation.station_id, _naive(reservation.expires_at),
        bike_id=reservation.bike_id, created_at=_naive(reservation.created_at),
        status=reservation.status, reservation_id=reservation.id
    )


def _to_transaction(transaction: models.FlexTransaction) -> FlexTransaction:
    return FlexTransaction(
        transaction.user_id, transaction.amount, transaction.type, transaction.balance_after,
        description=transaction.description, rental_id=transaction.rental_id,
        station_id=transaction.station_id, time=_naive(transaction.time), transaction_id=transaction.id
    )


class DatabaseStore(Store):

    def transaction(self):
        return in_transaction()

    async def load_fleet(self, manager: BMSManager) -> int:
        stations = await models.Station.all()
        for station in stations:
            manager.load_station(Station(
                station.id, station.capacity, name=station.name, status=station.status,
                latitude=station.latitude, longitude=station.longitude, address=station.address,
                reservation_hold_minutes=station.reservation_hold_minutes
            ))

        for bike in await models.Bike.all():
            domain = Bike(bike.id, bike.type)
            domain.status = bike.status
            domain.reserved_by = bike.reserved_by
            domain.reservation_expiry = _naive(bike.reservation_expiry)
            manager.load_bike(domain, bike.station_id)

        for rental in await models.Rental.filter(status=RentalStatus.ACTIVE):
            manager.load_rental(_to_rental(rental))

        for reservation in await models.Reservation.filter(status=ReservationStatus.ACTIVE):
            manager.load_reservation(_to_reservation(reservation))

        return len(stations)

    async def save_station(self, station: Station, using_db=None):
        await _upsert(models.Station, station.id, {
            "name": station.name,
            "capacity": station.capacity,
            "status": station.status,
            "latitude": station.latitude,
            "longitude": station.longitude,
            "address": station.address,
            "reservation_hold_minutes": station.reservation_hold_minutes,
        }, using_db)

    async def save_bike(self, bike: Bike, using_db=None):
        await _upsert(models.Bike, bike.id, {
            "type": bike.type,
            "status": bike.status,
            "station_id": bike.station_id,
            "reserved_by": bike.reserved_by,
            "reservation_expiry": bike.reservation_expiry,
        }, using_db)

    async def save_rental(self, rental: Rental, using_db=None):
        await self._ensure_user(rental.user_id, using_db)
        values = {
            "user_id": rental.user_id,
            "bike_id": rental.bike_id,
            "station_id": rental.station_id,
            "return_station_id": rental.return_station_id,
            "start_time": rental.start_time,
            "end_time": rental.end_time,
            "status": rental.status,
            "price": rental.price,
        }

        if rental.id is None:
            instance = await models.Rental.create(using_db=using_db, **values)
            rental.id = instance.id
        else:
            await _upsert(models.Rental, rental.id, values, using_db)

    async def save_reservation(self, reservation: StationReservation, using_db=None):
        await self._ensure_user(reservation.user_id, using_db)
        values = {
            "user_id": reservation.user_id,
            "station_id": reservation.station_id,
            "bike_id": reservation.bike_id,
            "created_at": reservation.created_at,
            "expires_at": reservation.expires_at,
            "status": reservation.status,
        }

        if reservation.id is None:
            instance = await models.Reservation.create(using_db=using_db, **values)
            reservation.id = instance.id
        else:
            await _upsert(models.Reservation, reservation.id, values, using_db)

    async def get_rentals(self, *, user_id: Optional[str] = None) -> List[Rental]:
        query = models.Rental.all()
        if user_id is not None:
            query = query.filter(user_id=user_id)
        return [_to_rental(rental) for rental in await query.order_by("id")]

    async def get_rental(self, rental_id: int) -> Optional[Rental]:
        rental = await models.Rental.filter(id=rental_id).first()
        return _to_rental(rental) if rental is not None else None

    async def get_reservations(self, *, user_id: Optional[str] = None,
                               station_id: Optional[str] = None) -> List[StationReservation]:
        query = models.Reservation.all()
        if user_id is not None:
            query = query.filter(user_id=user_id)
        if station_id is not None:
            query = query.filter(station_id=station_id)
        return [_to_reservation(reservation) for reservation in await query.order_by("id")]

    async def get_balance(self, user_id: str, using_db=None) -> float:
        user = await models.User.filter(id=user_id).using_db(using_db).first()
        return user.flex_balance if user is not None else 0.0

    async def add_flex_transaction(
        self, user_id: str, amount: float, transaction_type: FlexTransactionType, *,
        description: Optional[str] = None, rental_id: Optional[int] = None,
        station_id: Optional[str] = None, using_db=None
    ) -> FlexTransaction:
        user = await self._ensure_user(user_id, using_db)
        user.flex_balance = round(user.flex_balance + amount, 2)
        await user.save(using_db=using_db)

        transaction = await models.FlexTransaction.create(
            using_db=using_db, user_id=user_id, amount=amount, type=transaction_type,
            description=description, rental_id=rental_id, station_id=station_id,
            balance_after=user.flex_balance, time=datetime.now()
        )
        return _to_transaction(transaction)

    async def get_flex_transactions(self, user_id: str) -> List[FlexTransaction]:
        transactions = await models.FlexTransaction.filter(user_id=user_id).order_by("id")
        return [_to_transaction(transaction) for transaction in transactions]

    @staticmethod
    async def _ensure_user(user_id: str, using_db=None) -> models.User:
        user = await models.User.filter(id=user_id).using_db(using_db).first()
        if user is None:
            user = await models.User.create(id=user_id, using_db=using_db)
        return user
