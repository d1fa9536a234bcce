"""
Fleet Service
-------------

The single writer in front of the :class:`~bms.fleet.manager.BMSManager`.

Responsibilities
================

- serializing every mutation of the fleet behind one lock
- persisting the outcome of each mutation in one transaction
- restoring the in-memory fleet when persistence fails
- pricing completed rentals and paying for them with flex dollars
- rebuilding the fleet from the store on startup

The manager emits its events as it mutates. They are held back and
re-emitted on :attr:`FleetService.hub` only once the mutation is
committed, so subscribers never see an operation that was undone.
"""

import asyncio
from functools import partial
from typing import Optional, List, Callable, Awaitable, Tuple, Dict, Any

from bms import logger
from bms.config import DEFAULT_CAPACITY, station_config_path
from bms.events import EventHub
from bms.fleet import (
    BMSManager, FleetEvent, OperationResult, Operation, ErrorKind, Bike, BikeType, BikeStatus, Rental, Station,
    StationStatus, StationReservation, ValidationReport
)
from bms.pricing import get_price, apply_discount
from bms.service.billing import get_billing
from bms.service.loyalty import LoyaltyService, LoyaltyRecord, TIER_BENEFITS
from bms.service.notifications import station_notifications
from bms.service.rebuildable import Rebuildable
from bms.service.rewards import FlexDollarService
from bms.service.station_config import load_station_config, apply_station_config
from bms.store import Store

Persist = Callable[[OperationResult, Any], Awaitable[None]]


class FleetService(Rebuildable):
    """
    :param store: Where the fleet is persisted.
    :param flex: The flex dollar ledger rentals are paid from.
    :param loyalty: Decides the discounts and hold extensions riders get.
    :param config_path: A station configuration file to seed an empty store with.
    """

    def __init__(self, store: Store, flex: Optional[FlexDollarService] = None, *,
                 loyalty: Optional[LoyaltyService] = None,
                 manager: Optional[BMSManager] = None, config_path: Optional[str] = station_config_path):
        self.store = store
        self.flex = flex if flex is not None else FlexDollarService(store)
        self.loyalty = loyalty if loyalty is not None else LoyaltyService(store)
        self.manager = manager if manager is not None else BMSManager()
        self.config_path = config_path
        self.hub = EventHub(FleetEvent)

        self._lock = asyncio.Lock()
        self._pending: List[Tuple[Callable, tuple]] = []

        for event in (FleetEvent.rental_started, FleetEvent.bike_returned,
                      FleetEvent.bike_moved, FleetEvent.reservation_expired):
            self.manager.hub.subscribe(event, partial(self._defer, event))

    async def _rebuild(self):
        """Loads the fleet from the store, seeding it from the configuration if the store is empty."""
        loaded = await self.store.load_fleet(self.manager)

        if loaded:
            logger.info("Rebuilt %s stations and %s bikes from the store",
                        len(self.manager.stations), len(self.manager.bikes))
        elif self.config_path is not None:
            await self.seed(load_station_config(self.config_path))

        await self.expire_reservations()

    async def seed(self, config: Dict[str, Any]):
        """Adds the stations and bikes of a loaded station configuration."""

        def mutate():
            apply_station_config(self.manager, config)
            return OperationResult.ok(Operation.STATION_ADDED, "Fleet seeded")

        async def persist(result, connection):
            await self._save_all(connection)

        await self._apply(mutate, persist)
        logger.info("Seeded %s stations and %s bikes from configuration",
                    len(self.manager.stations), len(self.manager.bikes))

    async def add_station(self, station_id: str, capacity: int = DEFAULT_CAPACITY, **options) -> OperationResult:
        async def persist(result, connection):
            if result:
                await self.store.save_station(self.manager.stations[station_id], connection)

        return await self._apply(lambda: self.manager.add_station(station_id, capacity, **options), persist)

    async def add_bike(self, bike_id: str, station_id: str, bike_type: BikeType = BikeType.STANDARD) -> OperationResult:
        async def persist(result, connection):
            if result:
                await self.store.save_bike(result.bike, connection)

        return await self._apply(lambda: self.manager.add_bike(bike_id, station_id, bike_type), persist)

    async def rent_bike(self, user_id: str, station_id: str, bike_id: Optional[str] = None) -> OperationResult:
        """Rents a bike, using or cancelling the reservation the user held."""

        async def persist(result, connection):
            if not result:
                return
            await self.store.save_bike(result.bike, connection)
            await self.store.save_rental(result.rental, connection)
            reservation = result.reservation
            if reservation is not None:
                await self.store.save_reservation(reservation, connection)
                if reservation.bike_id not in (None, result.bike.id):
                    await self.store.save_bike(self.manager.bikes[reservation.bike_id], connection)

        return await self._apply(lambda: self.manager.rent_bike(user_id, station_id, bike_id), persist)

    async def return_bike(self, user_id: str, bike_id: str, station_id: str) -> OperationResult:
        """
        Returns a bike, then prices the rental with the user's loyalty
        discount and pays for as much of it as their flex dollars cover.
        """
        tier = await self.loyalty.tier(user_id)
        discount = TIER_BENEFITS[tier].discount_percentage

        async def persist(result, connection):
            if not result:
                return
            rental = result.rental
            rental.price = apply_discount(get_price(rental.start_time, rental.end_time, result.bike.type), discount)
            result.extra["loyalty_tier"] = tier
            result.extra["discount_percentage"] = discount
            await self.store.save_bike(result.bike, connection)
            await self.store.save_rental(rental, connection)

            result.extra["flex_deducted"] = await self.flex.deduct(
                user_id, rental.price, f"Payment for rental of bike {bike_id}",
                rental_id=rental.id, using_db=connection
            )

        return await self._apply(lambda: self.manager.return_bike(user_id, bike_id, station_id), persist)

    async def reserve_bike(self, user_id: str, station_id: str, bike_id: Optional[str] = None,
                           hold_minutes: Optional[int] = None) -> OperationResult:
        """
        Reserves a bike, holding it for longer for loyal riders. A lapsed
        reservation the user still has at the station is expired first.
        """
        extension = (await self.loyalty.benefits(user_id)).reservation_extension_minutes

        async def persist(result, connection):
            await self._save_expired(self._pending_expired(), connection)
            if not result:
                return
            await self.store.save_reservation(result.reservation, connection)
            if result.bike is not None:
                await self.store.save_bike(result.bike, connection)

        return await self._apply(
            lambda: self.manager.reserve_bike(user_id, station_id, bike_id, hold_minutes, extension), persist
        )

    async def cancel_reservation(self, user_id: str) -> OperationResult:
        async def persist(result, connection):
            if not result:
                return
            await self.store.save_reservation(result.reservation, connection)
            if result.reservation.bike_id is not None:
                await self.store.save_bike(self.manager.bikes[result.reservation.bike_id], connection)

        return await self._apply(lambda: self.manager.cancel_reservation(user_id), persist)

    async def expire_reservations(self) -> List[StationReservation]:
        """Expires every lapsed reservation, releasing the bikes they held."""
        expired = []

        def mutate():
            expired.extend(self.manager.expire_reservations())
            return OperationResult.ok(Operation.RESERVATION_EXPIRED, f"{len(expired)} reservations expired")

        async def persist(result, connection):
            await self._save_expired(expired, connection)

        await self._apply(mutate, persist)
        return expired

    async def manual_move_bike(self, bike_id: str, from_station_id: str, to_station_id: str,
                               operator_id: str) -> OperationResult:
        async def persist(result, connection):
            if result or result.error is ErrorKind.MOVE_ROLLBACK_FAILED:
                await self.store.save_bike(self.manager.bikes[bike_id], connection)

        return await self._apply(
            lambda: self.manager.manual_move_bike(bike_id, from_station_id, to_station_id, operator_id), persist
        )

    async def set_bike_status(self, bike_id: str, status: BikeStatus) -> OperationResult:
        async def persist(result, connection):
            if result:
                await self.store.save_bike(result.bike, connection)

        return await self._apply(lambda: self.manager.set_bike_status(bike_id, status), persist)

    async def set_station_status(self, station_id: str, status: StationStatus) -> OperationResult:
        async def persist(result, connection):
            if result:
                await self.store.save_station(self.manager.stations[station_id], connection)

        return await self._apply(lambda: self.manager.set_station_status(station_id, status), persist)

    def stations(self) -> List[Station]:
        return list(self.manager.stations.values())

    def station(self, station_id: str) -> Optional[Station]:
        return self.manager.stations.get(station_id)

    def bikes(self) -> List[Bike]:
        return list(self.manager.bikes.values())

    def bike(self, bike_id: str) -> Optional[Bike]:
        return self.manager.bikes.get(bike_id)

    def active_rental(self, user_id: str) -> Optional[Rental]:
        return self.manager.active_rentals.get(user_id)

    def active_reservation(self, user_id: str) -> Optional[StationReservation]:
        return self.manager.active_reservation(user_id)

    async def rentals(self, user_id: Optional[str] = None) -> List[Rental]:
        return await self.store.get_rentals(user_id=user_id)

    async def rental(self, rental_id: int) -> Optional[Rental]:
        return await self.store.get_rental(rental_id)

    async def reservations(self, user_id: Optional[str] = None,
                           station_id: Optional[str] = None) -> List[StationReservation]:
        return await self.store.get_reservations(user_id=user_id, station_id=station_id)

    async def billing(self, user_id: str) -> Dict[str, Any]:
        return await get_billing(self.store, user_id)

    async def loyalty_record(self, user_id: str) -> LoyaltyRecord:
        return await self.loyalty.record(user_id)

    def notifications(self) -> List[Dict[str, Any]]:
        """Notices for every station that is empty or full."""
        return station_notifications(self.manager.stations.values())

    def overview(self) -> Dict[str, Any]:
        return self.manager.overview()

    def validate(self) -> ValidationReport:
        return self.manager.validate_system_state()

    async def _apply(self, mutate: Callable[[], OperationResult], persist: Persist) -> OperationResult:
        """
        Runs a mutation of the manager and persists it. If persisting
        fails the manager is put back how it was and the error raised.
        """
        async with self._lock:
            snapshot = self.manager.snapshot()
            self._pending = []
            result = mutate()

            try:
                async with self.store.transaction() as connection:
                    await persist(result, connection)
            except Exception:
                logger.error("Could not persist %s, restoring the fleet", result)
                self.manager.restore(snapshot)
                self._pending = []
                raise

            events, self._pending = self._pending, []

        for event, args in events:
            self.hub.emit(event, *args)

        return result

    def _defer(self, event: Callable, *args):
        self._pending.append((event, args))

    def _pending_expired(self) -> List[StationReservation]:
        """The reservations expired by the mutation being persisted."""
        return [args[0] for event, args in self._pending if event is FleetEvent.reservation_expired]

    async def _save_expired(self, reservations: List[StationReservation], connection):
        for reservation in reservations:
            await self.store.save_reservation(reservation, connection)
            if reservation.bike_id is not None and reservation.bike_id in self.manager.bikes:
                await self.store.save_bike(self.manager.bikes[reservation.bike_id], connection)

    async def _save_all(self, connection):
        for station in self.manager.stations.values():
            await self.store.save_station(station, connection)
        for bike in self.manager.bikes.values():
            await self.store.save_bike(bike, connection)
