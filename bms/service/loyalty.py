"""
Loyalty
-------

Riders earn a loyalty tier from their history over the past year. The
tier is worked out from the stored rentals and reservations whenever it
is needed, so it rises and falls with the rider's record.

========  ==========================================================  ========  =========
Tier      Requirements                                                Discount  Extension
========  ==========================================================  ========  =========
entry     none                                                        0%        0 min
bronze    no missed reservations and at least 10 trips in the year    5%        0 min
silver    bronze, 5 claimed reservations in the year, and 5 trips     10%       2 min
          in each of the last 3 months
gold      silver, and 5 trips in each of the last 12 weeks            15%       5 min
========  ==========================================================  ========  =========

A missed reservation is one that expired unused. The discount comes off
the price of each rental, and the extension is added to each hold.
"""

from collections import Counter
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, NamedTuple, Dict, Any

from bms import logger
from bms.fleet import Rental, StationReservation, ReservationStatus
from bms.store import Store

YEAR = timedelta(days=365)
QUARTER = timedelta(weeks=13)

BRONZE_TRIPS = 10
SILVER_CLAIMS = 5
TRIPS_PER_MONTH = 5
TRIPS_PER_WEEK = 5


class LoyaltyTier(str, Enum):
    ENTRY = "entry"
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class TierBenefits(NamedTuple):
    discount_percentage: int
    reservation_extension_minutes: int


TIER_BENEFITS = {
    LoyaltyTier.ENTRY: TierBenefits(0, 0),
    LoyaltyTier.BRONZE: TierBenefits(5, 0),
    LoyaltyTier.SILVER: TierBenefits(10, 2),
    LoyaltyTier.GOLD: TierBenefits(15, 5),
}


class LoyaltyRecord:
    """The history of a rider that their tier is judged on."""

    def __init__(self, rentals: List[Rental], reservations: List[StationReservation],
                 now: Optional[datetime] = None):
        self.now = now if now is not None else datetime.now()
        self.rentals = [rental for rental in rentals if rental.start_time > self.now - YEAR]
        self.reservations = [reservation for reservation in reservations if reservation.expires_at > self.now - YEAR]

    @property
    def trips(self) -> int:
        return len(self.rentals)

    @property
    def missed_reservations(self) -> int:
        return sum(1 for reservation in self.reservations if reservation.status is ReservationStatus.EXPIRED)

    @property
    def claimed_reservations(self) -> int:
        return sum(1 for reservation in self.reservations if reservation.status is ReservationStatus.USED)

    def trips_by_month(self) -> List[int]:
        """Trip counts of the months of the last quarter that had trips, latest first."""
        months = Counter(
            (rental.start_time.year, rental.start_time.month)
            for rental in self.rentals if rental.start_time > self.now - QUARTER
        )
        return [months[month] for month in sorted(months, reverse=True)]

    def trips_by_week(self) -> List[int]:
        """Trip counts of the iso weeks of the last quarter that had trips, latest first."""
        weeks = Counter(
            rental.start_time.isocalendar()[:2]
            for rental in self.rentals if rental.start_time > self.now - QUARTER
        )
        return [weeks[week] for week in sorted(weeks, reverse=True)]

    def is_bronze(self) -> bool:
        return self.missed_reservations == 0 and self.trips >= BRONZE_TRIPS

    def is_silver(self) -> bool:
        months = self.trips_by_month()[:3]
        return (
            self.is_bronze()
            and self.claimed_reservations >= SILVER_CLAIMS
            and len(months) == 3 and all(count >= TRIPS_PER_MONTH for count in months)
        )

    def is_gold(self) -> bool:
        weeks = self.trips_by_week()[:12]
        return self.is_silver() and len(weeks) == 12 and all(count >= TRIPS_PER_WEEK for count in weeks)

    @property
    def tier(self) -> LoyaltyTier:
        if self.is_gold():
            return LoyaltyTier.GOLD
        if self.is_silver():
            return LoyaltyTier.SILVER
        if self.is_bronze():
            return LoyaltyTier.BRONZE
        return LoyaltyTier.ENTRY

    def serialize(self) -> Dict[str, Any]:
        tier = self.tier
        benefits = TIER_BENEFITS[tier]
        return {
            "tier": tier,
            "discount_percentage": benefits.discount_percentage,
            "reservation_extension_minutes": benefits.reservation_extension_minutes,
            "trips": self.trips,
            "missed_reservations": self.missed_reservations,
            "claimed_reservations": self.claimed_reservations,
        }


class LoyaltyService:
    """Works out the tier of a rider from the store."""

    def __init__(self, store: Store):
        self.store = store

    async def record(self, user_id: str, now: Optional[datetime] = None) -> LoyaltyRecord:
        rentals = await self.store.get_rentals(user_id=user_id)
        reservations = await self.store.get_reservations(user_id=user_id)
        return LoyaltyRecord(rentals, reservations, now)

    async def tier(self, user_id: str) -> LoyaltyTier:
        tier = (await self.record(user_id)).tier
        logger.debug("User %s is in the %s tier", user_id, tier.value)
        return tier

    async def benefits(self, user_id: str) -> TierBenefits:
        return TIER_BENEFITS[await self.tier(user_id)]
