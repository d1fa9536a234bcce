"""
The pricing module determines the price of a ride from the type of bike
and how long it was out for. Rides are charged per started minute, with a
one minute minimum. Loyal riders get a percentage off, see
:mod:`bms.service.loyalty`.
"""

from datetime import datetime
from math import ceil

from bms.fleet.states import BikeType

PER_MINUTE_PRICE = {
    BikeType.STANDARD: 0.10,
    BikeType.E_BIKE: 0.25,
}

MINIMUM_MINUTES = 1


def get_price(start_date: datetime, end_date: datetime, bike_type: BikeType = BikeType.STANDARD) -> float:
    """
    Given the start and end of a ride, returns its price.

    :return: The final price, in dollars, rounded to the cent.
    """
    seconds = max(0.0, (end_date - start_date).total_seconds())
    minutes = max(MINIMUM_MINUTES, ceil(seconds / 60))
    return round(minutes * PER_MINUTE_PRICE[BikeType(bike_type)], 2)


def apply_discount(price: float, discount_percentage: float) -> float:
    """Takes a percentage off a price, rounding to the cent."""
    return round(price - price * discount_percentage / 100, 2)
