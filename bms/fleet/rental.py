"""
Rental
------

A rider's use of a bike between checkout and return.
"""

from datetime import datetime
from typing import Optional, Dict, Any

from bms.fleet.states import RentalStatus


class Rental:

    def __init__(self, user_id: str, bike_id: str, station_id: str, *,
                 start_time: Optional[datetime] = None, rental_id: Optional[int] = None):
        self.id = rental_id
        self.user_id = user_id
        self.bike_id = bike_id
        self.station_id = station_id
        self.start_time = start_time if start_time is not None else datetime.now()
        self.end_time: Optional[datetime] = None
        self.return_station_id: Optional[str] = None
        self.status = RentalStatus.ACTIVE
        self.price: Optional[float] = None
        """The price of the rental, set once it is billed."""

    def complete(self, station_id: str, end_time: Optional[datetime] = None):
        self.end_time = end_time if end_time is not None else datetime.now()
        self.return_station_id = station_id
        self.status = RentalStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        return self.status is RentalStatus.ACTIVE

    def serialize(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "bike_id": self.bike_id,
            "station_id": self.station_id,
            "start_time": self.start_time,
            "status": self.status,
        }

        if self.end_time is not None:
            data["end_time"] = self.end_time
            data["return_station_id"] = self.return_station_id
        if self.price is not None:
            data["price"] = self.price

        return data

    def __repr__(self):
        return f"<Rental {self.user_id} on {self.bike_id} {self.status.value}>"
