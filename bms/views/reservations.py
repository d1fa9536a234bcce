"""
Reservation Related Views
---------------------------

To make a reservation, go through the station.
"""
from aiohttp_apispec import docs

from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import returns
from bms.serializer.models import ReservationSchema
from bms.views.base import BaseView


class ReservationsView(BaseView):
    """
    Gets the reservations in any status, optionally
    filtered by ``user_id`` and ``station_id``.
    """
    url = "/reservations"
    name = "reservations"

    @docs(summary="Get All Reservations")
    @returns(JSendSchema.of(reservations=Many(ReservationSchema())))
    async def get(self):
        reservations = await self.fleet.reservations(
            self.request.query.get("user_id"), self.request.query.get("station_id")
        )
        return success(reservations=[reservation.serialize() for reservation in reservations])
