"""
Rental Related Views
---------------------------

Handles reading the rentals. To start a rental, go through the
station it starts at, and to end it, the station it ends at.
"""
from aiohttp_apispec import docs

from bms.fleet import Rental
from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import returns
from bms.serializer.models import RentalSchema
from bms.service import FleetService
from bms.views.base import BaseView
from bms.views.decorators import match_getter


class RentalsView(BaseView):
    """
    Gets a list of all rentals, optionally filtered by ``user_id``.
    """
    url = "/rentals"
    name = "rentals"

    @docs(summary="Get All Rentals")
    @returns(JSendSchema.of(rentals=Many(RentalSchema())))
    async def get(self):
        rentals = await self.fleet.rentals(self.request.query.get("user_id"))
        return success(rentals=[rental.serialize() for rental in rentals])


class RentalView(BaseView):
    """
    Gets a single rental.
    """
    url = "/rentals/{id:[0-9]+}"
    name = "rental"
    with_rental = match_getter(FleetService.rental, 'rental', rental_id=('id', int))

    @with_rental
    @docs(summary="Get A Rental")
    @returns(JSendSchema.of(rental=RentalSchema()))
    async def get(self, rental: Rental):
        return success(rental=rental.serialize())
