"""
User Related Views
-------------------------

Users are identified by the id the client gives them, and exist
as soon as they rent, reserve, or earn flex dollars.
"""
from aiohttp_apispec import docs
from marshmallow.fields import Float

from bms.fleet import Rental, StationReservation
from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import returns
from bms.serializer.models import (
    RentalSchema, ReservationSchema, FlexTransactionSchema, LoyaltySchema, BillingSchema
)
from bms.service import FleetService
from bms.views.base import BaseView
from bms.views.decorators import match_getter
from bms.views.utils import result_responses, result_response

USER_IDENTIFIER_REGEX = "[^{}/]+"


class UserRentalsView(BaseView):
    """
    Gets the rentals of a user, active and completed.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/rentals"

    @docs(summary="Get All Rentals For A User")
    @returns(JSendSchema.of(rentals=Many(RentalSchema())))
    async def get(self):
        rentals = await self.fleet.rentals(self.request.match_info["id"])
        return success(rentals=[rental.serialize() for rental in rentals])


class UserCurrentRentalView(BaseView):
    """
    Gets the active rental of a user.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/rentals/current"
    with_rental = match_getter(FleetService.active_rental, 'rental', user_id='id')

    @with_rental
    @docs(summary="Get Current Rental For A User")
    @returns(JSendSchema.of(rental=RentalSchema()))
    async def get(self, rental: Rental):
        return success(rental=rental.serialize())


class UserCurrentReservationView(BaseView):
    """
    Gets or cancels the active reservation of a user.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/reservations/current"
    with_reservation = match_getter(FleetService.active_reservation, 'reservation', user_id='id')

    @with_reservation
    @docs(summary="Get Current Reservation For A User")
    @returns(JSendSchema.of(reservation=ReservationSchema()))
    async def get(self, reservation: StationReservation):
        return success(reservation=reservation.serialize())

    @docs(summary="Cancel Current Reservation For A User")
    @returns(**result_responses())
    async def delete(self):
        """Cancelling a reservation on a bike makes the bike available to everyone again."""
        result = await self.fleet.cancel_reservation(self.request.match_info["id"])
        return result_response(result)


class UserFlexView(BaseView):
    """
    Gets the flex dollar balance and history of a user.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/flex"

    @docs(summary="Get Flex Dollars For A User")
    @returns(JSendSchema.of(balance=Float(), transactions=Many(FlexTransactionSchema())))
    async def get(self):
        user_id = self.request.match_info["id"]
        transactions = await self.flex.history(user_id)
        return success(
            balance=await self.flex.balance(user_id),
            transactions=[transaction.serialize() for transaction in transactions]
        )


class UserLoyaltyView(BaseView):
    """
    Gets the loyalty tier of a user, with the discount and hold
    extension it brings and the record it was worked out from.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/loyalty"

    @docs(summary="Get The Loyalty Tier Of A User")
    @returns(JSendSchema.of(loyalty=LoyaltySchema()))
    async def get(self):
        record = await self.fleet.loyalty_record(self.request.match_info["id"])
        return success(loyalty=record.serialize())


class UserBillingView(BaseView):
    """
    Gets what a user was charged for each of their completed
    rentals, and how much of it their flex dollars paid.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/billing"

    @docs(summary="Get The Billing History Of A User")
    @returns(JSendSchema.of(billing=BillingSchema()))
    async def get(self):
        return success(billing=await self.fleet.billing(self.request.match_info["id"]))
