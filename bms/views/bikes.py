"""
Bike Related Views
-------------------------

Handles the bikes, maintenance, and moving bikes between stations.
"""
from http import HTTPStatus

from aiohttp_apispec import docs

from bms.fleet import Bike
from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import returns, expects
from bms.serializer.misc import BikeCreateSchema, BikeModifySchema, MoveRequestSchema
from bms.serializer.models import BikeSchema
from bms.service import FleetService
from bms.views.base import BaseView
from bms.views.decorators import match_getter
from bms.views.utils import result_responses, result_response

BIKE_IDENTIFIER_REGEX = "[^{}/]+"

with_bike = match_getter(FleetService.bike, 'bike', bike_id='id')


class BikesView(BaseView):
    """
    Gets the bikes, or adds a new bike to a station.
    """
    url = "/bikes"
    name = "bikes"

    @docs(summary="Get All Bikes")
    @returns(JSendSchema.of(bikes=Many(BikeSchema())))
    async def get(self):
        """Gets all the bikes in the system, docked or not."""
        return success(bikes=[bike.info() for bike in self.fleet.bikes()])

    @docs(summary="Add A Bike")
    @expects(BikeCreateSchema())
    @returns(**result_responses(HTTPStatus.CREATED))
    async def post(self):
        """Adds a bike, docking it at the given station."""
        data = self.request["data"]
        result = await self.fleet.add_bike(data["id"], data["station_id"], data["type"])
        return result_response(result)


class BikeView(BaseView):
    """
    Gets or updates a single bike.
    """
    url = f"/bikes/{{id:{BIKE_IDENTIFIER_REGEX}}}"
    name = "bike"

    @with_bike
    @docs(summary="Get A Bike")
    @returns(JSendSchema.of(bike=BikeSchema()))
    async def get(self, bike: Bike):
        return success(bike=bike.info())

    @with_bike
    @docs(summary="Change The Status Of A Bike")
    @expects(BikeModifySchema())
    @returns(**result_responses())
    async def patch(self, bike: Bike):
        """Takes a bike out for maintenance, or puts it back into service."""
        result = await self.fleet.set_bike_status(bike.id, self.request["data"]["status"])
        return result_response(result)


class BikeMovesView(BaseView):
    """
    Moves a bike from one station to another on behalf of an operator.
    """
    url = f"/bikes/{{id:{BIKE_IDENTIFIER_REGEX}}}/moves"

    @with_bike
    @docs(summary="Move A Bike")
    @expects(MoveRequestSchema())
    @returns(**result_responses())
    async def post(self, bike: Bike):
        """
        If the bike cannot be docked at the destination it is put back
        where it came from, and the result says whether that worked.
        """
        data = self.request["data"]
        result = await self.fleet.manual_move_bike(
            bike.id, data["from_station_id"], data["to_station_id"], data["operator_id"]
        )
        return result_response(result)
