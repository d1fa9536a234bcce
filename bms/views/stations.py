"""
Station Related Views
-------------------------

Handles the stations, and the rentals, returns and reservations made at them.
"""
from http import HTTPStatus

from aiohttp_apispec import docs

from bms.fleet import Station
from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import expects, returns
from bms.serializer.misc import (
    StationCreateSchema, StationModifySchema, RentRequestSchema, ReturnRequestSchema, ReservationRequestSchema
)
from bms.serializer.models import StationSchema, BikeSchema, ReservationSchema
from bms.service import FleetService
from bms.views.base import BaseView
from bms.views.decorators import match_getter
from bms.views.utils import result_responses, result_response

STATION_IDENTIFIER_REGEX = "[^{}/]+"

with_station = match_getter(FleetService.station, 'station', station_id='id')


class StationsView(BaseView):
    """
    Gets the stations, or adds a new station.
    """
    url = "/stations"
    name = "stations"

    @docs(summary="Get All Stations")
    @returns(JSendSchema.of(stations=Many(StationSchema())))
    async def get(self):
        return success(stations=[station.serialize() for station in self.fleet.stations()])

    @docs(summary="Add A Station")
    @expects(StationCreateSchema())
    @returns(**result_responses(HTTPStatus.CREATED))
    async def post(self):
        data = dict(self.request["data"])
        result = await self.fleet.add_station(data.pop("id"), data.pop("capacity"), **data)
        return result_response(result)


class StationView(BaseView):
    """
    Gets a single station, or takes it in and out of service.
    """
    url = f"/stations/{{id:{STATION_IDENTIFIER_REGEX}}}"
    name = "station"

    @with_station
    @docs(summary="Get A Station")
    @returns(JSendSchema.of(station=StationSchema()))
    async def get(self, station: Station):
        return success(station=station.serialize())

    @with_station
    @docs(summary="Change The Status Of A Station")
    @expects(StationModifySchema())
    @returns(**result_responses())
    async def patch(self, station: Station):
        """Out of service stations accept no returns, checkouts or reservations."""
        result = await self.fleet.set_station_status(station.id, self.request["data"]["status"])
        return result_response(result)


class StationBikesView(BaseView):
    """
    Gets the bikes docked at a station.
    """
    url = f"/stations/{{id:{STATION_IDENTIFIER_REGEX}}}/bikes"

    @with_station
    @docs(summary="Get The Bikes At A Station")
    @returns(JSendSchema.of(bikes=Many(BikeSchema())))
    async def get(self, station: Station):
        return success(bikes=[bike.info() for bike in station.docked_bikes.values()])


class StationRentalsView(BaseView):
    """
    Starts a rental by checking a bike out of a station.
    """
    url = f"/stations/{{id:{STATION_IDENTIFIER_REGEX}}}/rentals"

    @with_station
    @docs(summary="Rent A Bike")
    @expects(RentRequestSchema())
    @returns(**result_responses(HTTPStatus.CREATED))
    async def post(self, station: Station):
        """
        Checks out the requested bike, or if none is given, the bike the user
        has reserved here, or otherwise a random available bike.
        """
        data = self.request["data"]
        result = await self.fleet.rent_bike(data["user_id"], station.id, data["bike_id"])
        return result_response(result)


class StationReturnsView(BaseView):
    """
    Ends a rental by docking the bike at a station.
    """
    url = f"/stations/{{id:{STATION_IDENTIFIER_REGEX}}}/returns"

    @with_station
    @docs(summary="Return A Bike")
    @expects(ReturnRequestSchema())
    @returns(**result_responses())
    async def post(self, station: Station):
        """
        Returning a bike to a station that is still low on bikes
        afterwards earns the rider flex dollars.
        """
        data = self.request["data"]
        result = await self.fleet.return_bike(data["user_id"], data["bike_id"], station.id)
        return result_response(result)


class StationReservationsView(BaseView):
    """
    Gets the reservations at a station, or reserves a bike there.
    """
    url = f"/stations/{{id:{STATION_IDENTIFIER_REGEX}}}/reservations"

    @with_station
    @docs(summary="Get The Active Reservations At A Station")
    @returns(JSendSchema.of(reservations=Many(ReservationSchema())))
    async def get(self, station: Station):
        return success(reservations=[reservation.serialize() for reservation in station.active_reservations()])

    @with_station
    @docs(summary="Reserve A Bike")
    @expects(ReservationRequestSchema())
    @returns(**result_responses(HTTPStatus.CREATED))
    async def post(self, station: Station):
        data = self.request["data"]
        result = await self.fleet.reserve_bike(data["user_id"], station.id, data["bike_id"], data["hold_minutes"])
        return result_response(result)
