"""
.. autoclasstree:: bms.views

This package contains the server API for viewing the fleet,
renting, returning and reserving bikes, and moving them about.

API Conventions
---------------

The API conforms as best as possible to the REST standard. For a quick primer, look at `Web Api Design`_. In short,
the api must:

* Be ordered in terms of resources (nouns such as station)
* Have multiple ways of accessing the same resource (GET, POST, PATCH, DELETE)
* Accept and return JSON with snake_case key naming
* Have idempotent_ GET, PATCH, and DELETE operations
* Support filtering (if necessary) using the query string

API Expected Responses
----------------------

The server responds with JSend formatted JSON to all requests. Operations
on the fleet respond with their result, whether or not they succeeded.

.. _`Web Api Design`: https://pages.apigee.com/rs/apigee/images/api-design-ebook-2012-03.pdf
.. _idempotent: https://www.w3.org/Protocols/rfc2616/rfc2616-sec9.html#sec9.1.2
"""

import aiohttp_cors
from aiohttp.abc import Application

from bms import logger
from .base import CORS_OPTIONS
from .bikes import BikeView, BikesView, BikeMovesView
from .notifications import StationNotificationsView
from .rentals import RentalView, RentalsView
from .reservations import ReservationsView
from .stations import (
    StationView, StationsView, StationBikesView, StationRentalsView, StationReturnsView, StationReservationsView
)
from .system import SystemView, SystemValidationView
from .users import (
    UserRentalsView, UserCurrentRentalView, UserCurrentReservationView, UserFlexView, UserLoyaltyView, UserBillingView
)

views = [
    StationsView, StationView, StationBikesView, StationRentalsView, StationReturnsView, StationReservationsView,
    BikesView, BikeView, BikeMovesView,
    RentalsView, RentalView,
    ReservationsView,
    UserRentalsView, UserCurrentRentalView, UserCurrentReservationView, UserFlexView, UserLoyaltyView, UserBillingView,
    StationNotificationsView,
    SystemView, SystemValidationView,
]


def register_views(app: Application, base: str):
    """
    Registers all the API views onto the given router at a specific root url.

    :param app: The app to register the views to.
    :param base: The base URL.
    """
    cors = aiohttp_cors.setup(app, defaults=CORS_OPTIONS)

    for view in views:
        logger.info("Registered %s at %s", view.__name__, base + view.url)
        view.register_route(app, base)
        view.enable_cors(cors)
