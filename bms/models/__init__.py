"""
The models package contains all the database models used on the server.
They mirror the in-memory fleet in :mod:`bms.fleet`, which is rebuilt
from them on startup.

.. autoclasstree:: bms.models
"""

from .bike import Bike
from .flex import FlexTransaction
from .rental import Rental
from .reservation import Reservation
from .station import Station
from .user import User
