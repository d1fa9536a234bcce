"""
Request Schemas
---------------

The bodies accepted by the routes that change the fleet.
"""

from marshmallow import Schema, validate
from marshmallow.fields import String, Integer, Float

from bms.config import MAX_CAPACITY, DEFAULT_CAPACITY, DEFAULT_HOLD_MINUTES
from bms.fleet import BikeType, BikeStatus, StationStatus
from bms.serializer.fields import EnumField

NonEmpty = validate.Length(min=1)


class StationCreateSchema(Schema):
    id = String(required=True, validate=NonEmpty)
    capacity = Integer(load_default=DEFAULT_CAPACITY, validate=validate.Range(1, MAX_CAPACITY))
    name = String()
    latitude = Float(validate=validate.Range(-90, 90))
    longitude = Float(validate=validate.Range(-180, 180))
    address = String()
    reservation_hold_minutes = Integer(load_default=DEFAULT_HOLD_MINUTES, validate=validate.Range(min=1))


class StationModifySchema(Schema):
    status = EnumField(StationStatus, required=True, metadata={"description": "The new status of the station."})


class BikeCreateSchema(Schema):
    id = String(required=True, validate=NonEmpty)
    station_id = String(required=True, validate=NonEmpty)
    type = EnumField(BikeType, load_default=BikeType.STANDARD, metadata={"description": "The type of bike."})


class BikeModifySchema(Schema):
    """Operators may take a bike out for maintenance, and put it back."""
    status = EnumField(BikeStatus, required=True, validate=validate.OneOf([BikeStatus.AVAILABLE, BikeStatus.MAINTENANCE]))


class RentRequestSchema(Schema):
    user_id = String(required=True, validate=NonEmpty)
    bike_id = String(load_default=None)


class ReturnRequestSchema(Schema):
    user_id = String(required=True, validate=NonEmpty)
    bike_id = String(required=True, validate=NonEmpty)


class ReservationRequestSchema(Schema):
    user_id = String(required=True, validate=NonEmpty)
    bike_id = String(load_default=None)
    hold_minutes = Integer(load_default=None, validate=validate.Range(1, 24 * 60))


class MoveRequestSchema(Schema):
    from_station_id = String(required=True, validate=NonEmpty)
    to_station_id = String(required=True, validate=NonEmpty)
    operator_id = String(required=True, validate=NonEmpty)
