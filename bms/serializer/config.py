"""
Station Configuration
---------------------

Schemas for the json file the fleet is seeded from. The file uses
camel cased keys.
"""

from marshmallow import Schema, fields, validate, EXCLUDE

from bms.config import MAX_CAPACITY
from bms.fleet.states import BikeType, BikeStatus

STATION_CONFIG_STATUSES = ("active", "empty", "occupied", "full", "out_of_service")
"""Empty, occupied and full are computed from the bikes, so they all mean active."""


class BikeConfigSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True, validate=validate.Length(min=1))
    type = fields.String(required=True, validate=validate.OneOf([bike_type.value for bike_type in BikeType]))
    status = fields.String(required=True, validate=validate.OneOf([status.value for status in BikeStatus]))


class StationConfigSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True, validate=validate.Length(min=1))
    name = fields.String(required=True)
    status = fields.String(required=True, validate=validate.OneOf(STATION_CONFIG_STATUSES))
    latitude = fields.Float(required=True, validate=validate.Range(-90, 90))
    longitude = fields.Float(required=True, validate=validate.Range(-180, 180))
    address = fields.String(required=True)
    capacity = fields.Integer(required=True, validate=validate.Range(1, MAX_CAPACITY))
    reservation_hold_minutes = fields.Integer(
        required=True, data_key="reservationHoldTimeMinutes", validate=validate.Range(min=1)
    )
    bikes = fields.List(fields.Nested(BikeConfigSchema), required=True)


class FleetConfigSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    version = fields.String(required=True)
    stations = fields.List(fields.Nested(StationConfigSchema), required=True)
