"""
Model Serializers
-----------------

Defines serializers for the fleet objects and operation results in the system.
"""

from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import Integer, Boolean, String, Nested, DateTime, Float, List, Dict

from bms.fleet import BikeType, BikeStatus, StationStatus, RentalStatus, ReservationStatus, Operation, ErrorKind
from bms.ledger import FlexTransactionType
from bms.service.loyalty import LoyaltyTier
from bms.service.notifications import NotificationType
from .fields import EnumField, Many


class StationInfoSchema(Schema):
    """The occupancy of a station at a point in time."""

    station_id = String(required=True)
    capacity = Integer(required=True)
    bikes_available = Integer(required=True)
    free_docks = Integer(required=True)
    occupied_docks = Integer(required=True)
    is_empty = Boolean(required=True)
    is_full = Boolean(required=True)
    status = EnumField(StationStatus, required=True)

    @validates_schema
    def assert_occupancy_adds_up(self, data, **kwargs):
        """Asserts that the free and occupied docks account for the whole station."""
        if data["free_docks"] + data["occupied_docks"] != data["capacity"]:
            raise ValidationError("Free and occupied docks must add up to the capacity.")


class BikeSchema(Schema):
    id = String(required=True)
    type = EnumField(BikeType, required=True)
    status = EnumField(BikeStatus, required=True)
    station_id = String(allow_none=True)
    reserved_by = String(allow_none=True)
    reservation_expiry = DateTime(allow_none=True)
    created_at = DateTime()
    updated_at = DateTime()


class StationSchema(StationInfoSchema):
    id = String(required=True)
    name = String(required=True)
    latitude = Float(allow_none=True)
    longitude = Float(allow_none=True)
    address = String(allow_none=True)
    reservation_hold_minutes = Integer()
    bikes = Many(BikeSchema())
    active_reservations = Integer()
    updated_at = DateTime()


class RentalSchema(Schema):
    id = Integer(allow_none=True)
    user_id = String(required=True)
    bike_id = String(required=True)
    station_id = String(required=True)
    start_time = DateTime(required=True)
    end_time = DateTime()
    return_station_id = String()
    status = EnumField(RentalStatus, required=True)
    price = Float()

    @validates_schema
    def assert_end_time_with_return_station(self, data, **kwargs):
        """
        Asserts that when a rental is complete both the end time and return station are included.
        """
        if "end_time" in data and "return_station_id" not in data:
            raise ValidationError("If the end time is included, you must also include the return station.")
        elif "end_time" not in data and "return_station_id" in data:
            raise ValidationError("If the return station is included, you must also include the end time.")


class ReservationSchema(Schema):
    id = Integer(allow_none=True)
    user_id = String(required=True)
    station_id = String(required=True)
    bike_id = String(allow_none=True)
    created_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    status = EnumField(ReservationStatus, required=True)


class OperationResultSchema(Schema):
    """The schema of a :class:`~bms.fleet.results.OperationResult`."""

    success = Boolean(required=True)
    operation = EnumField(Operation, required=True)
    message = String(required=True)
    error = EnumField(ErrorKind)
    station_info = Nested(StationInfoSchema())
    rental = Nested(RentalSchema())
    bike = Nested(BikeSchema())
    reservation = Nested(ReservationSchema())
    rollback = Boolean()

    from_station_info = Nested(StationInfoSchema())
    to_station_info = Nested(StationInfoSchema())
    operator_id = String()
    flex_deducted = Float()
    reservation_outcome = EnumField(Operation)
    loyalty_tier = EnumField(LoyaltyTier)
    discount_percentage = Float()

    @validates_schema
    def assert_error_with_failure(self, data, **kwargs):
        """Asserts that failures, and only failures, carry an error kind."""
        if data["success"] and "error" in data:
            raise ValidationError("A successful result cannot carry an error kind.")
        if not data["success"] and "error" not in data:
            raise ValidationError("A failed result must carry an error kind.")


class ValidationReportSchema(Schema):
    is_valid = Boolean(required=True)
    error = EnumField(ErrorKind)
    errors = List(String(), required=True)
    stats = Dict(keys=String(), values=Integer())


class OverviewSchema(Schema):
    total_stations = Integer(required=True)
    total_bikes = Integer(required=True)
    active_rentals = Integer(required=True)
    stations = Many(StationInfoSchema())
    stats = Dict(keys=String(), values=Integer())
    success_rate = Integer(required=True)


class FlexTransactionSchema(Schema):
    id = Integer(allow_none=True)
    user_id = String(required=True)
    amount = Float(required=True)
    type = EnumField(FlexTransactionType, required=True)
    balance_after = Float(required=True)
    description = String(allow_none=True)
    rental_id = Integer(allow_none=True)
    station_id = String(allow_none=True)
    time = DateTime(required=True)


class LoyaltySchema(Schema):
    """The tier of a rider, its benefits, and the record it was judged on."""

    tier = EnumField(LoyaltyTier, required=True)
    discount_percentage = Integer(required=True)
    reservation_extension_minutes = Integer(required=True)
    trips = Integer(required=True)
    missed_reservations = Integer(required=True)
    claimed_reservations = Integer(required=True)


class BillingEntrySchema(Schema):
    rental = Nested(RentalSchema(), required=True)
    price = Float(required=True)
    flex_applied = Float(required=True)
    amount_due = Float(required=True)


class BillingSchema(Schema):
    entries = Many(BillingEntrySchema())
    total_price = Float(required=True)
    total_flex_applied = Float(required=True)
    total_due = Float(required=True)


class StationNotificationSchema(Schema):
    type = EnumField(NotificationType, required=True)
    station_id = String(required=True)
    station_name = String(required=True)
    message = String(required=True)
    time = DateTime(required=True)
