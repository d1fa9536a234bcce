"""
Bike
-------------------------

The persisted state of a bike. The station foreign key is the dock the
bike sits in, and is null while the bike is on a trip.
"""

from tortoise import Model, fields

from bms.fleet.states import BikeType, BikeStatus
from bms.models.fields import EnumField


class Bike(Model):
    id = fields.CharField(max_length=64, pk=True)
    type = EnumField(enum_type=BikeType, default=BikeType.STANDARD)
    status = EnumField(enum_type=BikeStatus, default=BikeStatus.AVAILABLE)
    station = fields.ForeignKeyField("models.Station", related_name="bikes", null=True)

    reserved_by = fields.CharField(max_length=64, null=True)
    reservation_expiry = fields.DatetimeField(null=True)

    def __str__(self):
        return f"[{self.type}] {self.id}"
