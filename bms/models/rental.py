"""
Rental
---------------------------
"""

from tortoise import Model, fields

from bms.fleet.states import RentalStatus
from bms.models.fields import EnumField


class Rental(Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="rentals")
    bike = fields.ForeignKeyField("models.Bike", related_name="rentals")
    station = fields.ForeignKeyField("models.Station", related_name="rentals")
    return_station = fields.ForeignKeyField("models.Station", related_name="returns", null=True)

    start_time = fields.DatetimeField()
    end_time = fields.DatetimeField(null=True)
    status = EnumField(RentalStatus, default=RentalStatus.ACTIVE)

    price = fields.FloatField(null=True)
    """The price of the rental, in dollars."""
