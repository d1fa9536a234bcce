from tortoise import Model, fields

from bms.fleet.states import ReservationStatus
from bms.models.fields import EnumField


class Reservation(Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="reservations")
    station = fields.ForeignKeyField("models.Station", related_name="reservations")
    bike = fields.ForeignKeyField("models.Bike", related_name="reservations", null=True)
    created_at = fields.DatetimeField()
    expires_at = fields.DatetimeField()
    status = EnumField(ReservationStatus, default=ReservationStatus.ACTIVE)
