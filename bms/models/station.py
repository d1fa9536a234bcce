"""
Station
---------------------------
"""

from tortoise import Model, fields

from bms.config import DEFAULT_CAPACITY, DEFAULT_HOLD_MINUTES
from bms.fleet.states import StationStatus
from bms.models.fields import EnumField


class Station(Model):
    id = fields.CharField(max_length=64, pk=True)
    name = fields.CharField(max_length=255)
    capacity = fields.IntField(default=DEFAULT_CAPACITY)
    status = EnumField(StationStatus, default=StationStatus.ACTIVE)

    latitude = fields.FloatField(null=True)
    longitude = fields.FloatField(null=True)
    address = fields.CharField(max_length=255, null=True)

    reservation_hold_minutes = fields.IntField(default=DEFAULT_HOLD_MINUTES)

    def __str__(self):
        return f"[{self.id}] {self.name}"
