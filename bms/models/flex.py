"""
Flex Transaction
---------------------------

An entry in the flex dollar ledger. The balance after the transaction is
stored alongside it so the history can be read without replaying it.
"""

from tortoise import Model, fields

from bms.models.fields import EnumField
from bms.ledger import FlexTransactionType


class FlexTransaction(Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="flex_transactions")
    amount = fields.FloatField()
    type = EnumField(FlexTransactionType)
    description = fields.CharField(max_length=255, null=True)
    rental = fields.ForeignKeyField("models.Rental", related_name="flex_transactions", null=True)
    station_id = fields.CharField(max_length=64, null=True)
    balance_after = fields.FloatField()
    time = fields.DatetimeField()
