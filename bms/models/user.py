"""
User
---------------------------
"""

from tortoise import Model, fields


class User(Model):
    """
    Represents a rider or operator. Users are created the first
    time they rent, reserve, or receive flex dollars.
    """

    id = fields.CharField(max_length=64, pk=True)
    flex_balance = fields.FloatField(default=0.0)
    """The flex dollars available to spend. They never expire."""

    def __str__(self):
        return f"[{self.id}] {self.flex_balance:.2f} flex"
