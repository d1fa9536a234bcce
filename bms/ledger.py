"""
Ledger
------

Plain records of the flex dollar ledger, shared by every store.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class FlexTransactionType(str, Enum):
    """We subclass string to make json serialization work."""
    AWARD = "award"
    DEDUCT = "deduct"


class FlexTransaction:
    """A single change to a user's flex dollar balance."""

    def __init__(self, user_id: str, amount: float, transaction_type: FlexTransactionType, balance_after: float, *,
                 description: Optional[str] = None, rental_id: Optional[int] = None,
                 station_id: Optional[str] = None, time: Optional[datetime] = None,
                 transaction_id: Optional[int] = None):
        self.id = transaction_id
        self.user_id = user_id
        self.amount = amount
        """Positive for awards, negative for deductions."""

        self.type = FlexTransactionType(transaction_type)
        self.balance_after = balance_after
        self.description = description
        self.rental_id = rental_id
        self.station_id = station_id
        self.time = time if time is not None else datetime.now()

    def serialize(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": self.amount,
            "type": self.type,
            "balance_after": self.balance_after,
            "description": self.description,
            "rental_id": self.rental_id,
            "station_id": self.station_id,
            "time": self.time,
        }
