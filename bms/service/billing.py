"""
Billing
-------

What a rider was charged for each completed rental, and how much of it
their flex dollars covered.
"""

from collections import defaultdict
from typing import Dict, Any

from bms.fleet import RentalStatus
from bms.ledger import FlexTransactionType
from bms.store import Store


async def get_billing(store: Store, user_id: str) -> Dict[str, Any]:
    """
    Gets the billing history of a user, latest rental first, with totals.

    :return: The ``entries`` and the ``total_price``, ``total_flex_applied`` and ``total_due``.
    """
    rentals = [rental for rental in await store.get_rentals(user_id=user_id)
               if rental.status is RentalStatus.COMPLETED]

    flex_applied = defaultdict(float)
    for transaction in await store.get_flex_transactions(user_id):
        if transaction.type is FlexTransactionType.DEDUCT and transaction.rental_id is not None:
            flex_applied[transaction.rental_id] -= transaction.amount

    entries = []
    for rental in sorted(rentals, key=lambda rental: rental.start_time, reverse=True):
        price = rental.price or 0.0
        applied = round(flex_applied[rental.id], 2)
        entries.append({
            "rental": rental.serialize(),
            "price": price,
            "flex_applied": applied,
            "amount_due": round(price - applied, 2),
        })

    return {
        "entries": entries,
        "total_price": round(sum(entry["price"] for entry in entries), 2),
        "total_flex_applied": round(sum(entry["flex_applied"] for entry in entries), 2),
        "total_due": round(sum(entry["amount_due"] for entry in entries), 2),
    }
