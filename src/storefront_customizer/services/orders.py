"""Read-only membership checks against the order ledger."""

import json
from typing import Protocol

ORDER_PAGE_SIZE = 250
ORDER_STATUS_ANY = "any"


class OrderLedger(Protocol):
    """External system of record for placed orders."""

    async def list_orders(
        self, page_size: int = ORDER_PAGE_SIZE, status: str = ORDER_STATUS_ANY
    ) -> list[dict[str, object]]:
        """Return raw order records."""


def property_sets(order: dict[str, object]) -> list[list[dict[str, object]]]:
    """Return the order's own properties followed by each line item's."""
    candidates = [order.get("properties")]
    line_items = order.get("line_items")
    if isinstance(line_items, list):
        candidates.extend(
            item.get("properties") for item in line_items if isinstance(item, dict)
        )
    return [
        [prop for prop in candidate if isinstance(prop, dict)]
        for candidate in candidates
        if isinstance(candidate, list)
    ]


def has_session_product(
    orders: list[dict[str, object]], session_id: str, product_id: str
) -> bool:
    """True when a single property set holds both the session and product ids."""
    for order in orders:
        for properties in property_sets(order):
            has_session = any(
                prop.get("name") == "session_id" and prop.get("value") == session_id
                for prop in properties
            )
            if has_session and any(
                prop.get("name") == "product_id"
                and str(prop.get("value")) == product_id
                for prop in properties
            ):
                return True
    return False


def references_session(orders: list[dict[str, object]], session_id: str) -> bool:
    """True when the session id appears anywhere in a serialized order.

    Any substring hit in any field counts, including unrelated fields.
    """
    for order in orders:
        try:
            serialized = json.dumps(order, default=str)
        except (TypeError, ValueError):
            continue
        if session_id in serialized:
            return True
    return False
