"""
Order Aggregation

Rebuilds nested orders from the flat row stream read by the order listing:
one row per dish, each row also carrying its order's header columns.

Also holds the lenient field coercions shared by ingestion and reads. Bad
numbers become 0 instead of failing the whole order.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Union


@dataclass
class AggregatedItem:
    """One dish line of an aggregated order."""
    dish: Optional[str]
    qty: int
    unit: Union[int, float]
    total: Union[int, float]
    accomp: list[str]
    comment: str


@dataclass
class AggregatedOrder:
    """
    All lines sharing one order identifier.

    Attributes:
        order_id: Public order identifier
        table: Originating table
        created_at: Creation time (naive UTC)
        status: Current status value
        message_to_client: Client message, "" when unset
        items: Dish lines in storage order
    """
    order_id: str
    table: str
    created_at: datetime
    status: str
    message_to_client: str
    items: list[AggregatedItem] = field(default_factory=list)


def coerce_float(value: Any) -> float:
    """Numeric value as float; missing, non-numeric or non-finite gives 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_int(value: Any) -> int:
    """Numeric value truncated to int; missing or non-numeric gives 0."""
    return int(coerce_float(value))


def plain_number(value: Any) -> Union[int, float]:
    """Coerced float, as an int when it has no fractional part (10.0 -> 10)."""
    number = coerce_float(value)
    return int(number) if number.is_integer() else number


def parse_side_items(value: Any) -> list[str]:
    """
    Parse the accompaniments of one dish.

    A comma-joined string is split and each token stripped; empty or blank
    input gives an empty list. Lists are taken element by element.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(token).strip() for token in value if token is not None]
    text = str(value)
    if not text.strip():
        return []
    return [token.strip() for token in text.split(",")]


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def group_order_rows(rows: Iterable[Any]) -> list[AggregatedOrder]:
    """
    Group flat rows by ``order_id``.

    Orders come out in the order their first row appears, so a stream sorted
    newest-first yields orders newest-first. Each row must expose
    ``order_id``, ``table_number``, ``created_at``, ``status``,
    ``client_message``, ``dish_name``, ``quantity``, ``unit_price``,
    ``total_price``, ``side_items`` and ``comment``.
    """
    orders: dict[str, AggregatedOrder] = {}
    for row in rows:
        order = orders.get(row.order_id)
        if order is None:
            order = AggregatedOrder(
                order_id=row.order_id,
                table=row.table_number,
                created_at=row.created_at,
                status=_status_value(row.status),
                message_to_client=row.client_message or "",
            )
            orders[row.order_id] = order

        order.items.append(
            AggregatedItem(
                dish=row.dish_name,
                qty=coerce_int(row.quantity),
                unit=plain_number(row.unit_price),
                total=plain_number(row.total_price),
                accomp=parse_side_items(row.side_items),
                comment=row.comment or "",
            )
        )
    return list(orders.values())
