"""
                        Services Module

Contains the order business logic.

Services:
    - orders: ingestion, listing, status transitions, table status lookup
    - aggregation: regrouping of flat line rows into nested orders
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from table_orders.database import get_db
from table_orders.services.aggregation import (
    AggregatedItem,
    AggregatedOrder,
    group_order_rows,
    parse_side_items,
)
from table_orders.services.orders import (
    IngestResult,
    OrderService,
    TableStatus,
    resolve_limit,
)


def get_order_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> OrderService:
    """
    Dependency injection for FastAPI routes.

    Binds an OrderService to the request's session and to the settings the
    application was created with.
    """
    return OrderService(db, settings=request.app.state.settings)


__all__ = [
    "get_order_service",
    "OrderService",
    "IngestResult",
    "TableStatus",
    "AggregatedOrder",
    "AggregatedItem",
    "group_order_rows",
    "parse_side_items",
    "resolve_limit",
]
