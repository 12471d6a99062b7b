"""
Order Service

Order lifecycle operations over the ``orders`` / ``order_lines`` tables:

    - ingest: record a new order and its dishes in one transaction
    - list_orders: read lines newest-first and regroup them into orders
    - transition_status: change status and client message of one order
    - table_status: latest order of a table, polled by the menu

The service holds no state besides its session; all coordination between
concurrent requests is left to the database. Concurrent transitions of the
same order are last-writer-wins.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from table_orders.core.clock import Clock, utc_now, from_epoch_ms
from table_orders.core.config import Settings, get_settings
from table_orders.core.exceptions import InvalidInputError, OrderNotFoundError, ServerError
from table_orders.models import Order, OrderLine, OrderStatus
from table_orders.services.aggregation import (
    AggregatedOrder,
    coerce_float,
    coerce_int,
    group_order_rows,
    parse_side_items,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of recording an order."""
    order_id: str
    inserted: int


@dataclass
class TableStatus:
    """Latest order known for a table."""
    order_id: str
    status: str
    message: str
    created_at: datetime


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def normalize_table(value: Any, message: Optional[str] = None) -> str:
    """
    Table identifier as text, kept exactly as sent.

    Missing or blank values raise InvalidInputError. Surrounding spaces are
    part of the identifier: " 7 " and "7" are different tables.
    """
    if value is None or isinstance(value, (bool, list, dict)):
        raise InvalidInputError(message)
    table = str(value)
    if not table.strip():
        raise InvalidInputError(message)
    return table


def resolve_limit(value: Any, default: int = 200, ceiling: int = 1000) -> int:
    """
    Number of rows the listing may scan.

    Absent, non-numeric, zero or negative values fall back to ``default``;
    anything above ``ceiling`` is clamped to it.
    """
    limit = coerce_int(value)
    if limit <= 0:
        limit = default
    return min(limit, ceiling)


def build_line(item: Any) -> OrderLine:
    """Build one OrderLine from a submitted dish, coercing bad numbers to 0."""
    if hasattr(item, "model_dump"):
        item = item.model_dump()
    if not isinstance(item, dict):
        raise InvalidInputError()
    return OrderLine(
        dish_id=_optional_text(item.get("plat_id")),
        dish_name=_optional_text(item.get("plat_nom")),
        quantity=coerce_int(item.get("quantite")),
        unit_price=coerce_float(item.get("prix_unitaire")),
        total_price=coerce_float(item.get("prix_total")),
        side_items=parse_side_items(item.get("accompagnements")),
        comment=_optional_text(item.get("commentaire")) or "",
    )


class OrderService:
    """Order operations bound to one database session."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock

    async def _fail(self, operation: str, exc: Exception) -> ServerError:
        await self.session.rollback()
        logger.error(f"{operation} failed: {exc}", exc_info=exc)
        return ServerError()

    # =========================================================================
    # INGESTION
    # =========================================================================

    async def ingest(self, table_number: Any, items: Any) -> IngestResult:
        """
        Record a new order.

        One fresh order id and one creation time are shared by every line.
        The header and all lines are committed together; on failure nothing
        is kept.

        Raises:
            InvalidInputError: missing table or empty/non-list items
            ServerError: the write failed
        """
        table = normalize_table(table_number)
        if not isinstance(items, list) or not items:
            raise InvalidInputError()
        lines = [build_line(item) for item in items]

        order = Order(
            order_id=str(uuid.uuid4()),
            table_number=table,
            status=OrderStatus.RECEIVED,
            client_message=None,
            created_at=self.clock(),
        )
        order.lines = lines

        try:
            self.session.add(order)
            await self.session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            # OverflowError: the driver cannot bind an out-of-range quantity
            raise await self._fail(f"Insert of order for table {table}", e) from e

        logger.info(f"✅ Order {order.order_id} recorded for table {table} ({len(lines)} lines)")
        return IngestResult(order_id=order.order_id, inserted=len(lines))

    # =========================================================================
    # LISTING
    # =========================================================================

    async def list_orders(
        self,
        status: Any = None,
        since: Any = None,
        limit: Any = None,
    ) -> list[AggregatedOrder]:
        """
        Orders newest-first, regrouped from at most ``limit`` lines.

        ``limit`` bounds lines, not orders: an order straddling the boundary
        comes back with only the lines that fit.

        Raises:
            InvalidInputError: ``since`` is not an epoch-milliseconds number
            ServerError: the read failed
        """
        query = (
            select(
                Order.order_id,
                Order.table_number,
                Order.created_at,
                Order.status,
                Order.client_message,
                OrderLine.dish_name,
                OrderLine.quantity,
                OrderLine.unit_price,
                OrderLine.total_price,
                OrderLine.side_items,
                OrderLine.comment,
            )
            .join(OrderLine, OrderLine.order_id == Order.order_id)
        )

        if status not in (None, ""):
            status_enum = OrderStatus.parse(status)
            if status_enum is None:
                # Exact match against the enumeration: nothing can match
                return []
            query = query.where(Order.status == status_enum)

        if since not in (None, ""):
            try:
                since_at = from_epoch_ms(since)
            except (TypeError, ValueError, OverflowError, OSError):
                raise InvalidInputError()
            query = query.where(Order.created_at >= since_at)

        row_limit = resolve_limit(
            limit,
            default=self.settings.default_order_limit,
            ceiling=self.settings.max_order_limit,
        )
        query = query.order_by(Order.created_at.desc(), OrderLine.id.asc()).limit(row_limit)

        try:
            result = await self.session.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            raise await self._fail("Order listing", e) from e

        return group_order_rows(rows)

    # =========================================================================
    # STATUS TRANSITION
    # =========================================================================

    async def transition_status(self, order_id: str, status: Any, message: Any = None) -> int:
        """
        Set status and client message of every line of one order.

        Any status may follow any other. The message is replaced on every
        transition: omitting it clears the previous one.

        Returns:
            Number of lines carried by the order

        Raises:
            InvalidInputError: status is not one of the four values
            OrderNotFoundError: no order has this id
            ServerError: the update failed
        """
        status_enum = OrderStatus.parse(status)
        if status_enum is None:
            raise InvalidInputError("Statut invalide")
        client_message = str(message) if message else None

        try:
            result = await self.session.execute(
                update(Order)
                .where(Order.order_id == order_id)
                .values(status=status_enum, client_message=client_message)
            )
            if result.rowcount == 0:
                await self.session.rollback()
                raise OrderNotFoundError()

            count = await self.session.execute(
                select(func.count(OrderLine.id)).where(OrderLine.order_id == order_id)
            )
            updated = count.scalar() or 0
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(f"Status update of order {order_id}", e) from e

        logger.info(f"Order {order_id} -> {status_enum.value} ({updated} lines)")
        return updated

    # =========================================================================
    # TABLE STATUS
    # =========================================================================

    async def table_status(self, table_number: Any) -> Optional[TableStatus]:
        """
        Latest order of a table, or None when the table never ordered.

        Raises:
            InvalidInputError: table missing
            ServerError: the read failed
        """
        table = normalize_table(table_number, "table manquante")

        query = (
            select(Order)
            .where(Order.table_number == table)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(1)
        )
        try:
            result = await self.session.execute(query)
            order = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail(f"Status lookup of table {table}", e) from e

        if order is None:
            return None

        return TableStatus(
            order_id=order.order_id,
            status=order.status.value,
            message=order.client_message or "",
            created_at=order.created_at,
        )
