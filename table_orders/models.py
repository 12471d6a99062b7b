"""
SQLAlchemy Database Models

An order is stored as one header row (table, status, client message,
creation time) owning one row per ordered dish. Status and message live
only on the header, so every line of an order always reports the same
values.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Enum, JSON, ForeignKey
from sqlalchemy.orm import relationship
from table_orders.database import Base
from typing import Optional
import enum


class OrderStatus(str, enum.Enum):
    """Order status workflow. Any status may follow any other."""
    RECEIVED = "RECEIVED"
    PREPARING = "PREPARING"
    COMPLETED = "COMPLETED"
    OUT_OF_STOCK = "OUT_OF_STOCK"

    @classmethod
    def parse(cls, value) -> Optional["OrderStatus"]:
        """Exact-match lookup; returns None for anything else."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Order(Base):
    """
    Order header - one row per order submitted from a table.

    ``order_id`` is the public identifier (UUID text) shared with clients;
    ``id`` is the storage surrogate, used to break ties between orders
    created within the same second.
    """
    __tablename__ = "orders"

    # Primary Key
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), nullable=False, unique=True, index=True)

    table_number = Column(String(50), nullable=False, index=True)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.RECEIVED,
        nullable=False,
        index=True
    )
    client_message = Column(Text, nullable=True)

    # UTC, second precision, without tzinfo
    created_at = Column(DateTime, nullable=False, index=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        order_by="OrderLine.id",
    )

    def __repr__(self):
        return f"<Order {self.order_id} - table {self.table_number} - {self.status.value}>"


class OrderLine(Base):
    """
    One ordered dish. Lines are written once, with their order, and never
    edited afterwards.
    """
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.order_id"),
        nullable=False,
        index=True
    )

    dish_id = Column(String(100), nullable=True)
    dish_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False, default=0.0)
    side_items = Column(JSON, nullable=False, default=list)  # ordered list of strings
    comment = Column(Text, nullable=False, default="")

    order = relationship("Order", back_populates="lines")

    def __repr__(self):
        return f"<OrderLine #{self.id} - {self.order_id} - {self.quantity} x {self.dish_name}>"
