"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from table_orders.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from table_orders.core.exceptions import (
    OrderServiceError,
    InvalidInputError,
    OrderNotFoundError,
    ServerError,
    DatabaseUnavailableError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "OrderServiceError",
    "InvalidInputError",
    "OrderNotFoundError",
    "ServerError",
    "DatabaseUnavailableError",
]
