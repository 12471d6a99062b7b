"""
Service Exceptions

Every failure an order operation can report to a caller. The HTTP layer maps
them onto the ``{"success": false, "error": ...}`` envelope using
``status_code``; ``message`` is the short client-facing string.
"""

from typing import Optional


class OrderServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_message = "Erreur serveur"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(OrderServiceError):
    """Malformed or missing caller-supplied field. Never retried."""

    status_code = 400
    default_message = "Paramètres invalides"


class OrderNotFoundError(OrderServiceError):
    """The referenced order does not exist."""

    status_code = 404
    default_message = "Commande introuvable"


class ServerError(OrderServiceError):
    """Storage connectivity or query failure. Details stay in the logs."""

    status_code = 500
    default_message = "Erreur serveur"


class DatabaseUnavailableError(RuntimeError):
    """Raised at startup when the database cannot be reached."""
