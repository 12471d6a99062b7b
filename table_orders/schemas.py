"""
Pydantic Schemas for Request/Response Validation

Field names follow the wire contract used by the table-side menu and the
kitchen display (French request keys, camelCase listing keys).

Request models are deliberately permissive: bad or missing values are
coerced or rejected by the order service so that every client error comes
back in the ``{"success": false, "error": ...}`` envelope rather than as a
framework validation report.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any, Union
from datetime import datetime


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderLineCreate(BaseModel):
    """Single dish in a submitted order. Every field is optional on the wire."""
    model_config = ConfigDict(extra="ignore")

    plat_id: Any = None
    plat_nom: Any = Field(None, examples=["Pasta"])
    quantite: Any = Field(None, examples=[2])
    prix_unitaire: Any = Field(None, examples=[10])
    prix_total: Any = Field(None, examples=[20])
    accompagnements: Any = Field(None, examples=["Frites, Salade"])
    commentaire: Any = Field(None, examples=["Sans oignons"])


class OrderCreate(BaseModel):
    """Request schema for POST /confirmCommande."""
    model_config = ConfigDict(extra="ignore")

    table_numero: Any = Field(None, examples=["12"])
    items: Any = Field(None, description="Non-empty list of OrderLineCreate objects")


class StatusUpdate(BaseModel):
    """Request schema for PATCH /commandes/{id}/status."""
    model_config = ConfigDict(extra="ignore")

    status: Any = Field(None, examples=["PREPARING"])
    message: Any = Field(None, examples=["Votre plat arrive"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderCreateResponse(BaseModel):
    """Response after successfully recording an order."""
    success: bool = True
    commande_id: str
    inserted: int


class OrderItemResponse(BaseModel):
    """One dish as shown on the kitchen display."""
    dish: Optional[str]
    qty: int
    unit: Union[int, float]
    total: Union[int, float]
    accomp: List[str]
    comment: str


class OrderResponse(BaseModel):
    """One order with its dishes, as listed by GET /commandes."""
    id: str
    table: str
    createdAt: int = Field(..., description="Epoch milliseconds")
    status: str
    messageToClient: str
    items: List[OrderItemResponse]


class StatusUpdateResponse(BaseModel):
    """Response after a status transition."""
    success: bool = True
    updated: int


class TableStatusResponse(BaseModel):
    """Latest order of a table, polled by the menu."""
    commande_id: str
    status: str
    message: str
    createdAt: int = Field(..., description="Epoch milliseconds")


class EmptyResponse(BaseModel):
    """Returned by GET /order-status when the table has no order yet."""
    empty: bool = True


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class PingResponse(BaseModel):
    """Liveness response."""
    ok: bool = True


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
