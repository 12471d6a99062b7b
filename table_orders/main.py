"""
FastAPI Application Entry Point

Table-side ordering backend: tables submit orders from the menu, the kitchen
lists them and moves them through their statuses, and the menu polls for the
latest status and message of its table.

Endpoints:
    - POST /confirmCommande: Record an order from a table
    - GET /commandes: Orders for the kitchen display, newest first
    - PATCH /commandes/{id}/status: Change status / client message of an order
    - GET /order-status: Latest order of a table (polled by the menu)
    - GET /ping: Liveness
    - GET /health: Database health check
"""

import logging
from datetime import datetime
from typing import Optional, Union
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, Body, FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from table_orders.core.clock import to_epoch_ms
from table_orders.core.config import Settings, get_settings, setup_logging
from table_orders.core.exceptions import (
    DatabaseUnavailableError,
    InvalidInputError,
    OrderServiceError,
)
from table_orders.database import (
    create_engine_from_settings,
    create_session_maker,
    get_db,
    init_db,
    ping_db,
)
from table_orders.middleware import BodyLimitMiddleware
from table_orders.schemas import (
    EmptyResponse,
    ErrorResponse,
    HealthResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderItemResponse,
    OrderResponse,
    PingResponse,
    StatusUpdate,
    StatusUpdateResponse,
    TableStatusResponse,
)
from table_orders.services import OrderService, get_order_service

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Own the database engine for the lifetime of the process.

    The engine is created and checked before the first request. An
    unreachable database aborts startup: there is no fallback storage.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info("=" * 60)

    engine = create_engine_from_settings(settings)
    try:
        await ping_db(engine)
        await init_db(engine)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"❌ Database connection failed: {e}")
        await engine.dispose()
        raise DatabaseUnavailableError(str(e)) from e

    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    logger.info("✅ Connected to database")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    """Build the uniform failure envelope."""
    payload = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


# =============================================================================
# ROUTES
# =============================================================================

router = APIRouter()


@router.get("/ping", response_model=PingResponse, tags=["Health"])
async def ping() -> PingResponse:
    """Liveness probe."""
    return PingResponse()


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Database Health Check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Verify the database answers."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e.__class__.__name__}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(),
    )


@router.post(
    "/confirmCommande",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Record an order from a table",
)
async def confirm_commande(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderCreateResponse:
    """
    Record every dish of a table's order under one new order id.

    Missing or non-numeric quantities and prices are stored as 0.
    """
    result = await service.ingest(order_data.table_numero, order_data.items)
    return OrderCreateResponse(commande_id=result.order_id, inserted=result.inserted)


@router.get(
    "/commandes",
    response_model=list[OrderResponse],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="List orders for the kitchen display",
)
async def list_commandes(
    status: Optional[str] = Query(None, description="RECEIVED|PREPARING|COMPLETED|OUT_OF_STOCK"),
    since: Optional[str] = Query(None, description="Epoch milliseconds"),
    limit: Optional[str] = Query(None, description="Maximum number of dish lines scanned"),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """Orders newest-first, each with its dishes."""
    orders = await service.list_orders(status=status, since=since, limit=limit)
    return [
        OrderResponse(
            id=order.order_id,
            table=order.table,
            createdAt=to_epoch_ms(order.created_at),
            status=order.status,
            messageToClient=order.message_to_client,
            items=[
                OrderItemResponse(
                    dish=item.dish,
                    qty=item.qty,
                    unit=item.unit,
                    total=item.total,
                    accomp=item.accomp,
                    comment=item.comment,
                )
                for item in order.items
            ],
        )
        for order in orders
    ]


@router.patch(
    "/commandes/{order_id}/status",
    response_model=StatusUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Change the status of an order",
)
async def update_commande_status(
    order_id: str,
    payload: Optional[StatusUpdate] = Body(None),
    service: OrderService = Depends(get_order_service),
) -> StatusUpdateResponse:
    """
    Apply a status (and optional client message) to all dishes of an order.

    Omitting ``message`` clears the message previously shown to the table.
    """
    payload = payload or StatusUpdate()
    updated = await service.transition_status(order_id, payload.status, payload.message)
    return StatusUpdateResponse(updated=updated)


@router.get(
    "/order-status",
    response_model=Union[TableStatusResponse, EmptyResponse],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Latest order of a table",
)
async def order_status(
    table: Optional[str] = Query(None),
    service: OrderService = Depends(get_order_service),
) -> Union[TableStatusResponse, EmptyResponse]:
    """Polled by the menu to show the table its order status and message."""
    latest = await service.table_status(table)
    if latest is None:
        return EmptyResponse()
    return TableStatusResponse(
        commande_id=latest.order_id,
        status=latest.status,
        message=latest.message,
        createdAt=to_epoch_ms(latest.created_at),
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration to use (cached environment settings if omitted)
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Table-side order taking: ingestion, kitchen display, status polling.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # Last added runs first: CORS headers also go on 413 responses
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_bytes)
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if "*" in origins else origins,
        allow_origin_regex=".*" if "*" in origins else None,  # '*' reflects the caller's origin
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(router)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(OrderServiceError)
    async def order_service_exception_handler(request: Request, exc: OrderServiceError) -> JSONResponse:
        """Map service errors onto the failure envelope."""
        if exc.status_code < 500:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Unparsable bodies are reported like any other invalid input."""
        logger.warning(f"{request.method} {request.url.path} -> 400 {exc.errors()}")
        message = "Statut invalide" if request.method == "PATCH" else InvalidInputError.default_message
        return error_response(400, message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return error_response(
            500,
            "Erreur serveur",
            detail=str(exc) if settings.debug else None,
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "table_orders.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )
