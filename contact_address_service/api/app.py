"""FastAPI application factory and address routes."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import APIRouter, Body, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from contact_address_service import __version__
from contact_address_service.api.dependencies import get_address_service, get_current_user
from contact_address_service.api.errors import register_exception_handlers
from contact_address_service.api.middleware import CorrelationIdMiddleware, LoggingMiddleware, ErrorHandlingMiddleware
from contact_address_service.config.logging import setup_logging, LoggingService
from contact_address_service.models.schemas import (
    AddressResponse,
    ErrorResponse,
    HealthCheckResponse,
    UserRecord,
    WebResponse,
)
from contact_address_service.repositories.connection import redis_manager
from contact_address_service.services.address_service import AddressService

logging_service = LoggingService(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request data"},
    401: {"model": ErrorResponse, "description": "Missing or unknown token"},
    404: {"model": ErrorResponse, "description": "Contact or address not found"},
    503: {"model": ErrorResponse, "description": "Service unavailable"},
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logging_service.log_operation("info", "Contact Address Service starting up...", operation="service_startup")

    try:
        await redis_manager.initialize()
    except RedisError as e:
        # Requests retry the connection lazily; /health reports the outage meanwhile.
        logging_service.log_error(
            "Failed to establish Redis connection during startup",
            e,
            operation="redis_startup"
        )

    yield

    logging_service.log_operation("info", "Contact Address Service shutting down...", operation="service_shutdown")
    await redis_manager.close()


router = APIRouter(prefix="/api/contacts/{contact_id}/addresses", tags=["addresses"], responses=ERROR_RESPONSES)


@router.post("", response_model=WebResponse[AddressResponse])
async def create_address(
    contact_id: int,
    body: Dict[str, Any] = Body(...),
    user: UserRecord = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Create an address under one of the caller's contacts."""
    address = await service.create(user, {**body, "contact_id": contact_id})
    return WebResponse(data=address)


@router.get("", response_model=WebResponse[List[AddressResponse]])
async def list_addresses(
    contact_id: int,
    user: UserRecord = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    addresses = await service.list(user, {"contact_id": contact_id})
    return WebResponse(data=addresses)


@router.get("/{address_id}", response_model=WebResponse[AddressResponse])
async def get_address(
    contact_id: int,
    address_id: int,
    user: UserRecord = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    address = await service.get(user, {"contact_id": contact_id, "address_id": address_id})
    return WebResponse(data=address)


@router.put("/{address_id}", response_model=WebResponse[AddressResponse])
async def update_address(
    contact_id: int,
    address_id: int,
    body: Dict[str, Any] = Body(...),
    user: UserRecord = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Replace every field of an address; partial bodies are rejected."""
    address = await service.update(user, {**body, "contact_id": contact_id, "id": address_id})
    return WebResponse(data=address)


@router.delete("/{address_id}", response_model=WebResponse[AddressResponse])
async def remove_address(
    contact_id: int,
    address_id: int,
    user: UserRecord = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Delete an address and return what it held."""
    address = await service.remove(user, {"contact_id": contact_id, "address_id": address_id})
    return WebResponse(data=address)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title="Contact Address Service",
        description="Addresses of contacts owned by authenticated users",
        version=__version__,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Added first so it sits innermost, right around the routes.
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check():
        """Health check endpoint with Redis connectivity check."""
        redis_connected = await redis_manager.health_check()

        if redis_connected:
            logging_service.log_operation("debug", "Health check passed", operation="health_check")
        else:
            logging_service.log_operation(
                "warning",
                "Health check shows degraded status - Redis unavailable",
                operation="health_check"
            )

        return HealthCheckResponse(
            status="healthy" if redis_connected else "degraded",
            redis_connected=redis_connected
        )

    app.include_router(router)
    return app


app = create_app()
