"""
FastAPI Application for the Returns Service.

Exposes the return request workflow over HTTP. Each endpoint is a thin
wrapper around one workflow operation; workflow errors are mapped to HTTP
status codes by a single exception handler.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from core.data import StoreError
from returns.data import (
    build_cosmos_repositories,
    build_memory_repositories,
    seed_repositories,
)
from returns.domain.models import ReturnRequest
from returns.errors import ErrorKind, ReturnsError
from returns.schemas import (
    CloseRequestDTO,
    ErrorModel,
    ProductDTO,
    ProductItemResponse,
    ProductResponse,
    ReturnRequestDTO,
    ReturnRequestResponse,
    TechnicalReviewDTO,
    TransactionResponse,
    UpdateItemStatusDTO,
    UpdateSerialNumberDTO,
)
from returns.services import ReturnsServices, build_services

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Reduce Azure SDK logging verbosity
logging.getLogger("azure.cosmos").setLevel(logging.WARNING)
logging.getLogger("azure.core").setLevel(logging.WARNING)
logging.getLogger("azure.identity").setLevel(logging.WARNING)

ERROR_RESPONSES = {
    400: {"model": ErrorModel},
    404: {"model": ErrorModel},
    409: {"model": ErrorModel},
    500: {"model": ErrorModel},
}


def create_services_from_settings() -> ReturnsServices:
    """Build repositories for the configured backend and wire the services."""
    backend = settings.storage_backend.lower()
    if backend == "cosmos":
        from returns.data.cosmos_store import ReturnsCosmosClient
        repositories = build_cosmos_repositories(ReturnsCosmosClient())
        logger.info("Using Cosmos DB repositories")
    elif backend == "memory":
        repositories = build_memory_repositories()
        if settings.seed_sample_data:
            from data.sample.returns_data import SAMPLE_DATASET
            seed_repositories(repositories, SAMPLE_DATASET)
        logger.info("Using in-memory repositories")
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    return build_services(
        repositories,
        policy_cache_ttl_seconds=settings.policy_cache_ttl_seconds,
        lease_seconds=settings.review_lease_seconds,
    )


def to_response(request: ReturnRequest) -> ReturnRequestResponse:
    return ReturnRequestResponse(**request.to_dict(include_related=True))


def create_app(services: Optional[ReturnsServices] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        services: Pre-built services (tests); built from settings at startup when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager - handles startup and shutdown."""
        logger.info("Starting Returns Service...")
        if getattr(app.state, "services", None) is None:
            app.state.services = create_services_from_settings()
        logger.info("Return request workflow ready")
        yield
        logger.info("Shutting down...")

    app = FastAPI(
        title="Returns Service",
        description="Return request workflow: eligibility, technical review, refunds and replacements",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.services = services

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ReturnsError)
    async def returns_error_handler(request: Request, exc: ReturnsError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "status_code": 500,
                "message": "A downstream operation failed",
                "kind": ErrorKind.DEPENDENCY_FAILURE.value,
            },
        )

    def get_services(request: Request) -> ReturnsServices:
        return request.app.state.services

    # =========================================================================
    # RETURN REQUEST ENDPOINTS
    # =========================================================================

    @app.post("/api/returns", response_model=ReturnRequestResponse, status_code=201, responses=ERROR_RESPONSES)
    def open_return_request(dto: ReturnRequestDTO, services: ReturnsServices = Depends(get_services)):
        """Open a return request for a delivered order line."""
        request = services.workflow.open_return_request(
            user_id=dto.user_id,
            order_id=dto.order_id,
            product_id=dto.product_id,
            return_policy=dto.return_policy,
            reason=dto.reason,
        )
        return to_response(request)

    @app.put("/api/returns/{request_id}/serial-number", response_model=ReturnRequestResponse, responses=ERROR_RESPONSES)
    def update_serial_number(
        request_id: str,
        dto: UpdateSerialNumberDTO,
        services: ReturnsServices = Depends(get_services),
    ):
        """Confirm the serial number of the unit being returned."""
        return to_response(services.workflow.update_user_serial_number(request_id, dto.serial_number))

    @app.put("/api/returns/{request_id}/technical-review", response_model=ReturnRequestResponse, responses=ERROR_RESPONSES)
    def technical_review(
        request_id: str,
        dto: TechnicalReviewDTO,
        services: ReturnsServices = Depends(get_services),
    ):
        """Record a technical review outcome and apply its side effects."""
        return to_response(services.workflow.technical_review(request_id, dto.process, dto.feedback))

    @app.put("/api/returns/{request_id}/close", response_model=ReturnRequestResponse, responses=ERROR_RESPONSES)
    def close_return_request(
        request_id: str,
        dto: CloseRequestDTO,
        x_user_id: int = Header(...),
        services: ReturnsServices = Depends(get_services),
    ):
        """Close a return request on behalf of the user in X-User-Id."""
        return to_response(services.workflow.close_return_request(x_user_id, request_id, dto.feedback))

    @app.get("/api/returns", response_model=List[ReturnRequestResponse])
    def get_all_return_requests(services: ReturnsServices = Depends(get_services)):
        """All return requests that are not closed."""
        return [to_response(r) for r in services.workflow.get_all_return_requests()]

    @app.get("/api/returns/user/{user_id}", response_model=List[ReturnRequestResponse])
    def get_user_return_requests(user_id: int, services: ReturnsServices = Depends(get_services)):
        """All return requests of a user, closed ones included."""
        return [to_response(r) for r in services.workflow.get_all_user_return_requests(user_id)]

    @app.get("/api/returns/{request_id}", response_model=ReturnRequestResponse, responses=ERROR_RESPONSES)
    def get_return_request(request_id: str, services: ReturnsServices = Depends(get_services)):
        return to_response(services.workflow.get_return_request(request_id))

    @app.get("/api/returns/{request_id}/transactions", response_model=List[TransactionResponse], responses=ERROR_RESPONSES)
    def get_transactions(request_id: str, services: ReturnsServices = Depends(get_services)):
        return [TransactionResponse(**t.to_dict()) for t in services.workflow.get_transactions(request_id)]

    # =========================================================================
    # INVENTORY ENDPOINTS
    # =========================================================================

    @app.get("/api/inventory/{product_id}/items", response_model=List[ProductItemResponse])
    def list_product_items(
        product_id: int,
        status: Optional[str] = None,
        services: ReturnsServices = Depends(get_services),
    ):
        """Units of a product, optionally filtered by status."""
        return [ProductItemResponse(**i.to_dict()) for i in services.inventory.list_items(product_id, status)]

    @app.put("/api/inventory/items/{serial_number}/status", response_model=ProductItemResponse, responses=ERROR_RESPONSES)
    def update_product_item_status(
        serial_number: str,
        dto: UpdateItemStatusDTO,
        services: ReturnsServices = Depends(get_services),
    ):
        item = services.inventory.set_item_status(serial_number, dto.status)
        return ProductItemResponse(**item.to_dict())

    # =========================================================================
    # PRODUCT ENDPOINTS
    # =========================================================================

    @app.get("/api/products", response_model=List[ProductResponse])
    def list_products(services: ReturnsServices = Depends(get_services)):
        return [ProductResponse(**p.to_dict()) for p in services.catalog.list_products()]

    @app.post("/api/products", response_model=ProductResponse, status_code=201, responses=ERROR_RESPONSES)
    def add_product(dto: ProductDTO, services: ReturnsServices = Depends(get_services)):
        """Add a product to the catalogue under the next free id."""
        product = services.catalog.add_product(dto.name, dto.price, dto.description)
        return ProductResponse(**product.to_dict())

    @app.put("/api/products/{product_id}", response_model=ProductResponse, responses=ERROR_RESPONSES)
    def update_product(
        product_id: int,
        dto: ProductDTO,
        services: ReturnsServices = Depends(get_services),
    ):
        product = services.catalog.update_product(product_id, dto.name, dto.price, dto.description)
        return ProductResponse(**product.to_dict())

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "storage_backend": settings.storage_backend,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
