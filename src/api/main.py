import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from ..core.logging import setup_logging, set_request_id, clear_request_id
from ..core.config import settings
from ..core.errors import (
    ChainhooksApiError,
    InvoiceNotFoundError,
    InvoiceValidationError,
    StoreUnavailableError,
)
from ..services.chainhook.reconciler import EventReconciler
from ..services.storage import create_invoice_store
from .routers import chainhooks, contract, health, invoice, webhook

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Explicitly constructed store, shared by the invoice routes and the reconciler
    store = create_invoice_store(settings)
    store.open()
    app.state.store = store
    app.state.reconciler = EventReconciler(store)
    logger.info("Invoice relay started", store_backend=settings.store_backend, port=settings.port)
    try:
        yield
    finally:
        store.close()
        logger.info("Invoice relay stopped")


app = FastAPI(title="Chainhook Invoice Relay", lifespan=lifespan)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id()
    response.headers["X-Request-ID"] = request_id
    return response


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    logger.error(f"Request body: {await request.body()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(), "body": str(await request.body())},
    )


@app.exception_handler(InvoiceValidationError)
async def invoice_validation_handler(request: Request, exc: InvoiceValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


@app.exception_handler(InvoiceNotFoundError)
async def invoice_not_found_handler(request: Request, exc: InvoiceNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Invoice not found"})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Invoice store unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Invoice store unavailable"},
    )


@app.exception_handler(ChainhooksApiError)
async def upstream_api_handler(request: Request, exc: ChainhooksApiError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": str(exc), "upstream_status": exc.status_code},
    )


# Configure CORS to allow dashboard access
# CORS_ORIGINS can be set in .env as comma-separated list
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Chainhooks Backend is running!"


app.include_router(health.router)
app.include_router(invoice.router)
app.include_router(webhook.router)
app.include_router(chainhooks.router)
app.include_router(contract.router)


def run():
    """Console entry point: serve the API with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run("src.api.main:app", host="0.0.0.0", port=settings.port)
