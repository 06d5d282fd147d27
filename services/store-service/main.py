"""Main application entry point."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from pymongo.errors import PyMongoError

from config import API_VERSION, PORT
from database import MongoStore, init_db
from errors import StoreServiceError
from monitoring import init_profiling
from logging_config import setup_logging
from routers import products, orders

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting application...")

    store = MongoStore()
    db = store.connect()
    init_db(db)
    app.state.store = store
    app.state.db = db

    # Initialize profiling
    init_profiling()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    store.close()
    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Store Service",
    version=API_VERSION,
    docs_url="/api-docs",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instrument FastAPI and pymongo
FastAPIInstrumentor.instrument_app(app)
PymongoInstrumentor().instrument()


@app.exception_handler(StoreServiceError)
async def store_service_error_handler(request: Request, exc: StoreServiceError):
    """Render domain errors as ``{"message": ...}`` bodies."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are client errors."""
    logger.warning("Request validation failed", extra={"path": request.url.path})
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(PyMongoError)
async def store_failure_handler(request: Request, exc: PyMongoError):
    """Store failures surface immediately as 500 with the driver's message."""
    logger.error("Database operation failed", extra={
        "path": request.url.path,
        "method": request.method,
        "error": str(exc)
    })
    return JSONResponse(status_code=500, content={"message": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything else is still answered with a JSON ``message``."""
    logger.exception("Unhandled error", extra={
        "path": request.url.path,
        "method": request.method
    })
    return JSONResponse(status_code=500, content={"message": str(exc)})


# Health check endpoint
@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}

# Include routers
app.include_router(products.router)
app.include_router(orders.router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
