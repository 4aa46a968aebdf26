import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from valuation.errors import CatalogLoadError

from app.config import settings
from app.db.db import init_db
from app.routes import catalog_router, profile_router, valuation_router
from app.services.errors import ServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler - runs on startup and shutdown"""
    # Startup
    init_db()
    yield
    # Shutdown


app = FastAPI(
    title="CardVerdict API",
    version="0.1.0",
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS middleware - MUST be added first before other middlewares
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


def _error_response(status_code: int, code: str, message: str, details: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details}},
    )


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
    """Handle validation errors with HTTP 400 to maintain backward compatibility with API contract."""
    return _error_response(400, "VALIDATION_ERROR", "Invalid request payload.", {"errors": jsonable_encoder(exc.errors())})


@app.exception_handler(CatalogLoadError)
async def catalog_exception_handler(request: Request, exc: CatalogLoadError):
    logger.error("Card catalog unavailable: %s", exc)
    return _error_response(503, "CATALOG_UNAVAILABLE", "Card catalog could not be loaded.", {})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):  # type: ignore[override]
    """Handle general exceptions - log and return 500 error"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "INTERNAL_SERVER_ERROR", "Internal server error.", {})


# Register routers
app.include_router(catalog_router)
app.include_router(valuation_router)
app.include_router(profile_router)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
