"""
Portfolio site API.

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio.api.errors import FailureResponse, failure_status, store_error_status
from portfolio.api.middleware.rate_limit import RateLimitMiddleware
from portfolio.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from portfolio.api.v1 import router as api_v1_router
from portfolio.config import get_settings
from portfolio.database import close_db, init_db
from portfolio.kernel.store.errors import StoreError
from portfolio.logging_config import configure_logging, get_logger
from portfolio.schemas.common import ErrorResponse, FieldErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Personal portfolio with a management surface.

    - **Public**: published projects and articles, article comments (with a live feed)
    - **Auth**: sign-up, sign-in, sign-out, token refresh
    - **Admin**: project and article CRUD, comment moderation
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# Last added is outermost; CORS wraps everything, including 429s
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_headers(request: Request) -> dict:
    headers = {}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers[REQUEST_ID_HEADER] = req_id
    return headers


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = {**(exc.headers or {}), **_error_headers(request)}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(FailureResponse)
async def failure_handler(request: Request, exc: FailureResponse):
    """Core failures: validation 422, not-found 404, auth 401/409, store 403/503/500."""
    failure = exc.failure
    body = ErrorResponse(
        detail=failure.message,
        code=failure.reason or failure.kind.value,
        errors=[FieldErrorResponse(field=e.field, message=e.message) for e in failure.errors],
    )
    return JSONResponse(
        status_code=failure_status(failure),
        content=body.model_dump(),
        headers=_error_headers(request),
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Store errors raised outside a core operation, e.g. while restoring a session."""
    logger.warning("Store error: %s", exc.code, extra={"table": exc.table})
    return JSONResponse(
        status_code=store_error_status(exc),
        content={"detail": exc.message, "code": exc.code},
        headers=_error_headers(request),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
        headers=_error_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    return HealthResponse(status="ok", version=settings.version)


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {"v1": settings.api_v1_prefix},
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "portfolio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
