"""FastAPI application entry point."""
import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from gatepass.config import settings
from gatepass.database import Base, engine
from gatepass.exceptions import (
    AuthorizationError,
    GatePassError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)

# Import routers
from gatepass.routers import gate_passes, principals

# Import all models so Base.metadata knows about them
from gatepass.models.principal import Principal          # noqa: F401
from gatepass.models.gate_pass import GatePassRequest    # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Campus Gate Pass",
    description="Hostel exit passes — students request leave, wardens approve or reject",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(principals.router, prefix="/api/principals", tags=["Principals"])
app.include_router(gate_passes.router, prefix="/api/gate-passes", tags=["GatePasses"])

# Uploaded profile images, addressed by settings.BLOB_BASE_URL
app.mount("/blobs", StaticFiles(directory=settings.BLOB_ROOT, check_dir=False), name="blobs")


@app.exception_handler(GatePassError)
async def gate_pass_error_handler(request: Request, exc: GatePassError) -> JSONResponse:
    """Map service errors onto HTTP responses."""
    body = {"code": exc.code, "detail": exc.message}
    if isinstance(exc, ValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
        body["violations"] = exc.violations
    elif isinstance(exc, AuthorizationError):
        code = status.HTTP_401_UNAUTHORIZED if exc.principal_id is None else status.HTTP_403_FORBIDDEN
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidStateError):
        code = status.HTTP_409_CONFLICT
        body["current_status"] = exc.current_status
    elif isinstance(exc, StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
        code = status.HTTP_503_SERVICE_UNAVAILABLE
        body["detail"] = "The service is temporarily unavailable. Please retry."
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies in the same shape as service validation errors."""
    violations = {}
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        violations[".".join(loc) or "body"] = error["msg"]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": ValidationError.code,
            "detail": "Invalid fields: " + ", ".join(sorted(violations)),
            "violations": violations,
        },
    )


@app.on_event("startup")
def on_startup():
    """Create the blob directory, and database tables for SQLite dev mode."""
    Path(settings.BLOB_ROOT).mkdir(parents=True, exist_ok=True)
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
