import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models so every table is registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, API_PREFIX, FIELD_ENCRYPTION_KEY, LOG_LEVEL
from .database import Base, engine
from .document_store import close_redis_client, get_redis_client
from .domain.appointments import router as appointments_router
from .domain.appointments.service import DatastoreError

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        await get_redis_client().ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - clinical details will be unavailable: {e}")

    if not FIELD_ENCRYPTION_KEY:
        logger.warning("⚠️ FIELD_ENCRYPTION_KEY not set - encrypted columns are returned as stored")

    yield
    logger.info("Application shutting down...")
    await close_redis_client()


app = FastAPI(title="Vet Clinic Appointments API", version="1.0.0", lifespan=lifespan)


def _field_name(loc) -> str:
    # ("body", "fecha") -> "fecha"; a missing body reports ("body",)
    parts = [str(p) for p in loc if p not in ("body", "path", "query")]
    return ".".join(parts) if parts else str(loc[-1]) if loc else "request"


def _error_message(error: dict) -> str:
    field = _field_name(error.get("loc", ()))
    if error.get("type") == "missing":
        return f"{field} is required"
    message = error.get("msg", "Invalid value")
    # Messages raised from validators come prefixed by pydantic
    return message.removeprefix("Value error, ")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert request validation errors to 400 responses carrying
    one human-readable message per failing field
    """
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": _error_message(error)}
        for error in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(DatastoreError)
async def datastore_exception_handler(request: Request, exc: DatastoreError):
    """Datastore failures surface as a generic message plus the underlying error text"""
    logger.error(f"{request.method} {request.url.path} - {exc.message}: {exc.error}")
    return JSONResponse(status_code=500, content={"message": exc.message, "error": exc.error})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# Log CORS configuration for debugging
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(appointments_router, prefix=API_PREFIX)


@app.get("/")
def root():
    return {"message": "Vet Clinic Appointments API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Check document store connectivity for monitoring"""
    try:
        redis_client = get_redis_client()

        start_time = time.time()
        await redis_client.ping()
        response_time = (time.time() - start_time) * 1000  # Convert to milliseconds

        info = await redis_client.info()

        return {
            "status": "healthy",
            "redis": {
                "connected": True,
                "response_time_ms": round(response_time, 2),
                "version": info.get("redis_version", "unknown"),
                "used_memory_human": info.get("used_memory_human", "unknown"),
            },
        }
    except Exception as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}
