import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from mycoris_api.core.config import settings
from mycoris_api.core.database import Base, engine, get_db
from mycoris_api.core.errors import AuthenticationError, MycorisError
from mycoris_api.api.routes import auth, subscriptions

# Import models so Base.metadata knows every table before create_all()
from mycoris_api.models import user as _user_models  # noqa: F401
from mycoris_api.models import subscription as _subscription_models  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create tables if they don't exist.
    In production, use migrations instead of create_all.
    """
    logger.info("Startup: creating database tables")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Startup: database unreachable: {e}")
        raise
    yield
    engine.dispose()
    logger.info("Shutdown: database pool closed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Insurance subscription platform API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


def _envelope(status_code: int, message: str, headers: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


@app.exception_handler(MycorisError)
async def mycoris_error_handler(request: Request, exc: MycorisError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return _envelope(exc.status_code, exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Requête invalide"
    return _envelope(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _envelope(exc.status_code, "Endpoint not found", requestedUrl=request.url.path)
    return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def _internal_error(exc: Exception, status_code: int, message: str) -> JSONResponse:
    # Backend error text is only shown to developers
    if settings.is_development:
        return _envelope(status_code, message,
                         error={"type": type(exc).__name__, "message": str(exc)})
    return _envelope(status_code, message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        return _internal_error(exc, status.HTTP_503_SERVICE_UNAVAILABLE,
                               "Base de données indisponible")
    return _internal_error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "Erreur serveur")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _internal_error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(subscriptions.router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    """API information"""
    return {
        "status": "running",
        "message": "API MyCorisLife OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health")
async def health():
    """Liveness check used by deployment tools"""
    return {"ok": True, "ts": int(time.time() * 1000)}


@app.get("/test-db")
def test_db(db: Session = Depends(get_db)):
    """Check that the database answers"""
    try:
        db_time = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        return _internal_error(e, status.HTTP_503_SERVICE_UNAVAILABLE, "Database unreachable")
    return {"status": "success", "dbTime": str(db_time)}
