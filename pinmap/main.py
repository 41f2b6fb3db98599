import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from pinmap.config import settings
from pinmap.database import Base, engine
from pinmap.models.location_update import LocationUpdate  # noqa: F401  (register table)
from pinmap.models.user import User  # noqa: F401
from pinmap.routers import auth, health, location, users
from pinmap.utils.db_migrations import run_migrations
from pinmap.utils.response import create_response, handle_exception
from seed import run_seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

# Auto create tables
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# CORS for the map SPA
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return handle_exception(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Validation failed")
    if location:
        message = f"{location}: {message}"
    return create_response(message, None, status.HTTP_400_BAD_REQUEST)


# Seed default admin on startup
@app.on_event("startup")
async def startup_event():
    run_seed()
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; session tokens cannot be issued.")


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(location.router)
app.include_router(health.router)


@app.get("/")
def home():
    try:
        return create_response(
            message="Pinmap API running",
            data={"service": "pinmap"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
