import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from servio.api.routes import availability as availability_router
from servio.api.routes import bookings as bookings_router
from servio.core.config import LOG_LEVEL, BookingConfig
from servio.core.exceptions import BookingEngineError
from servio.db.base import Database

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app(
    database: Optional[Database] = None,
    config: Optional[BookingConfig] = None,
    today: Callable[[], date] = date.today,
) -> FastAPI:
    """
    Build the API around an explicitly created database handle.
    The handle is created here when not given and disposed on shutdown.
    """
    owns_database = database is None
    if database is None:
        database = Database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        database.create_all()
        logger.info("Database tables ready")
        yield
        logger.info("Application shutting down...")
        if owns_database:
            database.dispose()

    app = FastAPI(title="Servio Booking API", version="1.0.0", lifespan=lifespan)
    app.state.database = database
    app.state.config = config or BookingConfig()
    app.state.today = today

    @app.exception_handler(BookingEngineError)
    async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/")
    def root():
        return {"message": "Servio Booking API running"}

    app.include_router(availability_router.router)
    app.include_router(bookings_router.router)
    return app
