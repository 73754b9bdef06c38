import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from . import models  # noqa: F401 - register tables with Base
from .database import Base, SessionLocal, engine
from .domain.admin.router import router as admin_router
from .domain.booking.router import router as booking_router
from .email_service import BookingNotifier
from .errors import BookingError, InvalidInput
from .services.maintenance import MaintenanceScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables ready")

    scheduler = None
    if config.MAINTENANCE_SCHEDULER_ENABLED:
        scheduler = MaintenanceScheduler(SessionLocal, BookingNotifier())
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    logger.info("Application shutting down...")
    if scheduler is not None:
        await scheduler.stop()


app = FastAPI(title="Salon Booking API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=exc.headers())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies (bad JSON, wrong types) are reported as 400 invalid input"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    error = InvalidInput()
    return JSONResponse(status_code=error.status_code, content=error.payload())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} - Unhandled error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "Erreur technique"})


# CORS Configuration
logger.info(f"CORS allowed origins: {config.ALLOWED_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(booking_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": "Salon Booking API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("salon_booking.main:app", host="0.0.0.0", port=config.PORT)
