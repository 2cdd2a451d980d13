import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .db import SessionLocal
from .errors import RoomcastError
from .migration_runner import run_migrations_once
from .realtime import Broadcaster
from .routers import messages, realtime, rooms

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["*"],
)
app.state.broadcaster = Broadcaster(SessionLocal, settings=settings)


@app.exception_handler(RoomcastError)
async def roomcast_error_handler(request: Request, exc: RoomcastError):
    return JSONResponse({"message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"message": message}, status_code=400)


@app.get("/")
async def health():
    return {
        "status": "ok",
        "message": f"{settings.app_name} backend running",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.on_event("startup")
async def ensure_schema() -> None:
    try:
        run_migrations_once()
    except Exception:  # pragma: no cover - startup failures should surface
        logger.exception("Database migration failed")
        raise


app.include_router(rooms.router)
app.include_router(messages.router)
app.include_router(realtime.router)
