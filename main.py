# main.py (expense API with nightly photo sweep)
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler

from auth import auth_router
from config import get_settings
from database import Base, engine, SessionLocal, Photo
from errors import ExpenseTrackerError
from router import router, get_storage

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("expense-backend")


# Remove photo files left behind by failed uploads
def sweep_orphan_photos() -> int:
    with SessionLocal() as db:
        referenced = [path for (path,) in db.query(Photo.file_path).all()]
    return get_storage().sweep_orphans(referenced, settings.orphan_grace)


scheduler = BackgroundScheduler()
scheduler.add_job(sweep_orphan_photos, "cron", hour=0, minute=0)  # daily at midnight


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    if not settings.jwt_secret_key:
        logger.warning("JWT_SECRET_KEY is not set; login and token checks will fail")
    if settings.scheduler_enabled and not scheduler.running:
        scheduler.start()
        logger.info("Photo sweep scheduled")
    yield
    if scheduler.running:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Expense Tracker API", lifespan=lifespan)


@app.exception_handler(ExpenseTrackerError)
async def expense_tracker_error_handler(request: Request, exc: ExpenseTrackerError):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.detail,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(router, prefix="/api", tags=["expenses"])
app.include_router(auth_router, prefix="/auth", tags=["authentication"])


@app.get("/")
def home():
    return {"message": "Welcome to the Expense Tracker API"}


@app.get("/health")
def health():
    return {"ok": True}


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
