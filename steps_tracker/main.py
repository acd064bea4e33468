import logging
from datetime import datetime, timezone

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from steps_tracker.config import settings
from steps_tracker.database import Base, engine
from steps_tracker.routers import steps
from steps_tracker.utils.db_migrations import ensure_daily_steps_unique_index
from steps_tracker.utils.response import create_response, handle_exception

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event():
    Base.metadata.create_all(bind=engine)
    ensure_daily_steps_unique_index(engine)
    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)


@app.on_event("shutdown")
def shutdown_event():
    engine.dispose()
    logger.info("Database engine disposed")


app.include_router(steps.router)


@app.get("/")
def home():
    try:
        return create_response(
            message="Daily Steps API running",
            data={"service": "daily-steps-tracker", "version": settings.VERSION},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@app.get("/healthcheck")
def healthcheck():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
