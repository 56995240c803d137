import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plantcare.api.v1.router import api_router
from plantcare.core.config import settings
from plantcare.core.logging import configure_logging
from plantcare.db.session import AsyncSessionLocal
from plantcare.services.notifications import NotificationDispatcher
from plantcare.services.push import FirebasePushChannel
from plantcare.tasks.notification_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    scheduler = None
    if settings.NOTIFICATION_SCHEDULER_ENABLED:
        # Missing Firebase credentials abort startup here
        dispatcher = NotificationDispatcher(
            FirebasePushChannel.from_settings(settings),
            send_delay=settings.NOTIFICATION_SEND_DELAY_MS / 1000,
        )
        scheduler = NotificationScheduler(
            AsyncSessionLocal,
            dispatcher,
            interval_seconds=settings.NOTIFICATION_INTERVAL_SECONDS,
        )
        app.state.notification_dispatcher = dispatcher
        app.state.notification_scheduler = scheduler
        scheduler.start()
    else:
        logger.info("lifespan: notification scheduler disabled by configuration")

    yield

    # Shutdown
    if scheduler is not None:
        scheduler.stop()
        await scheduler.wait_for_cycles()


app = FastAPI(
    title="Plant Care Scheduler API",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health", tags=["health"])
async def health():
    return {"status": "ok"}


app.include_router(api_router, prefix="/api/v1")
