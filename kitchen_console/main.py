# kitchen_console/main.py
import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request

from kitchen_console.application.kitchen_sessions import KitchenSessions
from kitchen_console.application.session import KitchenSession
from kitchen_console.config import settings
from kitchen_console.database import get_session_factory
from kitchen_console.domain.models import Staff
from kitchen_console.infrastructure.desktop import CommandDesktopNotifier, CommandRingPlayer
from kitchen_console.infrastructure.http_clients import HTTPNotificationsClient
from kitchen_console.infrastructure.kafka_change_feed import KafkaOrderChangeFeed
from kitchen_console.infrastructure.unit_of_work import UnitOfWork
from kitchen_console.presentation.api import router
from kitchen_console.presentation.schemas import SessionResponse

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def build_kitchen_session(staff: Staff) -> KitchenSession:
    return KitchenSession(
        unit_of_work=UnitOfWork(get_session_factory()),
        feed=KafkaOrderChangeFeed(
            settings.KAFKA_BOOTSTRAP_SERVERS,
            settings.ORDERS_CHANGES_TOPIC,
            group_id=settings.KAFKA_GROUP_ID
        ),
        notifications_service=HTTPNotificationsClient(
            settings.NOTIFICATIONS_BASE_URL,
            settings.API_TOKEN,
            max_retries=settings.NOTIFICATIONS_MAX_RETRIES
        ),
        ring_player=CommandRingPlayer(settings.RING_COMMAND),
        platform_notifier=CommandDesktopNotifier(settings.DESKTOP_NOTIFY_COMMAND),
        timezone=settings.timezone,
        feed_start_delay=settings.FEED_START_DELAY_SECONDS,
        alert_display_seconds=settings.ALERT_DISPLAY_SECONDS,
        refresh_interval=settings.REFRESH_INTERVAL_SECONDS,
        shutdown_timeout=settings.SHUTDOWN_TIMEOUT_SECONDS,
        staff=staff
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Kitchen sessions open on login; whatever is still open closes on shutdown"""
    kitchens = KitchenSessions(build_kitchen_session)
    app.state.kitchens = kitchens

    yield

    logger.info("Kitchen console shutting down...")
    await kitchens.close_all()


app = FastAPI(
    title="Kitchen Console",
    description="Order lifecycle and live updates for the kitchen",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health(request: Request):
    kitchens = request.app.state.kitchens
    sessions = [
        SessionResponse(
            username=kitchen.staff.username if kitchen.staff else None,
            feed=kitchen.feed_state.value,
            orders=len(kitchen.store)
        )
        for kitchen in kitchens
    ]
    return {"status": "healthy", "sessions": sessions}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
