import os
from zoneinfo import ZoneInfo
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database
    POSTGRES_CONNECTION_STRING: str = os.getenv("POSTGRES_CONNECTION_STRING", "")

    # Notifications
    API_TOKEN: str = os.getenv("API_TOKEN", "")
    NOTIFICATIONS_BASE_URL: str = os.getenv("NOTIFICATIONS_BASE_URL", "http://localhost:8001")
    NOTIFICATIONS_MAX_RETRIES: int = int(os.getenv("NOTIFICATIONS_MAX_RETRIES", "3"))

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
    ORDERS_CHANGES_TOPIC: str = os.getenv("ORDERS_CHANGES_TOPIC", "kitchen.orders.changes")
    KAFKA_GROUP_ID: str | None = os.getenv("KAFKA_GROUP_ID") or None

    # Console
    FEED_START_DELAY_SECONDS: float = float(os.getenv("FEED_START_DELAY_SECONDS", "1.0"))
    ALERT_DISPLAY_SECONDS: float = float(os.getenv("ALERT_DISPLAY_SECONDS", "10"))
    REFRESH_INTERVAL_SECONDS: float = float(os.getenv("REFRESH_INTERVAL_SECONDS", "0"))
    CONSOLE_TIMEZONE: str = os.getenv("CONSOLE_TIMEZONE", "Europe/Bucharest")
    RING_COMMAND: str = os.getenv("RING_COMMAND", "aplay -q -")
    DESKTOP_NOTIFY_COMMAND: str = os.getenv("DESKTOP_NOTIFY_COMMAND", "notify-send")
    SHUTDOWN_TIMEOUT_SECONDS: float = float(os.getenv("SHUTDOWN_TIMEOUT_SECONDS", "5"))

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for the application"""
        return self.POSTGRES_CONNECTION_STRING.replace("postgres://", "postgresql+asyncpg://")

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Sync URL for Alembic"""
        return self.POSTGRES_CONNECTION_STRING.replace("postgres://", "postgresql://")

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.CONSOLE_TIMEZONE)


settings = Settings()
