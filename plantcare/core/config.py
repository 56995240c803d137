from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    DATABASE_URL: str

    # Auth (tokens are issued by the account service; we only verify them)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Firebase Cloud Messaging
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_PRIVATE_KEY_ID: str = ""
    FIREBASE_PRIVATE_KEY: str = ""
    FIREBASE_CLIENT_EMAIL: str = ""
    FIREBASE_CLIENT_ID: str = ""
    FRONTEND_URL: str = "http://localhost:3000"

    # Notification scheduler
    NOTIFICATION_SCHEDULER_ENABLED: bool = True
    NOTIFICATION_INTERVAL_SECONDS: int = 60
    NOTIFICATION_SEND_DELAY_MS: int = 100
    DEFAULT_TIMEZONE: str = "UTC"

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def firebase_private_key(self) -> str:
        # .env files carry the PEM with literal "\n" sequences
        return self.FIREBASE_PRIVATE_KEY.replace("\\n", "\n")


settings = Settings()
