from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plantcare.db.base import Base

PERSONAS = ("PRIMARY", "SECONDARY", "TERTIARY")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[str] = mapped_column(Enum("user", "admin", name="user_role"), default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    settings: Mapped[Optional["UserSettings"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    plants: Mapped[list["Plant"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    notification_logs: Mapped[list["NotificationLog"]] = relationship(back_populates="user")


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)

    # Push registration
    fcm_token: Mapped[Optional[str]] = mapped_column(String(512), index=True)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    # Tasks already overdue before this moment never trigger a push
    notifications_enabled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    persona: Mapped[str] = mapped_column(Enum(*PERSONAS, name="persona_enum"), default="PRIMARY")
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship(back_populates="settings")
