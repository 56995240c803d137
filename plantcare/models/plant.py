from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plantcare.db.base import Base

FALLBACK_PLANT_NAME = "Your plant"


class Plant(Base):
    __tablename__ = "plants"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    pet_name: Mapped[Optional[str]] = mapped_column(String(100))
    common_name: Mapped[Optional[str]] = mapped_column(String(200))
    botanical_name: Mapped[Optional[str]] = mapped_column(String(200))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="plants")
    tasks: Mapped[list["PlantTask"]] = relationship(back_populates="plant", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return display_name(self.pet_name, self.common_name, self.botanical_name)


def display_name(pet_name: Optional[str], common_name: Optional[str], botanical_name: Optional[str]) -> str:
    return pet_name or common_name or botanical_name or FALLBACK_PLANT_NAME


class PlantTask(Base):
    __tablename__ = "plant_tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    plant_id: Mapped[int] = mapped_column(ForeignKey("plants.id", ondelete="CASCADE"), index=True)

    # Open domain on purpose: legacy rows carry keys outside TaskKind
    task_key: Mapped[str] = mapped_column(String(50), index=True)
    frequency_days: Mapped[int] = mapped_column(Integer)
    next_due_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    last_completed_on: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    plant: Mapped["Plant"] = relationship(back_populates="tasks")


class TaskTemplate(Base):
    __tablename__ = "task_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    label: Mapped[str] = mapped_column(String(100))
    default_frequency_days: Mapped[Optional[int]] = mapped_column(Integer)
