from datetime import datetime
from typing import Any

from sqlalchemy import String, Integer, DateTime, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop_app.models.base import Base


class Workshop(Base):
    __tablename__ = "workshops"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    instructor_name: Mapped[str] = mapped_column(String(255), nullable=False)

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    zoom_join_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # [{"hours_before": 24, "type": "email", "subject": null}, ...]
    reminder_settings: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    registrations = relationship("Registration", back_populates="workshop")

    def __repr__(self) -> str:
        return f"<Workshop id={self.id} title={self.title!r} start_at={self.start_at}>"
