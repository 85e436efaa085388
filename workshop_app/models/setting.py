from typing import Any

from sqlalchemy import String, Boolean, Float, JSON
from sqlalchemy.orm import Mapped, mapped_column

from workshop_app.models.base import Base


class Setting(Base):
    """Singleton row (id="default") with email/reminder settings."""
    __tablename__ = "settings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default="default")
    reminder_hours: Mapped[Any] = mapped_column(JSON, nullable=True)
    # legacy single offset, superseded by reminder_hours
    reminder_hours_before: Mapped[float | None] = mapped_column(Float, nullable=True)
    email_subject_template: Mapped[str] = mapped_column(
        String(255), nullable=False, default="Reminder: {workshop_title} is coming up!"
    )
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False, default="LMS Platform")
    sender_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    send_confirmation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    send_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
