from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Integer, String
from .base import Base

class SentReminder(Base):
    __tablename__ = "sent_reminders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)  # workshop_user_rule
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
