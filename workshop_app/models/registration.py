from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop_app.models.base import Base


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("user_id", "workshop_id"),
        Index("ix_registrations_workshop_status", "workshop_id", "payment_status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    workshop_id: Mapped[str] = mapped_column(ForeignKey("workshops.id"), nullable=False)

    # pending / completed / failed
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # paise

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user = relationship("User", back_populates="registrations")
    workshop = relationship("Workshop", back_populates="registrations")

    def __repr__(self) -> str:
        return (
            f"<Registration id={self.id} user={self.user_id} "
            f"workshop={self.workshop_id} status={self.payment_status}>"
        )
