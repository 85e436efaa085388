# workshop_app/models/user.py
from __future__ import annotations

from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship

from workshop_app.models.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, index=True, unique=True)
    role = Column(String(16), nullable=False, default="student")  # student | admin

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    registrations = relationship(
        "Registration",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"
