from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.models.registration import Registration

PAYMENT_COMPLETED = "completed"


class RegistrationRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def list_completed_by_workshop(self, workshop_id: str) -> Sequence[Registration]:
        res = await self.s.execute(
            select(Registration)
            .where(
                Registration.workshop_id == workshop_id,
                Registration.payment_status == PAYMENT_COMPLETED,
            )
            .order_by(Registration.registered_at, Registration.id)
        )
        return res.scalars().all()
