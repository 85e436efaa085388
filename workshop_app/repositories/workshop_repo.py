from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.models.workshop import Workshop


class WorkshopRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def list_upcoming(self, now: datetime) -> Sequence[Workshop]:
        """Workshops that have not started yet, soonest first."""
        res = await self.s.execute(
            select(Workshop).where(Workshop.start_at > now).order_by(Workshop.start_at, Workshop.id)
        )
        return res.scalars().all()

    async def get_by_id(self, workshop_id: str) -> Optional[Workshop]:
        return await self.s.get(Workshop, workshop_id)
