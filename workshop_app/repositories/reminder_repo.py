from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import exists, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.models.reminder import SentReminder

KEY_SEPARATOR = "_"
# written by the single-reminder release, one marker per (workshop, user)
LEGACY_KEY_SUFFIX = "reminder"


def _escape_key_part(part: Any) -> str:
    # "%" first, otherwise the escapes themselves get escaped
    return str(part).replace("%", "%25").replace(KEY_SEPARATOR, "%5F")


def reminder_key(workshop_id: Any, user_id: Any, identity: str) -> str:
    """
    Dedup key of one reminder obligation: ``{workshop}_{user}_{identity}``.

    Both ids are escaped so an id containing ``_`` cannot collide with another
    (workshop, user) pair. The identity is generated internally and is the last
    segment, so it goes in as is (``24h_default`` stays ``24h_default``). Ids
    without ``_``/``%`` give the same keys the platform has always written.
    """
    return KEY_SEPARATOR.join(
        (_escape_key_part(workshop_id), _escape_key_part(user_id), identity)
    )


def legacy_reminder_key(workshop_id: Any, user_id: Any) -> str:
    return reminder_key(workshop_id, user_id, LEGACY_KEY_SUFFIX)


class SentReminderRepo:
    """Append-only set of reminder markers, unique on ``key``."""

    def __init__(self, s: AsyncSession):
        self.s = s

    async def has_sent(self, key: str) -> bool:
        q = await self.s.execute(select(exists().where(SentReminder.key == key)))
        return bool(q.scalar())

    async def mark_sent(self, key: str, sent_at: datetime) -> bool:
        """
        Record a marker. True for the caller that created it, False when it
        already existed. The unique index decides, so racing callers cannot
        both win.
        """
        values = {"key": key, "sent_at": sent_at}
        dialect = self.s.bind.dialect.name

        if dialect == "postgresql":
            stmt = pg_insert(SentReminder).values(**values).on_conflict_do_nothing(index_elements=["key"])
        elif dialect == "sqlite":
            stmt = sqlite_insert(SentReminder).values(**values).on_conflict_do_nothing(index_elements=["key"])
        else:
            try:
                await self.s.execute(insert(SentReminder).values(**values))
                await self.s.commit()
            except IntegrityError:
                await self.s.rollback()
                return False
            return True

        res = await self.s.execute(stmt)
        await self.s.commit()
        return res.rowcount == 1


__all__ = ["SentReminderRepo", "reminder_key", "legacy_reminder_key"]
