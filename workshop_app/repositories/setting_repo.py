import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_app.config import settings as app_settings
from workshop_app.models.setting import Setting
from workshop_app.schemas import GlobalReminderSettings

logger = logging.getLogger(__name__)

DEFAULT_ID = "default"


class SettingRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def _get_row(self) -> Setting | None:
        q = await self.s.execute(select(Setting).where(Setting.id == DEFAULT_ID))
        return q.scalar_one_or_none()

    async def get_or_create_row(self) -> Setting:
        row = await self._get_row()
        if row:
            return row
        row = Setting(
            id=DEFAULT_ID,
            reminder_hours=list(app_settings.REMINDERS_HOURS_BEFORE),
            sender_name=app_settings.SENDER_NAME,
            sender_email=app_settings.SENDER_EMAIL,
        )
        self.s.add(row)
        try:
            await self.s.commit()
        except IntegrityError:
            # another process created it first
            await self.s.rollback()
            return await self._get_row()
        logger.info("created default settings row, reminder_hours=%s", row.reminder_hours)
        return row

    async def get_default(self) -> GlobalReminderSettings:
        """Singleton settings, created on first access and normalized."""
        row = await self.get_or_create_row()
        return GlobalReminderSettings.from_row(row)
