import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from tests.conftest import T0
from workshop_app.models import SentReminder, Setting
from workshop_app.repositories.registration_repo import RegistrationRepo
from workshop_app.repositories.reminder_repo import SentReminderRepo, legacy_reminder_key, reminder_key
from workshop_app.repositories.setting_repo import SettingRepo
from workshop_app.repositories.workshop_repo import WorkshopRepo


class TestReminderKey:
    def test_plain_ids_keep_original_format(self):
        assert reminder_key("w1", "u1", "24h_default") == "w1_u1_24h_default"
        assert reminder_key("w1", "u1", "default") == "w1_u1_default"
        assert legacy_reminder_key("w1", "u1") == "w1_u1_reminder"

    def test_delimiter_inside_ids_cannot_collide(self):
        assert reminder_key("a_b", "c", "default") != reminder_key("a", "b_c", "default")
        assert reminder_key("a_b", "c", "default") == "a%5Fb_c_default"

    def test_escape_is_not_ambiguous(self):
        assert reminder_key("a%5Fb", "c", "x") != reminder_key("a_b", "c", "x")

    def test_identity_is_appended_unescaped(self):
        # markers already stored as w1_u1_24h_default must keep matching
        assert reminder_key("w1", "u1", "1.5h_default") == "w1_u1_1.5h_default"
        assert reminder_key("w_1", "u1", "24h_default") == "w%5F1_u1_24h_default"


class TestSentReminderRepo:
    @pytest.mark.asyncio
    async def test_mark_then_has_sent(self, db_session):
        repo = SentReminderRepo(db_session)
        assert not await repo.has_sent("w1_u1_default")

        assert await repo.mark_sent("w1_u1_default", T0) is True
        assert await repo.has_sent("w1_u1_default")

    @pytest.mark.asyncio
    async def test_second_mark_reports_already_exists(self, db_session):
        repo = SentReminderRepo(db_session)
        assert await repo.mark_sent("k", T0) is True
        assert await repo.mark_sent("k", T0 + timedelta(minutes=15)) is False

        count = await db_session.scalar(select(func.count()).select_from(SentReminder))
        assert count == 1

    @pytest.mark.asyncio
    async def test_concurrent_marks_single_winner(self, session_factory):
        async with session_factory() as s1, session_factory() as s2:
            results = await asyncio.gather(
                SentReminderRepo(s1).mark_sent("w1_u1_1h_default", T0),
                SentReminderRepo(s2).mark_sent("w1_u1_1h_default", T0),
            )
        assert sorted(results) == [False, True]


class TestSettingRepo:
    @pytest.mark.asyncio
    async def test_lazily_created_with_defaults(self, db_session):
        repo = SettingRepo(db_session)
        s = await repo.get_default()
        assert s.reminder_offsets == [24.0, 1.0]

        rows = (await db_session.execute(select(Setting))).scalars().all()
        assert len(rows) == 1
        assert rows[0].id == "default"

    @pytest.mark.asyncio
    async def test_second_access_reuses_row(self, db_session):
        repo = SettingRepo(db_session)
        await repo.get_default()
        await repo.get_default()
        count = await db_session.scalar(select(func.count()).select_from(Setting))
        assert count == 1

    @pytest.mark.asyncio
    async def test_existing_legacy_row_normalized(self, db_session, seed):
        await seed.settings(reminder_hours=None, reminder_hours_before=6)
        s = await SettingRepo(db_session).get_default()
        assert s.reminder_offsets == [6.0]


class TestReadRepos:
    @pytest.mark.asyncio
    async def test_list_upcoming_excludes_started(self, db_session, seed):
        await seed.workshop("past", T0 - timedelta(hours=1))
        await seed.workshop("now", T0)
        await seed.workshop("later", T0 + timedelta(hours=3))
        await seed.workshop("soon", T0 + timedelta(hours=1))

        rows = await WorkshopRepo(db_session).list_upcoming(T0)
        assert [w.id for w in rows] == ["soon", "later"]

    @pytest.mark.asyncio
    async def test_only_completed_registrations(self, db_session, seed):
        await seed.workshop("w1", T0 + timedelta(hours=3))
        for uid, status in [("u1", "completed"), ("u2", "pending"), ("u3", "failed"), ("u4", "completed")]:
            await seed.user(uid)
            await seed.registration("w1", uid, status)

        regs = await RegistrationRepo(db_session).list_completed_by_workshop("w1")
        assert sorted(r.user_id for r in regs) == ["u1", "u4"]
