from types import SimpleNamespace

import pytest

from tests.conftest import T0
from workshop_app.schemas import GlobalReminderSettings, WorkshopView, normalize_offsets


def _row(**overrides):
    values = dict(
        reminder_hours=None,
        reminder_hours_before=None,
        email_subject_template=None,
        sender_name=None,
        sender_email=None,
        send_confirmation=None,
        send_reminders=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestNormalizeOffsets:
    def test_list_wins(self):
        assert normalize_offsets([24, 1], 6) == [24.0, 1.0]

    def test_legacy_scalar_when_list_empty(self):
        assert normalize_offsets([], 6) == [6.0]

    def test_bare_number_in_list_field(self):
        assert normalize_offsets(12, None) == [12.0]

    def test_nothing_stored(self):
        assert normalize_offsets(None, None) == [24.0]

    @pytest.mark.parametrize("bad", [["24"], [-1], [True], "24,1"])
    def test_malformed_raises(self, bad):
        with pytest.raises(ValueError):
            normalize_offsets(bad, None)


class TestGlobalReminderSettings:
    def test_defaults(self):
        s = GlobalReminderSettings.defaults()
        assert s.reminder_offsets == [24.0, 1.0]
        assert s.send_reminders is True

    def test_from_row_legacy_shape(self):
        s = GlobalReminderSettings.from_row(_row(reminder_hours_before=48))
        assert s.reminder_offsets == [48.0]

    def test_from_row_malformed_falls_back(self):
        s = GlobalReminderSettings.from_row(_row(reminder_hours=["soon"], sender_name="Studio"))
        assert s == GlobalReminderSettings.defaults()

    def test_from_row_keeps_toggles(self):
        s = GlobalReminderSettings.from_row(_row(reminder_hours=[2], send_reminders=False))
        assert s.reminder_offsets == [2.0]
        assert s.send_reminders is False


class TestWorkshopView:
    def test_malformed_rules_dropped(self):
        view = WorkshopView(
            id="w1",
            title="t",
            instructor_name="i",
            start_at=T0,
            reminder_settings=[{"hours_before": "later"}, {"hours_before": 3}, {"type": "email"}],
        )
        assert [r.hours_before for r in view.reminder_settings] == [3.0]

    def test_naive_start_becomes_utc(self):
        view = WorkshopView(id="w1", title="t", instructor_name="i", start_at=T0.replace(tzinfo=None))
        assert view.start_at == T0
