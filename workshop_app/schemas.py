"""
Typed views over stored rows.

Rows are validated once when loaded, so the reminder pipeline never has to
care about legacy storage shapes or about ORM instances being expired by a
rollback halfway through a tick.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from workshop_app.utils.dates import as_utc

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT_TEMPLATE = "Reminder: {workshop_title} is coming up!"
DEFAULT_SENDER_NAME = "LMS Platform"
DEFAULT_REMINDER_OFFSETS: List[float] = [24.0, 1.0]
# stored row has neither the list nor the scalar
LEGACY_FALLBACK_OFFSET = 24.0


def _as_offset(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"reminder offset must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"reminder offset must not be negative, got {value!r}")
    return float(value)


def normalize_offsets(reminder_hours: Any, reminder_hours_before: Any) -> List[float]:
    """
    Collapse the stored shapes into one list of offsets (hours before start):

      - non-empty ``reminder_hours`` list  -> that list
      - bare number in ``reminder_hours``  -> [number]
      - legacy ``reminder_hours_before``   -> [scalar]
      - nothing stored                     -> [24]

    Raises ValueError on anything that is not a non-negative number.
    """
    if isinstance(reminder_hours, (list, tuple)) and reminder_hours:
        return [_as_offset(h) for h in reminder_hours]
    if reminder_hours is not None and not isinstance(reminder_hours, (list, tuple)):
        return [_as_offset(reminder_hours)]
    if reminder_hours_before is not None:
        return [_as_offset(reminder_hours_before)]
    return [LEGACY_FALLBACK_OFFSET]


class GlobalReminderSettings(BaseModel):
    reminder_offsets: List[float] = Field(default_factory=lambda: list(DEFAULT_REMINDER_OFFSETS), min_length=1)
    email_subject_template: str = DEFAULT_SUBJECT_TEMPLATE
    sender_name: str = DEFAULT_SENDER_NAME
    sender_email: str = ""
    send_confirmation: bool = True
    send_reminders: bool = True

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict) and "reminder_offsets" not in data and (
            "reminder_hours" in data or "reminder_hours_before" in data
        ):
            data = dict(data)
            data["reminder_offsets"] = normalize_offsets(
                data.pop("reminder_hours", None),
                data.pop("reminder_hours_before", None),
            )
        return data

    @classmethod
    def defaults(cls) -> "GlobalReminderSettings":
        return cls()

    @classmethod
    def from_row(cls, row: Any) -> "GlobalReminderSettings":
        """Validate a stored settings row; malformed rows fall back to defaults."""
        raw = {
            "reminder_hours": row.reminder_hours,
            "reminder_hours_before": row.reminder_hours_before,
            "email_subject_template": row.email_subject_template or DEFAULT_SUBJECT_TEMPLATE,
            "sender_name": row.sender_name or DEFAULT_SENDER_NAME,
            "sender_email": row.sender_email or "",
            "send_confirmation": True if row.send_confirmation is None else row.send_confirmation,
            "send_reminders": True if row.send_reminders is None else row.send_reminders,
        }
        try:
            return cls.model_validate(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("malformed reminder settings, using defaults: %s", e)
            return cls.defaults()


class WorkshopReminderRule(BaseModel):
    hours_before: float = Field(ge=0)
    type: str = "email"
    subject: Optional[str] = None


class WorkshopView(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    title: str
    instructor_name: str
    start_at: datetime
    duration_minutes: int = 60
    zoom_join_url: Optional[str] = None
    reminder_settings: List[WorkshopReminderRule] = Field(default_factory=list)

    @field_validator("start_at")
    @classmethod
    def _v_start(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("reminder_settings", mode="before")
    @classmethod
    def _v_rules(cls, v: Any) -> Any:
        if not v:
            return []
        if not isinstance(v, (list, tuple)):
            logger.warning("ignoring malformed workshop reminder_settings: %r", v)
            return []
        rules = []
        for item in v:
            try:
                rules.append(WorkshopReminderRule.model_validate(item))
            except ValidationError as e:
                logger.warning("ignoring malformed workshop reminder rule %r: %s", item, e)
        return rules
