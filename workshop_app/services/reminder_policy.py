"""
Which reminders apply to a workshop, and whether each one is due.

Both functions are pure: same inputs, same answer, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from workshop_app.schemas import GlobalReminderSettings, WorkshopView
from workshop_app.utils.dates import hours_between

# the only identity that predates multi-offset settings
LEGACY_DEFAULT_IDENTITY = "default"


@dataclass(frozen=True)
class ReminderRule:
    offset_hours: float
    identity: str
    subject: Optional[str] = None


def format_offset(hours: float) -> str:
    """24.0 -> "24", 1.5 -> "1.5"; matches ids already stored in the ledger."""
    hours = float(hours)
    if hours.is_integer():
        return str(int(hours))
    return repr(hours)


def resolve_rules(workshop: WorkshopView, settings: GlobalReminderSettings) -> List[ReminderRule]:
    """
    Reminder rules for one workshop, longest lead time first.

    Per-workshop rules win over the global offsets. A single global offset keeps
    the "default" identity so markers written before multi-offset support still
    match; several global offsets get one identity each.
    """
    rules: List[ReminderRule] = []
    own = [r for r in workshop.reminder_settings if r.type == "email"]

    if own:
        for r in own:
            rules.append(ReminderRule(
                offset_hours=float(r.hours_before),
                identity=f"{format_offset(r.hours_before)}h",
                subject=r.subject,
            ))
    else:
        offsets = settings.reminder_offsets
        if len(offsets) == 1:
            rules.append(ReminderRule(offset_hours=float(offsets[0]), identity=LEGACY_DEFAULT_IDENTITY))
        else:
            for h in offsets:
                rules.append(ReminderRule(offset_hours=float(h), identity=f"{format_offset(h)}h_default"))

    seen = set()
    unique: List[ReminderRule] = []
    for rule in rules:
        if rule.identity in seen:
            continue
        seen.add(rule.identity)
        unique.append(rule)

    # sorted() is stable, ties keep configuration order
    return sorted(unique, key=lambda r: r.offset_hours, reverse=True)


def is_due(now: datetime, workshop_start: datetime, rule: ReminderRule) -> bool:
    """
    Threshold, not a window: once due, a rule stays due until the workshop
    starts. Repeat sends are prevented by the ledger, not here.
    """
    hours_left = hours_between(now, workshop_start)
    if hours_left <= 0:
        return False
    return hours_left <= rule.offset_hours
