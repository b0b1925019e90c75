# ledger/services/period_lock.py

"""
======================================================
PATH: ledger/services/period_lock.py
======================================================
PERIOD LOCK GUARD

Purpose:
- Enforce the posting window held in GLSettings.
- Block posting any journal dated before current_period_open.
- Block future-dated postings (after today, or inside the not yet open
  next period) unless allow_future_posting is on.

Design:
- Thin, read-only guard
- Called by journal_entry_service and batch_service (engine choke-points)
- Accepts settings explicitly (never guesses the company)
"""

from __future__ import annotations

from datetime import date, datetime

from django.utils import timezone

from ledger.services.exceptions import PeriodClosedError


def _to_date(value: datetime | date | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            value = timezone.make_aware(value, timezone.get_current_timezone())
        return timezone.localtime(value).date()
    if isinstance(value, date):
        return value
    return None


def is_before_open_period(settings, posting_date: date) -> bool:
    opened = settings.current_period_open
    return bool(opened and posting_date < opened)


def is_future_date(settings, posting_date: date, *, today: date | None = None) -> bool:
    today = today or timezone.localdate()
    if posting_date > today:
        return True

    next_open = settings.next_period_open
    return bool(next_open and posting_date >= next_open)


def assert_period_open(
    settings,
    posting_date: datetime | date | None,
    *,
    entity_id=None,
    today: date | None = None,
) -> None:
    """
    Assert posting_date lies inside the open posting window.

    Usage:
        assert_period_open(settings, journal.date, entity_id=journal.id)

    Raises:
        PeriodClosedError if the date is locked.
    """
    post_date = _to_date(posting_date)
    if post_date is None:
        raise PeriodClosedError("Posting date is required", entity_id=entity_id)

    if is_before_open_period(settings, post_date):
        raise PeriodClosedError(
            f"Posting blocked: {post_date} precedes the open period "
            f"starting {settings.current_period_open}.",
            entity_id=entity_id,
        )

    if not settings.allow_future_posting and is_future_date(settings, post_date, today=today):
        raise PeriodClosedError(
            f"Posting blocked: {post_date} is a future date and future posting is disabled.",
            entity_id=entity_id,
        )
