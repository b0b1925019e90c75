# ledger/services/sequence.py

"""
======================================================
PATH: ledger/services/sequence.py
======================================================
PER-COMPANY SEQUENCE ALLOCATION

Journal and batch numbers come from counters on the company's GLSettings row.

Rules:
- Allocation locks ONLY that company's settings row (select_for_update)
- Must run inside the transaction that inserts the numbered record, so a
  rollback also rolls the counter back (no gaps from failed creates)
- A number that already exists is never reissued: the allocator moves past
  it (logged) and gives up with DuplicateSequenceNumberError after
  LEDGER_SEQUENCE_MAX_RETRIES collisions
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction

from ledger.models.batch import Batch
from ledger.models.gl_settings import BATCH_NUMBER_PREFIX
from ledger.models.journal import Journal
from ledger.services.exceptions import DuplicateSequenceNumberError
from ledger.services.gl_settings_service import lock_gl_settings

logger = logging.getLogger(__name__)


def _padding() -> int:
    return int(getattr(settings, "LEDGER_JOURNAL_NUMBER_PADDING", 6))


def max_retries() -> int:
    return int(getattr(settings, "LEDGER_SEQUENCE_MAX_RETRIES", 5))


def format_number(prefix: str, value: int) -> str:
    return f"{prefix or ''}{str(value).zfill(_padding())}"


def _allocate(*, company, counter_field: str, prefix_of, exists) -> str:
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Sequence allocation must run inside transaction.atomic")

    gl_settings = lock_gl_settings(company)
    prefix = prefix_of(gl_settings)
    value = getattr(gl_settings, counter_field)

    for _ in range(max_retries() + 1):
        number = format_number(prefix, value)
        if not exists(number):
            setattr(gl_settings, counter_field, value + 1)
            gl_settings.save(update_fields=[counter_field, "updated_at"])
            return number

        logger.warning(
            "Sequence collision company_id=%s field=%s number=%s; advancing",
            company.id,
            counter_field,
            number,
        )
        value += 1

    raise DuplicateSequenceNumberError(
        f"Could not allocate a unique {counter_field} for company {company.id} "
        f"after {max_retries()} collisions",
        entity_id=company.id,
    )


def allocate_journal_number(company) -> str:
    return _allocate(
        company=company,
        counter_field="next_journal_number",
        prefix_of=lambda s: s.auto_journal_number_prefix,
        exists=lambda number: Journal.objects.filter(
            company=company, journal_number=number
        ).exists(),
    )


def allocate_batch_number(company) -> str:
    return _allocate(
        company=company,
        counter_field="next_batch_number",
        prefix_of=lambda s: BATCH_NUMBER_PREFIX,
        exists=lambda number: Batch.objects.filter(
            company=company, batch_number=number
        ).exists(),
    )
