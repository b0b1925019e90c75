# ledger/services/batch_service.py

"""
======================================================
PATH: ledger/services/batch_service.py
======================================================
BATCH WORKFLOW SERVICE

State machine:
    Draft -> Ready -> Posted
    Draft -> Cancelled
    Ready -> Cancelled

Guarantees:
- Membership only changes while the batch is Draft
- A journal belongs to at most one open (Draft/Ready) batch
- post_batch is all-or-nothing: one failing journal rolls back every
  member and leaves the batch Ready
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from ledger.models.batch import Batch
from ledger.models.journal import Journal
from ledger.services.exceptions import (
    BatchHasUnbalancedJournalsError,
    EmptyBatchError,
    InvalidBatchError,
    InvalidBatchTransitionError,
    InvalidJournalStateError,
)
from ledger.services.gl_settings_service import get_gl_settings
from ledger.services.journal_entry_service import post_locked_journal
from ledger.services.sequence import allocate_batch_number

logger = logging.getLogger(__name__)


def _lock_batch(batch_id) -> Batch:
    try:
        return (
            Batch.objects.select_for_update(of=("self",))
            .select_related("company")
            .get(pk=batch_id)
        )
    except Batch.DoesNotExist as exc:
        raise InvalidBatchTransitionError(
            f"Batch {batch_id} not found", entity_id=batch_id
        ) from exc


def _assert_transition(batch: Batch, target: str) -> None:
    if not batch.can_transition_to(target):
        raise InvalidBatchTransitionError(
            f"Batch {batch.batch_number} cannot move from {batch.status} to {target}",
            entity_id=batch.id,
        )


def _assert_draft(batch: Batch, action: str) -> None:
    if batch.status != Batch.DRAFT:
        raise InvalidBatchTransitionError(
            f"Cannot {action} batch {batch.batch_number} while it is {batch.status}",
            entity_id=batch.id,
        )


@transaction.atomic
def create_batch(*, company, name: str, description: str = "", actor: str = "") -> Batch:
    name = (name or "").strip()
    if not name:
        raise InvalidBatchError("Batch name is required")

    batch = Batch.objects.create(
        company=company,
        batch_number=allocate_batch_number(company),
        batch_name=name,
        description=(description or "").strip(),
        status=Batch.DRAFT,
        created_by=actor or "",
    )

    logger.info("Batch created number=%s company_id=%s", batch.batch_number, company.id)
    return batch


@transaction.atomic
def add_journal_to_batch(batch_id, journal_id) -> Batch:
    batch = _lock_batch(batch_id)
    _assert_draft(batch, "add journals to")

    journal = Journal.objects.select_for_update(of=("self",)).filter(pk=journal_id).first()
    if journal is None:
        raise InvalidJournalStateError(f"Journal {journal_id} not found", entity_id=journal_id)

    if journal.company_id != batch.company_id:
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} belongs to another company",
            entity_id=journal.id,
        )
    if journal.status != Journal.DRAFT:
        raise InvalidJournalStateError(
            f"Only Draft journals can be batched; {journal.journal_number} is {journal.status}",
            entity_id=journal.id,
        )

    if journal.batch_id == batch.id:
        return batch

    if journal.batch_id is not None and journal.batch.is_open:
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} already belongs to open batch "
            f"{journal.batch.batch_number}",
            entity_id=journal.id,
        )

    journal.batch = batch
    journal.save(update_fields=["batch", "updated_at"])
    batch.refresh_totals()

    logger.info(
        "Journal %s added to batch %s", journal.journal_number, batch.batch_number
    )
    return batch


@transaction.atomic
def remove_journal_from_batch(batch_id, journal_id) -> Batch:
    batch = _lock_batch(batch_id)
    _assert_draft(batch, "remove journals from")

    journal = (
        Journal.objects.select_for_update()
        .filter(pk=journal_id, batch=batch)
        .first()
    )
    if journal is None:
        raise InvalidJournalStateError(
            f"Journal {journal_id} is not a member of batch {batch.batch_number}",
            entity_id=journal_id,
        )

    journal.batch = None
    journal.save(update_fields=["batch", "updated_at"])
    batch.refresh_totals()

    logger.info(
        "Journal %s removed from batch %s", journal.journal_number, batch.batch_number
    )
    return batch


@transaction.atomic
def mark_ready(batch_id, *, actor: str = "") -> Batch:
    batch = _lock_batch(batch_id)
    _assert_transition(batch, Batch.READY)

    batch.refresh_totals(save=False)
    if batch.total_journals == 0:
        raise EmptyBatchError(
            f"Batch {batch.batch_number} has no journals", entity_id=batch.id
        )

    unbalanced = list(
        batch.journals.filter(is_balanced=False)
        .order_by("journal_number")
        .values_list("journal_number", flat=True)
    )
    if unbalanced:
        raise BatchHasUnbalancedJournalsError(
            f"Batch {batch.batch_number} has unbalanced journals: {unbalanced}",
            entity_id=batch.id,
        )

    batch.status = Batch.READY
    if get_gl_settings(batch.company).require_batch_approval:
        batch.reviewed_by = actor or ""
        batch.reviewed_at = timezone.now()
    batch.save()

    logger.info("Batch ready number=%s by=%s", batch.batch_number, actor or "system")
    return batch


@transaction.atomic
def post_batch(batch_id, *, actor: str = "") -> Batch:
    """
    Post every Draft member journal, then mark the batch Posted.

    Runs in a single transaction. Any posting error propagates and rolls
    back the journals already posted in this call.
    """
    batch = _lock_batch(batch_id)
    _assert_transition(batch, Batch.POSTED)

    gl_settings = get_gl_settings(batch.company)
    now = timezone.now()

    journals = list(
        batch.journals.select_for_update()
        .filter(status=Journal.DRAFT)
        .order_by("journal_number")
    )
    if not journals:
        raise EmptyBatchError(
            f"Batch {batch.batch_number} has no Draft journals to post",
            entity_id=batch.id,
        )

    for journal in journals:
        post_locked_journal(journal, gl_settings=gl_settings, actor=actor, now=now)

    batch.refresh_totals(save=False)
    batch.status = Batch.POSTED
    batch.posted_by = actor or ""
    batch.posted_at = now
    batch.save()

    logger.info(
        "Batch posted number=%s journals=%s by=%s",
        batch.batch_number,
        len(journals),
        actor or "system",
    )
    return batch


@transaction.atomic
def cancel_batch(batch_id, *, actor: str = "") -> Batch:
    """
    Cancel a Draft or Ready batch.

    Member journals stay Draft and are free to join another batch.
    """
    batch = _lock_batch(batch_id)
    _assert_transition(batch, Batch.CANCELLED)

    batch.status = Batch.CANCELLED
    batch.save(update_fields=["status", "updated_at"])

    logger.info("Batch cancelled number=%s by=%s", batch.batch_number, actor or "system")
    return batch
