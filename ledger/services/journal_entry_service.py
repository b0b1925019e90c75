# ledger/services/journal_entry_service.py

"""
======================================================
PATH: ledger/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (LEDGER ENGINE)

This module is the ONLY place allowed to:
- Create / edit / delete Journal and EntryLine rows
- Allocate journal numbers (through ledger.services.sequence)
- Recompute journal totals and is_balanced
- Move a journal to Posted or Cancelled
- Enforce posting locks and the period window

Batch posting reuses post_locked_journal() so both paths share one set of
posting preconditions.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from django.db import IntegrityError, transaction
from django.utils import timezone

from ledger.models.account import Account
from ledger.models.batch import Batch
from ledger.models.journal import ZERO, EntryLine, Journal
from ledger.services.exceptions import (
    DuplicateSequenceNumberError,
    EmptyLineError,
    InvalidJournalStateError,
    InvalidJournalStructureError,
    JournalLockedError,
    UnbalancedJournalError,
)
from ledger.services.gl_settings_service import get_gl_settings
from ledger.services.period_lock import assert_period_open
from ledger.services.sequence import allocate_journal_number, max_retries

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MIN_LINES = 2

HEADER_FIELDS = ("date", "memo", "source", "source_id")
# Header fields that stay editable on a posted journal when posted entries
# are not locked.
POSTED_EDITABLE_FIELDS = ("memo", "source_id")

VALID_SOURCES = {value for value, _ in Journal.SOURCE_CHOICES}


def _money(value, *, entity_id=None) -> Decimal:
    if value is None or value == "":
        return ZERO

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidJournalStructureError(
                f"Invalid money value: {value!r}", entity_id=entity_id
            ) from exc

    if not amt.is_finite():
        raise InvalidJournalStructureError(f"Invalid money value: {value!r}", entity_id=entity_id)

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_date(value, *, entity_id=None) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidJournalStructureError(
                f"Invalid journal date: {value!r}", entity_id=entity_id
            ) from exc
    raise InvalidJournalStructureError("Journal date is required", entity_id=entity_id)


def _clean_source(value, *, entity_id=None) -> str:
    source = (value or Journal.SOURCE_MANUAL).strip()
    if source not in VALID_SOURCES:
        raise InvalidJournalStructureError(
            f"Unknown journal source {source!r}", entity_id=entity_id
        )
    return source


def _resolve_account(company, raw_line: Mapping[str, Any], *, index: int, entity_id=None) -> Account:
    account = raw_line.get("account")
    account_id = raw_line.get("account_id")

    if account is None and account_id is None:
        raise InvalidJournalStructureError(
            f"Line {index} is missing an account", entity_id=entity_id
        )

    if account is None:
        account = Account.objects.filter(id=account_id).first()
        if account is None:
            raise InvalidJournalStructureError(
                f"Line {index} references unknown account id={account_id}",
                entity_id=entity_id,
            )

    if account.company_id != company.id:
        raise InvalidJournalStructureError(
            f"Line {index} account {account.account_number} belongs to another company",
            entity_id=entity_id,
        )

    if not account.is_active:
        raise InvalidJournalStructureError(
            f"Line {index} account {account.account_number} is inactive",
            entity_id=entity_id,
        )

    return account


def _validate_amounts(debit: Decimal, credit: Decimal, *, index: int, entity_id=None) -> None:
    if debit < 0 or credit < 0:
        raise InvalidJournalStructureError(
            f"Line {index}: debit or credit cannot be negative", entity_id=entity_id
        )
    if debit > 0 and credit > 0:
        raise InvalidJournalStructureError(
            f"Line {index}: a line cannot have both debit and credit", entity_id=entity_id
        )
    if debit == 0 and credit == 0:
        raise EmptyLineError(
            f"Line {index}: a line must have a nonzero debit or credit", entity_id=entity_id
        )


def _normalize_line(company, raw_line, *, index: int, entity_id=None) -> dict:
    if not isinstance(raw_line, Mapping):
        raise InvalidJournalStructureError(
            f"Line {index} must be an object/dict", entity_id=entity_id
        )

    account = _resolve_account(company, raw_line, index=index, entity_id=entity_id)
    debit = _money(raw_line.get("debit", raw_line.get("debit_amount")), entity_id=entity_id)
    credit = _money(raw_line.get("credit", raw_line.get("credit_amount")), entity_id=entity_id)
    _validate_amounts(debit, credit, index=index, entity_id=entity_id)

    return {
        "account": account,
        "debit": debit,
        "credit": credit,
        "description": (raw_line.get("description") or "").strip(),
        "entity_type": raw_line.get("entity_type") or None,
        "entity_id": raw_line.get("entity_id") or None,
    }


def _normalize_lines(company, lines: Iterable, *, entity_id=None) -> list[dict]:
    if lines is None or isinstance(lines, (str, bytes, Mapping)):
        raise InvalidJournalStructureError(
            "Journal lines must be a list", entity_id=entity_id
        )

    normalized = [
        _normalize_line(company, raw, index=i, entity_id=entity_id)
        for i, raw in enumerate(lines, start=1)
    ]

    if len(normalized) < MIN_LINES:
        raise InvalidJournalStructureError(
            f"A journal needs at least {MIN_LINES} lines, got {len(normalized)}",
            entity_id=entity_id,
        )
    return normalized


def _write_lines(journal: Journal, normalized: list[dict]) -> None:
    for number, line in enumerate(normalized, start=1):
        entry = EntryLine(
            journal=journal,
            line_number=number,
            account=line["account"],
            description=line["description"],
            entity_type=line["entity_type"],
            entity_id=line["entity_id"],
        )
        if line["debit"] > 0:
            entry.set_debit(line["debit"])
        else:
            entry.set_credit(line["credit"])
        entry.save()


def _refresh_open_batch(journal: Journal) -> None:
    if journal.batch_id is None:
        return
    batch = Batch.objects.select_for_update().get(pk=journal.batch_id)
    if batch.status == Batch.DRAFT:
        batch.refresh_totals()


def _lock_journal(journal_id) -> Journal:
    try:
        return (
            Journal.objects.select_for_update(of=("self",))
            .select_related("company")
            .get(pk=journal_id)
        )
    except Journal.DoesNotExist as exc:
        raise InvalidJournalStateError(
            f"Journal {journal_id} not found", entity_id=journal_id
        ) from exc


def _assert_editable(journal: Journal, *, structural: bool, fields: Iterable[str] = ()) -> None:
    """
    Guard for every journal mutation.

    structural=True means lines change (or the journal is deleted).
    """
    if journal.status == Journal.CANCELLED:
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} is cancelled", entity_id=journal.id
        )

    if journal.status == Journal.POSTED:
        gl_settings = get_gl_settings(journal.company)
        if gl_settings.lock_posted_entries:
            raise JournalLockedError(
                f"Journal {journal.journal_number} is posted and locked",
                entity_id=journal.id,
            )
        if structural or any(f not in POSTED_EDITABLE_FIELDS for f in fields):
            raise JournalLockedError(
                f"Journal {journal.journal_number} is posted; only "
                f"{list(POSTED_EDITABLE_FIELDS)} may change",
                entity_id=journal.id,
            )

    if journal.batch_id is not None and journal.batch.status == Batch.READY:
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} belongs to batch "
            f"{journal.batch.batch_number} under review",
            entity_id=journal.id,
        )


@transaction.atomic
def create_journal(
    *,
    company,
    date,
    lines: list,
    memo: str = "",
    source: str | None = None,
    source_id: str | None = None,
    actor: str = "",
    reversal_of: Journal | None = None,
) -> Journal:
    """
    Create a Draft journal and its lines.

    Validation happens before a number is allocated, so a rejected journal
    never consumes a sequence value.
    """
    journal_date = _to_date(date)
    source = _clean_source(source)
    normalized = _normalize_lines(company, lines)

    journal = None
    attempts = max_retries() + 1
    for attempt in range(1, attempts + 1):
        # Savepoint so an insert collision does not poison the outer transaction.
        try:
            with transaction.atomic():
                journal = Journal.objects.create(
                    company=company,
                    journal_number=allocate_journal_number(company),
                    date=journal_date,
                    memo=memo or "",
                    source=source,
                    source_id=source_id,
                    status=Journal.DRAFT,
                    created_by=actor or "",
                    reversal_of=reversal_of,
                )
            break
        except IntegrityError:
            logger.warning(
                "Journal number collision company_id=%s attempt=%s/%s",
                company.id,
                attempt,
                attempts,
            )

    if journal is None:
        raise DuplicateSequenceNumberError(
            f"Journal number collision for company {company.id} after {attempts} attempts",
            entity_id=company.id,
        )

    _write_lines(journal, normalized)
    journal.recalculate_totals()

    logger.info(
        "Journal created number=%s company_id=%s balanced=%s debits=%s credits=%s",
        journal.journal_number,
        company.id,
        journal.is_balanced,
        journal.total_debits,
        journal.total_credits,
    )
    return journal


@transaction.atomic
def update_journal(
    journal_id,
    *,
    header: Mapping[str, Any] | None = None,
    lines: list | None = None,
    actor: str = "",
) -> Journal:
    journal = _lock_journal(journal_id)
    header = dict(header or {})

    unknown = sorted(set(header) - set(HEADER_FIELDS))
    if unknown:
        raise InvalidJournalStructureError(
            f"Unknown journal fields: {unknown}", entity_id=journal.id
        )

    _assert_editable(journal, structural=lines is not None, fields=header.keys())

    if "date" in header:
        journal.date = _to_date(header["date"], entity_id=journal.id)
    if "memo" in header:
        journal.memo = header["memo"] or ""
    if "source" in header:
        journal.source = _clean_source(header["source"], entity_id=journal.id)
    if "source_id" in header:
        journal.source_id = header["source_id"]

    if header:
        journal.save()

    if lines is not None:
        normalized = _normalize_lines(journal.company, lines, entity_id=journal.id)
        journal.lines.all().delete()
        _write_lines(journal, normalized)
        journal.recalculate_totals()
        _refresh_open_batch(journal)

    logger.info(
        "Journal updated number=%s by=%s header=%s lines_replaced=%s",
        journal.journal_number,
        actor or "system",
        sorted(header),
        lines is not None,
    )
    return journal


@transaction.atomic
def add_line(journal_id, line: Mapping[str, Any]) -> EntryLine:
    journal = _lock_journal(journal_id)
    _assert_editable(journal, structural=True)

    next_number = journal.lines.count() + 1
    normalized = _normalize_line(journal.company, line, index=next_number, entity_id=journal.id)

    last = journal.lines.order_by("-line_number").first()
    entry = EntryLine(
        journal=journal,
        line_number=(last.line_number + 1) if last else 1,
        account=normalized["account"],
        description=normalized["description"],
        entity_type=normalized["entity_type"],
        entity_id=normalized["entity_id"],
    )
    if normalized["debit"] > 0:
        entry.set_debit(normalized["debit"])
    else:
        entry.set_credit(normalized["credit"])
    entry.save()

    journal.recalculate_totals()
    _refresh_open_batch(journal)
    return entry


@transaction.atomic
def update_line(journal_id, line_id, changes: Mapping[str, Any]) -> EntryLine:
    """
    Edit one line. Setting a debit clears the credit and vice versa.
    """
    journal = _lock_journal(journal_id)
    _assert_editable(journal, structural=True)

    entry = journal.lines.filter(pk=line_id).first()
    if entry is None:
        raise InvalidJournalStructureError(
            f"Line {line_id} not found on journal {journal.journal_number}",
            entity_id=journal.id,
        )

    if "debit" in changes and "credit" in changes:
        debit = _money(changes["debit"], entity_id=journal.id)
        credit = _money(changes["credit"], entity_id=journal.id)
        _validate_amounts(debit, credit, index=entry.line_number, entity_id=journal.id)
        if debit > 0:
            entry.set_debit(debit)
        else:
            entry.set_credit(credit)
    elif "debit" in changes:
        amount = _money(changes["debit"], entity_id=journal.id)
        _validate_amounts(amount, ZERO, index=entry.line_number, entity_id=journal.id)
        entry.set_debit(amount)
    elif "credit" in changes:
        amount = _money(changes["credit"], entity_id=journal.id)
        _validate_amounts(ZERO, amount, index=entry.line_number, entity_id=journal.id)
        entry.set_credit(amount)

    if "account" in changes or "account_id" in changes:
        entry.account = _resolve_account(
            journal.company, changes, index=entry.line_number, entity_id=journal.id
        )
    if "description" in changes:
        entry.description = changes["description"] or ""
    if "entity_type" in changes:
        entry.entity_type = changes["entity_type"] or None
    if "entity_id" in changes:
        entry.entity_id = changes["entity_id"] or None

    entry.save()

    journal.recalculate_totals()
    _refresh_open_batch(journal)
    return entry


@transaction.atomic
def delete_line(journal_id, line_id) -> Journal:
    journal = _lock_journal(journal_id)
    _assert_editable(journal, structural=True)

    entry = journal.lines.filter(pk=line_id).first()
    if entry is None:
        raise InvalidJournalStructureError(
            f"Line {line_id} not found on journal {journal.journal_number}",
            entity_id=journal.id,
        )

    if journal.lines.count() - 1 < MIN_LINES:
        raise InvalidJournalStructureError(
            f"Journal {journal.journal_number} must keep at least {MIN_LINES} lines",
            entity_id=journal.id,
        )

    entry.delete()
    journal.recalculate_totals()
    _refresh_open_batch(journal)
    return journal


def post_locked_journal(journal: Journal, *, gl_settings, actor: str = "", now=None) -> Journal:
    """
    Post an already row-locked Draft journal.

    Caller owns the transaction and the lock. Preconditions:
    - status is Draft
    - is_balanced (recomputed here from stored lines)
    - date inside the open posting window
    """
    if journal.status != Journal.DRAFT:
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} is {journal.status}, only Draft journals can be posted",
            entity_id=journal.id,
        )

    journal.recalculate_totals()
    if not journal.is_balanced:
        raise UnbalancedJournalError(
            f"Journal {journal.journal_number} not balanced: "
            f"debits={journal.total_debits} credits={journal.total_credits}",
            entity_id=journal.id,
        )

    assert_period_open(gl_settings, journal.date, entity_id=journal.id)

    journal.status = Journal.POSTED
    journal.posted_by = actor or ""
    journal.posted_at = now or timezone.now()
    journal.save(update_fields=["status", "posted_by", "posted_at", "updated_at"])
    return journal


@transaction.atomic
def post_journal(journal_id, *, actor: str = "") -> Journal:
    journal = _lock_journal(journal_id)
    gl_settings = get_gl_settings(journal.company)

    if (
        gl_settings.require_batch_approval
        and journal.batch_id is not None
        and journal.batch.is_open
    ):
        raise InvalidJournalStateError(
            f"Journal {journal.journal_number} belongs to batch "
            f"{journal.batch.batch_number}; post it through the batch",
            entity_id=journal.id,
        )

    post_locked_journal(journal, gl_settings=gl_settings, actor=actor)

    logger.info("Journal posted number=%s by=%s", journal.journal_number, actor or "system")
    return journal


@transaction.atomic
def cancel_journal(journal_id, *, actor: str = "") -> Journal:
    journal = _lock_journal(journal_id)

    if journal.status != Journal.DRAFT:
        raise InvalidJournalStateError(
            f"Only Draft journals can be cancelled; {journal.journal_number} is {journal.status}",
            entity_id=journal.id,
        )
    if journal.batch_id is not None and journal.batch.is_open:
        raise InvalidJournalStateError(
            f"Remove journal {journal.journal_number} from batch "
            f"{journal.batch.batch_number} before cancelling it",
            entity_id=journal.id,
        )

    journal.status = Journal.CANCELLED
    journal.save(update_fields=["status", "updated_at"])

    logger.info("Journal cancelled number=%s by=%s", journal.journal_number, actor or "system")
    return journal


@transaction.atomic
def reverse_journal(journal_id, *, actor: str = "", date=None) -> Journal:
    """
    Create a Draft Adjustment journal that offsets a posted journal.

    The original journal is never mutated.
    """
    original = _lock_journal(journal_id)

    if original.status != Journal.POSTED:
        raise InvalidJournalStateError(
            f"Only posted journals can be reversed; {original.journal_number} is {original.status}",
            entity_id=original.id,
        )
    if original.reversals.exclude(status=Journal.CANCELLED).exists():
        raise InvalidJournalStateError(
            f"Journal {original.journal_number} already has a reversal",
            entity_id=original.id,
        )

    lines = [
        {
            "account": line.account,
            "debit": line.credit_amount,
            "credit": line.debit_amount,
            "description": line.description,
            "entity_type": line.entity_type,
            "entity_id": line.entity_id,
        }
        for line in original.lines.select_related("account").order_by("line_number")
    ]

    reversal = create_journal(
        company=original.company,
        date=date or timezone.localdate(),
        lines=lines,
        memo=f"Reversal of {original.journal_number}",
        source=Journal.SOURCE_ADJUSTMENT,
        source_id=original.journal_number,
        actor=actor,
        reversal_of=original,
    )

    logger.info(
        "Journal reversed original=%s reversal=%s by=%s",
        original.journal_number,
        reversal.journal_number,
        actor or "system",
    )
    return reversal


@transaction.atomic
def delete_journal(journal_id, *, actor: str = "") -> None:
    journal = _lock_journal(journal_id)

    if journal.status != Journal.DRAFT:
        raise InvalidJournalStateError(
            f"Only Draft journals can be deleted; {journal.journal_number} is {journal.status}",
            entity_id=journal.id,
        )
    _assert_editable(journal, structural=True)

    batch_id = journal.batch_id
    number = journal.journal_number
    journal.delete()

    if batch_id is not None:
        batch = Batch.objects.select_for_update().get(pk=batch_id)
        if batch.status == Batch.DRAFT:
            batch.refresh_totals()

    logger.info("Journal deleted number=%s by=%s", number, actor or "system")
