# ledger/services/balance_service.py

"""
======================================================
PATH: ledger/services/balance_service.py
======================================================
BALANCE CALCULATOR

Rebuilds Account.current_balance from scratch.

RULES:
- Sources: every Posted journal's entry lines + every resolvable raw
  imported row (GeneralLedgerRow)
- Sign: Asset & Expense -> debits - credits; Liability, Equity & Revenue
  -> credits - debits. Raw row amounts are debit-positive.
- Computed in memory first, then written with ONE bulk_update inside the
  transaction (a failure leaves old balances intact)
- Idempotent: running twice without new data changes nothing
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import connection, transaction
from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from ledger.models.account import Account
from ledger.models.batch import Batch
from ledger.models.import_row import GeneralLedgerRow
from ledger.models.journal import EntryLine, Journal
from ledger.services.account_mapping_service import find_unmatched_entries, resolve_row_account
from ledger.services.account_resolver import AccountIndex, MappingIndex

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BalanceRecalcResult:
    accounts_updated: int
    total_entries: int
    mapped_entries: int
    unresolved_entries: int

    def as_dict(self) -> dict:
        return asdict(self)


def signed_amount(account: Account, debit: Decimal, credit: Decimal) -> Decimal:
    if account.is_debit_normal:
        return debit - credit
    return credit - debit


def _begin_snapshot() -> None:
    # Isolation can only be set as the first statement of the outermost
    # transaction; nested calls inherit whatever the caller opened.
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")


def recalculate_balances(company, *, use_mappings: bool = True) -> BalanceRecalcResult:
    outermost = not connection.in_atomic_block

    with transaction.atomic():
        if outermost:
            _begin_snapshot()

        accounts = list(
            Account.objects.select_for_update().filter(company=company).order_by("id")
        )
        by_id = {a.id: a for a in accounts}
        staged = {a.id: ZERO for a in accounts}

        # Posted journal lines, aggregated per account in the database.
        line_totals = (
            EntryLine.objects.filter(
                journal__company=company,
                journal__status=Journal.POSTED,
            )
            .values("account_id")
            .annotate(
                debit_total=Coalesce(Sum("debit_amount"), ZERO),
                credit_total=Coalesce(Sum("credit_amount"), ZERO),
                line_count=Count("id"),
            )
        )

        total_entries = 0
        for row in line_totals:
            account = by_id.get(row["account_id"])
            if account is None:
                continue
            staged[account.id] += signed_amount(account, row["debit_total"], row["credit_total"])
            total_entries += row["line_count"]

        # Raw imported rows, resolved label by label.
        index = AccountIndex([a for a in accounts if a.is_active])
        mappings = MappingIndex.for_company(company) if use_mappings else None

        mapped_entries = 0
        unresolved_entries = 0
        raw_rows = GeneralLedgerRow.objects.filter(company=company).values_list(
            "account_name", "split_account", "name", "amount"
        )
        for account_name, split_account, name, amount in raw_rows.iterator():
            total_entries += 1
            account, via_mapping = resolve_row_account(
                (account_name, split_account, name), accounts=index, mappings=mappings
            )
            if account is None:
                unresolved_entries += 1
                continue
            if via_mapping:
                mapped_entries += 1

            amount = amount or ZERO
            if amount >= 0:
                staged[account.id] += signed_amount(account, amount, ZERO)
            else:
                staged[account.id] += signed_amount(account, ZERO, -amount)

        changed = []
        for account in accounts:
            new_balance = _q2(staged[account.id])
            if account.current_balance != new_balance:
                account.current_balance = new_balance
                changed.append(account)

        if changed:
            Account.objects.bulk_update(changed, ["current_balance"])

    result = BalanceRecalcResult(
        accounts_updated=len(changed),
        total_entries=total_entries,
        mapped_entries=mapped_entries,
        unresolved_entries=unresolved_entries,
    )
    logger.info(
        "Balances recalculated company_id=%s use_mappings=%s result=%s",
        company.id,
        use_mappings,
        result.as_dict(),
    )
    return result


def calculate_account_balances_simple(company) -> dict:
    result = recalculate_balances(company, use_mappings=False)
    return {
        "accounts_updated": result.accounts_updated,
        "total_entries": result.total_entries,
    }


def calculate_account_balances_with_mappings(company) -> dict:
    result = recalculate_balances(company, use_mappings=True)
    return {
        "accounts_updated": result.accounts_updated,
        "total_entries": result.total_entries,
        "mapped_entries": result.mapped_entries,
    }


def ledger_summary(company) -> dict:
    """
    Read-only dashboard counts for one company.
    """
    journal_counts = dict(
        Journal.objects.filter(company=company)
        .values("status")
        .annotate(n=Count("id"))
        .values_list("status", "n")
    )
    batch_counts = dict(
        Batch.objects.filter(company=company)
        .values("status")
        .annotate(n=Count("id"))
        .values_list("status", "n")
    )

    return {
        "accounts": Account.objects.filter(company=company, is_active=True).count(),
        "journals": {status: journal_counts.get(status, 0) for status, _ in Journal.STATUS_CHOICES},
        "unbalanced_drafts": Journal.objects.filter(
            company=company, status=Journal.DRAFT, is_balanced=False
        ).count(),
        "batches": {status: batch_counts.get(status, 0) for status, _ in Batch.STATUS_CHOICES},
        "pending_batches": sum(batch_counts.get(status, 0) for status in Batch.OPEN_STATUSES),
        "imported_rows": GeneralLedgerRow.objects.filter(company=company).count(),
        "unmatched_labels": len(find_unmatched_entries(company)),
    }
