# ledger/services/account_mapping_service.py

"""
======================================================
PATH: ledger/services/account_mapping_service.py
======================================================
ACCOUNT MAPPING SERVICE

Links raw imported ledger labels to chart accounts.

Responsibilities:
- Report labels that still have no mapping
- Create / delete mappings (upsert on company + label + field type)
- Auto-map labels that match exactly one account
- Resolve a raw row to an account (used by the balance calculator)

Split-marker labels never map to anything.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from django.db import IntegrityError, transaction

from ledger.entry_kind import (
    LABEL_FIELDS,
    EntryKind,
    FieldType,
    classify_label,
    has_split_marker,
    normalize_label,
)
from ledger.models.account import Account
from ledger.models.import_row import GeneralLedgerRow
from ledger.models.mapping import AccountMapping
from ledger.services.account_resolver import AccountIndex, MappingIndex
from ledger.services.exceptions import AccountResolutionError, AmbiguousMappingError

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

ROW_FIELDS = ("account_name", "split_account", "name", "amount")


@dataclass(frozen=True)
class UnmatchedEntry:
    label: str
    field_type: str
    entry_count: int
    total_amount: Decimal


@dataclass
class AutoMapResult:
    created: List[AccountMapping] = field(default_factory=list)
    ambiguous: List[dict] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


def _field_type(value) -> FieldType:
    try:
        return FieldType(value)
    except ValueError as exc:
        raise AccountResolutionError(
            f"Unknown field type {value!r}; expected one of {[f.value for f in FieldType]}"
        ) from exc


def _unsplit_rows(company):
    """Yield (account_name, split_account, name, amount) for rows without split markers."""
    rows = GeneralLedgerRow.objects.filter(company=company).values_list(*ROW_FIELDS)
    for account_name, split_account, name, amount in rows.iterator():
        if has_split_marker((account_name, split_account, name)):
            continue
        yield account_name, split_account, name, amount


def find_unmatched_entries(company) -> List[UnmatchedEntry]:
    """
    Group unsplit raw rows by (field type, label) and return the groups
    that have no AccountMapping.
    """
    mappings = MappingIndex.for_company(company)
    groups: "OrderedDict[Tuple[str, str], list]" = OrderedDict()

    for account_name, split_account, name, amount in _unsplit_rows(company):
        labels = dict(zip(LABEL_FIELDS, (account_name, split_account, name)))
        for field_type in LABEL_FIELDS:
            label = normalize_label(labels[field_type])
            if classify_label(label) is not EntryKind.ACCOUNT:
                continue
            if (field_type, label) in mappings:
                continue
            bucket = groups.setdefault((field_type.value, label), [0, ZERO])
            bucket[0] += 1
            bucket[1] += amount or ZERO

    order = {f.value: i for i, f in enumerate(LABEL_FIELDS)}
    return [
        UnmatchedEntry(label=label, field_type=ft, entry_count=count, total_amount=total)
        for (ft, label), (count, total) in sorted(
            groups.items(), key=lambda item: (order[item[0][0]], item[0][1])
        )
    ]


def get_unmatched_gl_entries(company) -> List[dict]:
    """
    Unsplit rows whose account_name has no account_name mapping, grouped by
    the full (account_name, split_account, name) triple.
    """
    mappings = MappingIndex.for_company(company)
    groups: "OrderedDict[Tuple[str, str, str], list]" = OrderedDict()

    for account_name, split_account, name, amount in _unsplit_rows(company):
        label = normalize_label(account_name)
        if classify_label(label) is not EntryKind.ACCOUNT:
            continue
        if (FieldType.ACCOUNT_NAME, label) in mappings:
            continue
        key = (label, normalize_label(split_account), normalize_label(name))
        bucket = groups.setdefault(key, [0, ZERO])
        bucket[0] += 1
        bucket[1] += amount or ZERO

    return [
        {
            "account_name": account_name,
            "split_account": split_account,
            "name": name,
            "entry_count": count,
            "total_amount": total,
        }
        for (account_name, split_account, name), (count, total) in sorted(
            groups.items(), key=lambda item: (-item[1][0], item[0])
        )
    ]


def _chart_account(company, chart_account_id) -> Account:
    account = Account.objects.filter(company=company, id=chart_account_id).first()
    if account is None:
        raise AccountResolutionError(
            f"Account {chart_account_id} does not exist in this company",
            entity_id=chart_account_id,
        )
    return account


@transaction.atomic
def create_mapping(
    *,
    company,
    label: str,
    field_type=FieldType.ACCOUNT_NAME,
    chart_account_id,
    actor: str = "",
) -> AccountMapping:
    """
    Upsert the mapping for (company, label, field_type).

    Calling twice with the same arguments leaves exactly one row.
    """
    label = normalize_label(label)
    kind = classify_label(label)
    if kind is not EntryKind.ACCOUNT:
        raise AccountResolutionError(f"Label {label!r} cannot be mapped ({kind.value})")

    ft = _field_type(field_type)
    account = _chart_account(company, chart_account_id)

    lookup = {"company": company, "gl_account_name": label, "gl_field_type": ft.value}
    try:
        with transaction.atomic():
            mapping, created = AccountMapping.objects.update_or_create(
                defaults={"chart_account": account},
                create_defaults={"chart_account": account, "created_by": actor or ""},
                **lookup,
            )
    except IntegrityError:
        # Lost an insert race; the row exists now.
        mapping = AccountMapping.objects.select_for_update().get(**lookup)
        mapping.chart_account = account
        mapping.save()
        created = False

    logger.info(
        "Mapping %s company_id=%s %s:%r -> %s",
        "created" if created else "updated",
        company.id,
        ft.value,
        label,
        account.account_number,
    )
    return mapping


@transaction.atomic
def delete_mapping(*, company, mapping_id) -> None:
    deleted, _ = AccountMapping.objects.filter(company=company, id=mapping_id).delete()
    if not deleted:
        raise AccountResolutionError(f"Mapping {mapping_id} not found", entity_id=mapping_id)
    logger.info("Mapping deleted id=%s company_id=%s", mapping_id, company.id)


@transaction.atomic
def auto_map_obvious_matches(company, *, actor: str = "") -> AutoMapResult:
    """
    Create account_name mappings for labels that match exactly one account.

    Ambiguous labels are collected in the result and left unmapped.
    """
    accounts = AccountIndex.for_company(company)
    mappings = MappingIndex.for_company(company)
    result = AutoMapResult()

    labels = OrderedDict()
    for account_name, _split, _name, _amount in _unsplit_rows(company):
        label = normalize_label(account_name)
        if classify_label(label) is EntryKind.ACCOUNT:
            labels.setdefault(label, None)

    for label in labels:
        if (FieldType.ACCOUNT_NAME, label) in mappings:
            continue
        try:
            account = accounts.match(label)
        except AmbiguousMappingError as exc:
            result.ambiguous.append({"label": label, "candidates": exc.candidates})
            logger.warning("Auto-map skipped ambiguous label %r candidates=%s", label, exc.candidates)
            continue

        if account is None:
            continue

        mapping, _ = AccountMapping.objects.get_or_create(
            company=company,
            gl_account_name=label,
            gl_field_type=FieldType.ACCOUNT_NAME.value,
            defaults={"chart_account": account, "created_by": actor or ""},
        )
        result.created.append(mapping)

    logger.info(
        "Auto-map company_id=%s created=%s ambiguous=%s",
        company.id,
        result.created_count,
        len(result.ambiguous),
    )
    return result


def resolve_row_account(
    labels: Tuple[str, str, str],
    *,
    accounts: AccountIndex,
    mappings: Optional[MappingIndex] = None,
) -> Tuple[Optional[Account], bool]:
    """
    Resolve a raw row's labels to (account, via_mapping).

    Order: unambiguous direct match of account_name, then (when mappings
    are given) account_name, split_account and name mappings.
    """
    by_field = dict(zip(LABEL_FIELDS, labels))

    direct = accounts.match_or_none(by_field[FieldType.ACCOUNT_NAME])
    if direct is not None:
        return direct, False

    if mappings is None:
        return None, False

    for field_type in LABEL_FIELDS:
        label = by_field[field_type]
        if classify_label(label) is not EntryKind.ACCOUNT:
            continue
        account = mappings.get(field_type, label)
        if account is not None:
            return account, True

    return None, False
