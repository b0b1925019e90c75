# ledger/services/import_service.py

"""
======================================================
PATH: ledger/services/import_service.py
======================================================
GENERAL LEDGER IMPORT INTAKE

Receives rows already parsed from a spreadsheet export (one dict per row)
and stores the valid ones as GeneralLedgerRow.

Row keys (aliases accepted): date, account | account_name, name, type,
split | split_account, amount, balance, description | memo, reference | ref | num

Per-row outcome:
- blank row                              -> skipped
- missing / unreadable / out-of-range date -> skipped
- missing account or unreadable amount   -> error (message collected)
- otherwise                              -> inserted

Never raises for bad rows; problems are reported in ImportResult.errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Mapping, Optional

from django.conf import settings
from django.db import transaction

from ledger.models.import_row import GeneralLedgerRow

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

MIN_YEAR = 1900
MAX_YEAR = 2100

# Spreadsheet day serials: 1 is 1900-01-01, 2958465 is 9999-12-31.
SERIAL_MIN = 1
SERIAL_MAX = 2958465
SERIAL_EPOCH = date(1899, 12, 30)

STRING_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y")

FIELD_ALIASES = {
    "date": ("date",),
    "account_name": ("account_name", "account"),
    "name": ("name",),
    "type": ("type", "transaction_type"),
    "split_account": ("split_account", "split"),
    "amount": ("amount",),
    "balance": ("balance",),
    "description": ("description", "memo", "memo_description"),
    "reference": ("reference", "ref", "num"),
}


@dataclass
class ImportResult:
    success: bool = False
    inserted_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "inserted_count": self.inserted_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "errors": list(self.errors),
        }


class RowError(ValueError):
    pass


def _chunk_size() -> int:
    return int(getattr(settings, "LEDGER_IMPORT_CHUNK_SIZE", 100))


def _pick(row: Mapping, name: str):
    for alias in FIELD_ALIASES[name]:
        value = row.get(alias)
        if value is not None and value != "":
            return value
    return None


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(row: Mapping) -> bool:
    return all(_text(v) == "" for v in row.values())


def _in_range(d: date) -> Optional[date]:
    if MIN_YEAR <= d.year <= MAX_YEAR:
        return d
    return None


def parse_row_date(value) -> Optional[date]:
    """
    Return the row's date, or None when the row should be skipped.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _in_range(value.date())
    if isinstance(value, date):
        return _in_range(value)

    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        if not SERIAL_MIN <= value <= SERIAL_MAX:
            return None
        return _in_range(SERIAL_EPOCH + timedelta(days=int(value)))

    text = _text(value)
    if not text or text.lower() in ("null", "undefined", "none"):
        return None

    for fmt in STRING_DATE_FORMATS:
        try:
            return _in_range(datetime.strptime(text, fmt).date())
        except ValueError:
            continue

    try:
        return _in_range(datetime.fromisoformat(text).date())
    except ValueError:
        return None


def parse_amount(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise RowError(f"invalid amount {value!r}")

    text = _text(value).replace(",", "").replace("$", "")
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError) as exc:
        raise RowError(f"invalid amount {value!r}") from exc
    if not amount.is_finite():
        raise RowError(f"invalid amount {value!r}")

    amount = amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    return -amount if negative else amount


def _build_row(company, raw: Mapping, row_number: int) -> Optional[GeneralLedgerRow]:
    row_date = parse_row_date(_pick(raw, "date"))
    if row_date is None:
        return None

    account_name = _text(_pick(raw, "account_name"))
    if not account_name:
        raise RowError(f"Missing account name at row {row_number}")

    try:
        amount = parse_amount(_pick(raw, "amount"))
        balance = parse_amount(_pick(raw, "balance"))
    except RowError as exc:
        raise RowError(f"Row {row_number}: {exc}") from exc

    return GeneralLedgerRow(
        company=company,
        date=row_date,
        account_name=account_name,
        name=_text(_pick(raw, "name")) or account_name,
        type=_text(_pick(raw, "type")) or "Unknown",
        split_account=_text(_pick(raw, "split_account")) or account_name,
        amount=amount,
        balance=balance,
        description=_text(_pick(raw, "description")),
        reference=_text(_pick(raw, "reference")),
    )


def import_general_ledger(company, rows: Iterable[Mapping]) -> ImportResult:
    result = ImportResult()
    pending: List[GeneralLedgerRow] = []

    # Row numbers follow the spreadsheet: row 1 is the header.
    for row_number, raw in enumerate(rows, start=2):
        if not isinstance(raw, Mapping):
            result.error_count += 1
            result.errors.append(f"Row {row_number}: expected an object")
            continue

        if _is_blank(raw):
            result.skipped_count += 1
            continue

        try:
            built = _build_row(company, raw, row_number)
        except RowError as exc:
            result.error_count += 1
            result.errors.append(str(exc))
            continue

        if built is None:
            result.skipped_count += 1
            continue
        pending.append(built)

    if not pending:
        result.errors.append("No valid data rows found to import")
        logger.warning(
            "GL import company_id=%s inserted nothing skipped=%s errors=%s",
            company.id,
            result.skipped_count,
            result.error_count,
        )
        return result

    chunk = _chunk_size()
    with transaction.atomic():
        for start in range(0, len(pending), chunk):
            GeneralLedgerRow.objects.bulk_create(pending[start:start + chunk])
            result.inserted_count += len(pending[start:start + chunk])

    result.success = True
    logger.info(
        "GL import company_id=%s inserted=%s skipped=%s errors=%s",
        company.id,
        result.inserted_count,
        result.skipped_count,
        result.error_count,
    )
    return result
