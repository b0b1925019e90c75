# ledger/entry_kind.py

"""
PATH: ledger/entry_kind.py

IMPORT LABEL CLASSIFICATION (FRAMEWORK-AGNOSTIC)

Raw imported ledger rows carry three free-text labels:
account_name, split_account and name.

Exported ledgers mark internal transaction-split lines with the label
"-Split-". Those lines are not postable accounts, so every consumer
classifies labels through classify_label() instead of comparing strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

SPLIT_MARKER_LABEL = "-Split-"


class EntryKind(Enum):
    ACCOUNT = "account"
    SPLIT_MARKER = "split_marker"
    BLANK = "blank"


class FieldType(str, Enum):
    """Which label field of a raw row a mapping applies to."""

    ACCOUNT_NAME = "account_name"
    SPLIT_ACCOUNT = "split_account"
    NAME = "name"

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        return [
            (cls.ACCOUNT_NAME.value, "Account name"),
            (cls.SPLIT_ACCOUNT.value, "Split account"),
            (cls.NAME.value, "Name"),
        ]


# Order used when resolving a raw row to an account.
LABEL_FIELDS: tuple[FieldType, ...] = (
    FieldType.ACCOUNT_NAME,
    FieldType.SPLIT_ACCOUNT,
    FieldType.NAME,
)


def normalize_label(label) -> str:
    if label is None:
        return ""
    return str(label).strip()


def classify_label(label) -> EntryKind:
    value = normalize_label(label)
    if not value:
        return EntryKind.BLANK
    if value == SPLIT_MARKER_LABEL:
        return EntryKind.SPLIT_MARKER
    return EntryKind.ACCOUNT


def has_split_marker(labels: Iterable) -> bool:
    return any(classify_label(label) is EntryKind.SPLIT_MARKER for label in labels)
