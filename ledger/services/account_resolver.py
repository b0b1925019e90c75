# ledger/services/account_resolver.py

"""
PATH: ledger/services/account_resolver.py

ACCOUNT RESOLVER

Answers one question: "Which chart account does this imported label mean?"

Match tiers (best first):
1. exact full_name or exact account_number
2. prefix: the label starts with "<account_number> " (e.g. "1000 Checking")

A label resolves only when the best non-empty tier holds exactly one
account. Ties are reported as AmbiguousMappingError, never guessed.

The index is built once per call site from a single query so bulk
operations (auto-map, balance recalculation) stay O(rows).
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ledger.entry_kind import EntryKind, FieldType, classify_label, normalize_label
from ledger.models.account import Account
from ledger.models.mapping import AccountMapping
from ledger.services.exceptions import AmbiguousMappingError


def _norm(value) -> str:
    return normalize_label(value)


class AccountIndex:
    """In-memory lookup of a company's chart accounts by name and number."""

    def __init__(self, accounts: Iterable[Account]):
        self.accounts: List[Account] = list(accounts)
        self._by_exact: Dict[str, List[Account]] = defaultdict(list)
        self._numbers: List[Tuple[str, Account]] = []

        for account in self.accounts:
            keys = {_norm(account.full_name), _norm(account.account_number)}
            for key in keys:
                if key:
                    self._by_exact[key].append(account)
            number = _norm(account.account_number)
            if number:
                self._numbers.append((number + " ", account))

    @classmethod
    def for_company(cls, company, *, active_only: bool = True) -> "AccountIndex":
        qs = Account.objects.filter(company=company)
        if active_only:
            qs = qs.filter(is_active=True)
        return cls(qs.order_by("account_number"))

    def candidates(self, label) -> List[Account]:
        """Best non-empty tier of matching accounts for label."""
        if classify_label(label) is not EntryKind.ACCOUNT:
            return []

        key = _norm(label)
        exact = self._by_exact.get(key)
        if exact:
            return _dedupe(exact)

        return _dedupe(account for prefix, account in self._numbers if key.startswith(prefix))

    def match(self, label) -> Optional[Account]:
        """
        Return the single account label resolves to, None when nothing
        matches.

        Raises:
            AmbiguousMappingError when several accounts tie.
        """
        found = self.candidates(label)
        if not found:
            return None
        if len(found) > 1:
            raise AmbiguousMappingError(
                f"Label {normalize_label(label)!r} matches {len(found)} accounts",
                candidates=[a.account_number for a in found],
            )
        return found[0]

    def match_or_none(self, label) -> Optional[Account]:
        try:
            return self.match(label)
        except AmbiguousMappingError:
            return None


def _dedupe(accounts: Iterable[Account]) -> List[Account]:
    seen = {}
    for account in accounts:
        seen.setdefault(account.pk, account)
    return list(seen.values())


class MappingIndex:
    """(field_type, label) -> chart Account, for one company."""

    def __init__(self, mappings: Iterable[AccountMapping]):
        self._by_key: Dict[Tuple[str, str], Account] = {
            (m.gl_field_type, normalize_label(m.gl_account_name)): m.chart_account
            for m in mappings
        }

    @classmethod
    def for_company(cls, company) -> "MappingIndex":
        return cls(
            AccountMapping.objects.filter(company=company).select_related("chart_account")
        )

    def __contains__(self, key) -> bool:
        field_type, label = key
        return (FieldType(field_type).value, normalize_label(label)) in self._by_key

    def get(self, field_type, label) -> Optional[Account]:
        return self._by_key.get((FieldType(field_type).value, normalize_label(label)))
