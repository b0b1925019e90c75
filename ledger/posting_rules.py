# ledger/posting_rules.py

"""
PATH: ledger/posting_rules.py

DEFAULT POSTING RULES DOMAIN (FRAMEWORK-AGNOSTIC)

Purpose:
- Single validation + normalization layer for GLSettings.default_posting_rules.
- Used by BOTH:
  - DRF serializer validation (API layer)
  - gl_settings_service (application layer)

Shape:
    {
      "<rule key>": {"account_number": "6000"},
      "<rule key>": {"account_id": 42},
    }

Rules:
- Top level must be an object keyed by non-empty strings
- Each value must be an object holding exactly one account reference
- Unknown reference keys are rejected
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

ALLOWED_REF_KEYS = ("account_number", "account_id")


class PostingRulesError(ValueError):
    """Raised when a posting rules payload is malformed."""


@dataclass(frozen=True)
class AccountRef:
    """
    Reference to a chart account, by number or by id (never both).
    """

    account_number: Optional[str] = None
    account_id: Optional[int] = None

    @staticmethod
    def from_raw(raw, *, key: str) -> "AccountRef":
        if not isinstance(raw, dict):
            raise PostingRulesError(f"Rule {key!r} must be an object")

        unknown = sorted(set(raw) - set(ALLOWED_REF_KEYS))
        if unknown:
            raise PostingRulesError(f"Rule {key!r} has unknown keys: {unknown}")

        present = [k for k in ALLOWED_REF_KEYS if raw.get(k) not in (None, "")]
        if len(present) != 1:
            raise PostingRulesError(
                f"Rule {key!r} must reference exactly one of {list(ALLOWED_REF_KEYS)}"
            )

        if present[0] == "account_number":
            number = str(raw["account_number"]).strip()
            if not number:
                raise PostingRulesError(f"Rule {key!r} has a blank account_number")
            return AccountRef(account_number=number)

        value = raw["account_id"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise PostingRulesError(f"Rule {key!r} account_id must be a positive integer")
        return AccountRef(account_id=value)

    def to_raw(self) -> dict:
        if self.account_number is not None:
            return {"account_number": self.account_number}
        return {"account_id": self.account_id}


@dataclass(frozen=True)
class PostingRules:
    rules: Tuple[Tuple[str, AccountRef], ...]

    @staticmethod
    def from_raw(raw) -> "PostingRules":
        if raw is None:
            return PostingRules(rules=())

        if not isinstance(raw, dict):
            raise PostingRulesError("default_posting_rules must be an object keyed by rule name")

        parsed = []
        for key, value in raw.items():
            if not isinstance(key, str) or not key.strip():
                raise PostingRulesError("Posting rule keys must be non-empty strings")
            name = key.strip()
            parsed.append((name, AccountRef.from_raw(value, key=name)))

        names = [name for name, _ in parsed]
        if len(names) != len(set(names)):
            raise PostingRulesError("Posting rule keys must be unique after trimming")

        return PostingRules(rules=tuple(sorted(parsed)))

    def as_dict(self) -> Dict[str, AccountRef]:
        return dict(self.rules)

    def to_raw(self) -> dict:
        return {name: ref.to_raw() for name, ref in self.rules}
