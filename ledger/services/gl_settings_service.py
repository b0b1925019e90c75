# ledger/services/gl_settings_service.py

"""
GL SETTINGS SERVICE

Responsibilities:
- Lazily create the per-company GLSettings singleton
- Validate and apply settings updates (the only writer besides the sequence
  allocator)
- Resolve default posting rules to chart accounts

No HTTP, no DRF serializers here.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping

from django.db import transaction

from ledger.models.account import Account
from ledger.models.gl_settings import GLSettings
from ledger.posting_rules import AccountRef, PostingRules, PostingRulesError
from ledger.services.exceptions import (
    AccountResolutionError,
    InvalidSettingsError,
    PostingRuleError,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "auto_journal_number_prefix",
    "next_journal_number",
    "next_batch_number",
    "current_period_open",
    "next_period_open",
    "allow_future_posting",
    "require_batch_approval",
    "lock_posted_entries",
    "default_posting_rules",
)

MONOTONIC_FIELDS = ("next_journal_number", "next_batch_number")
BOOLEAN_FIELDS = ("allow_future_posting", "require_batch_approval", "lock_posted_entries")
DATE_FIELDS = ("current_period_open", "next_period_open")


def get_gl_settings(company) -> GLSettings:
    settings_obj, created = GLSettings.objects.get_or_create(company=company)
    if created:
        logger.info("Created default GL settings for company id=%s", company.id)
    return settings_obj


def lock_gl_settings(company) -> GLSettings:
    """
    Return the company's settings row locked FOR UPDATE.

    Must be called inside transaction.atomic. Only this company's row is
    locked, so other companies' sequences are never blocked.
    """
    get_gl_settings(company)
    return GLSettings.objects.select_for_update().get(company=company)


def _resolve_account_ref(company, ref: AccountRef, *, key: str) -> Account:
    qs = Account.objects.filter(company=company, is_active=True)
    if ref.account_number is not None:
        account = qs.filter(account_number=ref.account_number).first()
    else:
        account = qs.filter(id=ref.account_id).first()

    if account is None:
        raise AccountResolutionError(
            f"Posting rule {key!r} references an unknown account {ref.to_raw()}"
        )
    return account


def validate_posting_rules(company, raw) -> dict:
    try:
        rules = PostingRules.from_raw(raw)
    except PostingRulesError as exc:
        raise PostingRuleError(str(exc)) from exc

    for key, ref in rules.rules:
        try:
            _resolve_account_ref(company, ref, key=key)
        except AccountResolutionError as exc:
            raise PostingRuleError(str(exc)) from exc

    return rules.to_raw()


def resolve_posting_rule(company, key: str) -> Account:
    settings_obj = get_gl_settings(company)
    try:
        rules = PostingRules.from_raw(settings_obj.default_posting_rules).as_dict()
    except PostingRulesError as exc:
        raise PostingRuleError(str(exc), entity_id=settings_obj.id) from exc

    name = (key or "").strip()
    ref = rules.get(name)
    if ref is None:
        raise AccountResolutionError(f"No posting rule named {name!r}")
    return _resolve_account_ref(company, ref, key=name)


def _clean_date(field: str, value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidSettingsError(f"{field} must be an ISO date, got {value!r}") from exc


@transaction.atomic
def update_settings(company, fields: Mapping[str, Any], *, actor: str = "") -> GLSettings:
    """
    Apply a partial settings update.

    Rules:
    - only known fields are accepted
    - next_journal_number / next_batch_number never decrease
    - current_period_open must precede next_period_open
    - default_posting_rules must be a key -> account reference mapping
    """
    unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
    if unknown:
        raise InvalidSettingsError(f"Unknown settings fields: {unknown}")

    settings_obj = lock_gl_settings(company)

    for field in MONOTONIC_FIELDS:
        if field not in fields:
            continue
        value = fields[field]
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSettingsError(f"{field} must be an integer", entity_id=settings_obj.id)
        current = getattr(settings_obj, field)
        if value < current:
            raise InvalidSettingsError(
                f"{field} cannot decrease (current={current}, requested={value})",
                entity_id=settings_obj.id,
            )
        setattr(settings_obj, field, value)

    for field in BOOLEAN_FIELDS:
        if field in fields:
            if not isinstance(fields[field], bool):
                raise InvalidSettingsError(f"{field} must be a boolean", entity_id=settings_obj.id)
            setattr(settings_obj, field, fields[field])

    for field in DATE_FIELDS:
        if field in fields:
            setattr(settings_obj, field, _clean_date(field, fields[field]))

    if (
        settings_obj.current_period_open
        and settings_obj.next_period_open
        and settings_obj.next_period_open <= settings_obj.current_period_open
    ):
        raise InvalidSettingsError(
            "next_period_open must be after current_period_open",
            entity_id=settings_obj.id,
        )

    if "auto_journal_number_prefix" in fields:
        settings_obj.auto_journal_number_prefix = str(
            fields["auto_journal_number_prefix"] or ""
        ).strip()

    if "default_posting_rules" in fields:
        try:
            settings_obj.default_posting_rules = validate_posting_rules(
                company, fields["default_posting_rules"]
            )
        except PostingRuleError as exc:
            exc.entity_id = settings_obj.id
            raise

    settings_obj.save()

    logger.info(
        "GL settings updated company_id=%s by=%s fields=%s",
        company.id,
        actor or "system",
        sorted(fields),
    )
    return settings_obj
