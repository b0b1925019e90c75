# ledger/models/gl_settings.py

"""
======================================================
PATH: ledger/models/gl_settings.py
======================================================
GENERAL LEDGER SETTINGS (ONE ROW PER COMPANY)

Holds:
- journal / batch number sequences (locked row-level during allocation)
- posting period boundaries
- policy flags gating journal and batch transitions
- default_posting_rules (validated by ledger.posting_rules before save)

Mutated only through ledger.services.gl_settings_service and the sequence
allocator.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

from ledger.models.company import Company

DEFAULT_JOURNAL_PREFIX = "JE-"
BATCH_NUMBER_PREFIX = "BATCH-"


class GLSettings(models.Model):
    company = models.OneToOneField(
        Company,
        on_delete=models.CASCADE,
        related_name="gl_settings",
    )

    auto_journal_number_prefix = models.CharField(
        max_length=20,
        blank=True,
        default=DEFAULT_JOURNAL_PREFIX,
    )
    next_journal_number = models.PositiveIntegerField(default=1)
    next_batch_number = models.PositiveIntegerField(default=1)

    current_period_open = models.DateField(
        blank=True,
        null=True,
        help_text="Earliest date that may still be posted",
    )
    next_period_open = models.DateField(
        blank=True,
        null=True,
        help_text="First date of the next, not yet open, period",
    )

    allow_future_posting = models.BooleanField(default=False)
    require_batch_approval = models.BooleanField(default=False)
    lock_posted_entries = models.BooleanField(default=True)

    default_posting_rules = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "GL Settings"
        verbose_name_plural = "GL Settings"

    def __str__(self):
        return f"GL settings for {self.company}"

    def clean(self):
        if self.next_journal_number is not None and self.next_journal_number < 1:
            raise ValidationError({"next_journal_number": "must be >= 1"})
        if self.next_batch_number is not None and self.next_batch_number < 1:
            raise ValidationError({"next_batch_number": "must be >= 1"})

        if (
            self.current_period_open
            and self.next_period_open
            and self.next_period_open <= self.current_period_open
        ):
            raise ValidationError(
                {"next_period_open": "next_period_open must be after current_period_open"}
            )

        if not isinstance(self.default_posting_rules, dict):
            raise ValidationError(
                {"default_posting_rules": "default_posting_rules must be an object"}
            )

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
