# ledger/models/journal.py

"""
======================================================
PATH: ledger/models/journal.py
======================================================
JOURNAL + ENTRY LINE MODELS

Journal is the header of a dated, multi-line accounting record.
EntryLine is one account-amount line within it.

Guarantees:
- journal_number is unique per company (allocated by the sequence service)
- is_balanced == abs(total_debits - total_credits) < BALANCE_EPSILON,
  recomputed by recalculate_totals() after every line mutation
- An entry line carries exactly one nonzero side (debit XOR credit)

Status transitions are driven by ledger.services.journal_entry_service;
models only guard field-level invariants.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from ledger.models.account import Account
from ledger.models.company import Company

ZERO = Decimal("0.00")
BALANCE_EPSILON = Decimal("0.01")


def amounts_balance(total_debits: Decimal, total_credits: Decimal) -> bool:
    return abs((total_debits or ZERO) - (total_credits or ZERO)) < BALANCE_EPSILON


class Journal(models.Model):
    DRAFT = "Draft"
    POSTED = "Posted"
    CANCELLED = "Cancelled"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (POSTED, "Posted"),
        (CANCELLED, "Cancelled"),
    ]

    SOURCE_MANUAL = "Manual"
    SOURCE_PAYROLL = "Payroll"
    SOURCE_AP = "AP"
    SOURCE_AR = "AR"
    SOURCE_ADJUSTMENT = "Adjustment"
    SOURCE_IMPORT = "Import"

    SOURCE_CHOICES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_PAYROLL, "Payroll"),
        (SOURCE_AP, "Accounts Payable"),
        (SOURCE_AR, "Accounts Receivable"),
        (SOURCE_ADJUSTMENT, "Adjustment"),
        (SOURCE_IMPORT, "Import"),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="journals",
    )

    journal_number = models.CharField(max_length=40)

    date = models.DateField(help_text="Accounting effective date")
    memo = models.TextField(blank=True, default="")

    source = models.CharField(
        max_length=20,
        choices=SOURCE_CHOICES,
        default=SOURCE_MANUAL,
    )
    source_id = models.CharField(max_length=100, blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=DRAFT,
    )

    batch = models.ForeignKey(
        "ledger.Batch",
        on_delete=models.PROTECT,
        related_name="journals",
        null=True,
        blank=True,
    )

    reversal_of = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        related_name="reversals",
        null=True,
        blank=True,
    )

    is_balanced = models.BooleanField(default=False)
    total_debits = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_credits = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    posted_by = models.CharField(max_length=150, blank=True, null=True)
    posted_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-date", "-journal_number"]
        verbose_name = "Journal"
        verbose_name_plural = "Journals"
        permissions = [("post_journal", "Can post journals")]
        indexes = [
            models.Index(fields=["company", "date"]),
            models.Index(fields=["company", "status"]),
            models.Index(fields=["company", "source"]),
            models.Index(fields=["batch"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "journal_number"],
                name="uniq_journal_company_number",
            ),
        ]

    def __str__(self):
        return f"{self.journal_number} ({self.status})"

    @property
    def is_draft(self) -> bool:
        return self.status == self.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == self.POSTED

    def clean(self):
        self.memo = (self.memo or "").strip()
        if self.source_id is not None:
            self.source_id = str(self.source_id).strip() or None

        if not (self.journal_number or "").strip():
            raise ValidationError({"journal_number": "journal_number is required"})

    def save(self, *args, **kwargs):
        # Number collisions surface as IntegrityError for the sequence retry loop.
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)

    def recalculate_totals(self, *, save: bool = True) -> None:
        """
        Recompute total_debits / total_credits / is_balanced from the lines
        currently stored for this journal.
        """
        totals = self.lines.aggregate(
            debit_total=Coalesce(Sum("debit_amount"), ZERO),
            credit_total=Coalesce(Sum("credit_amount"), ZERO),
        )
        self.total_debits = totals["debit_total"]
        self.total_credits = totals["credit_total"]
        self.is_balanced = amounts_balance(self.total_debits, self.total_credits)

        if save:
            self.save(
                update_fields=["total_debits", "total_credits", "is_balanced", "updated_at"]
            )


class EntryLine(models.Model):
    journal = models.ForeignKey(
        Journal,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    line_number = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="entry_lines",
    )

    debit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    description = models.TextField(blank=True, default="")

    entity_type = models.CharField(max_length=50, blank=True, null=True)
    entity_id = models.CharField(max_length=100, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["journal", "line_number"]
        verbose_name = "Entry Line"
        verbose_name_plural = "Entry Lines"
        indexes = [
            models.Index(fields=["account"]),
            models.Index(fields=["journal", "line_number"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["journal", "line_number"],
                name="uniq_entryline_journal_line_number",
            ),
            models.CheckConstraint(
                condition=Q(debit_amount__gte=0) & Q(credit_amount__gte=0),
                name="chk_entryline_amounts_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(debit_amount=0) | Q(credit_amount=0),
                name="chk_entryline_single_side",
            ),
        ]

    def __str__(self):
        side = f"DR {self.debit_amount}" if self.debit_amount else f"CR {self.credit_amount}"
        return f"#{self.line_number} {side} → {self.account}"

    def set_debit(self, amount: Decimal) -> None:
        self.debit_amount = amount
        self.credit_amount = ZERO

    def set_credit(self, amount: Decimal) -> None:
        self.credit_amount = amount
        self.debit_amount = ZERO

    def clean(self):
        if self.debit_amount is None or self.credit_amount is None:
            raise ValidationError("Debit and credit amounts are required")
        if self.debit_amount < 0 or self.credit_amount < 0:
            raise ValidationError("Debit or credit cannot be negative")
        if self.debit_amount > 0 and self.credit_amount > 0:
            raise ValidationError("An entry line cannot have both debit and credit")
        if self.debit_amount == 0 and self.credit_amount == 0:
            raise ValidationError("An entry line must have either debit or credit")

        self.description = (self.description or "").strip()

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
