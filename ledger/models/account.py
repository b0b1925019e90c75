# ledger/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from ledger.models.company import Company


class Account(models.Model):
    """
    A single chart-of-accounts entry owned by a company.

    Guarantees:
    - Account numbers are unique per company
    - Number + name are normalized (trimmed)
    - current_balance is written only by the balance calculator
    - Never deleted while entry lines reference it (PROTECT on the FK side)
    """

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    # Debit-normal accounts grow with debits; the rest grow with credits.
    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    account_number = models.CharField(max_length=20)
    full_name = models.CharField(max_length=255)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    current_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["account_number"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["company", "account_number"]),
            models.Index(fields=["company", "account_type"]),
            models.Index(fields=["company", "full_name"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "account_number"],
                name="uniq_account_company_number",
            ),
            models.CheckConstraint(
                condition=~Q(account_number=""),
                name="chk_account_number_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(full_name=""),
                name="chk_account_full_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.account_number} – {self.full_name}"

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in self.DEBIT_NORMAL_TYPES

    def clean(self):
        self.account_number = (self.account_number or "").strip()
        self.full_name = (self.full_name or "").strip()

        if not self.account_number:
            raise ValidationError("Account number is required")
        if not self.full_name:
            raise ValidationError("Account name is required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
