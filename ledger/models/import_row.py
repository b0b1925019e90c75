# ledger/models/import_row.py

"""
======================================================
PATH: ledger/models/import_row.py
======================================================
RAW GENERAL LEDGER ROW

One row delivered by the external spreadsheet importer, stored as-is.

Notes:
- amount is signed and debit-positive (negative = credit)
- Rows are never attached to a Journal; the balance calculator resolves
  them to chart accounts directly (match or AccountMapping)
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from ledger.entry_kind import has_split_marker
from ledger.models.company import Company


class GeneralLedgerRow(models.Model):
    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="general_ledger_rows",
    )

    date = models.DateField()

    account_name = models.CharField(max_length=255)
    name = models.CharField(max_length=255, blank=True, default="")
    type = models.CharField(max_length=100, blank=True, default="")
    split_account = models.CharField(max_length=255, blank=True, default="")

    amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    description = models.TextField(blank=True, default="")
    reference = models.CharField(max_length=100, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "ledger_general_ledger"
        ordering = ["date", "id"]
        verbose_name = "General Ledger Row"
        verbose_name_plural = "General Ledger Rows"
        indexes = [
            models.Index(fields=["company", "account_name"]),
            models.Index(fields=["company", "split_account"]),
            models.Index(fields=["company", "name"]),
            models.Index(fields=["company", "date"]),
        ]

    def __str__(self):
        return f"{self.date} {self.account_name} {self.amount}"

    def labels(self) -> tuple[str, str, str]:
        return (self.account_name, self.split_account, self.name)

    @property
    def is_split_marker(self) -> bool:
        return has_split_marker(self.labels())
