# ledger/models/batch.py

"""
======================================================
PATH: ledger/models/batch.py
======================================================
BATCH MODEL

A named group of journals reviewed and posted together.

State machine (enforced by ledger.services.batch_service):
    Draft -> Ready -> Posted
    Draft -> Cancelled
    Ready -> Cancelled
Posted and Cancelled are terminal.

total_journals / total_debits / total_credits are derived from the member
journals by refresh_totals(); they are never edited directly.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from ledger.models.company import Company

ZERO = Decimal("0.00")


class Batch(models.Model):
    DRAFT = "Draft"
    READY = "Ready"
    POSTED = "Posted"
    CANCELLED = "Cancelled"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (READY, "Ready"),
        (POSTED, "Posted"),
        (CANCELLED, "Cancelled"),
    ]

    # status -> statuses it may move to
    TRANSITIONS = {
        DRAFT: (READY, CANCELLED),
        READY: (POSTED, CANCELLED),
        POSTED: (),
        CANCELLED: (),
    }

    OPEN_STATUSES = (DRAFT, READY)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="batches",
    )

    batch_number = models.CharField(max_length=40)
    batch_name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=DRAFT,
    )

    total_journals = models.PositiveIntegerField(default=0)
    total_debits = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_credits = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    reviewed_by = models.CharField(max_length=150, blank=True, null=True)
    reviewed_at = models.DateTimeField(blank=True, null=True)

    posted_by = models.CharField(max_length=150, blank=True, null=True)
    posted_at = models.DateTimeField(blank=True, null=True)

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Batch"
        verbose_name_plural = "Batches"
        permissions = [("post_batch", "Can post batches")]
        indexes = [
            models.Index(fields=["company", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "batch_number"],
                name="uniq_batch_company_number",
            ),
        ]

    def __str__(self):
        return f"{self.batch_number} – {self.batch_name} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    def can_transition_to(self, target: str) -> bool:
        return target in self.TRANSITIONS.get(self.status, ())

    def refresh_totals(self, *, save: bool = True) -> None:
        totals = self.journals.aggregate(
            journal_count=Count("id"),
            debit_total=Coalesce(Sum("total_debits"), ZERO),
            credit_total=Coalesce(Sum("total_credits"), ZERO),
        )
        self.total_journals = totals["journal_count"]
        self.total_debits = totals["debit_total"]
        self.total_credits = totals["credit_total"]

        if save:
            self.save(
                update_fields=[
                    "total_journals",
                    "total_debits",
                    "total_credits",
                    "updated_at",
                ]
            )
