# ledger/models/mapping.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

from ledger.entry_kind import EntryKind, FieldType, classify_label, normalize_label
from ledger.models.account import Account
from ledger.models.company import Company


class AccountMapping(models.Model):
    """
    Association between a raw imported label and a chart-of-accounts entry.

    Unique per (company, gl_account_name, gl_field_type). Created manually or by
    auto-matching; never deleted automatically.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="account_mappings",
    )

    gl_account_name = models.CharField(max_length=255)
    gl_field_type = models.CharField(
        max_length=20,
        choices=FieldType.choices(),
        default=FieldType.ACCOUNT_NAME.value,
    )

    chart_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="mappings",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["gl_field_type", "gl_account_name"]
        verbose_name = "Account Mapping"
        verbose_name_plural = "Account Mappings"
        constraints = [
            models.UniqueConstraint(
                fields=["company", "gl_account_name", "gl_field_type"],
                name="uniq_mapping_company_label_field",
            ),
        ]

    def __str__(self):
        return f"{self.gl_field_type}:{self.gl_account_name} → {self.chart_account}"

    def clean(self):
        self.gl_account_name = normalize_label(self.gl_account_name)

        kind = classify_label(self.gl_account_name)
        if kind is EntryKind.BLANK:
            raise ValidationError({"gl_account_name": "Label is required"})
        if kind is EntryKind.SPLIT_MARKER:
            raise ValidationError(
                {"gl_account_name": "Split markers are not postable accounts"}
            )

        if self.chart_account_id and self.company_id:
            if self.chart_account.company_id != self.company_id:
                raise ValidationError(
                    {"chart_account": "Mapped account belongs to another company"}
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
