# ledger/models/company.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models


class Company(models.Model):
    """
    Owner of a ledger.

    Every account, journal, batch, mapping and import row is scoped to
    exactly one company. Sequences and settings never leak across companies.
    """

    name = models.CharField(max_length=150, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Company"
        verbose_name_plural = "Companies"

    def __str__(self):
        return self.name

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Company name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
