# ledger/models/__init__.py

"""
LEDGER MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from ledger.models.account import Account
from ledger.models.batch import Batch
from ledger.models.company import Company
from ledger.models.gl_settings import GLSettings
from ledger.models.import_row import GeneralLedgerRow
from ledger.models.journal import EntryLine, Journal
from ledger.models.mapping import AccountMapping

__all__ = [
    "Company",
    "Account",
    "Journal",
    "EntryLine",
    "Batch",
    "AccountMapping",
    "GLSettings",
    "GeneralLedgerRow",
]
