# ledger/tests/factories.py

from __future__ import annotations

from decimal import Decimal

from django.utils import timezone

from ledger.models.account import Account
from ledger.models.company import Company
from ledger.models.import_row import GeneralLedgerRow
from ledger.services import journal_entry_service

CHART = [
    ("1000", "Checking", Account.ASSET),
    ("1200", "Accounts Receivable", Account.ASSET),
    ("2000", "Accounts Payable", Account.LIABILITY),
    ("3000", "Owner's Equity", Account.EQUITY),
    ("4000", "Sales", Account.REVENUE),
    ("6000", "Payroll Expenses", Account.EXPENSE),
]


def make_company(name: str = "Acme Ltd") -> Company:
    return Company.objects.create(name=name)


def make_account(company, number: str, name: str, account_type: str = Account.ASSET) -> Account:
    return Account.objects.create(
        company=company,
        account_number=number,
        full_name=name,
        account_type=account_type,
    )


def make_chart(company) -> dict:
    """Standard accounts keyed by account number."""
    return {
        number: make_account(company, number, name, account_type)
        for number, name, account_type in CHART
    }


def lines(debit_account, credit_account, amount="100.00") -> list:
    return [
        {"account": debit_account, "debit": Decimal(amount)},
        {"account": credit_account, "credit": Decimal(amount)},
    ]


def make_journal(company, debit_account, credit_account, amount="100.00", *, date=None, **kwargs):
    return journal_entry_service.create_journal(
        company=company,
        date=date or timezone.localdate(),
        lines=lines(debit_account, credit_account, amount),
        actor="tester",
        **kwargs,
    )


def make_row(company, account_name, amount="0.00", *, split_account="", name="", date=None):
    """Raw imported ledger row, stored exactly as given."""
    return GeneralLedgerRow.objects.create(
        company=company,
        date=date or timezone.localdate(),
        account_name=account_name,
        split_account=split_account,
        name=name,
        amount=Decimal(amount),
    )
