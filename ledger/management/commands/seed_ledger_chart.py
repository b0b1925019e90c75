# ledger/management/commands/seed_ledger_chart.py

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from ledger.models.account import Account
from ledger.models.company import Company
from ledger.services.gl_settings_service import get_gl_settings

STANDARD_CHART = [
    # ASSETS
    ("1000", "Checking", Account.ASSET),
    ("1010", "Savings", Account.ASSET),
    ("1200", "Accounts Receivable", Account.ASSET),
    ("1500", "Equipment", Account.ASSET),
    # LIABILITIES
    ("2000", "Accounts Payable", Account.LIABILITY),
    ("2100", "Payroll Liabilities", Account.LIABILITY),
    ("2200", "Sales Tax Payable", Account.LIABILITY),
    # EQUITY
    ("3000", "Owner's Equity", Account.EQUITY),
    ("3100", "Retained Earnings", Account.EQUITY),
    # REVENUE
    ("4000", "Sales", Account.REVENUE),
    ("4100", "Service Revenue", Account.REVENUE),
    # EXPENSES
    ("5000", "Cost of Goods Sold", Account.EXPENSE),
    ("6000", "Payroll Expenses", Account.EXPENSE),
    ("6100", "Rent Expense", Account.EXPENSE),
    ("6200", "Office Supplies", Account.EXPENSE),
]

DEFAULT_POSTING_RULES = {
    "cash": {"account_number": "1000"},
    "accounts_receivable": {"account_number": "1200"},
    "accounts_payable": {"account_number": "2000"},
    "payroll_expense": {"account_number": "6000"},
    "payroll_liability": {"account_number": "2100"},
}


class Command(BaseCommand):
    help = "Create a company (if needed), its GL settings and a standard chart of accounts"

    def add_arguments(self, parser):
        parser.add_argument("--company", required=True, help="Company name")

    @transaction.atomic
    def handle(self, *args, **options):
        name = (options["company"] or "").strip()
        if not name:
            raise CommandError("--company must not be blank")

        company, created = Company.objects.get_or_create(name=name)
        self.stdout.write(f"{'Created' if created else 'Using existing'} company {company.name!r}")

        created_count = 0
        updated_count = 0

        for number, full_name, account_type in STANDARD_CHART:
            acc, acc_created = Account.objects.get_or_create(
                company=company,
                account_number=number,
                defaults={
                    "full_name": full_name,
                    "account_type": account_type,
                    "is_active": True,
                },
            )

            if acc_created:
                created_count += 1
                continue

            needs_update = False
            if acc.full_name != full_name:
                acc.full_name = full_name
                needs_update = True
            if acc.account_type != account_type:
                acc.account_type = account_type
                needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save(update_fields=["full_name", "account_type", "is_active", "updated_at"])
                updated_count += 1

        gl_settings = get_gl_settings(company)
        if not gl_settings.default_posting_rules:
            gl_settings.default_posting_rules = DEFAULT_POSTING_RULES
            gl_settings.save(update_fields=["default_posting_rules", "updated_at"])

        self.stdout.write(
            self.style.SUCCESS(
                f"✔ Ledger chart seeded for {company.name} "
                f"({created_count} new accounts, {updated_count} updated)."
            )
        )
