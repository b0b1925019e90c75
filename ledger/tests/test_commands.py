# ledger/tests/test_commands.py

from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from ledger.models.account import Account
from ledger.models.company import Company
from ledger.services.gl_settings_service import get_gl_settings, resolve_posting_rule


class SeedLedgerChartTests(TestCase):
    def test_seeds_company_chart_and_rules(self):
        out = StringIO()
        call_command("seed_ledger_chart", company="Acme Ltd", stdout=out)

        company = Company.objects.get(name="Acme Ltd")
        self.assertEqual(Account.objects.filter(company=company).count(), 15)
        self.assertIn("15 new accounts", out.getvalue())
        self.assertEqual(
            resolve_posting_rule(company, "payroll_expense").account_number, "6000"
        )

    def test_rerun_is_idempotent_and_reactivates(self):
        call_command("seed_ledger_chart", company="Acme Ltd", stdout=StringIO())
        company = Company.objects.get(name="Acme Ltd")
        Account.objects.filter(company=company, account_number="6100").update(is_active=False)

        out = StringIO()
        call_command("seed_ledger_chart", company="Acme Ltd", stdout=out)

        self.assertIn("0 new accounts, 1 updated", out.getvalue())
        self.assertTrue(Account.objects.get(company=company, account_number="6100").is_active)
        self.assertEqual(get_gl_settings(company).default_posting_rules["cash"], {"account_number": "1000"})

    def test_blank_company_is_rejected(self):
        with self.assertRaises(CommandError):
            call_command("seed_ledger_chart", company="  ", stdout=StringIO())
