# ledger/tests/test_import.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from django.test import SimpleTestCase, TestCase, override_settings

from ledger.models.import_row import GeneralLedgerRow
from ledger.services.import_service import (
    RowError,
    import_general_ledger,
    parse_amount,
    parse_row_date,
)
from ledger.tests.factories import make_company


class ParseHelpersTests(SimpleTestCase):
    def test_dates(self):
        self.assertEqual(parse_row_date("2024-03-05"), date(2024, 3, 5))
        self.assertEqual(parse_row_date("03/05/2024"), date(2024, 3, 5))
        self.assertEqual(parse_row_date("03-05-2024"), date(2024, 3, 5))
        self.assertEqual(parse_row_date("2024-03-05T10:30:00"), date(2024, 3, 5))
        self.assertEqual(parse_row_date(datetime(2024, 3, 5, 8, 0)), date(2024, 3, 5))
        self.assertEqual(parse_row_date(45356), date(2024, 3, 5))

    def test_unusable_dates(self):
        for value in (None, "", "null", "undefined", "not a date", 0, "1850-01-01", date(2200, 1, 1)):
            with self.subTest(value=value):
                self.assertIsNone(parse_row_date(value))

    def test_amounts(self):
        self.assertEqual(parse_amount("1,234.50"), Decimal("1234.50"))
        self.assertEqual(parse_amount("$99"), Decimal("99.00"))
        self.assertEqual(parse_amount("(45.10)"), Decimal("-45.10"))
        self.assertEqual(parse_amount(-3.333), Decimal("-3.33"))
        self.assertEqual(parse_amount(None), Decimal("0.00"))

        with self.assertRaises(RowError):
            parse_amount("abc")
        with self.assertRaises(RowError):
            parse_amount("NaN")


class GeneralLedgerImportTests(TestCase):
    def setUp(self):
        self.company = make_company()

    def test_imports_valid_rows_with_defaults(self):
        result = import_general_ledger(
            self.company,
            [
                {
                    "date": "2024-01-31",
                    "account": "Checking",
                    "name": "Acme",
                    "type": "Deposit",
                    "split": "Sales",
                    "amount": "1,500.00",
                    "balance": "1500",
                    "memo": "January sales",
                    "num": "1001",
                },
                {"date": "2024-02-01", "account": "Payroll Expenses", "amount": "(200)"},
            ],
        )

        self.assertTrue(result.success)
        self.assertEqual(result.inserted_count, 2)
        self.assertEqual(result.error_count, 0)

        first = GeneralLedgerRow.objects.get(account_name="Checking")
        self.assertEqual(first.split_account, "Sales")
        self.assertEqual(first.description, "January sales")
        self.assertEqual(first.reference, "1001")
        self.assertEqual(first.amount, Decimal("1500.00"))

        second = GeneralLedgerRow.objects.get(account_name="Payroll Expenses")
        self.assertEqual(second.amount, Decimal("-200.00"))
        self.assertEqual(second.name, "Payroll Expenses")
        self.assertEqual(second.split_account, "Payroll Expenses")
        self.assertEqual(second.type, "Unknown")

    def test_skips_blank_and_undated_rows_and_reports_errors(self):
        result = import_general_ledger(
            self.company,
            [
                {"date": "2024-01-31", "account": "Checking", "amount": "10"},
                {"date": "", "account": "", "amount": ""},
                {"date": "garbage", "account": "Checking", "amount": "10"},
                {"date": "2024-01-31", "account": "", "amount": "10"},
                {"date": "2024-01-31", "account": "Checking", "amount": "ten"},
                "not a row",
            ],
        )

        self.assertTrue(result.success)
        self.assertEqual(result.inserted_count, 1)
        self.assertEqual(result.skipped_count, 2)
        self.assertEqual(result.error_count, 3)
        self.assertEqual(
            result.errors,
            [
                "Missing account name at row 5",
                "Row 6: invalid amount 'ten'",
                "Row 7: expected an object",
            ],
        )

    def test_nothing_valid(self):
        result = import_general_ledger(self.company, [{"date": "", "account": "X"}])

        self.assertFalse(result.success)
        self.assertEqual(result.inserted_count, 0)
        self.assertEqual(result.errors, ["No valid data rows found to import"])
        self.assertFalse(GeneralLedgerRow.objects.exists())

    @override_settings(LEDGER_IMPORT_CHUNK_SIZE=2)
    def test_inserts_in_chunks(self):
        rows = [
            {"date": "2024-01-01", "account": f"Account {i}", "amount": str(i)}
            for i in range(5)
        ]

        result = import_general_ledger(self.company, rows)

        self.assertEqual(result.inserted_count, 5)
        self.assertEqual(GeneralLedgerRow.objects.filter(company=self.company).count(), 5)
        self.assertEqual(
            result.as_dict(),
            {
                "success": True,
                "inserted_count": 5,
                "skipped_count": 0,
                "error_count": 0,
                "errors": [],
            },
        )
