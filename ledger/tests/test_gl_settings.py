# ledger/tests/test_gl_settings.py

from __future__ import annotations

from datetime import date, timedelta

from django.test import SimpleTestCase, TestCase

from ledger.entry_kind import EntryKind, classify_label, has_split_marker
from ledger.models.gl_settings import GLSettings
from ledger.posting_rules import AccountRef, PostingRules, PostingRulesError
from ledger.services.exceptions import (
    AccountResolutionError,
    InvalidSettingsError,
    PeriodClosedError,
    PostingRuleError,
)
from ledger.services.gl_settings_service import (
    get_gl_settings,
    resolve_posting_rule,
    update_settings,
)
from ledger.services.period_lock import assert_period_open, is_future_date
from ledger.tests.factories import make_chart, make_company


class GLSettingsServiceTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)

    def test_defaults(self):
        settings_obj = get_gl_settings(self.company)

        self.assertEqual(settings_obj.auto_journal_number_prefix, "JE-")
        self.assertEqual(settings_obj.next_journal_number, 1)
        self.assertEqual(settings_obj.next_batch_number, 1)
        self.assertTrue(settings_obj.lock_posted_entries)
        self.assertFalse(settings_obj.allow_future_posting)
        self.assertFalse(settings_obj.require_batch_approval)
        self.assertEqual(GLSettings.objects.filter(company=self.company).count(), 1)

        get_gl_settings(self.company)
        self.assertEqual(GLSettings.objects.filter(company=self.company).count(), 1)

    def test_counters_may_only_increase(self):
        update_settings(self.company, {"next_journal_number": 50})

        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"next_journal_number": 10})
        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"next_batch_number": 0})

        self.assertEqual(get_gl_settings(self.company).next_journal_number, 50)

    def test_counter_must_be_integer(self):
        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"next_journal_number": "12"})

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"fiscal_year": 2024})

    def test_period_order_is_enforced(self):
        with self.assertRaises(InvalidSettingsError):
            update_settings(
                self.company,
                {"current_period_open": "2024-02-01", "next_period_open": "2024-01-01"},
            )

        settings_obj = update_settings(
            self.company,
            {"current_period_open": "2024-01-01", "next_period_open": "2024-02-01"},
        )
        self.assertEqual(settings_obj.current_period_open, date(2024, 1, 1))
        self.assertEqual(settings_obj.next_period_open, date(2024, 2, 1))

    def test_invalid_date_is_rejected(self):
        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"current_period_open": "yesterday"})

    def test_boolean_flags_must_be_booleans(self):
        with self.assertRaises(InvalidSettingsError):
            update_settings(self.company, {"lock_posted_entries": "no"})

    def test_posting_rules_are_normalized_and_resolved(self):
        settings_obj = update_settings(
            self.company,
            {
                "default_posting_rules": {
                    " payroll_expense ": {"account_number": "6000"},
                    "cash": {"account_id": self.chart["1000"].id},
                }
            },
        )

        self.assertEqual(
            settings_obj.default_posting_rules,
            {
                "cash": {"account_id": self.chart["1000"].id},
                "payroll_expense": {"account_number": "6000"},
            },
        )
        self.assertEqual(resolve_posting_rule(self.company, "payroll_expense"), self.chart["6000"])
        self.assertEqual(resolve_posting_rule(self.company, "cash"), self.chart["1000"])

    def test_posting_rule_with_unknown_account_is_rejected(self):
        with self.assertRaises(PostingRuleError):
            update_settings(
                self.company, {"default_posting_rules": {"cash": {"account_number": "9999"}}}
            )

    def test_malformed_posting_rules_are_rejected(self):
        for payload in (
            ["6000"],
            {"cash": "1000"},
            {"cash": {"account_number": "1000", "account_id": 1}},
            {"cash": {"account_code": "1000"}},
            {"": {"account_number": "1000"}},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(PostingRuleError):
                    update_settings(self.company, {"default_posting_rules": payload})

    def test_unknown_posting_rule_key(self):
        with self.assertRaises(AccountResolutionError):
            resolve_posting_rule(self.company, "missing")


class PeriodLockTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.settings = get_gl_settings(self.company)
        self.today = date(2024, 6, 15)

    def test_open_window(self):
        self.settings.current_period_open = date(2024, 6, 1)
        assert_period_open(self.settings, date(2024, 6, 10), today=self.today)

    def test_before_open_period(self):
        self.settings.current_period_open = date(2024, 6, 1)
        with self.assertRaises(PeriodClosedError):
            assert_period_open(self.settings, date(2024, 5, 31), today=self.today)

    def test_future_dates(self):
        self.assertTrue(is_future_date(self.settings, date(2024, 6, 16), today=self.today))
        self.assertFalse(is_future_date(self.settings, self.today, today=self.today))

        self.settings.next_period_open = date(2024, 6, 10)
        self.assertTrue(is_future_date(self.settings, date(2024, 6, 12), today=self.today))

        with self.assertRaises(PeriodClosedError):
            assert_period_open(self.settings, date(2024, 6, 12), today=self.today)

        self.settings.allow_future_posting = True
        assert_period_open(self.settings, self.today + timedelta(days=30), today=self.today)

    def test_missing_date(self):
        with self.assertRaises(PeriodClosedError):
            assert_period_open(self.settings, None)


class PostingRulesTests(SimpleTestCase):
    def test_round_trip_sorted(self):
        rules = PostingRules.from_raw({"b": {"account_id": 2}, "a": {"account_number": " 1000 "}})
        self.assertEqual(rules.to_raw(), {"a": {"account_number": "1000"}, "b": {"account_id": 2}})
        self.assertEqual(rules.as_dict()["b"], AccountRef(account_id=2))

    def test_none_is_empty(self):
        self.assertEqual(PostingRules.from_raw(None).to_raw(), {})

    def test_duplicate_after_trim(self):
        with self.assertRaises(PostingRulesError):
            PostingRules.from_raw({"a": {"account_id": 1}, " a": {"account_id": 2}})

    def test_account_id_must_be_positive_int(self):
        for value in (0, -1, True, "3"):
            with self.subTest(value=value):
                with self.assertRaises(PostingRulesError):
                    AccountRef.from_raw({"account_id": value}, key="k")


class EntryKindTests(SimpleTestCase):
    def test_classification(self):
        self.assertIs(classify_label("-Split-"), EntryKind.SPLIT_MARKER)
        self.assertIs(classify_label("  -Split- "), EntryKind.SPLIT_MARKER)
        self.assertIs(classify_label(""), EntryKind.BLANK)
        self.assertIs(classify_label(None), EntryKind.BLANK)
        self.assertIs(classify_label("Checking"), EntryKind.ACCOUNT)
        self.assertIs(classify_label("-split-"), EntryKind.ACCOUNT)

    def test_has_split_marker(self):
        self.assertTrue(has_split_marker(("Checking", "-Split-", "")))
        self.assertFalse(has_split_marker(("Checking", "Sales", "Acme")))
