# ledger/tests/test_account_mapping.py

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from ledger.entry_kind import FieldType
from ledger.models.mapping import AccountMapping
from ledger.services import account_mapping_service as ams
from ledger.services.account_resolver import AccountIndex, MappingIndex
from ledger.services.exceptions import AccountResolutionError, AmbiguousMappingError
from ledger.tests.factories import make_account, make_chart, make_company, make_row


class UnmatchedEntriesTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)

    def test_groups_unmapped_labels_and_skips_split_rows(self):
        make_row(self.company, "Bank Fees", "10.00")
        make_row(self.company, "Bank Fees", "5.00")
        make_row(self.company, "Checking", "-3.00")
        make_row(self.company, "Sales", "99.00", split_account="-Split-")

        entries = ams.find_unmatched_entries(self.company)

        self.assertEqual(
            [(e.label, e.field_type, e.entry_count, e.total_amount) for e in entries],
            [
                ("Bank Fees", "account_name", 2, Decimal("15.00")),
                ("Checking", "account_name", 1, Decimal("-3.00")),
            ],
        )

    def test_mapped_label_is_no_longer_reported(self):
        make_row(self.company, "Bank Fees", "10.00")
        ams.create_mapping(
            company=self.company,
            label="Bank Fees",
            chart_account_id=self.chart["6000"].id,
        )

        self.assertEqual(ams.find_unmatched_entries(self.company), [])

    def test_each_label_field_is_reported_separately(self):
        make_row(self.company, "Bank Fees", "10.00", split_account="Checking", name="First Bank")

        entries = ams.find_unmatched_entries(self.company)

        self.assertEqual(
            [(e.field_type, e.label) for e in entries],
            [
                ("account_name", "Bank Fees"),
                ("split_account", "Checking"),
                ("name", "First Bank"),
            ],
        )

    def test_gl_entries_sorted_by_count(self):
        make_row(self.company, "Rare", "1.00")
        for _ in range(3):
            make_row(self.company, "Frequent", "2.00")

        entries = ams.get_unmatched_gl_entries(self.company)

        self.assertEqual([e["account_name"] for e in entries], ["Frequent", "Rare"])
        self.assertEqual(entries[0]["entry_count"], 3)
        self.assertEqual(entries[0]["total_amount"], Decimal("6.00"))


class MappingCrudTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)

    def test_create_mapping_is_an_upsert(self):
        ams.create_mapping(
            company=self.company, label="Bank Fees", chart_account_id=self.chart["6000"].id
        )
        mapping = ams.create_mapping(
            company=self.company, label="  Bank Fees ", chart_account_id=self.chart["2000"].id
        )

        self.assertEqual(AccountMapping.objects.filter(company=self.company).count(), 1)
        self.assertEqual(mapping.chart_account_id, self.chart["2000"].id)
        self.assertEqual(mapping.gl_account_name, "Bank Fees")

    def test_same_label_different_field_types_coexist(self):
        ams.create_mapping(
            company=self.company, label="Acme", chart_account_id=self.chart["1200"].id
        )
        ams.create_mapping(
            company=self.company,
            label="Acme",
            field_type="name",
            chart_account_id=self.chart["1200"].id,
        )
        self.assertEqual(AccountMapping.objects.count(), 2)

    def test_split_marker_cannot_be_mapped(self):
        with self.assertRaises(AccountResolutionError):
            ams.create_mapping(
                company=self.company, label="-Split-", chart_account_id=self.chart["1000"].id
            )

    def test_unknown_field_type_is_rejected(self):
        with self.assertRaises(AccountResolutionError):
            ams.create_mapping(
                company=self.company,
                label="Acme",
                field_type="memo",
                chart_account_id=self.chart["1000"].id,
            )

    def test_account_from_other_company_is_rejected(self):
        other = make_company("Other Co")
        foreign = make_account(other, "1000", "Checking")

        with self.assertRaises(AccountResolutionError):
            ams.create_mapping(company=self.company, label="Acme", chart_account_id=foreign.id)

    def test_delete_mapping(self):
        mapping = ams.create_mapping(
            company=self.company, label="Acme", chart_account_id=self.chart["1200"].id
        )
        ams.delete_mapping(company=self.company, mapping_id=mapping.id)
        self.assertFalse(AccountMapping.objects.exists())

        with self.assertRaises(AccountResolutionError):
            ams.delete_mapping(company=self.company, mapping_id=mapping.id)


class AutoMapTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)

    def test_maps_exact_number_and_prefix_matches(self):
        make_row(self.company, "Checking", "1.00")
        make_row(self.company, "4000", "1.00")
        make_row(self.company, "6000 Payroll Expenses", "1.00")
        make_row(self.company, "Mystery", "1.00")

        result = ams.auto_map_obvious_matches(self.company, actor="bot")

        self.assertEqual(result.created_count, 3)
        mapped = dict(
            AccountMapping.objects.values_list("gl_account_name", "chart_account__account_number")
        )
        self.assertEqual(
            mapped,
            {"Checking": "1000", "4000": "4000", "6000 Payroll Expenses": "6000"},
        )
        self.assertEqual(result.ambiguous, [])

    def test_ambiguous_label_is_reported_not_guessed(self):
        make_account(self.company, "1010", "Petty Cash")
        make_account(self.company, "1020", "Petty Cash")
        make_row(self.company, "Petty Cash", "1.00")

        result = ams.auto_map_obvious_matches(self.company)

        self.assertEqual(result.created_count, 0)
        self.assertEqual(result.ambiguous, [{"label": "Petty Cash", "candidates": ["1010", "1020"]}])
        self.assertFalse(AccountMapping.objects.exists())

    def test_existing_mapping_is_left_alone(self):
        make_row(self.company, "Checking", "1.00")
        ams.create_mapping(
            company=self.company, label="Checking", chart_account_id=self.chart["1200"].id
        )

        result = ams.auto_map_obvious_matches(self.company)

        self.assertEqual(result.created_count, 0)
        self.assertEqual(
            AccountMapping.objects.get(gl_account_name="Checking").chart_account_id,
            self.chart["1200"].id,
        )

    def test_split_rows_are_ignored(self):
        make_row(self.company, "Checking", "1.00", name="-Split-")
        result = ams.auto_map_obvious_matches(self.company)
        self.assertEqual(result.created_count, 0)


class ResolverTests(TestCase):
    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)
        self.index = AccountIndex.for_company(self.company)

    def test_exact_match_beats_prefix(self):
        self.assertEqual(self.index.match("Checking"), self.chart["1000"])
        self.assertEqual(self.index.match("1200 Receivables"), self.chart["1200"])
        self.assertIsNone(self.index.match("checking"))
        self.assertIsNone(self.index.match("-Split-"))

    def test_ambiguity_raises_with_candidates(self):
        make_account(self.company, "1010", "Petty Cash")
        make_account(self.company, "1020", "Petty Cash")
        index = AccountIndex.for_company(self.company)

        with self.assertRaises(AmbiguousMappingError) as ctx:
            index.match("Petty Cash")
        self.assertEqual(ctx.exception.candidates, ["1010", "1020"])
        self.assertIsNone(index.match_or_none("Petty Cash"))

    def test_resolve_row_prefers_direct_match_then_mappings(self):
        ams.create_mapping(
            company=self.company,
            label="Acme Corp",
            field_type=FieldType.NAME,
            chart_account_id=self.chart["1200"].id,
        )
        mappings = MappingIndex.for_company(self.company)

        direct, via_mapping = ams.resolve_row_account(
            ("Checking", "", "Acme Corp"), accounts=self.index, mappings=mappings
        )
        self.assertEqual((direct, via_mapping), (self.chart["1000"], False))

        mapped, via_mapping = ams.resolve_row_account(
            ("Unknown", "-Split-", "Acme Corp"), accounts=self.index, mappings=mappings
        )
        self.assertEqual((mapped, via_mapping), (self.chart["1200"], True))

        missing, _ = ams.resolve_row_account(
            ("Unknown", "", "Acme Corp"), accounts=self.index, mappings=None
        )
        self.assertIsNone(missing)
