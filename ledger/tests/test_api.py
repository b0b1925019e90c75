# ledger/tests/test_api.py

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from ledger.models.account import Account
from ledger.models.batch import Batch
from ledger.models.journal import Journal
from ledger.services import journal_entry_service as jes
from ledger.tests.factories import make_chart, make_company, make_journal, make_row

User = get_user_model()

LEDGER_PERMS = (
    "view_account",
    "change_account",
    "view_journal",
    "add_journal",
    "change_journal",
    "delete_journal",
    "post_journal",
    "view_batch",
    "add_batch",
    "change_batch",
    "post_batch",
    "view_accountmapping",
    "add_accountmapping",
    "delete_accountmapping",
    "view_glsettings",
    "change_glsettings",
    "add_generalledgerrow",
)


def make_user(username: str, perms=()) -> "User":
    user = User.objects.create_user(username=username, password="password123")
    if perms:
        user.user_permissions.add(
            *Permission.objects.filter(content_type__app_label="ledger", codename__in=perms)
        )
    # Reload so the permission cache starts empty.
    return User.objects.get(pk=user.pk)


class LedgerAPITestCase(TestCase):
    """
    Shared fixture: one company with a small chart and a fully privileged
    accountant.
    """

    def setUp(self):
        self.company = make_company()
        self.chart = make_chart(self.company)
        self.cash = self.chart["1000"]
        self.sales = self.chart["4000"]

        self.user = make_user("accountant", LEDGER_PERMS)
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def url(self, name, **kwargs):
        return reverse(f"ledger:{name}", kwargs={"company_id": self.company.id, **kwargs})

    def journal_payload(self, amount="100.00", credit=None):
        return {
            "date": timezone.localdate().isoformat(),
            "memo": "Cash sale",
            "lines": [
                {"account_id": self.cash.id, "debit": amount},
                {"account_id": self.sales.id, "credit": credit or amount},
            ],
        }


class AccessTests(LedgerAPITestCase):
    def test_anonymous_is_rejected(self):
        response = APIClient().get(self.url("journals"))
        self.assertEqual(response.status_code, 401)

    def test_missing_model_permission_is_forbidden(self):
        client = APIClient()
        client.force_authenticate(make_user("viewer", ("view_journal",)))

        self.assertEqual(client.get(self.url("journals")).status_code, 200)
        response = client.post(self.url("journals"), self.journal_payload(), format="json")
        self.assertEqual(response.status_code, 403)

    def test_post_requires_post_permission(self):
        client = APIClient()
        client.force_authenticate(make_user("clerk", ("view_journal", "add_journal")))
        journal = make_journal(self.company, self.cash, self.sales)

        response = client.post(self.url("journal-post", pk=journal.id))

        self.assertEqual(response.status_code, 403)

    def test_unknown_company_is_404(self):
        response = self.client.get(reverse("ledger:journals", kwargs={"company_id": 999999}))
        self.assertEqual(response.status_code, 404)

    def test_health_check(self):
        response = APIClient().get(reverse("health-check"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"status": "ok", "db": "ok"})


class JournalAPITests(LedgerAPITestCase):
    def test_create_and_fetch_journal(self):
        response = self.client.post(self.url("journals"), self.journal_payload(), format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["journal_number"], "JE-000001")
        self.assertEqual(response.data["status"], "Draft")
        self.assertTrue(response.data["is_balanced"])
        self.assertEqual(len(response.data["lines"]), 2)
        self.assertEqual(response.data["created_by"], "accountant")

        detail = self.client.get(self.url("journal-detail", pk=response.data["id"]))
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["lines"][0]["account_number"], "1000")

    def test_structure_error_uses_error_body(self):
        payload = self.journal_payload()
        payload["lines"] = payload["lines"][:1]

        response = self.client.post(self.url("journals"), payload, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_journal_structure")
        self.assertIn("entity_id", response.data)
        self.assertFalse(Journal.objects.exists())

    def test_post_unbalanced_returns_400_with_entity(self):
        created = self.client.post(
            self.url("journals"), self.journal_payload("100.00", credit="90.00"), format="json"
        )
        journal_id = created.data["id"]

        response = self.client.post(self.url("journal-post", pk=journal_id))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "unbalanced_journal")
        self.assertEqual(response.data["entity_id"], journal_id)

    def test_posted_journal_edit_conflicts(self):
        journal = make_journal(self.company, self.cash, self.sales)
        posted = self.client.post(self.url("journal-post", pk=journal.id))
        self.assertEqual(posted.status_code, 200)
        self.assertEqual(posted.data["status"], "Posted")
        self.assertEqual(posted.data["posted_by"], "accountant")

        response = self.client.patch(
            self.url("journal-detail", pk=journal.id), {"memo": "edit"}, format="json"
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "journal_locked")

    def test_patch_lines_and_line_endpoints(self):
        journal = make_journal(self.company, self.cash, self.sales)

        added = self.client.post(
            self.url("journal-lines", pk=journal.id),
            {"account_id": self.cash.id, "debit": "10.00"},
            format="json",
        )
        self.assertEqual(added.status_code, 201)
        self.assertEqual(added.data["line_number"], 3)

        changed = self.client.patch(
            self.url("journal-line-detail", pk=journal.id, line_id=added.data["id"]),
            {"debit": "15.00"},
            format="json",
        )
        self.assertEqual(changed.status_code, 200)
        self.assertEqual(changed.data["debit_amount"], "15.00")

        removed = self.client.delete(
            self.url("journal-line-detail", pk=journal.id, line_id=added.data["id"])
        )
        self.assertEqual(removed.status_code, 200)
        self.assertTrue(removed.data["is_balanced"])

        replaced = self.client.patch(
            self.url("journal-detail", pk=journal.id),
            {"lines": self.journal_payload("42.00")["lines"]},
            format="json",
        )
        self.assertEqual(replaced.status_code, 200)
        self.assertEqual(replaced.data["total_debits"], "42.00")

    def test_empty_patch_is_rejected(self):
        journal = make_journal(self.company, self.cash, self.sales)
        response = self.client.patch(self.url("journal-detail", pk=journal.id), {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_list_filters(self):
        posted = make_journal(self.company, self.cash, self.sales)
        jes.post_journal(posted.id)
        make_journal(self.company, self.cash, self.sales)

        everything = self.client.get(self.url("journals"))
        only_posted = self.client.get(self.url("journals"), {"status": "Posted"})

        self.assertEqual(everything.data["count"], 2)
        self.assertEqual(only_posted.data["count"], 1)
        self.assertEqual(only_posted.data["results"][0]["id"], posted.id)

    def test_cancel_reverse_and_delete(self):
        draft = make_journal(self.company, self.cash, self.sales)
        cancelled = self.client.post(self.url("journal-cancel", pk=draft.id))
        self.assertEqual(cancelled.data["status"], "Cancelled")

        posted = make_journal(self.company, self.cash, self.sales)
        jes.post_journal(posted.id)
        reversal = self.client.post(self.url("journal-reverse", pk=posted.id), {}, format="json")
        self.assertEqual(reversal.status_code, 201)
        self.assertEqual(reversal.data["reversal_of"], posted.id)

        deleted = self.client.delete(self.url("journal-detail", pk=reversal.data["id"]))
        self.assertEqual(deleted.status_code, 204)

        refused = self.client.delete(self.url("journal-detail", pk=posted.id))
        self.assertEqual(refused.status_code, 400)
        self.assertEqual(refused.data["code"], "invalid_journal_state")


class BatchAPITests(LedgerAPITestCase):
    def test_create_and_list_batches(self):
        first = self.client.post(self.url("batches"), {"batch_name": "May"}, format="json")
        second = self.client.post(
            self.url("batches"), {"batch_name": "June", "description": "Payroll"}, format="json"
        )

        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.data["batch_number"], "BATCH-000001")
        self.assertEqual(first.data["status"], "Draft")
        self.assertEqual(first.data["created_by"], "accountant")
        self.assertEqual(first.data["journal_ids"], [])
        self.assertEqual(second.status_code, 201)
        self.assertEqual(second.data["batch_number"], "BATCH-000002")
        self.assertEqual(Batch.objects.filter(company=self.company).count(), 2)

        listed = self.client.get(self.url("batches"))
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(listed.data["count"], 2)

    def test_blank_batch_name_is_rejected(self):
        response = self.client.post(self.url("batches"), {"batch_name": "   "}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Batch.objects.exists())

    def test_full_batch_lifecycle(self):
        journal = make_journal(self.company, self.cash, self.sales)

        created = self.client.post(
            self.url("batches"), {"batch_name": "Month end"}, format="json"
        )
        self.assertEqual(created.status_code, 201)
        batch_id = created.data["id"]
        self.assertEqual(created.data["batch_number"], "BATCH-000001")

        added = self.client.post(
            self.url("batch-journals", pk=batch_id), {"journal_id": journal.id}, format="json"
        )
        self.assertEqual(added.data["journal_ids"], [journal.id])
        self.assertEqual(added.data["total_debits"], "100.00")

        ready = self.client.post(self.url("batch-ready", pk=batch_id))
        self.assertEqual(ready.data["status"], "Ready")

        posted = self.client.post(self.url("batch-post", pk=batch_id))
        self.assertEqual(posted.status_code, 200)
        self.assertEqual(posted.data["status"], "Posted")

        journal.refresh_from_db()
        self.assertEqual(journal.status, Journal.POSTED)

    def test_empty_batch_cannot_be_ready(self):
        created = self.client.post(self.url("batches"), {"batch_name": "Empty"}, format="json")

        response = self.client.post(self.url("batch-ready", pk=created.data["id"]))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "empty_batch")

    def test_remove_journal(self):
        journal = make_journal(self.company, self.cash, self.sales)
        created = self.client.post(self.url("batches"), {"batch_name": "B"}, format="json")
        batch_id = created.data["id"]
        self.client.post(
            self.url("batch-journals", pk=batch_id), {"journal_id": journal.id}, format="json"
        )

        response = self.client.delete(
            self.url("batch-journal-remove", pk=batch_id, journal_id=journal.id)
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["journal_ids"], [])


class MappingAndBalanceAPITests(LedgerAPITestCase):
    def test_unmatched_then_mapped(self):
        make_row(self.company, "Bank Fees", "12.00")
        make_row(self.company, "Bank Fees", "8.00")

        unmatched = self.client.get(self.url("mappings-unmatched"))
        self.assertEqual(unmatched.status_code, 200)
        self.assertEqual(unmatched.data[0]["account_name"], "Bank Fees")
        self.assertEqual(unmatched.data[0]["entry_count"], 2)

        created = self.client.post(
            self.url("mappings"),
            {"gl_account_name": "Bank Fees", "chart_account_id": self.chart["6000"].id},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["chart_account_number"], "6000")

        by_label = self.client.get(self.url("mappings-unmatched"), {"by": "label"})
        self.assertEqual(by_label.data, [])

        recalculated = self.client.post(self.url("balances-recalculate"))
        self.assertEqual(recalculated.status_code, 200)
        self.assertEqual(
            recalculated.data, {"accounts_updated": 1, "total_entries": 2, "mapped_entries": 2}
        )
        self.assertEqual(
            Account.objects.get(pk=self.chart["6000"].pk).current_balance, Decimal("20.00")
        )

    def test_auto_map(self):
        make_row(self.company, "Checking", "1.00")
        make_row(self.company, "Nothing Like It", "1.00")

        response = self.client.post(self.url("mappings-auto-map"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["created_count"], 1)
        self.assertEqual(response.data["created"][0]["gl_account_name"], "Checking")
        self.assertEqual(response.data["ambiguous"], [])

    def test_delete_mapping(self):
        created = self.client.post(
            self.url("mappings"),
            {"gl_account_name": "Acme", "gl_field_type": "name", "chart_account_id": self.cash.id},
            format="json",
        )

        response = self.client.delete(self.url("mapping-detail", pk=created.data["id"]))
        self.assertEqual(response.status_code, 204)

        missing = self.client.delete(self.url("mapping-detail", pk=created.data["id"]))
        self.assertEqual(missing.status_code, 400)

    def test_simple_mode_and_bad_mode(self):
        journal = make_journal(self.company, self.cash, self.sales, "30.00")
        jes.post_journal(journal.id)

        simple = self.client.post(self.url("balances-recalculate") + "?mode=simple")
        self.assertEqual(simple.data, {"accounts_updated": 2, "total_entries": 2})

        bad = self.client.post(self.url("balances-recalculate") + "?mode=fast")
        self.assertEqual(bad.status_code, 400)

    def test_summary(self):
        make_journal(self.company, self.cash, self.sales)
        response = self.client.get(self.url("summary"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["journals"]["Draft"], 1)

    def test_accounts_list(self):
        response = self.client.get(self.url("accounts"), {"account_type": "Asset"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [a["account_number"] for a in response.data["results"]], ["1000", "1200"]
        )


class SettingsAndImportAPITests(LedgerAPITestCase):
    def test_settings_read_and_update(self):
        response = self.client.get(self.url("settings"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["auto_journal_number_prefix"], "JE-")

        updated = self.client.patch(
            self.url("settings"),
            {
                "next_journal_number": 10,
                "allow_future_posting": True,
                "default_posting_rules": {"payroll": {"account_number": "6000"}},
            },
            format="json",
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data["next_journal_number"], 10)
        self.assertTrue(updated.data["allow_future_posting"])

        rejected = self.client.patch(
            self.url("settings"), {"next_journal_number": 5}, format="json"
        )
        self.assertEqual(rejected.status_code, 400)
        self.assertEqual(rejected.data["code"], "invalid_settings")

    def test_malformed_posting_rules_rejected_by_serializer(self):
        response = self.client.patch(
            self.url("settings"), {"default_posting_rules": {"payroll": "6000"}}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("default_posting_rules", response.data)

    def test_import_rows(self):
        response = self.client.post(
            self.url("imports"),
            {
                "rows": [
                    {"date": "2024-01-31", "account": "Checking", "amount": "10.00"},
                    {"date": "", "account": "Checking", "amount": "5.00"},
                ]
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["inserted_count"], 1)
        self.assertEqual(response.data["skipped_count"], 1)

    def test_import_with_nothing_valid(self):
        response = self.client.post(
            self.url("imports"), {"rows": [{"date": "", "account": "X"}]}, format="json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
