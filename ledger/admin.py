# ledger/admin.py

from django.contrib import admin

from ledger.models.account import Account
from ledger.models.batch import Batch
from ledger.models.company import Company
from ledger.models.gl_settings import GLSettings
from ledger.models.import_row import GeneralLedgerRow
from ledger.models.journal import EntryLine, Journal
from ledger.models.mapping import AccountMapping

# ============================================================
# COMPANY / SETTINGS
# ============================================================


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at")
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(GLSettings)
class GLSettingsAdmin(admin.ModelAdmin):
    list_display = (
        "company",
        "auto_journal_number_prefix",
        "next_journal_number",
        "next_batch_number",
        "current_period_open",
        "next_period_open",
        "lock_posted_entries",
    )
    # Counters move only through the sequence allocator.
    readonly_fields = ("next_journal_number", "next_batch_number", "created_at", "updated_at")


# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "account_number",
        "full_name",
        "account_type",
        "company",
        "current_balance",
        "is_active",
    )
    list_filter = ("account_type", "is_active", "company")
    search_fields = ("account_number", "full_name")
    ordering = ("company", "account_number")
    readonly_fields = ("current_balance", "created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("company", "account_number", "full_name", "account_type"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "current_balance"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL (READ-ONLY; edits go through the API / services)
# ============================================================


class EntryLineInline(admin.TabularInline):
    model = EntryLine
    extra = 0
    can_delete = False
    fields = ("line_number", "account", "debit_amount", "credit_amount", "description")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Journal)
class JournalAdmin(admin.ModelAdmin):
    list_display = (
        "journal_number",
        "company",
        "date",
        "source",
        "status",
        "is_balanced",
        "total_debits",
        "total_credits",
        "posted_at",
    )
    list_filter = ("status", "source", "is_balanced", "company")
    search_fields = ("journal_number", "memo", "source_id")
    ordering = ("-date", "-journal_number")
    inlines = [EntryLineInline]

    readonly_fields = (
        "company",
        "journal_number",
        "date",
        "memo",
        "source",
        "source_id",
        "status",
        "batch",
        "reversal_of",
        "is_balanced",
        "total_debits",
        "total_credits",
        "created_by",
        "created_at",
        "posted_by",
        "posted_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# BATCH
# ============================================================


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = (
        "batch_number",
        "batch_name",
        "company",
        "status",
        "total_journals",
        "total_debits",
        "total_credits",
        "posted_at",
    )
    list_filter = ("status", "company")
    search_fields = ("batch_number", "batch_name")
    readonly_fields = (
        "batch_number",
        "status",
        "total_journals",
        "total_debits",
        "total_credits",
        "reviewed_by",
        "reviewed_at",
        "posted_by",
        "posted_at",
        "created_by",
        "created_at",
    )

    def has_add_permission(self, request):
        return False


# ============================================================
# MAPPINGS / RAW IMPORT
# ============================================================


@admin.register(AccountMapping)
class AccountMappingAdmin(admin.ModelAdmin):
    list_display = ("gl_account_name", "gl_field_type", "chart_account", "company", "created_by")
    list_filter = ("gl_field_type", "company")
    search_fields = ("gl_account_name",)


@admin.register(GeneralLedgerRow)
class GeneralLedgerRowAdmin(admin.ModelAdmin):
    list_display = ("date", "account_name", "split_account", "name", "amount", "company")
    list_filter = ("company",)
    search_fields = ("account_name", "split_account", "name", "reference")
    date_hierarchy = "date"

    def has_change_permission(self, request, obj=None):
        return False
