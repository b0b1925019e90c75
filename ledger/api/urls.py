# ledger/api/urls.py

from django.urls import include, path

from ledger.api.views.accounts import AccountListView
from ledger.api.views.balances import BalanceRecalculateView, LedgerSummaryView
from ledger.api.views.batches import (
    BatchDetailView,
    BatchJournalAddView,
    BatchJournalRemoveView,
    BatchListCreateView,
    BatchTransitionView,
)
from ledger.api.views.gl_settings import GLSettingsView
from ledger.api.views.imports import GeneralLedgerImportView
from ledger.api.views.journals import (
    JournalCancelView,
    JournalDetailView,
    JournalLineCreateView,
    JournalLineDetailView,
    JournalListCreateView,
    JournalPostView,
    JournalReverseView,
)
from ledger.api.views.mappings import (
    AutoMapView,
    MappingDetailView,
    MappingListCreateView,
    UnmatchedEntriesView,
)

company_patterns = [
    # Master data
    path("accounts/", AccountListView.as_view(), name="accounts"),
    # Journals
    path("journals/", JournalListCreateView.as_view(), name="journals"),
    path("journals/<int:pk>/", JournalDetailView.as_view(), name="journal-detail"),
    path("journals/<int:pk>/post/", JournalPostView.as_view(), name="journal-post"),
    path("journals/<int:pk>/cancel/", JournalCancelView.as_view(), name="journal-cancel"),
    path("journals/<int:pk>/reverse/", JournalReverseView.as_view(), name="journal-reverse"),
    path("journals/<int:pk>/lines/", JournalLineCreateView.as_view(), name="journal-lines"),
    path(
        "journals/<int:pk>/lines/<int:line_id>/",
        JournalLineDetailView.as_view(),
        name="journal-line-detail",
    ),
    # Batches
    path("batches/", BatchListCreateView.as_view(), name="batches"),
    path("batches/<int:pk>/", BatchDetailView.as_view(), name="batch-detail"),
    path("batches/<int:pk>/journals/", BatchJournalAddView.as_view(), name="batch-journals"),
    path(
        "batches/<int:pk>/journals/<int:journal_id>/",
        BatchJournalRemoveView.as_view(),
        name="batch-journal-remove",
    ),
    path("batches/<int:pk>/ready/", BatchTransitionView.as_view(transition="ready"), name="batch-ready"),
    path("batches/<int:pk>/post/", BatchTransitionView.as_view(transition="post"), name="batch-post"),
    path("batches/<int:pk>/cancel/", BatchTransitionView.as_view(transition="cancel"), name="batch-cancel"),
    # Mappings
    path("mappings/", MappingListCreateView.as_view(), name="mappings"),
    path("mappings/unmatched/", UnmatchedEntriesView.as_view(), name="mappings-unmatched"),
    path("mappings/auto-map/", AutoMapView.as_view(), name="mappings-auto-map"),
    path("mappings/<int:pk>/", MappingDetailView.as_view(), name="mapping-detail"),
    # Balances / dashboard
    path("balances/recalculate/", BalanceRecalculateView.as_view(), name="balances-recalculate"),
    path("summary/", LedgerSummaryView.as_view(), name="summary"),
    # Settings / import
    path("settings/", GLSettingsView.as_view(), name="settings"),
    path("imports/", GeneralLedgerImportView.as_view(), name="imports"),
]

urlpatterns = [
    path("companies/<int:company_id>/", include(company_patterns)),
]
