# ledger/api/serializers/__init__.py

from ledger.api.serializers.accounts import AccountSerializer
from ledger.api.serializers.batches import (
    BatchCreateSerializer,
    BatchJournalSerializer,
    BatchSerializer,
)
from ledger.api.serializers.gl_settings import GLSettingsSerializer, GLSettingsUpdateSerializer
from ledger.api.serializers.imports import GeneralLedgerImportSerializer
from ledger.api.serializers.journals import (
    EntryLineSerializer,
    JournalCreateSerializer,
    JournalLineInputSerializer,
    JournalLineUpdateSerializer,
    JournalReverseSerializer,
    JournalSerializer,
    JournalUpdateSerializer,
)
from ledger.api.serializers.mappings import (
    AccountMappingSerializer,
    MappingCreateSerializer,
    UnmatchedEntrySerializer,
    UnmatchedGLEntrySerializer,
)

__all__ = [
    "AccountSerializer",
    "JournalSerializer",
    "EntryLineSerializer",
    "JournalCreateSerializer",
    "JournalUpdateSerializer",
    "JournalLineInputSerializer",
    "JournalLineUpdateSerializer",
    "JournalReverseSerializer",
    "BatchSerializer",
    "BatchCreateSerializer",
    "BatchJournalSerializer",
    "AccountMappingSerializer",
    "MappingCreateSerializer",
    "UnmatchedEntrySerializer",
    "UnmatchedGLEntrySerializer",
    "GLSettingsSerializer",
    "GLSettingsUpdateSerializer",
    "GeneralLedgerImportSerializer",
]
