# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for ledger services.

Every error carries the id of the offending entity (when there is one) so the
API layer can return it to the caller.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""

    code = "ledger_error"

    def __init__(self, message: str = "", *, entity_id=None):
        super().__init__(message)
        self.entity_id = entity_id


class InvalidJournalStructureError(LedgerServiceError):
    """Fewer than 2 lines, or a line with both/negative debit and credit."""

    code = "invalid_journal_structure"


class EmptyLineError(InvalidJournalStructureError):
    """A line whose debit and credit are both zero."""

    code = "empty_line"


class UnbalancedJournalError(LedgerServiceError):
    """Posting attempted while debits != credits."""

    code = "unbalanced_journal"


class JournalLockedError(LedgerServiceError):
    """Edit attempted on a posted journal while posted entries are locked."""

    code = "journal_locked"


class InvalidJournalStateError(LedgerServiceError):
    """Operation not allowed for the journal's current status."""

    code = "invalid_journal_state"


class PeriodClosedError(LedgerServiceError):
    """Journal date falls outside the allowed posting window."""

    code = "period_closed"


class BatchHasUnbalancedJournalsError(LedgerServiceError):
    """A batch member journal is unbalanced."""

    code = "batch_has_unbalanced_journals"


class EmptyBatchError(LedgerServiceError):
    """Batch has no member journals."""

    code = "empty_batch"


class InvalidBatchError(LedgerServiceError):
    """Batch header fails validation (e.g. blank name)."""

    code = "invalid_batch"


class InvalidBatchTransitionError(LedgerServiceError):
    """Requested batch transition is not allowed from the current status."""

    code = "invalid_batch_transition"


class AmbiguousMappingError(LedgerServiceError):
    """More than one account matches an imported label equally well."""

    code = "ambiguous_mapping"

    def __init__(self, message: str = "", *, entity_id=None, candidates=None):
        super().__init__(message, entity_id=entity_id)
        self.candidates = list(candidates or [])


class DuplicateSequenceNumberError(LedgerServiceError):
    """Sequence allocation kept colliding with existing numbers."""

    code = "duplicate_sequence_number"


class AccountResolutionError(LedgerServiceError):
    """An expected account cannot be resolved."""

    code = "account_resolution"


class InvalidSettingsError(LedgerServiceError):
    """Settings update rejected."""

    code = "invalid_settings"


class PostingRuleError(InvalidSettingsError):
    """default_posting_rules payload is malformed."""

    code = "invalid_posting_rules"
