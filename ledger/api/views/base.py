# ledger/api/views/base.py

"""
PATH: ledger/api/views/base.py

Shared plumbing for company-scoped ledger views:
- resolve the company from the URL (404 when unknown)
- Django model-permission checks (no role hardcoding)
- translate ledger service errors into DRF responses:
    {"detail": str, "code": str, "entity_id": id | null}
  409 for lock / sequence conflicts, 400 otherwise
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from ledger.models.company import Company
from ledger.services.exceptions import (
    DuplicateSequenceNumberError,
    JournalLockedError,
    LedgerServiceError,
)

CONFLICT_ERRORS = (JournalLockedError, DuplicateSequenceNumberError)

# Errors the views catch and translate.
HANDLED_ERRORS = (LedgerServiceError, DjangoValidationError)


def require_perm(request, perm: str, message: str) -> None:
    if not request.user.has_perm(perm):
        raise PermissionDenied(message)


def actor_of(request) -> str:
    return request.user.get_username() if request.user.is_authenticated else ""


def service_error_response(exc) -> Response:
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return Response(
            {"detail": detail, "code": "invalid", "entity_id": None},
            status=status.HTTP_400_BAD_REQUEST,
        )

    http_status = (
        status.HTTP_409_CONFLICT
        if isinstance(exc, CONFLICT_ERRORS)
        else status.HTTP_400_BAD_REQUEST
    )
    return Response(
        {"detail": str(exc), "code": exc.code, "entity_id": exc.entity_id},
        status=http_status,
    )


class CompanyScopedMixin:
    """Views mounted under companies/<company_id>/."""

    def get_company(self) -> Company:
        if not hasattr(self, "_company"):
            self._company = get_object_or_404(Company, pk=self.kwargs["company_id"])
        return self._company
