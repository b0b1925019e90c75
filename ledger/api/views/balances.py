# ledger/api/views/balances.py

"""
PATH: ledger/api/views/balances.py

- balances/recalculate/?mode=mappings (default) | simple
- summary/   dashboard counts
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.views.base import (
    HANDLED_ERRORS,
    CompanyScopedMixin,
    require_perm,
    service_error_response,
)
from ledger.services import balance_service

MODES = {
    "simple": balance_service.calculate_account_balances_simple,
    "mappings": balance_service.calculate_account_balances_with_mappings,
}


@extend_schema(
    tags=["ledger"],
    request=None,
    parameters=[
        OpenApiParameter(
            name="mode",
            type=str,
            required=False,
            description="simple (no mappings) or mappings. Default: mappings",
        )
    ],
    responses={200: dict, 400: dict},
)
class BalanceRecalculateView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.change_account", "You do not have permission to recalculate balances."
        )

        mode = request.query_params.get("mode", "mappings")
        calculate = MODES.get(mode)
        if calculate is None:
            return Response(
                {"detail": f"Unknown mode {mode!r}; use one of {sorted(MODES)}."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = calculate(self.get_company())
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(result)


@extend_schema(tags=["ledger"], responses={200: dict})
class LedgerSummaryView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        require_perm(request, "ledger.view_journal", "You do not have permission to view the ledger.")
        return Response(balance_service.ledger_summary(self.get_company()))
