# ledger/api/views/imports.py

"""
PATH: ledger/api/views/imports.py

GENERAL LEDGER IMPORT API

Accepts rows already parsed from the spreadsheet. Returns 201 when at
least one row was stored, 400 with the same body otherwise.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.serializers import GeneralLedgerImportSerializer
from ledger.api.views.base import CompanyScopedMixin, require_perm
from ledger.services.import_service import import_general_ledger


@extend_schema(tags=["ledger"])
class GeneralLedgerImportView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GeneralLedgerImportSerializer

    @extend_schema(request=GeneralLedgerImportSerializer, responses={201: dict, 400: dict})
    def post(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.add_generalledgerrow", "You do not have permission to import ledgers."
        )

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = import_general_ledger(self.get_company(), serializer.validated_data["rows"])

        return Response(
            result.as_dict(),
            status=status.HTTP_201_CREATED if result.success else status.HTTP_400_BAD_REQUEST,
        )
