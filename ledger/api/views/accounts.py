# ledger/api/views/accounts.py

from drf_spectacular.utils import extend_schema
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated

from ledger.api.serializers import AccountSerializer
from ledger.api.views.base import CompanyScopedMixin, require_perm
from ledger.models.account import Account


@extend_schema(tags=["ledger"])
class AccountListView(CompanyScopedMixin, ListAPIView):
    """Chart of accounts for one company, ordered by account number."""

    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer
    filterset_fields = ["account_type", "is_active"]

    def get_queryset(self):
        require_perm(self.request, "ledger.view_account", "You do not have permission to view accounts.")
        return Account.objects.filter(company=self.get_company()).order_by("account_number")
