# ledger/api/serializers/accounts.py

from rest_framework import serializers

from ledger.models.account import Account


class AccountSerializer(serializers.ModelSerializer):
    is_debit_normal = serializers.BooleanField(read_only=True)

    class Meta:
        model = Account
        fields = (
            "id",
            "account_number",
            "full_name",
            "account_type",
            "current_balance",
            "is_active",
            "is_debit_normal",
        )
        read_only_fields = fields
