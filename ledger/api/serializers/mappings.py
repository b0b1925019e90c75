# ledger/api/serializers/mappings.py

from rest_framework import serializers

from ledger.entry_kind import FieldType
from ledger.models.mapping import AccountMapping


class AccountMappingSerializer(serializers.ModelSerializer):
    chart_account_number = serializers.CharField(
        source="chart_account.account_number", read_only=True
    )
    chart_account_name = serializers.CharField(source="chart_account.full_name", read_only=True)

    class Meta:
        model = AccountMapping
        fields = (
            "id",
            "gl_account_name",
            "gl_field_type",
            "chart_account",
            "chart_account_number",
            "chart_account_name",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class MappingCreateSerializer(serializers.Serializer):
    gl_account_name = serializers.CharField(max_length=255)
    gl_field_type = serializers.ChoiceField(
        choices=FieldType.choices(), required=False, default=FieldType.ACCOUNT_NAME.value
    )
    chart_account_id = serializers.IntegerField()


class UnmatchedEntrySerializer(serializers.Serializer):
    label = serializers.CharField()
    field_type = serializers.CharField()
    entry_count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=18, decimal_places=2)


class UnmatchedGLEntrySerializer(serializers.Serializer):
    account_name = serializers.CharField()
    split_account = serializers.CharField(allow_blank=True)
    name = serializers.CharField(allow_blank=True)
    entry_count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=18, decimal_places=2)
