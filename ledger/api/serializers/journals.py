# ledger/api/serializers/journals.py

"""
======================================================
PATH: ledger/api/serializers/journals.py
======================================================
JOURNAL SERIALIZERS

Read serializers expose journals with their lines.
Input serializers only check shapes and types; every accounting rule
(line count, debit XOR credit, balance, locks) is enforced by
journal_entry_service so the API and other callers share one rulebook.
"""

from rest_framework import serializers

from ledger.models.journal import EntryLine, Journal


class EntryLineSerializer(serializers.ModelSerializer):
    account_number = serializers.CharField(source="account.account_number", read_only=True)
    account_name = serializers.CharField(source="account.full_name", read_only=True)

    class Meta:
        model = EntryLine
        fields = (
            "id",
            "line_number",
            "account",
            "account_number",
            "account_name",
            "debit_amount",
            "credit_amount",
            "description",
            "entity_type",
            "entity_id",
        )
        read_only_fields = fields


class JournalSerializer(serializers.ModelSerializer):
    lines = EntryLineSerializer(many=True, read_only=True)
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True, default=None)

    class Meta:
        model = Journal
        fields = (
            "id",
            "journal_number",
            "date",
            "memo",
            "source",
            "source_id",
            "status",
            "batch",
            "batch_number",
            "reversal_of",
            "is_balanced",
            "total_debits",
            "total_credits",
            "created_by",
            "created_at",
            "posted_by",
            "posted_at",
            "lines",
        )
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    debit = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, default=0)
    credit = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, default=0)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    entity_type = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    entity_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JournalCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    memo = serializers.CharField(required=False, allow_blank=True, default="")
    source = serializers.ChoiceField(choices=Journal.SOURCE_CHOICES, required=False)
    source_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    lines = JournalLineInputSerializer(many=True, allow_empty=True)


class JournalUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    memo = serializers.CharField(required=False, allow_blank=True)
    source = serializers.ChoiceField(choices=Journal.SOURCE_CHOICES, required=False)
    source_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    lines = JournalLineInputSerializer(many=True, required=False, allow_empty=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class JournalLineUpdateSerializer(serializers.Serializer):
    account_id = serializers.IntegerField(required=False)
    debit = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)
    credit = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    entity_type = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    entity_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JournalReverseSerializer(serializers.Serializer):
    date = serializers.DateField(required=False, allow_null=True)
