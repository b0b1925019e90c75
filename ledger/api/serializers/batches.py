# ledger/api/serializers/batches.py

from rest_framework import serializers

from ledger.models.batch import Batch


class BatchSerializer(serializers.ModelSerializer):
    journal_ids = serializers.PrimaryKeyRelatedField(source="journals", many=True, read_only=True)

    class Meta:
        model = Batch
        fields = (
            "id",
            "batch_number",
            "batch_name",
            "description",
            "status",
            "total_journals",
            "total_debits",
            "total_credits",
            "reviewed_by",
            "reviewed_at",
            "posted_by",
            "posted_at",
            "created_by",
            "created_at",
            "journal_ids",
        )
        read_only_fields = fields


class BatchCreateSerializer(serializers.Serializer):
    batch_name = serializers.CharField(max_length=150)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class BatchJournalSerializer(serializers.Serializer):
    journal_id = serializers.IntegerField()
