# ledger/api/serializers/gl_settings.py

"""
======================================================
PATH: ledger/api/serializers/gl_settings.py
======================================================
GL SETTINGS SERIALIZERS

Rules:
- Every field is optional on update (PATCH semantics)
- default_posting_rules is shape-checked here through ledger.posting_rules;
  account existence is checked by gl_settings_service
"""

from rest_framework import serializers

from ledger.models.gl_settings import GLSettings
from ledger.posting_rules import PostingRules, PostingRulesError


class GLSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = GLSettings
        fields = (
            "auto_journal_number_prefix",
            "next_journal_number",
            "next_batch_number",
            "current_period_open",
            "next_period_open",
            "allow_future_posting",
            "require_batch_approval",
            "lock_posted_entries",
            "default_posting_rules",
            "updated_at",
        )
        read_only_fields = fields


class GLSettingsUpdateSerializer(serializers.Serializer):
    auto_journal_number_prefix = serializers.CharField(
        required=False, allow_blank=True, max_length=20
    )
    next_journal_number = serializers.IntegerField(required=False, min_value=1)
    next_batch_number = serializers.IntegerField(required=False, min_value=1)
    current_period_open = serializers.DateField(required=False, allow_null=True)
    next_period_open = serializers.DateField(required=False, allow_null=True)
    allow_future_posting = serializers.BooleanField(required=False)
    require_batch_approval = serializers.BooleanField(required=False)
    lock_posted_entries = serializers.BooleanField(required=False)
    default_posting_rules = serializers.JSONField(required=False)

    def validate_default_posting_rules(self, value):
        try:
            return PostingRules.from_raw(value).to_raw()
        except PostingRulesError as exc:
            raise serializers.ValidationError(str(exc)) from exc
