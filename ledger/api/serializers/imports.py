# ledger/api/serializers/imports.py

from rest_framework import serializers


class GeneralLedgerImportSerializer(serializers.Serializer):
    """
    Rows already parsed from the spreadsheet, one object per data row.
    Row-level problems are reported in the import result, not here.
    """

    rows = serializers.ListField(child=serializers.DictField(), allow_empty=False)
