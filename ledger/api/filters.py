# ledger/api/filters.py

"""
Journal list filters:
    ?date_from=2024-01-01&date_to=2024-01-31
    ?status=Draft
    ?source=Payroll
    ?batch=12
"""

import django_filters

from ledger.models.journal import Journal


class JournalFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=Journal.STATUS_CHOICES)
    source = django_filters.ChoiceFilter(choices=Journal.SOURCE_CHOICES)
    batch = django_filters.NumberFilter(field_name="batch_id")
    is_balanced = django_filters.BooleanFilter()

    class Meta:
        model = Journal
        fields = ["date_from", "date_to", "status", "source", "batch", "is_balanced"]
