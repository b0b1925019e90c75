# ledger/api/views/journals.py

"""
PATH: ledger/api/views/journals.py

JOURNAL API

Endpoints (under companies/<company_id>/):
- journals/                          GET list (filters) / POST create
- journals/<id>/                     GET / PATCH / DELETE (Draft only)
- journals/<id>/post/                POST
- journals/<id>/cancel/              POST
- journals/<id>/reverse/             POST
- journals/<id>/lines/               POST add line
- journals/<id>/lines/<line_id>/     PATCH / DELETE

Security:
- Authenticated
- Django model permissions on ledger.Journal; posting needs
  ledger.post_journal
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, ListAPIView, get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.filters import JournalFilter
from ledger.api.serializers import (
    EntryLineSerializer,
    JournalCreateSerializer,
    JournalLineInputSerializer,
    JournalLineUpdateSerializer,
    JournalReverseSerializer,
    JournalSerializer,
    JournalUpdateSerializer,
)
from ledger.api.views.base import (
    HANDLED_ERRORS,
    CompanyScopedMixin,
    actor_of,
    require_perm,
    service_error_response,
)
from ledger.models.journal import Journal
from ledger.services import journal_entry_service


def _journal_queryset(company):
    return (
        Journal.objects.filter(company=company)
        .select_related("batch")
        .prefetch_related("lines__account")
    )


class JournalObjectMixin(CompanyScopedMixin):
    def get_journal(self) -> Journal:
        return get_object_or_404(_journal_queryset(self.get_company()), pk=self.kwargs["pk"])

    def respond(self, journal_id, http_status=status.HTTP_200_OK) -> Response:
        journal = _journal_queryset(self.get_company()).get(pk=journal_id)
        return Response(JournalSerializer(journal).data, status=http_status)


@extend_schema(tags=["ledger"])
class JournalListCreateView(CompanyScopedMixin, ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalSerializer
    filterset_class = JournalFilter

    def get_queryset(self):
        require_perm(self.request, "ledger.view_journal", "You do not have permission to view journals.")
        return _journal_queryset(self.get_company()).order_by("-date", "-journal_number")

    @extend_schema(request=JournalCreateSerializer, responses={201: JournalSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.add_journal", "You do not have permission to create journals.")

        serializer = JournalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            journal = journal_entry_service.create_journal(
                company=self.get_company(),
                date=data["date"],
                memo=data.get("memo", ""),
                source=data.get("source"),
                source_id=data.get("source_id"),
                lines=[dict(line) for line in data["lines"]],
                actor=actor_of(request),
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(JournalSerializer(journal).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["ledger"])
class JournalDetailView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalSerializer

    def get(self, request, *args, **kwargs):
        require_perm(request, "ledger.view_journal", "You do not have permission to view journals.")
        return Response(JournalSerializer(self.get_journal()).data)

    @extend_schema(request=JournalUpdateSerializer, responses={200: JournalSerializer})
    def patch(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_journal", "You do not have permission to edit journals.")
        journal = self.get_journal()

        serializer = JournalUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        lines = data.pop("lines", None)

        try:
            journal_entry_service.update_journal(
                journal.id,
                header=data,
                lines=[dict(line) for line in lines] if lines is not None else None,
                actor=actor_of(request),
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(journal.id)

    def delete(self, request, *args, **kwargs):
        require_perm(request, "ledger.delete_journal", "You do not have permission to delete journals.")
        journal = self.get_journal()

        try:
            journal_entry_service.delete_journal(journal.id, actor=actor_of(request))
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["ledger"], request=None, responses={200: JournalSerializer})
class JournalPostView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalSerializer

    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.post_journal", "You do not have permission to post journals.")
        journal = self.get_journal()

        try:
            journal_entry_service.post_journal(journal.id, actor=actor_of(request))
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(journal.id)


@extend_schema(tags=["ledger"], request=None, responses={200: JournalSerializer})
class JournalCancelView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalSerializer

    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_journal", "You do not have permission to cancel journals.")
        journal = self.get_journal()

        try:
            journal_entry_service.cancel_journal(journal.id, actor=actor_of(request))
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(journal.id)


@extend_schema(tags=["ledger"])
class JournalReverseView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalReverseSerializer

    @extend_schema(request=JournalReverseSerializer, responses={201: JournalSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.add_journal", "You do not have permission to reverse journals.")
        journal = self.get_journal()

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reversal = journal_entry_service.reverse_journal(
                journal.id,
                actor=actor_of(request),
                date=serializer.validated_data.get("date"),
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(reversal.id, http_status=status.HTTP_201_CREATED)


@extend_schema(tags=["ledger"])
class JournalLineCreateView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalLineInputSerializer

    @extend_schema(request=JournalLineInputSerializer, responses={201: EntryLineSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_journal", "You do not have permission to edit journals.")
        journal = self.get_journal()

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            line = journal_entry_service.add_line(journal.id, dict(serializer.validated_data))
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(EntryLineSerializer(line).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["ledger"])
class JournalLineDetailView(JournalObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalLineUpdateSerializer

    @extend_schema(request=JournalLineUpdateSerializer, responses={200: EntryLineSerializer})
    def patch(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_journal", "You do not have permission to edit journals.")
        journal = self.get_journal()

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            line = journal_entry_service.update_line(
                journal.id, self.kwargs["line_id"], dict(serializer.validated_data)
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(EntryLineSerializer(line).data)

    @extend_schema(responses={200: JournalSerializer})
    def delete(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_journal", "You do not have permission to edit journals.")
        journal = self.get_journal()

        try:
            journal_entry_service.delete_line(journal.id, self.kwargs["line_id"])
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(journal.id)
