# ledger/api/views/batches.py

"""
PATH: ledger/api/views/batches.py

BATCH API

- batches/                               GET list / POST create
- batches/<id>/                          GET
- batches/<id>/journals/                 POST add journal
- batches/<id>/journals/<journal_id>/    DELETE remove journal
- batches/<id>/ready/                    POST
- batches/<id>/post/                     POST (ledger.post_batch)
- batches/<id>/cancel/                   POST
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, ListAPIView, get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.serializers import BatchCreateSerializer, BatchJournalSerializer, BatchSerializer
from ledger.api.views.base import (
    HANDLED_ERRORS,
    CompanyScopedMixin,
    actor_of,
    require_perm,
    service_error_response,
)
from ledger.models.batch import Batch
from ledger.services import batch_service


class BatchObjectMixin(CompanyScopedMixin):
    def get_batch(self) -> Batch:
        return get_object_or_404(Batch, company=self.get_company(), pk=self.kwargs["pk"])

    def respond(self, batch_id, http_status=status.HTTP_200_OK) -> Response:
        batch = Batch.objects.prefetch_related("journals").get(pk=batch_id)
        return Response(BatchSerializer(batch).data, status=http_status)


@extend_schema(tags=["ledger"])
class BatchListCreateView(BatchObjectMixin, ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BatchSerializer
    filterset_fields = ["status"]

    def get_queryset(self):
        require_perm(self.request, "ledger.view_batch", "You do not have permission to view batches.")
        return (
            Batch.objects.filter(company=self.get_company())
            .prefetch_related("journals")
            .order_by("-created_at")
        )

    @extend_schema(request=BatchCreateSerializer, responses={201: BatchSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.add_batch", "You do not have permission to create batches.")

        serializer = BatchCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            batch = batch_service.create_batch(
                company=self.get_company(),
                name=serializer.validated_data["batch_name"],
                description=serializer.validated_data.get("description", ""),
                actor=actor_of(request),
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(batch.id, http_status=status.HTTP_201_CREATED)


@extend_schema(tags=["ledger"])
class BatchDetailView(BatchObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BatchSerializer

    def get(self, request, *args, **kwargs):
        require_perm(request, "ledger.view_batch", "You do not have permission to view batches.")
        return self.respond(self.get_batch().id)


@extend_schema(tags=["ledger"])
class BatchJournalAddView(BatchObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BatchJournalSerializer

    @extend_schema(request=BatchJournalSerializer, responses={200: BatchSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_batch", "You do not have permission to edit batches.")
        batch = self.get_batch()

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            batch_service.add_journal_to_batch(batch.id, serializer.validated_data["journal_id"])
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(batch.id)


@extend_schema(tags=["ledger"], responses={200: BatchSerializer})
class BatchJournalRemoveView(BatchObjectMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BatchSerializer

    def delete(self, request, *args, **kwargs):
        require_perm(request, "ledger.change_batch", "You do not have permission to edit batches.")
        batch = self.get_batch()

        try:
            batch_service.remove_journal_from_batch(batch.id, self.kwargs["journal_id"])
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(batch.id)


@extend_schema(tags=["ledger"], request=None, responses={200: BatchSerializer})
class BatchTransitionView(BatchObjectMixin, GenericAPIView):
    """
    One view for ready / post / cancel; `transition` is set in urls.py.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = BatchSerializer
    transition = None

    ACTIONS = {
        "ready": (batch_service.mark_ready, "ledger.change_batch"),
        "post": (batch_service.post_batch, "ledger.post_batch"),
        "cancel": (batch_service.cancel_batch, "ledger.change_batch"),
    }

    def post(self, request, *args, **kwargs):
        action, perm = self.ACTIONS[self.transition]
        require_perm(request, perm, f"You do not have permission to {self.transition} batches.")
        batch = self.get_batch()

        try:
            action(batch.id, actor=actor_of(request))
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return self.respond(batch.id)
