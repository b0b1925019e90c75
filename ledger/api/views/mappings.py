# ledger/api/views/mappings.py

"""
PATH: ledger/api/views/mappings.py

ACCOUNT MAPPING API

- mappings/            GET list / POST upsert
- mappings/<id>/       DELETE
- mappings/unmatched/  GET
    default:        grouped by (account_name, split_account, name)
    ?by=label:      grouped by (field_type, label)
- mappings/auto-map/   POST
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.serializers import (
    AccountMappingSerializer,
    MappingCreateSerializer,
    UnmatchedEntrySerializer,
    UnmatchedGLEntrySerializer,
)
from ledger.api.views.base import (
    HANDLED_ERRORS,
    CompanyScopedMixin,
    actor_of,
    require_perm,
    service_error_response,
)
from ledger.models.mapping import AccountMapping
from ledger.services import account_mapping_service


@extend_schema(tags=["ledger"])
class MappingListCreateView(CompanyScopedMixin, ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountMappingSerializer
    filterset_fields = ["gl_field_type"]

    def get_queryset(self):
        require_perm(
            self.request, "ledger.view_accountmapping", "You do not have permission to view mappings."
        )
        return AccountMapping.objects.filter(company=self.get_company()).select_related(
            "chart_account"
        )

    @extend_schema(request=MappingCreateSerializer, responses={201: AccountMappingSerializer})
    def post(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.add_accountmapping", "You do not have permission to create mappings."
        )

        serializer = MappingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            mapping = account_mapping_service.create_mapping(
                company=self.get_company(),
                label=data["gl_account_name"],
                field_type=data["gl_field_type"],
                chart_account_id=data["chart_account_id"],
                actor=actor_of(request),
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(AccountMappingSerializer(mapping).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["ledger"])
class MappingDetailView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountMappingSerializer

    def delete(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.delete_accountmapping", "You do not have permission to delete mappings."
        )

        try:
            account_mapping_service.delete_mapping(
                company=self.get_company(), mapping_id=self.kwargs["pk"]
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    tags=["ledger"],
    parameters=[
        OpenApiParameter(
            name="by",
            type=str,
            required=False,
            description="`label` groups by (field_type, label); default groups by the label triple.",
        )
    ],
    responses={200: UnmatchedGLEntrySerializer(many=True)},
)
class UnmatchedEntriesView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UnmatchedGLEntrySerializer

    def get(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.view_accountmapping", "You do not have permission to view mappings."
        )
        company = self.get_company()

        if request.query_params.get("by") == "label":
            entries = account_mapping_service.find_unmatched_entries(company)
            return Response(UnmatchedEntrySerializer(entries, many=True).data)

        entries = account_mapping_service.get_unmatched_gl_entries(company)
        return Response(UnmatchedGLEntrySerializer(entries, many=True).data)


@extend_schema(tags=["ledger"], request=None, responses={200: dict})
class AutoMapView(CompanyScopedMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountMappingSerializer

    def post(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.add_accountmapping", "You do not have permission to create mappings."
        )

        try:
            result = account_mapping_service.auto_map_obvious_matches(
                self.get_company(), actor=actor_of(request)
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(
            {
                "created_count": result.created_count,
                "created": AccountMappingSerializer(result.created, many=True).data,
                "ambiguous": result.ambiguous,
            }
        )
