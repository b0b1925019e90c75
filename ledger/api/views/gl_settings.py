# ledger/api/views/gl_settings.py

from drf_spectacular.utils import extend_schema
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.serializers import GLSettingsSerializer, GLSettingsUpdateSerializer
from ledger.api.views.base import (
    HANDLED_ERRORS,
    CompanyScopedMixin,
    actor_of,
    require_perm,
    service_error_response,
)
from ledger.services import gl_settings_service


@extend_schema(tags=["ledger"])
class GLSettingsView(CompanyScopedMixin, GenericAPIView):
    """
    Per-company GL settings (created with defaults on first read).
    """

    permission_classes = [IsAuthenticated]
    serializer_class = GLSettingsSerializer

    @extend_schema(responses={200: GLSettingsSerializer})
    def get(self, request, *args, **kwargs):
        require_perm(request, "ledger.view_glsettings", "You do not have permission to view GL settings.")
        settings_obj = gl_settings_service.get_gl_settings(self.get_company())
        return Response(GLSettingsSerializer(settings_obj).data)

    @extend_schema(request=GLSettingsUpdateSerializer, responses={200: GLSettingsSerializer})
    def patch(self, request, *args, **kwargs):
        require_perm(
            request, "ledger.change_glsettings", "You do not have permission to change GL settings."
        )

        serializer = GLSettingsUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            settings_obj = gl_settings_service.update_settings(
                self.get_company(), dict(serializer.validated_data), actor=actor_of(request)
            )
        except HANDLED_ERRORS as exc:
            return service_error_response(exc)

        return Response(GLSettingsSerializer(settings_obj).data)
