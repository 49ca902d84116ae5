# backend/urls.py
"""
PROJECT URLS

Everything is served under /api/. The bare root redirects to the Swagger UI.
/api/health/ is public and reports database reachability.
The admin lives at ADMIN_PATH (env), never at a guessable default in prod.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import DatabaseError, connection
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

# (key, path under /api/) listed by the API root
API_MODULES = (
    ("guardians", "guardians/"),
    ("beneficiaries", "beneficiaries/"),
    ("sponsors", "sponsors/"),
    ("sponsorships", "sponsorships/"),
    ("payments", "payments/"),
    ("payment_preview", "payments/preview/"),
    ("receipts", "receipts/"),
    ("transfers", "transfers/"),
    ("dashboard", "dashboard/"),
)


def _string_object(*keys: str, objects: tuple[str, ...] = ()) -> dict:
    properties = {key: {"type": "string"} for key in keys}
    properties.update({key: {"type": "object"} for key in objects})
    return {"type": "object", "properties": properties}


@extend_schema(responses={200: _string_object("message", objects=("auth", "docs", "modules"))})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "Kafala Backend API is running",
            "auth": {
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": {key: f"/api/{route}" for key, route in API_MODULES},
        }
    )


@extend_schema(
    responses={
        200: _string_object("status", "db"),
        503: _string_object("status", "db", "error"),
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    200 when the default database answers SELECT 1, 503 otherwise.
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except DatabaseError as exc:
        return Response(
            {"status": "degraded", "db": "down", "error": str(exc)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({"status": "ok", "db": "ok"})


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/").rstrip("/") + "/"

api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("", include("beneficiaries.api.urls")),
    path("", include("sponsorships.api.urls")),
    path("", include("payments.api.urls")),
    path("", include("reporting.api.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
