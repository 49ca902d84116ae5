# reporting/api/views.py

"""
KAFALA DASHBOARD (KPIs)

Read-only, computed live from installments, payments and their allocation plans.
"""

from __future__ import annotations

from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from reporting.services.dashboard_service import get_dashboard_kpis


class DashboardView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["reporting"],
        parameters=[
            OpenApiParameter(
                name="as_of_date",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Optional snapshot date (YYYY-MM-DD). Defaults to today.",
            ),
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        as_of_raw = request.query_params.get("as_of_date")
        as_of = None

        if as_of_raw:
            try:
                as_of = parse_date(str(as_of_raw).strip())
            except ValueError:
                as_of = None
            if as_of is None:
                return Response(
                    {"detail": "Invalid as_of_date format. Use YYYY-MM-DD."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        return Response(get_dashboard_kpis(today=as_of), status=status.HTTP_200_OK)
