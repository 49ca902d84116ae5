# kafala/api/pagination.py

"""
Page-number pagination for every list endpoint.

?page=N&page_size=M, with page_size capped by MAX_PAGE_SIZE.
Responses are {"count", "next", "previous", "results"}.
"""

from django.conf import settings
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class KafalaPagination(PageNumberPagination):
    page_size_query_param = settings.REST_FRAMEWORK.get("PAGE_SIZE_QUERY_PARAM", "page_size")
    max_page_size = settings.REST_FRAMEWORK.get("MAX_PAGE_SIZE", 100)


class PaginatedListMixin:
    """For GenericAPIView subclasses: filter, paginate, serialize."""

    def list_response(self, queryset):
        qs = self.filter_queryset(queryset)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(qs, many=True).data, status=status.HTTP_200_OK)
