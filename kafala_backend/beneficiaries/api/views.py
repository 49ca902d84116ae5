# beneficiaries/api/views.py

"""
GUARDIAN / BENEFICIARY ENDPOINTS

Plain CRUD. A guardian or beneficiary still referenced elsewhere (PROTECT FKs)
cannot be deleted: the API answers 409 and the row should be closed instead.
"""

from django.db.models import Count, ProtectedError
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from beneficiaries.api.filters import BeneficiaryFilter, GuardianFilter
from beneficiaries.api.serializers import BeneficiarySerializer, GuardianSerializer
from beneficiaries.models import Beneficiary, Guardian
from kafala.api.pagination import PaginatedListMixin


class _FilteredListMixin(PaginatedListMixin):
    filter_backends = [DjangoFilterBackend]


class GuardianListCreateView(_FilteredListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GuardianSerializer
    filterset_class = GuardianFilter

    def get_queryset(self):
        return Guardian.objects.annotate(beneficiary_count=Count("beneficiaries"))

    @extend_schema(tags=["beneficiaries"], responses=GuardianSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["beneficiaries"], request=GuardianSerializer, responses={201: GuardianSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        guardian = s.save()
        return Response(GuardianSerializer(guardian).data, status=status.HTTP_201_CREATED)


class GuardianDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GuardianSerializer

    @extend_schema(tags=["beneficiaries"], responses=GuardianSerializer)
    def get(self, request, guardian_id):
        guardian = get_object_or_404(Guardian, pk=guardian_id)
        return Response(GuardianSerializer(guardian).data)

    @extend_schema(tags=["beneficiaries"], request=GuardianSerializer, responses=GuardianSerializer)
    def patch(self, request, guardian_id):
        guardian = get_object_or_404(Guardian, pk=guardian_id)
        s = self.get_serializer(guardian, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        return Response(GuardianSerializer(s.save()).data)

    @extend_schema(tags=["beneficiaries"], responses={204: None})
    def delete(self, request, guardian_id):
        guardian = get_object_or_404(Guardian, pk=guardian_id)
        try:
            guardian.delete()
        except ProtectedError:
            return Response(
                {"detail": "Guardian still has beneficiaries or transfers; close it instead."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class BeneficiaryListCreateView(_FilteredListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BeneficiarySerializer
    filterset_class = BeneficiaryFilter

    def get_queryset(self):
        return Beneficiary.objects.select_related("guardian")

    @extend_schema(tags=["beneficiaries"], responses=BeneficiarySerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["beneficiaries"], request=BeneficiarySerializer, responses={201: BeneficiarySerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        beneficiary = s.save()
        return Response(BeneficiarySerializer(beneficiary).data, status=status.HTTP_201_CREATED)


class BeneficiaryDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BeneficiarySerializer

    @extend_schema(tags=["beneficiaries"], responses=BeneficiarySerializer)
    def get(self, request, beneficiary_id):
        beneficiary = get_object_or_404(Beneficiary.objects.select_related("guardian"), pk=beneficiary_id)
        return Response(BeneficiarySerializer(beneficiary).data)

    @extend_schema(tags=["beneficiaries"], request=BeneficiarySerializer, responses=BeneficiarySerializer)
    def patch(self, request, beneficiary_id):
        beneficiary = get_object_or_404(Beneficiary, pk=beneficiary_id)
        s = self.get_serializer(beneficiary, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        return Response(BeneficiarySerializer(s.save()).data)

    @extend_schema(tags=["beneficiaries"], responses={204: None})
    def delete(self, request, beneficiary_id):
        beneficiary = get_object_or_404(Beneficiary, pk=beneficiary_id)
        try:
            beneficiary.delete()
        except ProtectedError:
            return Response(
                {"detail": "Beneficiary has sponsorships or payments; close it instead."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
