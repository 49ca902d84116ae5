# sponsorships/api/views.py

"""
SPONSORS / SPONSORSHIPS / INSTALLMENTS ENDPOINTS

All writes go through sponsorships.services.sponsorship_service so that every
membership or pledge change recomputes the sponsor's dues in the same
transaction. Installments are read-only here: only the allocation engine
moves money.
"""

from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from kafala.api.errors import service_error_response
from kafala.api.pagination import PaginatedListMixin
from kafala.services.exceptions import KafalaServiceError
from sponsorships.api.filters import InstallmentFilter, SponsorFilter, SponsorshipFilter
from sponsorships.api.serializers import (
    InstallmentSerializer,
    SponsorSerializer,
    SponsorshipCreateSerializer,
    SponsorshipSerializer,
    SponsorshipUpdateSerializer,
)
from sponsorships.models import Sponsor, Sponsorship
from sponsorships.services import sponsorship_service


class SponsorListCreateView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SponsorSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = SponsorFilter
    queryset = Sponsor.objects.all()

    @extend_schema(tags=["sponsorships"], responses=SponsorSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["sponsorships"], request=SponsorSerializer, responses={201: SponsorSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        sponsor = s.save()
        return Response(SponsorSerializer(sponsor).data, status=status.HTTP_201_CREATED)


class SponsorDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SponsorSerializer

    @extend_schema(tags=["sponsorships"], responses=SponsorSerializer)
    def get(self, request, sponsor_id):
        sponsor = get_object_or_404(Sponsor, pk=sponsor_id)
        return Response(SponsorSerializer(sponsor).data)

    @extend_schema(tags=["sponsorships"], request=SponsorSerializer, responses=SponsorSerializer)
    def patch(self, request, sponsor_id):
        sponsor = get_object_or_404(Sponsor, pk=sponsor_id)
        s = self.get_serializer(sponsor, data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        try:
            sponsor = sponsorship_service.update_sponsor(sponsor_id=sponsor.id, **s.validated_data)
        except KafalaServiceError as exc:
            return service_error_response(exc)

        return Response(SponsorSerializer(sponsor).data)

    @extend_schema(tags=["sponsorships"], responses={204: None})
    def delete(self, request, sponsor_id):
        sponsor = get_object_or_404(Sponsor, pk=sponsor_id)
        try:
            sponsor.delete()
        except ProtectedError:
            return Response(
                {"detail": "Sponsor still has sponsorships or payments."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class SponsorshipListCreateView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SponsorshipSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = SponsorshipFilter

    def get_queryset(self):
        return Sponsorship.objects.select_related("sponsor", "beneficiary")

    @extend_schema(tags=["sponsorships"], responses=SponsorshipSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(
        tags=["sponsorships"],
        request=SponsorshipCreateSerializer,
        responses={201: SponsorshipSerializer},
        description="Create a sponsorship and its schedule. close_previous=true closes the beneficiary's current one.",
    )
    def post(self, request):
        s = SponsorshipCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            sponsorship = sponsorship_service.create_sponsorship(
                sponsor_id=data["sponsor_id"],
                beneficiary_id=data["beneficiary_id"],
                start_date=data["start_date"],
                end_date=data.get("end_date"),
                close_previous=data.get("close_previous", False),
            )
        except KafalaServiceError as exc:
            return service_error_response(exc)

        sponsorship = self.get_queryset().get(pk=sponsorship.pk)
        return Response(SponsorshipSerializer(sponsorship).data, status=status.HTTP_201_CREATED)


class SponsorshipDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SponsorshipSerializer

    def _get(self, sponsorship_id):
        return get_object_or_404(
            Sponsorship.objects.select_related("sponsor", "beneficiary"),
            pk=sponsorship_id,
        )

    @extend_schema(tags=["sponsorships"], responses=SponsorshipSerializer)
    def get(self, request, sponsorship_id):
        return Response(SponsorshipSerializer(self._get(sponsorship_id)).data)

    @extend_schema(tags=["sponsorships"], request=SponsorshipUpdateSerializer, responses=SponsorshipSerializer)
    def patch(self, request, sponsorship_id):
        s = SponsorshipUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        try:
            sponsorship_service.update_sponsorship(sponsorship_id=sponsorship_id, **s.validated_data)
        except KafalaServiceError as exc:
            return service_error_response(exc)

        return Response(SponsorshipSerializer(self._get(sponsorship_id)).data)

    @extend_schema(tags=["sponsorships"], responses={204: None})
    def delete(self, request, sponsorship_id):
        try:
            sponsorship_service.delete_sponsorship(sponsorship_id=sponsorship_id)
        except KafalaServiceError as exc:
            return service_error_response(exc)
        except ProtectedError:
            return Response(
                {"detail": "Sponsorship is referenced by other records."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class SponsorshipCloseView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SponsorshipSerializer

    @extend_schema(tags=["sponsorships"], request=None, responses=SponsorshipSerializer)
    def post(self, request, sponsorship_id):
        try:
            sponsorship_service.close_sponsorship(sponsorship_id=sponsorship_id)
        except KafalaServiceError as exc:
            return service_error_response(exc)

        sponsorship = Sponsorship.objects.select_related("sponsor", "beneficiary").get(pk=sponsorship_id)
        return Response(SponsorshipSerializer(sponsorship).data)


class SponsorshipInstallmentsView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = InstallmentSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = InstallmentFilter

    @extend_schema(tags=["sponsorships"], responses=InstallmentSerializer(many=True))
    def get(self, request, sponsorship_id):
        sponsorship = get_object_or_404(Sponsorship, pk=sponsorship_id)
        return self.list_response(sponsorship.installments.order_by("month"))
