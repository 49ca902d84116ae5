# payments/api/views.py

"""
PAYMENTS / RECEIPTS / TRANSFERS ENDPOINTS

- POST /payments/preview/ never moves money.
- POST /payments/ commits, and answers with allocation_stats when a plan was
  applied.
- DELETE /payments/<id>/ reverses the plan first.
"""

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
from payments.api.filters import PaymentFilter, ReceiptFilter, TransferFilter
from payments.api.serializers import (
    PaymentCreateSerializer,
    PaymentPreviewSerializer,
    PaymentSerializer,
    ReceiptSerializer,
    TransferSerializer,
)
from payments.models import Payment, Receipt, Transfer
from payments.services.payment_service import (
    create_payment,
    delete_payment,
    preview_kafala_payment,
)


def _payment_queryset():
    return Payment.objects.select_related("sponsor", "beneficiary", "guardian", "receipt")


class PaymentListCreateView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = PaymentFilter

    def get_queryset(self):
        return _payment_queryset()

    @extend_schema(tags=["payments"], responses=PaymentSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(
        tags=["payments"],
        request=PaymentCreateSerializer,
        responses={201: PaymentSerializer},
        description="Create a payment. KAFALA payments are allocated over the sponsor's active beneficiaries.",
    )
    def post(self, request):
        s = PaymentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        allocation = data.get("allocation")
        if allocation is not None:
            allocation = [
                {k: (str(v) if v is not None else None) for k, v in line.items()}
                for line in allocation
            ]

        try:
            outcome = create_payment(
                payment_type=data["payment_type"],
                amount=data["amount"],
                payment_date=data.get("payment_date"),
                sponsor_id=data.get("sponsor_id"),
                beneficiary_id=data.get("beneficiary_id"),
                guardian_id=data.get("guardian_id"),
                receipt_id=data.get("receipt_id"),
                allocation=allocation,
            )
        except KafalaServiceError as exc:
            return service_error_response(exc)

        payment = _payment_queryset().get(pk=outcome.payment.pk)
        payload = PaymentSerializer(payment).data
        if outcome.allocation_stats is not None:
            payload["allocation_stats"] = outcome.allocation_stats
        return Response(payload, status=status.HTTP_201_CREATED)


class PaymentPreviewView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentPreviewSerializer

    @extend_schema(
        tags=["payments"],
        request=PaymentPreviewSerializer,
        responses={200: dict},
        description="Compute the automatic KAFALA allocation without applying it.",
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            preview = preview_kafala_payment(
                sponsor_id=s.validated_data["sponsor_id"],
                amount=s.validated_data["amount"],
            )
        except KafalaServiceError as exc:
            return service_error_response(exc)

        return Response(preview, status=status.HTTP_200_OK)


class PaymentDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentSerializer

    @extend_schema(tags=["payments"], responses=PaymentSerializer)
    def get(self, request, payment_id):
        payment = get_object_or_404(_payment_queryset(), pk=payment_id)
        return Response(PaymentSerializer(payment).data)

    @extend_schema(tags=["payments"], responses={200: dict})
    def delete(self, request, payment_id):
        try:
            reversed_lines = delete_payment(payment_id=payment_id)
        except KafalaServiceError as exc:
            return service_error_response(exc)

        return Response(
            {"detail": "Payment deleted", "reversed_lines": reversed_lines},
            status=status.HTTP_200_OK,
        )


class ReceiptListCreateView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ReceiptSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReceiptFilter

    def get_queryset(self):
        return Receipt.objects.select_related("sponsor")

    @extend_schema(tags=["payments"], responses=ReceiptSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["payments"], request=ReceiptSerializer, responses={201: ReceiptSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        receipt = s.save()
        return Response(ReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


class ReceiptDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ReceiptSerializer

    @extend_schema(tags=["payments"], responses=ReceiptSerializer)
    def get(self, request, receipt_id):
        receipt = get_object_or_404(Receipt.objects.select_related("sponsor"), pk=receipt_id)
        return Response(ReceiptSerializer(receipt).data)

    @extend_schema(tags=["payments"], responses={204: None})
    def delete(self, request, receipt_id):
        receipt = get_object_or_404(Receipt, pk=receipt_id)
        receipt.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class TransferListCreateView(PaginatedListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TransferSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = TransferFilter

    def get_queryset(self):
        return Transfer.objects.select_related("guardian", "beneficiary", "sponsor")

    @extend_schema(tags=["payments"], responses=TransferSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["payments"], request=TransferSerializer, responses={201: TransferSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        transfer = s.save()
        return Response(TransferSerializer(transfer).data, status=status.HTTP_201_CREATED)


class TransferDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TransferSerializer

    @extend_schema(tags=["payments"], responses=TransferSerializer)
    def get(self, request, transfer_id):
        transfer = get_object_or_404(
            Transfer.objects.select_related("guardian", "beneficiary", "sponsor"),
            pk=transfer_id,
        )
        return Response(TransferSerializer(transfer).data)

    @extend_schema(tags=["payments"], responses={204: None})
    def delete(self, request, transfer_id):
        transfer = get_object_or_404(Transfer, pk=transfer_id)
        transfer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
