# payments/api/urls.py

"""
Explicit non-PK routes ("preview") are registered before <uuid> routes.
"""

from django.urls import path

from payments.api.views import (
    PaymentDetailView,
    PaymentListCreateView,
    PaymentPreviewView,
    ReceiptDetailView,
    ReceiptListCreateView,
    TransferDetailView,
    TransferListCreateView,
)

urlpatterns = [
    path("payments/", PaymentListCreateView.as_view(), name="payments"),
    path("payments/preview/", PaymentPreviewView.as_view(), name="payment-preview"),
    path("payments/<uuid:payment_id>/", PaymentDetailView.as_view(), name="payment-detail"),
    path("receipts/", ReceiptListCreateView.as_view(), name="receipts"),
    path("receipts/<uuid:receipt_id>/", ReceiptDetailView.as_view(), name="receipt-detail"),
    path("transfers/", TransferListCreateView.as_view(), name="transfers"),
    path("transfers/<uuid:transfer_id>/", TransferDetailView.as_view(), name="transfer-detail"),
]
