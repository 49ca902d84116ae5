# payments/models/payment.py

"""
PAYMENT (PAIEMENT)

RULES:
- amount > 0.
- KAFALA: sponsor required, beneficiary and guardian forbidden. The amount is
  spread over the sponsor's active beneficiaries by the allocation engine.
- Other types may name a beneficiary / guardian directly.

allocation (JSON):
- versioned plan written once at creation (see kafala.services.allocation_plan)
- NULL for payments that predate allocation tracking; reporting then books
  them on payment_date.
- read by reverse_allocation() before the row is deleted.
"""

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone


class PaymentType(models.TextChoices):
    KAFALA = "KAFALA", "Kafala"
    SCHOOL_GRANT = "SCHOOL_GRANT", "School grant"
    OTHER = "OTHER", "Other"


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    payment_type = models.CharField(
        max_length=16,
        choices=PaymentType.choices,
        default=PaymentType.KAFALA,
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)

    sponsor = models.ForeignKey(
        "sponsorships.Sponsor",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    beneficiary = models.ForeignKey(
        "beneficiaries.Beneficiary",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    guardian = models.ForeignKey(
        "beneficiaries.Guardian",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    receipt = models.ForeignKey(
        "payments.Receipt",
        on_delete=models.SET_NULL,
        related_name="payments",
        null=True,
        blank=True,
    )

    allocation = models.JSONField(null=True, blank=True, default=None)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="payment_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["payment_type", "payment_date"], name="payments_pa_payment_5b9e07_idx"),
            models.Index(fields=["sponsor", "payment_date"], name="payments_pa_sponsor_c41f2a_idx"),
        ]

    def __str__(self):
        return f"{self.payment_type} {self.amount} ({self.payment_date})"
