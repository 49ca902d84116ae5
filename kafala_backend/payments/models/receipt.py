# payments/models/receipt.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from payments.models.payment import PaymentType


class Receipt(models.Model):
    """
    Receipt (reçu) issued to a sponsor. `lines` is free-form detail printed on it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=64, unique=True)
    sponsor = models.ForeignKey(
        "sponsorships.Sponsor",
        on_delete=models.PROTECT,
        related_name="receipts",
        null=True,
        blank=True,
    )
    ice = models.CharField(max_length=32, blank=True, default="")
    total = models.DecimalField(max_digits=12, decimal_places=2)
    payment_type = models.CharField(max_length=16, choices=PaymentType.choices)
    lines = models.JSONField(null=True, blank=True, default=None)
    issued_on = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-issued_on", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gt=Decimal("0.00")),
                name="receipt_total_positive",
            ),
        ]

    def __str__(self):
        return f"Receipt {self.number}"
