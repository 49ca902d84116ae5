# payments/models/transfer.py

"""
TRANSFER (VIREMENT)

Money paid out to a guardian for one beneficiary, covering `months` months of
the sponsor's pledge. total_amount is derived, never stored.
"""

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from kafala.services.money import money


class Transfer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    guardian = models.ForeignKey(
        "beneficiaries.Guardian",
        on_delete=models.PROTECT,
        related_name="transfers",
    )
    beneficiary = models.ForeignKey(
        "beneficiaries.Beneficiary",
        on_delete=models.PROTECT,
        related_name="transfers",
    )
    sponsor = models.ForeignKey(
        "sponsorships.Sponsor",
        on_delete=models.PROTECT,
        related_name="transfers",
    )

    pledge_value = models.DecimalField(max_digits=12, decimal_places=2)
    months = models.PositiveIntegerField()
    transfer_date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transfer_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(pledge_value__gt=Decimal("0.00")),
                name="transfer_pledge_value_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(months__gt=0),
                name="transfer_months_positive",
            ),
        ]

    @property
    def total_amount(self) -> Decimal:
        return money(self.pledge_value * self.months)

    def __str__(self):
        return f"Transfer {self.guardian_id} {self.total_amount} ({self.transfer_date})"
