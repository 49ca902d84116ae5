# sponsorships/models/installment.py

"""
INSTALLMENT (ÉCHÉANCE)

One month's obligation of one sponsorship.

GUARANTEES:
- month is a first-of-month date, unique per sponsorship.
- settled == (amount_paid >= amount_due) after every mutation.
- amount_due of an UNSETTLED row is derived (pledge / active count at the last
  recomputation). Settled rows are frozen history.
- Mutated only by the allocation engine (amount_paid / settled) and by
  recomputation (amount_due on unsettled rows).
"""

import uuid
from decimal import Decimal

from django.db import models


class Installment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sponsorship = models.ForeignKey(
        "sponsorships.Sponsorship",
        on_delete=models.CASCADE,
        related_name="installments",
    )

    month = models.DateField()
    amount_due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    settled = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["month"]
        constraints = [
            models.UniqueConstraint(
                fields=["sponsorship", "month"],
                name="uniq_installment_sponsorship_month",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_paid__gte=Decimal("0.00")),
                name="installment_amount_paid_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["sponsorship", "settled", "month"], name="sponsorship_sponsor_1d4e88_idx"),
            models.Index(fields=["month", "settled"], name="sponsorship_month_s_e3b217_idx"),
        ]

    @property
    def amount_remaining(self) -> Decimal:
        return self.amount_due - self.amount_paid

    def __str__(self):
        return f"{self.sponsorship_id} | {self.month:%Y-%m} | {self.amount_paid}/{self.amount_due}"
