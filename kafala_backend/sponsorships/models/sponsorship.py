# sponsorships/models/sponsorship.py

"""
SPONSORSHIP (PARRAINAGE)

Links one sponsor to one beneficiary over [start_date, end_date).

RULES:
- end_date NULL = open-ended.
- Active = end_date NULL or end_date > today (kafala.services.activity).
- At most ONE active sponsorship per beneficiary. Enforced by the sponsorship
  service at creation time, not by a database constraint (a future end date
  keeps a row active, which a partial index cannot express).
- pledge_value is a snapshot of the sponsor's pledge at creation.
"""

import uuid
from decimal import Decimal

from django.db import models

from kafala.services.activity import is_active


class Sponsorship(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sponsor = models.ForeignKey(
        "sponsorships.Sponsor",
        on_delete=models.PROTECT,
        related_name="sponsorships",
    )
    beneficiary = models.ForeignKey(
        "beneficiaries.Beneficiary",
        on_delete=models.PROTECT,
        related_name="sponsorships",
    )

    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)

    pledge_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Sponsor pledge at creation time (snapshot).",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-start_date", "-created_at"]
        indexes = [
            models.Index(fields=["sponsor", "end_date"], name="sponsorship_sponsor_b25f6e_idx"),
            models.Index(fields=["beneficiary", "end_date"], name="sponsorship_benefic_7a8c90_idx"),
        ]

    @property
    def is_active(self) -> bool:
        return is_active(self.end_date)

    def __str__(self):
        return f"{self.sponsor_id} -> {self.beneficiary_id} ({self.start_date})"
