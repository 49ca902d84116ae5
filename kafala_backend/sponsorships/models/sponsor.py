# sponsorships/models/sponsor.py

"""
SPONSOR (PARRAIN)

pledge_value is the sponsor's TOTAL monthly commitment, divided equally across
its active sponsorships.

active_sponsorship_count is DERIVED:
- recomputed by kafala.services.recompute at every membership / pledge change
- never edited by hand, never trusted as an input without recomputation
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Sponsor(models.Model):
    class SponsorType(models.TextChoices):
        INDIVIDUAL = "INDIVIDUAL", "Individual"
        ORGANIZATION = "ORGANIZATION", "Organization"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sponsor_type = models.CharField(
        max_length=16,
        choices=SponsorType.choices,
        default=SponsorType.INDIVIDUAL,
    )

    last_name = models.CharField(max_length=200)
    first_name = models.CharField(max_length=200, blank=True, default="")
    national_id = models.CharField(max_length=32, blank=True, default="")
    ice = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    pledge_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    active_sponsorship_count = models.PositiveIntegerField(default=0, editable=False)

    donor_code = models.CharField(max_length=32, blank=True, default="")
    sponsor_code = models.CharField(max_length=32, blank=True, default="")

    is_member = models.BooleanField(default=False)
    is_donor = models.BooleanField(default=True)
    is_sponsor = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(pledge_value__gt=Decimal("0.00")),
                name="sponsor_pledge_value_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["last_name"], name="sponsorship_last_na_4c7d21_idx"),
            models.Index(fields=["sponsor_type"], name="sponsorship_sponsor_9e0a13_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return f"{self.full_name} ({self.pledge_value})"
