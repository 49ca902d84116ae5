# beneficiaries/models/beneficiary.py

"""
BENEFICIARY (ORPHAN)

RULES:
- birth_date is the source of truth for age.
- age_cache is a listing convenience, recomputed on EVERY save.
  Never read it in business logic; use `age` (live) instead.
"""

import uuid

from django.db import models

from kafala.services.age import calculate_age, is_eligible_for_alert


class Beneficiary(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    last_name = models.CharField(max_length=200)
    first_name = models.CharField(max_length=200, blank=True, default="")
    birth_date = models.DateField()

    guardian = models.ForeignKey(
        "beneficiaries.Guardian",
        on_delete=models.PROTECT,
        related_name="beneficiaries",
    )

    school_follow_up = models.JSONField(null=True, blank=True, default=None)
    is_closed = models.BooleanField(default=False)

    age_cache = models.PositiveSmallIntegerField(
        default=0,
        editable=False,
        help_text="Derived from birth_date on save (never authoritative).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["guardian"], name="beneficiari_guardia_8d2e41_idx"),
            models.Index(fields=["is_closed"], name="beneficiari_is_clos_a71c55_idx"),
            models.Index(fields=["birth_date"], name="beneficiari_birth_d_c0f7b3_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> int:
        return calculate_age(self.birth_date)

    @property
    def age_alert(self) -> bool:
        return is_eligible_for_alert(self.age)

    def refresh_age_cache(self) -> bool:
        """Returns True when the cached value changed."""
        age = max(calculate_age(self.birth_date), 0)
        changed = age != self.age_cache
        self.age_cache = age
        return changed

    def save(self, *args, **kwargs):
        self.refresh_age_cache()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "age_cache"}
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.full_name
