# beneficiaries/models/guardian.py

import uuid

from django.db import models


class Guardian(models.Model):
    """
    Widow (veuve): caretaker of one or more beneficiaries and receiver of transfers.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    last_name = models.CharField(max_length=200)
    first_name = models.CharField(max_length=200, blank=True, default="")
    national_id = models.CharField(max_length=32, blank=True, default="")
    bank_account = models.CharField(max_length=64, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_closed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["last_name"], name="beneficiari_last_na_6b1c0e_idx"),
            models.Index(fields=["is_closed"], name="beneficiari_is_clos_3f9a2d_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.full_name
