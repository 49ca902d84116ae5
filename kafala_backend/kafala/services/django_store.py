# kafala/services/django_store.py

"""
DJANGO ORM IMPLEMENTATION OF KafalaStore

RULES:
- Row locks (select_for_update) are taken on installments that are about to
  receive or give back money.
- Bulk due-amount rewrites go through QuerySet.update() (no per-row save()).
- transaction.atomic() is the only concurrency control.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from django.db import transaction
from django.db.models import Max, Prefetch
from django.utils import timezone

from kafala.services.activity import active_q
from kafala.services.exceptions import (
    InstallmentNotFoundError,
    PaymentNotFoundError,
    SponsorNotFoundError,
)
from kafala.services.store import (
    InstallmentRecord,
    KafalaStore,
    NewInstallment,
    SponsorRecord,
    SponsorshipRecord,
)
from payments.models import Payment
from sponsorships.models import Installment, Sponsor, Sponsorship

logger = logging.getLogger("kafala.store")


def _installment_record(row: Installment) -> InstallmentRecord:
    return InstallmentRecord(
        id=row.id,
        sponsorship_id=row.sponsorship_id,
        month=row.month,
        amount_due=row.amount_due,
        amount_paid=row.amount_paid,
        settled=row.settled,
    )


class DjangoKafalaStore(KafalaStore):
    def __init__(self, using: str = "default"):
        self.using = using

    # ---------------- sponsors ----------------

    def find_sponsor(self, sponsor_id) -> SponsorRecord:
        row = (
            Sponsor.objects.using(self.using)
            .filter(pk=sponsor_id)
            .values("id", "pledge_value", "active_sponsorship_count")
            .first()
        )
        if row is None:
            logger.error("Sponsor not found", extra={"sponsor_id": str(sponsor_id)})
            raise SponsorNotFoundError(f"Sponsor {sponsor_id} not found")

        return SponsorRecord(
            id=row["id"],
            pledge_value=row["pledge_value"],
            active_sponsorship_count=int(row["active_sponsorship_count"] or 0),
        )

    def update_sponsor(self, sponsor_id, **fields) -> None:
        updated = (
            Sponsor.objects.using(self.using)
            .filter(pk=sponsor_id)
            .update(**fields, updated_at=timezone.now())
        )
        if not updated:
            logger.error("Sponsor vanished during update", extra={"sponsor_id": str(sponsor_id)})
            raise SponsorNotFoundError(f"Sponsor {sponsor_id} not found")

    # ---------------- sponsorships ----------------

    def _active_sponsorships_qs(self, sponsor_id, today: date):
        return (
            Sponsorship.objects.using(self.using)
            .filter(sponsor_id=sponsor_id)
            .filter(active_q(today=today))
        )

    def count_active_sponsorships(self, sponsor_id, today: date) -> int:
        return self._active_sponsorships_qs(sponsor_id, today).count()

    def find_active_sponsorships(self, sponsor_id, today: date) -> list[SponsorshipRecord]:
        open_installments = Installment.objects.using(self.using).filter(settled=False).order_by("month")
        qs = (
            self._active_sponsorships_qs(sponsor_id, today)
            .order_by("start_date", "created_at")
            .prefetch_related(
                Prefetch("installments", queryset=open_installments, to_attr="open_installments")
            )
        )

        return [
            SponsorshipRecord(
                id=s.id,
                sponsor_id=s.sponsor_id,
                beneficiary_id=s.beneficiary_id,
                start_date=s.start_date,
                end_date=s.end_date,
                installments=[_installment_record(i) for i in s.open_installments],
            )
            for s in qs
        ]

    # ---------------- installments ----------------

    def find_open_installments(self, sponsorship_id, *, for_update: bool = False) -> list[InstallmentRecord]:
        qs = Installment.objects.using(self.using).filter(
            sponsorship_id=sponsorship_id,
            settled=False,
        )
        if for_update:
            qs = qs.select_for_update()
        return [_installment_record(i) for i in qs.order_by("month")]

    def latest_installment_month(self, sponsorship_id) -> date | None:
        return (
            Installment.objects.using(self.using)
            .filter(sponsorship_id=sponsorship_id)
            .aggregate(latest=Max("month"))["latest"]
        )

    def create_installments(self, batch: Iterable[NewInstallment], *, skip_duplicate_months: bool = True) -> int:
        pending: dict[tuple[str, date], NewInstallment] = {}
        for item in batch:
            pending.setdefault((str(item.sponsorship_id), item.month), item)

        if not pending:
            return 0

        if skip_duplicate_months:
            existing = Installment.objects.using(self.using).filter(
                sponsorship_id__in={item.sponsorship_id for item in pending.values()},
                month__in={item.month for item in pending.values()},
            ).values_list("sponsorship_id", "month")
            for sponsorship_id, month in existing:
                pending.pop((str(sponsorship_id), month), None)

        rows = [
            Installment(
                sponsorship_id=item.sponsorship_id,
                month=item.month,
                amount_due=item.amount_due,
            )
            for item in pending.values()
        ]
        Installment.objects.using(self.using).bulk_create(rows, ignore_conflicts=skip_duplicate_months)
        return len(rows)

    def update_installments_by_filter(self, filters: dict, fields: dict) -> int:
        return (
            Installment.objects.using(self.using)
            .filter(**filters)
            .update(**fields, updated_at=timezone.now())
        )

    def find_installment(self, installment_id, *, for_update: bool = False) -> InstallmentRecord:
        qs = Installment.objects.using(self.using).filter(pk=installment_id)
        if for_update:
            qs = qs.select_for_update()

        row = qs.first()
        if row is None:
            logger.error("Installment not found", extra={"installment_id": str(installment_id)})
            raise InstallmentNotFoundError(f"Installment {installment_id} not found")
        return _installment_record(row)

    def update_installment(self, installment_id, **fields) -> None:
        updated = (
            Installment.objects.using(self.using)
            .filter(pk=installment_id)
            .update(**fields, updated_at=timezone.now())
        )
        if not updated:
            logger.error("Installment vanished during update", extra={"installment_id": str(installment_id)})
            raise InstallmentNotFoundError(f"Installment {installment_id} not found")

    # ---------------- payments ----------------

    def find_payment_allocation(self, payment_id):
        row = (
            Payment.objects.using(self.using)
            .filter(pk=payment_id)
            .values("id", "allocation")
            .first()
        )
        if row is None:
            logger.error("Payment not found", extra={"payment_id": str(payment_id)})
            raise PaymentNotFoundError(f"Payment {payment_id} not found")
        return row["allocation"]

    # ---------------- transactions ----------------

    def run_in_atomic_unit(self, fn):
        with transaction.atomic(using=self.using):
            return fn()
