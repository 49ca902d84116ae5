# reporting/services/dashboard_service.py

"""
KAFALA DASHBOARD KPI SERVICE

Read-only aggregation for the dashboard. No mutations.

Contract:
- Money values are JSON numbers in major units (floats), rounded half-up to 0.01.
- Months are "YYYY-MM" strings.
- Collections are booked on the DUE month of each allocation line. Payments
  without a plan (NULL allocation) fall back to their payment month.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db.models import Count, Sum

from beneficiaries.models import Beneficiary, Guardian
from kafala.services.activity import active_q, current_date
from kafala.services.age import calculate_age, is_eligible_for_alert
from kafala.services.allocation_plan import AllocationPlan
from kafala.services.exceptions import InvalidAllocationPlanError
from kafala.services.schedule import add_months, first_of_month
from payments.models import Payment, PaymentType
from sponsorships.models import Installment, Sponsor

logger = logging.getLogger("kafala.reporting")

TWOPLACES = Decimal("0.01")

AGE_BUCKETS = (
    ("0-5", 0, 5),
    ("6-10", 6, 10),
    ("11-15", 11, 15),
    ("16-18", 16, 18),
)


def _q2(amount) -> Decimal:
    return (Decimal(amount or 0)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_major_number(amount) -> float:
    return float(_q2(amount))


def _month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _percent(numerator, denominator) -> float:
    if not denominator:
        return 0.0
    return float((Decimal(numerator) / Decimal(denominator) * 100).quantize(TWOPLACES, rounding=ROUND_HALF_UP))


def collections_by_due_month() -> dict[str, Decimal]:
    """
    KAFALA money per due month, from the persisted allocation plans.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))

    payments = Payment.objects.filter(payment_type=PaymentType.KAFALA).values(
        "id", "allocation", "payment_date", "amount"
    )
    for row in payments.iterator():
        try:
            plan = AllocationPlan.from_json(row["allocation"])
        except InvalidAllocationPlanError:
            logger.warning(
                "Unreadable allocation, booked on payment date",
                extra={"payment_id": str(row["id"])},
            )
            plan = None

        if plan is None:
            totals[_month_key(row["payment_date"])] += row["amount"]
            continue

        for line in plan.lines:
            month = line.month or row["payment_date"]
            totals[_month_key(month)] += line.amount_applied

    return dict(totals)


def expected_dues_by_month(*, start: date, stop: date) -> dict[str, Decimal]:
    rows = (
        Installment.objects.filter(month__gte=start, month__lt=stop)
        .values("month")
        .annotate(total=Sum("amount_due"))
    )
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for row in rows:
        totals[_month_key(row["month"])] += row["total"] or Decimal("0.00")
    return dict(totals)


def overdue_counts_by_month(*, start: date, stop: date) -> dict[str, int]:
    rows = (
        Installment.objects.filter(month__gte=start, month__lt=stop, settled=False)
        .values("month")
        .annotate(n=Count("id"))
    )
    counts: dict[str, int] = defaultdict(int)
    for row in rows:
        counts[_month_key(row["month"])] += row["n"]
    return dict(counts)


def age_distribution(*, today: date) -> list[dict]:
    counts = {label: 0 for label, _, _ in AGE_BUCKETS}
    for birth_date in Beneficiary.objects.filter(is_closed=False).values_list("birth_date", flat=True):
        age = calculate_age(birth_date, today=today)
        for label, low, high in AGE_BUCKETS:
            if low <= age <= high:
                counts[label] += 1
                break
    return [{"bracket": label, "count": counts[label]} for label, _, _ in AGE_BUCKETS]


def get_dashboard_kpis(*, today: date | None = None) -> dict:
    """
    Returns the dashboard snapshot for `today` (defaults to the local date).
    """
    today = today or current_date()
    this_month = first_of_month(today)
    next_month = add_months(this_month, 1)
    arrears_months = int(getattr(settings, "KAFALA_ARREARS_MONTHS", 6))

    # -------------------------
    # COUNTS
    # -------------------------
    sponsor_count = Sponsor.objects.count()
    beneficiary_count = Beneficiary.objects.filter(is_closed=False).count()
    guardian_count = Guardian.objects.filter(is_closed=False).count()

    open_birth_dates = Beneficiary.objects.filter(is_closed=False).values_list("birth_date", flat=True)
    age_alerts = sum(
        1 for b in open_birth_dates if is_eligible_for_alert(calculate_age(b, today=today))
    )

    # -------------------------
    # THIS MONTH
    # -------------------------
    kafala_this_month = Payment.objects.filter(
        payment_type=PaymentType.KAFALA,
        payment_date__gte=this_month,
        payment_date__lt=next_month,
    )
    received_this_month = kafala_this_month.aggregate(total=Sum("amount"))["total"]
    sponsors_paid_this_month = (
        kafala_this_month.exclude(sponsor__isnull=True).values("sponsor_id").distinct().count()
    )

    expected_this_month = Installment.objects.filter(
        month__gte=this_month, month__lt=next_month
    ).aggregate(total=Sum("amount_due"))["total"]

    # -------------------------
    # ARREARS
    # -------------------------
    arrears_limit = add_months(this_month, -arrears_months)
    sponsors_in_arrears = (
        Installment.objects.filter(settled=False, month__lt=arrears_limit)
        .values("sponsorship__sponsor_id")
        .distinct()
        .count()
    )

    # -------------------------
    # EXPECTED vs COLLECTED
    # -------------------------
    expected = expected_dues_by_month(start=add_months(this_month, -12), stop=add_months(this_month, 12))
    expected_series = [
        {"month": _month_key(m), "amount": _to_major_number(expected.get(_month_key(m)))}
        for m in (add_months(this_month, i) for i in range(-12, 12))
    ]

    collected = collections_by_due_month()
    last_12 = [add_months(this_month, i) for i in range(-11, 1)]
    collected_series = [
        {"month": _month_key(m), "amount": _to_major_number(collected.get(_month_key(m)))}
        for m in last_12
    ]

    expected_12 = sum((expected.get(_month_key(m), Decimal("0.00")) for m in last_12), Decimal("0.00"))
    collected_12 = sum((collected.get(_month_key(m), Decimal("0.00")) for m in last_12), Decimal("0.00"))

    # -------------------------
    # ACTIVE SPONSORS
    # -------------------------
    active_sponsors = Sponsor.objects.filter(active_q(today=today, prefix="sponsorships__")).distinct()
    active_sponsor_count = active_sponsors.count()
    avg_pledge = Sponsor.objects.filter(pk__in=active_sponsors.values("pk")).aggregate(
        total=Sum("pledge_value"), n=Count("id")
    )
    average_pledge = (avg_pledge["total"] or Decimal("0.00")) / avg_pledge["n"] if avg_pledge["n"] else Decimal("0.00")

    # -------------------------
    # TOP SPONSORS (12 months, by payment date)
    # -------------------------
    top_rows = (
        Payment.objects.filter(
            payment_type=PaymentType.KAFALA,
            sponsor__isnull=False,
            payment_date__gte=add_months(this_month, -12),
        )
        .values("sponsor_id", "sponsor__last_name", "sponsor__first_name")
        .annotate(total=Sum("amount"))
        .order_by("-total")[:5]
    )
    top_sponsors = [
        {
            "sponsor_id": str(r["sponsor_id"]),
            "last_name": r["sponsor__last_name"],
            "first_name": r["sponsor__first_name"],
            "total_amount": _to_major_number(r["total"]),
        }
        for r in top_rows
    ]

    # -------------------------
    # OVERDUE INSTALLMENTS PER MONTH (current month is never overdue)
    # -------------------------
    overdue = overdue_counts_by_month(start=last_12[0], stop=this_month)
    overdue_series = [
        {"month": _month_key(m), "count": overdue.get(_month_key(m), 0) if m < this_month else 0}
        for m in last_12
    ]

    return {
        "as_of_date": today.isoformat(),
        "currency": getattr(settings, "KAFALA_CURRENCY", "MAD"),
        "sponsor_count": sponsor_count,
        "beneficiary_count": beneficiary_count,
        "guardian_count": guardian_count,
        "kafala_received_this_month": _to_major_number(received_this_month),
        "age_alerts": age_alerts,
        "sponsors_in_arrears": sponsors_in_arrears,
        "expected_dues_by_month": expected_series,
        "collected_by_due_month": collected_series,
        "recovery_rate": _percent(collected_12, expected_12),
        "kafala_expected_this_month": _to_major_number(expected_this_month),
        "active_vs_inactive_sponsors": {
            "active": active_sponsor_count,
            "inactive": sponsor_count - active_sponsor_count,
        },
        "age_distribution": age_distribution(today=today),
        "top_sponsors": top_sponsors,
        "payment_evolution": [dict(row) for row in collected_series],
        "overdue_installments_by_month": overdue_series,
        "average_pledge_active_sponsors": _to_major_number(average_pledge),
        "monthly_payment_rate": _percent(sponsors_paid_this_month, active_sponsor_count),
    }
