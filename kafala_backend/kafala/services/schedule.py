# kafala/services/schedule.py

"""
INSTALLMENT GENERATOR

Produces the monthly schedule (échéances) of one sponsorship:

- one installment per calendar month
- from the first day of start_date's month
- up to (EXCLUSIVE) the first day of end_date's month,
  or `KAFALA_HORIZON_MONTHS` (12) months past the current month when open-ended
- amount_due = pledge_value / max(active_count, 1)

Idempotent: months that already exist for the sponsorship are skipped, never
overwritten. Safe to call again whenever the schedule needs extending.

An empty range (same month, or end before start) creates nothing; not an error.
"""

from __future__ import annotations

import logging
from datetime import date

from django.conf import settings

from kafala.services.activity import current_date
from kafala.services.money import split
from kafala.services.store import KafalaStore, NewInstallment, get_default_store

logger = logging.getLogger("kafala.schedule")

DEFAULT_HORIZON_MONTHS = 12


def first_of_month(d: date) -> date:
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """First day of the month `months` after d's month."""
    index = d.year * 12 + (d.month - 1) + int(months)
    return date(index // 12, index % 12 + 1, 1)


def month_range(start: date, stop: date) -> list[date]:
    """First-of-month dates in [start, stop)."""
    months = []
    current = first_of_month(start)
    stop = first_of_month(stop)
    while current < stop:
        months.append(current)
        current = add_months(current, 1)
    return months


def horizon_months() -> int:
    return int(getattr(settings, "KAFALA_HORIZON_MONTHS", DEFAULT_HORIZON_MONTHS))


def horizon_month(*, today: date | None = None) -> date:
    """Exclusive upper bound of an open-ended schedule."""
    return add_months(first_of_month(today or current_date()), horizon_months())


def generate_installments(
    *,
    sponsorship_id,
    start_date: date,
    pledge_value,
    active_count: int,
    end_date: date | None = None,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> int:
    """
    Create the missing installments of a sponsorship. Returns how many were created.
    """
    if start_date is None:
        raise ValueError("start_date is required")

    store = store or get_default_store()

    # Zero active count happens during bootstrap; fall back to the full pledge.
    share = split(pledge_value, max(int(active_count or 0), 1))

    stop = first_of_month(end_date) if end_date else horizon_month(today=today)
    months = month_range(start_date, stop)
    if not months:
        return 0

    created = store.create_installments(
        [NewInstallment(sponsorship_id=sponsorship_id, month=m, amount_due=share) for m in months],
        skip_duplicate_months=True,
    )

    logger.debug(
        "Installments generated",
        extra={
            "sponsorship_id": str(sponsorship_id),
            "first_month": months[0].isoformat(),
            "last_month": months[-1].isoformat(),
            "requested": len(months),
            "inserted": created,
            "amount_due": str(share),
        },
    )
    return created
