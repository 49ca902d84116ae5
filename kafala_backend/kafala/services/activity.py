# kafala/services/activity.py

"""
SPONSORSHIP ACTIVITY PREDICATE

A sponsorship is ACTIVE when:
- end_date is empty, OR
- end_date is strictly after today.

A sponsorship closed with a future end date is still active today.
`active_q()` is the same predicate expressed as an ORM filter; every
"active sponsorship" decision in the code base goes through one of the two.
"""

from __future__ import annotations

from datetime import date, datetime

from django.db.models import Q
from django.utils import timezone


def current_date() -> date:
    return timezone.localdate()


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def is_active(end_date, *, today: date | None = None) -> bool:
    end = _as_date(end_date)
    if end is None:
        return True
    return end > (today or current_date())


def active_q(*, today: date | None = None, prefix: str = "") -> Q:
    """
    ORM form of is_active(). `prefix` allows filtering through a relation,
    e.g. active_q(prefix="sponsorships__").
    """
    today = today or current_date()
    return Q(**{f"{prefix}end_date__isnull": True}) | Q(**{f"{prefix}end_date__gt": today})
