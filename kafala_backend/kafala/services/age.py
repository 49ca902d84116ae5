# kafala/services/age.py

"""
AGE / ELIGIBILITY

Age is always derived from birth_date. Beneficiary.age_cache exists only for
listing/sorting and is refreshed on every save; business logic never reads it.
"""

from __future__ import annotations

from datetime import date

from django.conf import settings

from kafala.services.activity import current_date

DEFAULT_AGE_ALERT_THRESHOLD = 17.5


def calculate_age(birth_date: date, *, today: date | None = None) -> int:
    """Completed years between birth_date and today."""
    if birth_date is None:
        raise ValueError("birth_date is required")

    today = today or current_date()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def is_eligible_for_alert(age, *, threshold=None) -> bool:
    """True when the beneficiary is close to ageing out of the program."""
    if threshold is None:
        threshold = getattr(settings, "KAFALA_AGE_ALERT_THRESHOLD", DEFAULT_AGE_ALERT_THRESHOLD)
    return age >= threshold
