# kafala/services/exceptions.py

"""
KAFALA SERVICE ERRORS

Centralized domain errors for the sponsorship / allocation engine.

Taxonomy:
- KafalaValidationError: user-facing domain failures (HTTP 400 / 422).
  Raised before any mutation; never retried.
- KafalaNotFoundError: a referenced row is missing (HTTP 404).
  Usually a race with a concurrent delete; the whole unit is aborted.

Infrastructure errors (DatabaseError & co.) are NOT wrapped here.
"""


class KafalaServiceError(Exception):
    """Base exception for all Kafala engine failures."""


# ============================================================
# DOMAIN / VALIDATION
# ============================================================

class KafalaValidationError(KafalaServiceError):
    """Raised when an operation violates a domain rule."""


class InvalidAmountError(KafalaValidationError):
    """Raised when a money amount is missing, malformed or not > 0."""


class PaymentTypeRuleError(KafalaValidationError):
    """Raised when payment references do not match the payment type."""


class NoActiveSponsorshipError(KafalaValidationError):
    """Raised when a sponsor has no active sponsorship to allocate against."""


class ActiveSponsorshipExistsError(KafalaValidationError):
    """Raised when a beneficiary already has an active sponsorship."""

    def __init__(self, message, *, sponsorship_id=None, sponsor_id=None):
        super().__init__(message)
        self.sponsorship_id = sponsorship_id
        self.sponsor_id = sponsor_id


class SponsorshipLockedError(KafalaValidationError):
    """Raised when a sponsorship cannot be removed because money was applied to it."""


class InvalidAllocationPlanError(KafalaValidationError):
    """Raised when a stored or submitted allocation plan cannot be read."""


# ============================================================
# NOT FOUND
# ============================================================

class KafalaNotFoundError(KafalaServiceError):
    """Raised when a referenced entity does not exist."""


class SponsorNotFoundError(KafalaNotFoundError):
    pass


class SponsorshipNotFoundError(KafalaNotFoundError):
    pass


class InstallmentNotFoundError(KafalaNotFoundError):
    pass


class PaymentNotFoundError(KafalaNotFoundError):
    pass


class BeneficiaryNotFoundError(KafalaNotFoundError):
    pass
