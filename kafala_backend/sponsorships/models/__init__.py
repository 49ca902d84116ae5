# sponsorships/models/__init__.py

"""
SPONSORSHIPS MODELS PACKAGE EXPORTS
"""

from .installment import Installment
from .sponsor import Sponsor
from .sponsorship import Sponsorship

__all__ = [
    "Sponsor",
    "Sponsorship",
    "Installment",
]
