# beneficiaries/models/__init__.py

"""
BENEFICIARIES MODELS PACKAGE EXPORTS
"""

from .beneficiary import Beneficiary
from .guardian import Guardian

__all__ = [
    "Guardian",
    "Beneficiary",
]
