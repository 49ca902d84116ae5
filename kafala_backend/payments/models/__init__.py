# payments/models/__init__.py

"""
PAYMENTS MODELS PACKAGE EXPORTS
"""

from .payment import Payment, PaymentType
from .receipt import Receipt
from .transfer import Transfer

__all__ = [
    "PaymentType",
    "Payment",
    "Receipt",
    "Transfer",
]
