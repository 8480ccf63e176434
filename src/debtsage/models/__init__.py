"""SQLModel table exports."""

from .card import CreditCard
from .loan import Loan, LoanEvent

__all__ = [
    "CreditCard",
    "Loan",
    "LoanEvent",
]
