"""
Repositories module initialization
"""

from .loan import LoanRepository
from .processed_events import ProcessedEventRepository

__all__ = [
    "LoanRepository",
    "ProcessedEventRepository",
]
