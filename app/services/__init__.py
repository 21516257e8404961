"""
Service layer
"""

from .loan import LoanService
from .notification import LoggingNotifier, Notifier

__all__ = ["LoanService", "LoggingNotifier", "Notifier"]
