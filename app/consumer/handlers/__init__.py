"""
Event handlers for the loan event consumer
"""

from .handler_registry import build_handlers, get_handler
from .loan_created_handler import LoanCreatedHandler

__all__ = ["build_handlers", "get_handler", "LoanCreatedHandler"]
