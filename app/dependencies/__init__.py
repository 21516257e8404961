"""
Dependency injection providers
"""

from .loan import get_loan_repository, get_loan_service

__all__ = ["get_loan_repository", "get_loan_service"]
