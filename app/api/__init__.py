"""
API module initialization
"""

from . import health, loans, operational

__all__ = ["health", "loans", "operational"]
