"""
Event publishing for loan events
"""

from .publisher import LoanEventPublisher, get_event_publisher

__all__ = ["LoanEventPublisher", "get_event_publisher"]
