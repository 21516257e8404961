"""
Handler Registry - Maps event types to their handlers
"""

from typing import Awaitable, Callable, Dict, Optional

from app.consumer.handlers.loan_created_handler import LoanCreatedHandler
from app.models.loan import LEGACY_EVENT_TYPES, LoanEvent, LoanEventType
from app.repositories.processed_events import ProcessedEventRepository
from app.services.notification import Notifier

EventHandler = Callable[[LoanEvent], Awaitable[bool]]


def build_handlers(notifier: Notifier, processed_events: ProcessedEventRepository) -> Dict[str, EventHandler]:
    """Registry mapping event type names (current and legacy) to handlers"""
    loan_created = LoanCreatedHandler(notifier, processed_events)
    handlers: Dict[str, EventHandler] = {LoanEventType.LOAN_CREATED.value: loan_created}
    for legacy_name, event_type in LEGACY_EVENT_TYPES.items():
        handlers[legacy_name] = handlers[event_type.value]
    return handlers


def get_handler(handlers: Dict[str, EventHandler], event_type: Optional[str]) -> Optional[EventHandler]:
    """
    Get handler for given event type

    Returns:
        Handler or None if no handler registered
    """
    if not isinstance(event_type, str):
        return None
    return handlers.get(event_type)
