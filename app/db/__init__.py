"""
Database module initialization
"""

from .mongodb import (
    db,
    connect_to_mongo,
    close_mongo_connection,
    get_loan_collection,
    get_counter_collection,
    get_processed_events_collection,
)

__all__ = [
    "db",
    "connect_to_mongo",
    "close_mongo_connection",
    "get_loan_collection",
    "get_counter_collection",
    "get_processed_events_collection",
]
