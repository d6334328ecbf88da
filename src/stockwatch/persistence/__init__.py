"""Persistence layer: ORM models, repositories and the record store."""

from .db import Database
from .models import Base, PollRun, StockEvent, SubscriptionRecord
from .repo import EventRepository, RunRepository, SubscriptionRepository
from .store import InsertResult, RecordStore, SqlRecordStore, open_store

__all__ = [
    # Database
    "Database",
    # Models
    "Base",
    "StockEvent",
    "SubscriptionRecord",
    "PollRun",
    # Repositories
    "EventRepository",
    "SubscriptionRepository",
    "RunRepository",
    # Store
    "InsertResult",
    "RecordStore",
    "SqlRecordStore",
    "open_store",
]
