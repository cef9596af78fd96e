# Infrastructure Store Adapters Package
from .memory import InMemoryCardStore, InMemoryReviewLogStore, InMemoryStatsStore
from .sqlite import SqliteCardStore, SqliteDatabase, SqliteReviewLogStore, SqliteStatsStore

__all__ = [
    "InMemoryCardStore",
    "InMemoryReviewLogStore",
    "InMemoryStatsStore",
    "SqliteCardStore",
    "SqliteDatabase",
    "SqliteReviewLogStore",
    "SqliteStatsStore",
]
