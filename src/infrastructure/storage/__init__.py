"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteExpenseBook,
    SQLiteTokenStore,
    SQLiteUnitOfWork,
    close_pool,
    get_pool,
    get_token_store,
    get_unit_of_work,
)

__all__ = [
    # SQLite stores
    "SQLiteUnitOfWork",
    "SQLiteExpenseBook",
    "SQLiteTokenStore",
    "get_unit_of_work",
    "get_token_store",
    # Connection pool
    "get_pool",
    "close_pool",
]
