"""Infrastructure layer implementations."""

from src.infrastructure import bookkeeping, marketplace, storage

__all__ = ["storage", "bookkeeping", "marketplace"]
