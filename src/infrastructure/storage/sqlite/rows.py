"""Column conversion helpers shared by the SQLite stores."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from src.core.exceptions import DatabaseError


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def parse_datetime(value: str | None) -> datetime:
    """Parse an ISO timestamp, falling back to now for legacy rows."""
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return datetime.utcnow()


def parse_optional_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def parse_decimal(value: str | int | float | None) -> Decimal:
    """Decimal columns are stored as TEXT; numeric values come from hand-edited rows."""
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise DatabaseError("read decimal column", f"unparseable value {value!r}") from None


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None
