"""SQLite implementation of marketplace OAuth token storage."""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.marketplace import OAuthToken
from src.core.interfaces.marketplace import ITokenStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from src.infrastructure.storage.sqlite.rows import iso, parse_datetime, parse_optional_datetime

logger = get_logger(__name__)


class SQLiteTokenStore(ITokenStore):
    """Token store on the global connection pool."""

    async def get_token(self, provider: str) -> OAuthToken | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM marketplace_tokens WHERE provider = ?", (provider,)
            )
            row = await cursor.fetchone()
            return self._row_to_token(row) if row else None

    async def save_token(self, token: OAuthToken) -> OAuthToken:
        token.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO marketplace_tokens (
                    provider, access_token, access_token_expires_at,
                    refresh_token, refresh_token_expires_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    token.provider,
                    token.access_token,
                    iso(token.access_token_expires_at),
                    token.refresh_token,
                    iso(token.refresh_token_expires_at),
                    token.updated_at.isoformat(),
                ),
            )
        logger.info("marketplace_token_saved", provider=token.provider)
        return token

    async def delete_token(self, provider: str) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM marketplace_tokens WHERE provider = ?", (provider,)
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("marketplace_token_deleted", provider=provider)
        return deleted

    @staticmethod
    def _row_to_token(row: aiosqlite.Row) -> OAuthToken:
        return OAuthToken(
            provider=row["provider"],
            access_token=row["access_token"],
            access_token_expires_at=parse_optional_datetime(row["access_token_expires_at"]),
            refresh_token=row["refresh_token"],
            refresh_token_expires_at=parse_optional_datetime(row["refresh_token_expires_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )
