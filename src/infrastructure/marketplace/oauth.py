"""
Marketplace OAuth token manager.

Keeps a short-lived access token fresh using the stored long-lived refresh
token. When the refresh token is missing, expired or rejected, the account
has to be reconnected by a person; that surfaces as
``ReauthorizationRequiredError``.
"""

import asyncio
from datetime import datetime, timedelta

import httpx

from src.config import get_logger
from src.core.entities.marketplace import OAuthToken
from src.core.exceptions import MarketplaceRequestError, ReauthorizationRequiredError
from src.core.interfaces.marketplace import ITokenStore

logger = get_logger(__name__)


class OAuthTokenManager:
    """Hands out valid access tokens for one marketplace account."""

    def __init__(
        self,
        token_store: ITokenStore,
        client_id: str | None,
        client_secret: str | None,
        token_url: str,
        scopes: list[str] | None = None,
        provider: str = "ebay",
        timeout: float = 30.0,
        expiry_margin_seconds: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._store = token_store
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._scopes = scopes or []
        self.provider = provider
        self._timeout = timeout
        self._margin = expiry_margin_seconds
        self._transport = transport
        self._refresh_lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        """
        Return a usable access token, refreshing it if needed.

        Raises:
            ReauthorizationRequiredError: No usable refresh token
            MarketplaceRequestError: Token endpoint failed
        """
        token = await self._store.get_token(self.provider)
        if token is not None and token.access_token_valid(self._margin):
            return token.access_token

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            token = await self._store.get_token(self.provider)
            if token is not None and token.access_token_valid(self._margin):
                return token.access_token
            token = await self._refresh(token)
            return token.access_token

    async def invalidate(self) -> None:
        """Forget the current access token (e.g. after a 401)."""
        token = await self._store.get_token(self.provider)
        if token is None or token.access_token is None:
            return
        token.access_token = None
        token.access_token_expires_at = None
        await self._store.save_token(token)
        logger.info("marketplace_access_token_invalidated", provider=self.provider)

    async def _refresh(self, token: OAuthToken | None) -> OAuthToken:
        if token is None or not token.refresh_token:
            raise ReauthorizationRequiredError(self.provider, "no refresh token stored")
        if not token.refresh_token_valid():
            raise ReauthorizationRequiredError(self.provider, "refresh token expired")
        if not self._client_id or not self._client_secret:
            raise ReauthorizationRequiredError(self.provider, "client credentials not configured")

        data = {"grant_type": "refresh_token", "refresh_token": token.refresh_token}
        if self._scopes:
            data["scope"] = " ".join(self._scopes)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._token_url,
                    data=data,
                    auth=(self._client_id, self._client_secret),
                )
        except httpx.RequestError as exc:
            raise MarketplaceRequestError("token refresh", str(exc)) from exc

        body = self._json(response)
        if response.status_code >= 400:
            error = body.get("error", "")
            if response.status_code in (400, 401) and error in ("invalid_grant", "invalid_token", ""):
                logger.warning(
                    "marketplace_refresh_rejected",
                    provider=self.provider,
                    status_code=response.status_code,
                    error=error,
                )
                token.access_token = None
                token.access_token_expires_at = None
                token.refresh_token = None
                token.refresh_token_expires_at = None
                await self._store.save_token(token)
                raise ReauthorizationRequiredError(self.provider, "refresh token rejected")
            raise MarketplaceRequestError(
                "token refresh",
                body.get("error_description") or error or f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        access_token = body.get("access_token")
        if not access_token:
            raise MarketplaceRequestError("token refresh", "response did not include an access token")

        now = datetime.utcnow()
        token.access_token = access_token
        token.access_token_expires_at = now + timedelta(seconds=int(body.get("expires_in", 7200)))
        # Some providers rotate the refresh token on every refresh
        if body.get("refresh_token"):
            token.refresh_token = body["refresh_token"]
            expires_in = body.get("refresh_token_expires_in")
            token.refresh_token_expires_at = (
                now + timedelta(seconds=int(expires_in)) if expires_in else token.refresh_token_expires_at
            )
        await self._store.save_token(token)

        logger.info(
            "marketplace_token_refreshed",
            provider=self.provider,
            expires_at=token.access_token_expires_at.isoformat(),
        )
        return token

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
