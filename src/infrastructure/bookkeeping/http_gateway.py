"""
HTTP bookkeeping gateway.

Posts expense entries to a remote bookkeeping API. The entry's reference id
is sent as the ``Idempotency-Key`` header so a retried request returns the
entry created by the first one.
"""

import httpx

from src.config import get_logger
from src.core.entities.bookkeeping import BookkeepingEntry
from src.core.exceptions import GatewayUnavailableError, InvalidEntryError
from src.core.interfaces.bookkeeping import IBookkeepingGateway

logger = get_logger(__name__)

# Status codes worth retrying even though they are 4xx
_RETRYABLE_CLIENT_STATUS = {408, 425, 429}


class HttpBookkeepingGateway(IBookkeepingGateway):
    """Bookkeeping gateway over a JSON HTTP API."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, entry: BookkeepingEntry) -> dict[str, str]:
        headers = {
            "Idempotency-Key": entry.reference_id,
            "Accept": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def record(self, entry: BookkeepingEntry) -> str:
        payload = {
            "reference_id": entry.reference_id,
            "category": entry.category,
            "amount": str(entry.amount),
            "date": entry.entry_date.isoformat(),
            "memo": entry.memo,
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/expenses", json=payload, headers=self._headers(entry)
                )
        except httpx.TimeoutException as exc:
            raise GatewayUnavailableError(
                self.name, f"Timeout after {self.timeout}s", entry.reference_id
            ) from exc
        except httpx.RequestError as exc:
            raise GatewayUnavailableError(self.name, str(exc), entry.reference_id) from exc

        status = response.status_code
        if status >= 500 or status in _RETRYABLE_CLIENT_STATUS:
            logger.warning(
                "bookkeeping_http_unavailable",
                reference_id=entry.reference_id,
                status_code=status,
            )
            raise GatewayUnavailableError(self.name, f"HTTP {status}", entry.reference_id)

        body = self._json(response)

        # 409: the reference id was already used; the body names the existing entry
        if status == 409 and body.get("id"):
            return str(body["id"])

        if status >= 400:
            reason = body.get("message") or body.get("error") or response.text[:200] or f"HTTP {status}"
            raise InvalidEntryError(entry.reference_id, str(reason), entry.amount)

        entry_id = body.get("id") or body.get("entry_id")
        if not entry_id:
            raise GatewayUnavailableError(
                self.name, "response did not include an entry id", entry.reference_id
            )
        return str(entry_id)

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
