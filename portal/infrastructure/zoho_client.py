"""Zoho Books v3 HTTP client (EU data center).

- Requests carry ``Authorization: Zoho-oauthtoken <token>`` and the organization id
- A 401 triggers a single access-token refresh when a refresh token is configured
- Rate limits (429) and server errors (5xx) are retried with linear backoff
"""

import asyncio
import logging
from datetime import date
from typing import Any, Optional

import httpx

from portal.config import get_settings
from portal.core.exceptions import ExternalServiceException

settings = get_settings()
logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


class ZohoBooksClient:
    """Read-only client for invoices and items of one Zoho Books organization."""

    def __init__(
        self,
        organization_id: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = settings.ZOHO_API_BASE.rstrip("/")
        self.organization_id = organization_id or settings.ZOHO_ORG_ID
        self.access_token = access_token or settings.ZOHO_ACCESS_TOKEN
        self.max_retries = 3
        self.retry_delay = 1  # seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.organization_id and (self.access_token or settings.ZOHO_REFRESH_TOKEN))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30, transport=self._transport)

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Zoho-oauthtoken {self.access_token}"}

    async def refresh_access_token(self) -> str:
        """Exchange the configured refresh token for a new access token."""
        if not settings.ZOHO_REFRESH_TOKEN:
            raise ExternalServiceException("Zoho access token expired and no refresh token is configured")

        params = {
            "refresh_token": settings.ZOHO_REFRESH_TOKEN,
            "client_id": settings.ZOHO_CLIENT_ID,
            "client_secret": settings.ZOHO_CLIENT_SECRET,
            "grant_type": "refresh_token",
        }
        try:
            async with self._client() as client:
                response = await client.post(settings.ZOHO_ACCOUNTS_URL, params=params)
            payload = response.json() if response.content else {}
        except (httpx.TransportError, ValueError) as e:
            raise ExternalServiceException("Zoho token refresh failed", details={"error": str(e)[:200]}) from e

        if response.status_code != 200 or "access_token" not in payload:
            raise ExternalServiceException(
                "Zoho token refresh failed",
                details={"status": response.status_code, "error": payload.get("error")},
            )

        self.access_token = payload["access_token"]
        logger.info("Zoho access token refreshed")
        return self.access_token

    async def _get(self, path: str, params: Optional[dict] = None) -> dict:
        if not self.configured:
            raise ExternalServiceException("Zoho Books is not configured (organization id / token missing)")
        if not self.access_token:
            await self.refresh_access_token()

        url = f"{self.base_url}{path}"
        query = {"organization_id": self.organization_id, **(params or {})}
        refreshed = False
        last_error: Any = None

        for attempt in range(1, self.max_retries + 1):
            try:
                async with self._client() as client:
                    response = await client.get(url, params=query, headers=self.headers)

                if response.status_code == 401 and not refreshed and settings.ZOHO_REFRESH_TOKEN:
                    refreshed = True
                    await self.refresh_access_token()
                    continue

                response.raise_for_status()
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
                return payload
            except httpx.HTTPStatusError as e:
                last_error = e
                error_text = e.response.text[:200] if e.response.text else "No response body"
                logger.warning(
                    f"Zoho API error (attempt {attempt}/{self.max_retries}): "
                    f"{e.response.status_code} - {error_text}"
                )
                if e.response.status_code not in RETRY_STATUS_CODES:
                    break
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Zoho API connection error (attempt {attempt}/{self.max_retries}): {e}")
            except ValueError as e:
                # 200 with a non-JSON body, typically a proxy error page
                last_error = f"invalid JSON response ({e})"
                logger.warning(f"Zoho API returned a non-JSON body (attempt {attempt}/{self.max_retries}): {e}")

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        raise ExternalServiceException(
            f"Zoho API request failed: {last_error}",
            details={"path": path},
        )

    async def list_invoices(
        self,
        page: int = 1,
        per_page: int = 50,
        date_start: Optional[date] = None,
        date_end: Optional[date] = None,
    ) -> tuple[list[dict], bool]:
        """One page of invoice summaries and whether more pages follow."""
        params: dict[str, Any] = {"page": page, "per_page": per_page}
        if date_start:
            params["date_start"] = date_start.isoformat()
        if date_end:
            params["date_end"] = date_end.isoformat()

        data = await self._get("/invoices", params)
        has_more = bool(data.get("page_context", {}).get("has_more_page", False))
        return data.get("invoices", []), has_more

    async def get_invoice(self, invoice_id: str) -> dict:
        data = await self._get(f"/invoices/{invoice_id}")
        return data.get("invoice", {})

    async def list_items(self, page: int = 1, per_page: int = 200) -> tuple[list[dict], bool]:
        data = await self._get("/items", {"page": page, "per_page": per_page})
        has_more = bool(data.get("page_context", {}).get("has_more_page", False))
        return data.get("items", []), has_more
