"""Order service connector.

Purpose
- Provide a small, testable async wrapper for the *read-only* calls the
  action center needs: a publication's orders, and each order's performance
  entries and proofs of performance.
- Keep base URL / token / timeout handling in one place.

This module is intentionally independent of FastAPI and the engine.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.backend.common.config.app_config import config
from src.backend.common.models.orders import Order, PerformanceEntry, ProofRecord
from src.backend.v4.integrations.order_payloads import (
    parse_orders,
    parse_performance_entries,
    parse_proof_records,
)

logger = logging.getLogger(__name__)


class OrdersApiError(RuntimeError):
    """Raised when the order service answers with an HTTP error or unusable body."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OrdersApiClient:
    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    @classmethod
    def from_env(cls) -> "OrdersApiClient":
        return cls(
            base_url=config.ACTION_CENTER_API_BASE_URL,
            token=config.ACTION_CENTER_API_TOKEN,
            timeout_seconds=config.ACTION_CENTER_HTTP_TIMEOUT_SECONDS,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_json(self, path: str, *, params: dict[str, str] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        async with httpx.AsyncClient(
            timeout=self._timeout_seconds, transport=self._transport
        ) as client:
            try:
                resp = await client.get(url, headers=self._headers(), params=params)
            except httpx.HTTPError as e:
                raise OrdersApiError(f"GET {url} failed: {e}") from e

        logger.debug(f"GET {url} -> {resp.status_code}")

        if resp.status_code >= 400:
            raise OrdersApiError(
                f"HTTP {resp.status_code}: {resp.text}", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise OrdersApiError(
                f"GET {url} returned a non-JSON body", status_code=resp.status_code
            ) from e

    async def list_orders_for_publication(self, publication_id: int | str) -> list[Order]:
        payload = await self._get_json(
            "/publication-orders", params={"publicationId": str(publication_id)}
        )
        return parse_orders(payload)

    async def list_performance_entries(self, order_id: str) -> list[PerformanceEntry]:
        payload = await self._get_json(f"/performance-entries/order/{order_id}")
        return parse_performance_entries(payload)

    async def list_proof_records(self, order_id: str) -> list[ProofRecord]:
        payload = await self._get_json(f"/proof-of-performance/order/{order_id}")
        return parse_proof_records(payload)
