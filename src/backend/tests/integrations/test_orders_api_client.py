from __future__ import annotations

import asyncio

import httpx
import pytest

from src.backend.v4.integrations.orders_api_client import OrdersApiClient, OrdersApiError


def _client(handler, *, token: str | None = "tok") -> OrdersApiClient:
    return OrdersApiClient(
        base_url="https://orders.test/api/",
        token=token,
        transport=httpx.MockTransport(handler),
    )


def test_list_orders_passes_publication_id_and_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"orders": [{"_id": "o1", "status": "sent"}]})

    orders = asyncio.run(_client(handler).list_orders_for_publication(42))

    assert [o.id for o in orders] == ["o1"]
    (req,) = seen
    assert req.url.path == "/api/publication-orders"
    assert req.url.params["publicationId"] == "42"
    assert req.headers["Authorization"] == "Bearer tok"


def test_evidence_endpoints() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/performance-entries/order/o1":
            return httpx.Response(200, json={"entries": [{"itemPath": "p1"}]})
        if request.url.path == "/api/proof-of-performance/order/o1":
            return httpx.Response(200, json={"proofs": [{}]})
        return httpx.Response(404, text="not found")

    client = _client(handler, token=None)

    entries = asyncio.run(client.list_performance_entries("o1"))
    proofs = asyncio.run(client.list_proof_records("o1"))

    assert [e.item_path for e in entries] == ["p1"]
    assert [p.item_path for p in proofs] == [None]


def test_no_auth_header_without_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"entries": []})

    asyncio.run(_client(handler, token=None).list_performance_entries("o1"))

    assert "Authorization" not in seen[0].headers


def test_http_error_raises_with_status_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream down")

    with pytest.raises(OrdersApiError) as exc:
        asyncio.run(_client(handler).list_orders_for_publication("42"))

    assert exc.value.status_code == 503
    assert "503" in str(exc.value)


def test_transport_error_raises_orders_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(OrdersApiError) as exc:
        asyncio.run(_client(handler).list_proof_records("o1"))

    assert exc.value.status_code is None


def test_non_json_body_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    with pytest.raises(OrdersApiError):
        asyncio.run(_client(handler).list_orders_for_publication("42"))


def test_from_env_reads_config(monkeypatch) -> None:
    from src.backend.common.config import app_config

    monkeypatch.setattr(app_config.config, "ACTION_CENTER_API_BASE_URL", "https://orders.example/api")
    monkeypatch.setattr(app_config.config, "ACTION_CENTER_API_TOKEN", None)

    client = OrdersApiClient.from_env()

    assert client.base_url == "https://orders.example/api"
