from __future__ import annotations

import asyncio

import pytest

from src.backend.common.models.action_items import ActionType
from src.backend.common.models.orders import PerformanceEntry, ProofRecord
from src.backend.tests.builders import NOW, build_order, days_from_now
from src.backend.v4.integrations.orders_api_client import OrdersApiError
from src.backend.v4.orchestration.action_center_loader import (
    ActionCenterLoader,
    fetch_action_center_snapshot,
)


def _print_order(order_id: str):
    return build_order(
        order_id=order_id,
        placements=[{"itemPath": "p1", "name": "Full Page", "channel": "print"}],
        statuses={"p1": "delivered"},
        end=days_from_now(-5),
    )


class _StubSource:
    def __init__(
        self,
        *,
        orders_by_pub: dict | None = None,
        entries: dict | None = None,
        proofs: dict | None = None,
        failing_orders: set[str] | None = None,
        fail_listing: bool = False,
    ) -> None:
        self._orders_by_pub = orders_by_pub or {}
        self._entries = entries or {}
        self._proofs = proofs or {}
        self._failing = failing_orders or set()
        self._fail_listing = fail_listing
        self.gates: dict[str, asyncio.Event] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_orders_for_publication(self, publication_id):
        gate = self.gates.get(str(publication_id))
        if gate is not None:
            await gate.wait()
        if self._fail_listing:
            raise OrdersApiError("HTTP 500: boom", status_code=500)
        return list(self._orders_by_pub.get(str(publication_id), []))

    async def list_performance_entries(self, order_id):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if order_id in self._failing:
                raise OrdersApiError("HTTP 502: bad gateway", status_code=502)
            return list(self._entries.get(order_id, []))
        finally:
            self.in_flight -= 1

    async def list_proof_records(self, order_id):
        await asyncio.sleep(0)
        return list(self._proofs.get(order_id, []))


def test_snapshot_collects_evidence_per_order() -> None:
    source = _StubSource(
        orders_by_pub={"42": [_print_order("o1"), _print_order("o2"), build_order(order_id="")]},
        entries={"o1": [PerformanceEntry(itemPath="p1")]},
        proofs={"o1": [ProofRecord()]},
    )

    snapshot = asyncio.run(fetch_action_center_snapshot(source, 42))

    assert snapshot.publication_id == "42"
    assert [o.id for o in snapshot.orders] == ["o1", "o2", ""]
    assert "" not in snapshot.performance_by_order
    assert [e.item_path for e in snapshot.performance_by_order["o1"]] == ["p1"]
    assert len(snapshot.proofs_by_order["o1"]) == 1
    assert snapshot.performance_by_order["o2"] == ()
    assert snapshot.degraded_orders == ()


def test_one_order_failure_degrades_only_that_order() -> None:
    source = _StubSource(
        orders_by_pub={"42": [_print_order("o1"), _print_order("o2")]},
        entries={"o1": [PerformanceEntry(itemPath="p1")], "o2": [PerformanceEntry(itemPath="p1")]},
        proofs={"o1": [ProofRecord()], "o2": [ProofRecord()]},
        failing_orders={"o2"},
    )

    snapshot = asyncio.run(fetch_action_center_snapshot(source, 42))

    assert snapshot.degraded_orders == ("o2",)
    assert snapshot.performance_by_order["o2"] == ()
    assert len(snapshot.proofs_by_order["o2"]) == 1

    loader = ActionCenterLoader(source, clock=lambda: NOW)
    result = asyncio.run(loader.refresh(42))

    assert result.ok
    assert [(i.order_id, i.type) for i in result.items] == [
        ("o2", ActionType.overdue_report),
        ("o1", ActionType.completed),
    ]
    assert result.degraded_orders == ("o2",)


def test_concurrency_is_bounded() -> None:
    orders = [_print_order(f"o{i}") for i in range(6)]
    source = _StubSource(orders_by_pub={"42": orders})

    asyncio.run(fetch_action_center_snapshot(source, 42, concurrency=2))

    assert 1 <= source.max_in_flight <= 2


def test_listing_failure_propagates_from_snapshot() -> None:
    source = _StubSource(fail_listing=True)

    with pytest.raises(OrdersApiError):
        asyncio.run(fetch_action_center_snapshot(source, 42))


def test_total_failure_publishes_error_and_marks_stale() -> None:
    source = _StubSource(orders_by_pub={"42": [_print_order("o1")]})
    loader = ActionCenterLoader(source, clock=lambda: NOW)

    first = asyncio.run(loader.refresh(42))
    assert first.ok
    assert loader.is_stale is False

    source._fail_listing = True
    second = asyncio.run(loader.refresh(42))

    assert second.ok is False
    assert second.items == []
    assert "Failed to load action items" in second.error
    assert loader.latest is second
    assert loader.is_stale is True
    assert second.previous is first

    third = asyncio.run(loader.refresh(42))

    assert third.ok is False
    assert third.previous is first

    source._fail_listing = False
    fourth = asyncio.run(loader.refresh(42))

    assert fourth.ok
    assert fourth.previous is None
    assert loader.is_stale is False


def test_superseded_refresh_is_discarded() -> None:
    source = _StubSource(
        orders_by_pub={"1": [_print_order("old")], "2": [_print_order("new")]},
    )
    loader = ActionCenterLoader(source, clock=lambda: NOW)

    async def _scenario():
        slow_gate = asyncio.Event()
        source.gates["1"] = slow_gate

        slow = asyncio.create_task(loader.refresh(1))
        await asyncio.sleep(0)
        fast = await loader.refresh(2)

        slow_gate.set()
        stale = await slow
        return fast, stale

    fast, stale = asyncio.run(_scenario())

    assert stale is None
    assert fast is not None
    assert loader.latest is fast
    assert loader.latest.publication_id == "2"
    assert [i.order_id for i in loader.latest.items] == ["new"]
    assert loader.generation == 2


def test_limit_is_forwarded() -> None:
    orders = [_print_order(f"o{i}") for i in range(3)]
    loader = ActionCenterLoader(_StubSource(orders_by_pub={"42": orders}), clock=lambda: NOW)

    result = asyncio.run(loader.refresh("42", limit=1))

    assert len(result.items) == 1


def test_order_without_id_is_classified_without_fetching() -> None:
    source = _StubSource(
        orders_by_pub={"42": [build_order(order_id="", status="sent"), _print_order("o1")]},
    )
    loader = ActionCenterLoader(source, clock=lambda: NOW)

    result = asyncio.run(loader.refresh(42))

    assert result.ok
    assert [(i.id, i.type) for i in result.items] == [
        ("accept-", ActionType.needs_acceptance),
        ("overdue-o1-p1", ActionType.overdue_report),
    ]
    assert source.max_in_flight == 1
