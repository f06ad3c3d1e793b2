"""Snapshot assembly and refresh handling for the publication action center.

The engine itself is synchronous and pure. This module does the IO around it:
fetch a publication's orders, then every order's performance entries and
proofs concurrently, and hand the finished snapshot to the engine.

A failed evidence fetch for one order degrades that collection to an empty
list; only failing to list the orders at all is an error.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

from src.backend.common.models.action_items import ActionItem
from src.backend.common.models.orders import Order, PerformanceEntry, ProofRecord
from src.backend.v4.use_cases.action_item_engine import derive_action_items
from src.backend.v4.use_cases.action_policy import DEFAULT_POLICY, ActionPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OrdersSource(Protocol):
    """The three read calls the action center consumes."""

    async def list_orders_for_publication(self, publication_id: int | str) -> List[Order]: ...

    async def list_performance_entries(self, order_id: str) -> List[PerformanceEntry]: ...

    async def list_proof_records(self, order_id: str) -> List[ProofRecord]: ...


@dataclass(frozen=True)
class ActionCenterSnapshot:
    """Immutable engine input for one publication."""

    publication_id: str
    orders: Tuple[Order, ...]
    performance_by_order: Mapping[str, Tuple[PerformanceEntry, ...]] = field(default_factory=dict)
    proofs_by_order: Mapping[str, Tuple[ProofRecord, ...]] = field(default_factory=dict)
    degraded_orders: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ActionCenterResult:
    publication_id: str
    generation: int
    computed_at: datetime
    items: List[ActionItem]
    error: Optional[str] = None
    degraded_orders: Tuple[str, ...] = ()
    # Last successful result, carried on failed refreshes.
    previous: Optional["ActionCenterResult"] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _fetch_or_empty(
    fetch: Callable[[], Awaitable[List[T]]], *, what: str, order_id: str
) -> Tuple[List[T], bool]:
    try:
        return await fetch(), True
    except Exception as e:
        logger.warning(f"Failed to fetch {what} for order {order_id}; treating as empty: {e}")
        return [], False


async def fetch_action_center_snapshot(
    source: OrdersSource,
    publication_id: int | str,
    *,
    concurrency: int = 0,
) -> ActionCenterSnapshot:
    """Fetch orders, then each order's entries and proofs in parallel.

    Errors listing the orders propagate. `concurrency` bounds the number of
    orders fetched at once (0 = unbounded). Orders without an id are kept
    with no evidence.
    """

    orders = await source.list_orders_for_publication(publication_id)
    # Orders without an id are still classified; there is nothing to fetch for them.
    fetchable = [o for o in orders if o.id]
    semaphore = asyncio.Semaphore(concurrency) if concurrency > 0 else None

    async def _evidence(order: Order) -> Tuple[List[PerformanceEntry], List[ProofRecord], bool]:
        async def _both():
            return await asyncio.gather(
                _fetch_or_empty(
                    lambda: source.list_performance_entries(order.id),
                    what="performance entries",
                    order_id=order.id,
                ),
                _fetch_or_empty(
                    lambda: source.list_proof_records(order.id),
                    what="proofs",
                    order_id=order.id,
                ),
            )

        if semaphore is None:
            (entries, entries_ok), (proofs, proofs_ok) = await _both()
        else:
            async with semaphore:
                (entries, entries_ok), (proofs, proofs_ok) = await _both()
        return entries, proofs, entries_ok and proofs_ok

    results = await asyncio.gather(*[_evidence(o) for o in fetchable])

    performance_by_order: Dict[str, Tuple[PerformanceEntry, ...]] = {}
    proofs_by_order: Dict[str, Tuple[ProofRecord, ...]] = {}
    degraded: List[str] = []
    for order, (entries, proofs, ok) in zip(fetchable, results):
        performance_by_order[order.id] = tuple(entries)
        proofs_by_order[order.id] = tuple(proofs)
        if not ok:
            degraded.append(order.id)

    return ActionCenterSnapshot(
        publication_id=str(publication_id),
        orders=tuple(orders),
        performance_by_order=performance_by_order,
        proofs_by_order=proofs_by_order,
        degraded_orders=tuple(degraded),
    )


def derive_from_snapshot(
    snapshot: ActionCenterSnapshot,
    *,
    now: datetime,
    limit: Optional[int] = None,
    policy: ActionPolicy = DEFAULT_POLICY,
) -> List[ActionItem]:
    return derive_action_items(
        snapshot.orders,
        snapshot.performance_by_order,
        snapshot.proofs_by_order,
        now,
        limit,
        policy=policy,
    )


class ActionCenterLoader:
    """Last-write-wins refresher for one caller's action center.

    Every `refresh()` takes a new generation number. When an older refresh
    finishes after a newer one has started, its result is discarded.
    """

    logger = logging.getLogger(f"{__name__}.ActionCenterLoader")

    def __init__(
        self,
        source: OrdersSource,
        *,
        policy: ActionPolicy = DEFAULT_POLICY,
        concurrency: int = 0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._source = source
        self._policy = policy
        self._concurrency = concurrency
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._generation = 0
        self._latest: Optional[ActionCenterResult] = None
        self._stale = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> Optional[ActionCenterResult]:
        """Most recently published result (None before the first refresh completes)."""
        return self._latest

    @property
    def is_stale(self) -> bool:
        """True while a refresh is pending or after the last one failed."""
        return self._stale

    def _last_good(self) -> Optional[ActionCenterResult]:
        if self._latest is None or self._latest.ok:
            return self._latest
        return self._latest.previous

    async def refresh(
        self, publication_id: int | str, *, limit: Optional[int] = None
    ) -> Optional[ActionCenterResult]:
        """Recompute items for `publication_id`.

        Returns the published result, or None when this call was superseded
        by a newer refresh before it finished.
        """

        self._generation += 1
        generation = self._generation
        self._stale = True

        error: Optional[str] = None
        items: List[ActionItem] = []
        degraded: Sequence[str] = ()
        try:
            snapshot = await fetch_action_center_snapshot(
                self._source, publication_id, concurrency=self._concurrency
            )
        except Exception as e:
            error = f"Failed to load action items: {e}"
            snapshot = None

        if generation != self._generation:
            self.logger.debug(
                f"Discarding superseded action center refresh {generation} "
                f"(current {self._generation}) for publication {publication_id}"
            )
            return None

        now = self._clock()
        if snapshot is not None:
            items = derive_from_snapshot(snapshot, now=now, limit=limit, policy=self._policy)
            degraded = snapshot.degraded_orders
        else:
            self.logger.error(f"Action center refresh failed for publication {publication_id}: {error}")

        result = ActionCenterResult(
            publication_id=str(publication_id),
            generation=generation,
            computed_at=now,
            items=items,
            error=error,
            degraded_orders=tuple(degraded),
            previous=self._last_good() if error is not None else None,
        )
        self._latest = result
        self._stale = error is not None
        if error is None:
            self.logger.info(
                f"Action center refreshed for publication {publication_id}: {len(items)} items"
            )
        return result
