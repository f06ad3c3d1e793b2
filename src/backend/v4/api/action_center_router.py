"""Publication Action Center API Router.

This module exposes the derived action items for a publication: what it owes
its advertisers right now, grouped by priority.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from src.backend.common.config.app_config import config
from src.backend.v4.integrations.orders_api_client import OrdersApiClient
from src.backend.v4.orchestration.action_center_loader import (
    OrdersSource,
    derive_from_snapshot,
    fetch_action_center_snapshot,
)
from src.backend.v4.use_cases.action_item_engine import group_by_priority
from src.backend.v4.use_cases.action_policy import ActionPolicy, load_action_policy

logger = logging.getLogger(__name__)

action_center_router = APIRouter(tags=["Action Center"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_orders_source() -> OrdersSource:
    return OrdersApiClient.from_env()


@lru_cache(maxsize=1)
def _cached_policy(path: str) -> ActionPolicy:
    return load_action_policy(path)


def get_action_policy() -> ActionPolicy:
    path = config.policy_path()
    try:
        return _cached_policy(str(path))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Failed to load action policy {path}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load action policy: {e}")


def get_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@action_center_router.get("/publications/{publication_id}/action-items")
async def list_publication_action_items(
    publication_id: str,
    limit: Optional[int] = Query(None, ge=0, description="Keep only the first N items (0 = all)"),
    source: OrdersSource = Depends(get_orders_source),
    policy: ActionPolicy = Depends(get_action_policy),
    now: datetime = Depends(get_now),
) -> dict[str, Any]:
    """Derive the publication's prioritized action items.

    Read-only: fetches orders plus each order's results and proofs, then runs
    the derivation engine. Nothing is stored.
    """

    if limit is None:
        limit = config.ACTION_CENTER_ITEMS_LIMIT

    try:
        snapshot = await fetch_action_center_snapshot(
            source,
            publication_id,
            concurrency=config.ACTION_CENTER_FETCH_CONCURRENCY,
        )
    except Exception as e:
        logger.error(f"Error fetching action center data for publication {publication_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to load action items: {e}")

    items = derive_from_snapshot(snapshot, now=now, limit=limit, policy=policy)
    sections = group_by_priority(items)

    logger.info(
        f"Action center computed for publication {publication_id}: "
        f"{len(items)} items from {len(snapshot.orders)} orders"
    )

    return {
        "publication_id": publication_id,
        "computed_at": now.isoformat(),
        "policy": {"id": policy.policy_id, "version": policy.version},
        "degraded_orders": list(snapshot.degraded_orders),
        "count": len(items),
        "items": [i.to_dict() for i in items],
        "sections": {k: [i.id for i in v] for k, v in sections.items()},
    }
