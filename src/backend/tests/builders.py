"""Builders for action center test snapshots."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from src.backend.common.models.orders import Order

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_from_now(days: float) -> str:
    return (NOW + timedelta(days=days)).isoformat()


def build_order(
    *,
    order_id: str = "o1",
    status: str = "in_production",
    publication_id: Any = 42,
    campaign_id: str = "c1",
    campaign_name: str = "Spring Sale",
    placements: list[dict[str, Any]] | None = None,
    statuses: dict[str, str] | None = None,
    start: str | None = None,
    end: str | None = None,
    asset_status: dict[str, Any] | None = None,
) -> Order:
    raw: dict[str, Any] = {
        "_id": order_id,
        "campaignId": campaign_id,
        "publicationId": publication_id,
        "publicationName": "Daily Ledger",
        "status": status,
        "placementStatuses": statuses or {},
        "campaignData": {
            "name": campaign_name,
            "timeline": {"startDate": start, "endDate": end},
            "selectedInventory": {
                "publications": [
                    {"publicationId": 7, "inventoryItems": [{"itemPath": "other-pub", "name": "X"}]},
                    {"publicationId": str(publication_id), "inventoryItems": placements or []},
                ]
            },
        },
    }
    if asset_status is not None:
        raw["assetStatus"] = asset_status
    return Order.model_validate(raw)


