"""
Read-only snapshot models for publication orders and their evidence records.

Field names follow the order service's camelCase JSON (`_id`, `placementStatuses`,
`campaignData`, ...). Optional data is defaulted here, at the boundary, so the
action center never has to guess about missing keys.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.backend.common.utils.date_utils import parse_timestamp


class SnapshotModel(BaseModel):
    """Base for snapshot models: camelCase aliases, unknown keys ignored, immutable."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


def _optional_str(value: Any) -> Optional[str]:
    # Source systems mix numeric and string ids and labels.
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Campaign snapshot embedded in an order
# ---------------------------------------------------------------------------

class CampaignTimeline(SnapshotModel):
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


class InventoryItem(SnapshotModel):
    item_path: Optional[str] = Field(default=None, alias="itemPath")
    source_path: Optional[str] = Field(default=None, alias="sourcePath")
    name: Optional[str] = None
    channel: Optional[str] = None

    @field_validator("item_path", "source_path", "name", "channel", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value: Any) -> Optional[str]:
        return _optional_str(value)


class InventoryPublication(SnapshotModel):
    publication_id: Optional[Union[int, str]] = Field(default=None, alias="publicationId")
    publication_name: Optional[str] = Field(default=None, alias="publicationName")
    inventory_items: List[InventoryItem] = Field(default_factory=list, alias="inventoryItems")

    @field_validator("publication_name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Optional[str]:
        return _optional_str(value)

    @field_validator("inventory_items", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or []


class SelectedInventory(SnapshotModel):
    publications: List[InventoryPublication] = Field(default_factory=list)

    @field_validator("publications", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or []


class CampaignData(SnapshotModel):
    name: Optional[str] = None
    timeline: Optional[CampaignTimeline] = None
    selected_inventory: Optional[SelectedInventory] = Field(
        default=None, alias="selectedInventory"
    )

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Optional[str]:
        return _optional_str(value)


class AssetStatus(SnapshotModel):
    total_placements: int = Field(default=0, alias="totalPlacements")
    placements_with_assets: int = Field(default=0, alias="placementsWithAssets")
    all_assets_ready: bool = Field(default=False, alias="allAssetsReady")
    pending_upload: bool = Field(default=False, alias="pendingUpload")


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

class Order(SnapshotModel):
    """One publication's insertion order for a campaign."""

    id: str = Field(default="", alias="_id")
    campaign_id: str = Field(default="", alias="campaignId")
    campaign_name: Optional[str] = Field(default=None, alias="campaignName")
    publication_id: Optional[Union[int, str]] = Field(default=None, alias="publicationId")
    publication_name: Optional[str] = Field(default=None, alias="publicationName")
    status: str = ""
    placement_statuses: Dict[str, str] = Field(default_factory=dict, alias="placementStatuses")
    campaign_data: Optional[CampaignData] = Field(default=None, alias="campaignData")
    asset_status: Optional[AssetStatus] = Field(default=None, alias="assetStatus")

    @field_validator("id", "campaign_id", "status", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("campaign_name", "publication_name", mode="before")
    @classmethod
    def _coerce_names(cls, value: Any) -> Optional[str]:
        return _optional_str(value)

    @field_validator("placement_statuses", mode="before")
    @classmethod
    def _coerce_statuses(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): str(v) for k, v in value.items() if v is not None}

    @property
    def display_campaign_name(self) -> str:
        if self.campaign_data and self.campaign_data.name:
            return self.campaign_data.name
        return self.campaign_name or "Campaign"

    @property
    def start_date(self) -> Optional[datetime]:
        timeline = self.campaign_data.timeline if self.campaign_data else None
        return timeline.start_date if timeline else None

    @property
    def end_date(self) -> Optional[datetime]:
        timeline = self.campaign_data.timeline if self.campaign_data else None
        return timeline.end_date if timeline else None

    @property
    def assets_ready(self) -> bool:
        # Orders created before asset tracking carry no status; do not block them.
        if self.asset_status is None:
            return True
        return self.asset_status.all_assets_ready


# ---------------------------------------------------------------------------
# Evidence records
# ---------------------------------------------------------------------------

class PerformanceEntry(SnapshotModel):
    order_id: Optional[str] = Field(default=None, alias="orderId")
    item_path: str = Field(default="", alias="itemPath")

    @field_validator("order_id", mode="before")
    @classmethod
    def _coerce_order_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("item_path", mode="before")
    @classmethod
    def _coerce_item_path(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ProofRecord(SnapshotModel):
    """Proof of performance; no `itemPath` means it covers the whole order."""

    order_id: Optional[str] = Field(default=None, alias="orderId")
    item_path: Optional[str] = Field(default=None, alias="itemPath")

    @field_validator("order_id", "item_path", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        s = str(value)
        return s or None
