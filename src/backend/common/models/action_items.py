"""
Action center output models.

Action items are ephemeral: they exist only as the return value of one
derivation pass and are never stored.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ActionType(str, Enum):
    overdue_report = "overdue_report"  # campaign ended, no results reported
    missing_proof = "missing_proof"  # results submitted, proof missing
    needs_acceptance = "needs_acceptance"  # new order waiting for a response
    ready_to_go_live = "ready_to_go_live"  # accepted, not yet marked live
    awaiting_assets = "awaiting_assets"  # accepted digital placement without creative
    starting_soon = "starting_soon"  # campaign starts in the next 7 days
    ending_soon = "ending_soon"  # campaign ends in the next 7 days
    in_progress = "in_progress"  # currently running
    completed = "completed"  # fully reported


class ActionPriority(str, Enum):
    urgent = "urgent"
    soon = "soon"
    info = "info"
    done = "done"


PRIORITY_ORDER: List[ActionPriority] = [
    ActionPriority.urgent,
    ActionPriority.soon,
    ActionPriority.info,
    ActionPriority.done,
]

PRIORITY_RANK = {p: i for i, p in enumerate(PRIORITY_ORDER)}


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class ActionTarget(BaseModel):
    """Where the renderer should navigate to act on an item."""

    model_config = ConfigDict(frozen=True)

    campaign_id: str
    publication_id: Optional[Union[int, str]] = None

    @property
    def url(self) -> str:
        query = urlencode(
            {
                "tab": "order-detail",
                "campaignId": self.campaign_id,
                "publicationId": "" if self.publication_id is None else str(self.publication_id),
            }
        )
        return f"/dashboard?{query}"


class ActionItem(BaseModel):
    """One user-facing next action, possibly covering several placements."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ActionType
    priority: ActionPriority
    title: str
    subtitle: str
    order_id: str
    campaign_id: str
    campaign_name: str
    publication_id: Optional[Union[int, str]] = None
    placement_id: Optional[str] = None
    placement_name: Optional[str] = None
    channel: Optional[str] = None
    due_date: Optional[datetime] = None
    action_label: str
    target: ActionTarget
    placement_names: List[str] = Field(default_factory=list)
    placement_ids: List[str] = Field(default_factory=list)
    count: int = 0

    def to_dict(self) -> dict:
        out = self.model_dump(mode="json")
        out["target"]["url"] = self.target.url
        return out
