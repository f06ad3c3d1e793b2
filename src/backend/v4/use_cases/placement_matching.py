"""Placement resolution and fuzzy key matching.

Orders reference placements by path-like identifiers, but the three data
sources do not always agree on the exact key: at acceptance time a placement
can be exploded into priced variants (`<path>-<tier>`, `<path>_<dimensions>`),
each tracked separately. Everything here is pure and works on an already
fetched snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from src.backend.common.models.orders import Order, PerformanceEntry, ProofRecord
from src.backend.v4.use_cases.action_policy import DEFAULT_POLICY, ActionPolicy, normalize_channel

VARIANT_SEPARATORS = ("-", "_")


@dataclass(frozen=True, slots=True)
class Placement:
    placement_id: str
    name: str
    channel: str
    is_digital: bool


@dataclass(frozen=True, slots=True)
class PlacementEvidence:
    has_entry: bool
    has_proof: bool


def resolve_order_placements(
    order: Order, *, policy: ActionPolicy = DEFAULT_POLICY
) -> list[Placement]:
    """Return the placements the order's own publication bought, in inventory order.

    Publication identifiers are compared as strings; source systems mix
    numeric and string ids. No match (or no inventory snapshot yet) yields [].
    """

    inventory = order.campaign_data.selected_inventory if order.campaign_data else None
    if inventory is None:
        return []

    wanted = "" if order.publication_id is None else str(order.publication_id)
    publication = next(
        (
            p
            for p in inventory.publications
            if p.publication_id is not None and str(p.publication_id) == wanted
        ),
        None,
    )
    if publication is None:
        return []

    placements: list[Placement] = []
    for item in publication.inventory_items:
        channel = normalize_channel(item.channel)
        placements.append(
            Placement(
                placement_id=item.item_path or item.source_path or "",
                name=item.name or "Placement",
                channel=channel,
                is_digital=policy.is_digital(channel),
            )
        )
    return placements


def matches_placement(candidate: str | None, placement_id: str) -> bool:
    """True when `candidate` is the placement id or one of its suffixed variants."""

    if not candidate or not placement_id:
        return False
    if candidate == placement_id:
        return True
    return any(candidate.startswith(placement_id + sep) for sep in VARIANT_SEPARATORS)


def resolve_placement_status(
    placement_id: str,
    placement_statuses: Mapping[str, str] | None,
    *,
    policy: ActionPolicy = DEFAULT_POLICY,
) -> str:
    """Resolve one placement's status from an order's status map.

    1) An exact key wins.
    2) Otherwise gather the variant keys (`<id>-...`, `<id>_...`) and return the
       most progressed status among them per `policy.status_priority`.
    3) Nothing matched (or nothing recognisable) -> `policy.default_status`.
    """

    if not placement_id or not placement_statuses:
        return policy.default_status

    exact = placement_statuses.get(placement_id)
    if exact is not None:
        return exact

    matched = {
        status for key, status in placement_statuses.items() if matches_placement(key, placement_id)
    }
    if not matched:
        return policy.default_status

    for status in policy.status_priority:
        if status in matched:
            return status
    return policy.default_status


def check_placement_evidence(
    placement_id: str,
    entries: Iterable[PerformanceEntry],
    proofs: Iterable[ProofRecord],
) -> PlacementEvidence:
    """Whether results and proof exist for a placement.

    A proof without an item path is an order-level proof and covers every
    placement of that order.
    """

    has_entry = any(matches_placement(e.item_path, placement_id) for e in entries)
    has_proof = any(
        p.item_path is None or matches_placement(p.item_path, placement_id) for p in proofs
    )
    return PlacementEvidence(has_entry=has_entry, has_proof=has_proof)
