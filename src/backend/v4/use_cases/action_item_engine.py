"""Action-item derivation engine for the publication action center.

Given a publication's orders plus the performance entries and proofs fetched
for each of them, compute the prioritized list of things the publication
should do next.

Pipeline per order:
- resolve the order's placements from its inventory snapshot
- resolve each placement's status and evidence (fuzzy variant keys)
- classify each placement with the lifecycle rule table
- fold verdicts sharing (order, type, priority) into one item
Then a stable priority sort over everything, truncated last.

This module is a pure function of its inputs and `now`: no IO, no state kept
between calls, and identical input yields identical output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from src.backend.common.models.action_items import (
    PRIORITY_ORDER,
    PRIORITY_RANK,
    ActionItem,
    ActionPriority,
    ActionTarget,
    ActionType,
)
from src.backend.common.models.orders import Order, PerformanceEntry, ProofRecord
from src.backend.common.utils.date_utils import as_utc, format_short_date, whole_days_between
from src.backend.v4.use_cases.action_policy import DEFAULT_POLICY, ActionPolicy
from src.backend.v4.use_cases.lifecycle_rules import (
    ClassificationRuleTable,
    PlacementFacts,
    Verdict,
    classify_placement,
    needs_acceptance,
    starting_soon_verdict,
)
from src.backend.v4.use_cases.placement_matching import (
    Placement,
    check_placement_evidence,
    resolve_order_placements,
    resolve_placement_status,
)

_ID_PREFIXES: dict[ActionType, str] = {
    ActionType.needs_acceptance: "accept",
    ActionType.starting_soon: "starting",
    ActionType.ready_to_go_live: "golive",
    ActionType.awaiting_assets: "assets",
    ActionType.overdue_report: "overdue",
    ActionType.missing_proof: "proof",
    ActionType.ending_soon: "ending",
    ActionType.in_progress: "progress",
    ActionType.completed: "done",
}


@dataclass(frozen=True, slots=True)
class PlacementFinding:
    """A classified placement, tied back to the order it came from."""

    order: Order
    placement: Placement
    verdict: Verdict


@dataclass(slots=True)
class _Group:
    order: Order
    verdict: Verdict
    placements: list[Placement] = field(default_factory=list)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def _target(order: Order) -> ActionTarget:
    return ActionTarget(campaign_id=order.campaign_id, publication_id=order.publication_id)


# ---------------------------------------------------------------------------
# Copy
# ---------------------------------------------------------------------------


def render_group_copy(
    *,
    action_type: ActionType,
    priority: ActionPriority,
    placement_names: Sequence[str],
    campaign_name: str,
    due_date: datetime | None,
    now: datetime,
) -> tuple[str, str, str]:
    """Return (title, subtitle, action_label) for a placement group."""

    count = len(placement_names)
    single = count == 1
    name = placement_names[0] if placement_names else "Placement"

    if action_type is ActionType.ready_to_go_live:
        if priority is ActionPriority.urgent:
            title = f'Mark "{name}" as live' if single else f"Mark {count} placements as live"
            return title, f"{campaign_name} • Campaign has started", "Go Live"
        if priority is ActionPriority.soon:
            title = f'Ready: "{name}"' if single else f"{count} placements ready to go live"
            starts = format_short_date(due_date) if due_date else "soon"
            return title, f"{campaign_name} • Starts {starts} - mark live when ready", "View"
        title = f'Accepted: "{name}"' if single else f"{count} placements accepted"
        starts = f" • Starts {format_short_date(due_date)}" if due_date else ""
        return title, f"{campaign_name}{starts} - ready to go live", "View"

    if action_type is ActionType.awaiting_assets:
        title = (
            f'Waiting on creative for "{name}"'
            if single
            else f"Waiting on creative for {count} placements"
        )
        return title, f"{campaign_name} • Assets not yet uploaded", "View Order"

    if action_type is ActionType.overdue_report:
        title = f'Report results for "{name}"' if single else f"Report results for {count} placements"
        days = whole_days_between(now, due_date) if due_date else 0
        return title, f"{campaign_name} • {_plural(days, 'day')} overdue", "Report Now"

    if action_type is ActionType.missing_proof:
        title = f'Add proof for "{name}"' if single else f"Add proof for {count} placements"
        return title, f"{campaign_name} • Results submitted, proof needed", "Add Proof"

    if action_type is ActionType.ending_soon:
        title = f'"{name}" ending soon' if single else f"{count} placements ending soon"
        ends = format_short_date(due_date) if due_date else "soon"
        return title, f"{campaign_name} • Ends {ends} - prepare to report", "View Order"

    if action_type is ActionType.completed:
        title = f'"{name}" reported' if single else f"{count} placements reported"
        return title, f"{campaign_name} • ✓ Complete", "View"

    title = f'"{name}" in progress' if single else f"{count} placements in progress"
    return title, campaign_name, "View"


# ---------------------------------------------------------------------------
# Order-level singletons
# ---------------------------------------------------------------------------


def _acceptance_item(order: Order, placements: Sequence[Placement]) -> ActionItem:
    return ActionItem(
        id=f"{_ID_PREFIXES[ActionType.needs_acceptance]}-{order.id}",
        type=ActionType.needs_acceptance,
        priority=ActionPriority.urgent,
        title="New order to review",
        subtitle=f"{_plural(len(placements), 'placement')} • Review and accept",
        order_id=order.id,
        campaign_id=order.campaign_id,
        campaign_name=order.display_campaign_name,
        publication_id=order.publication_id,
        action_label="Review Order",
        target=_target(order),
    )


def _starting_soon_item(
    order: Order, placements: Sequence[Placement], verdict: Verdict
) -> ActionItem:
    starts = format_short_date(verdict.due_date) if verdict.due_date else "soon"
    return ActionItem(
        id=f"{_ID_PREFIXES[ActionType.starting_soon]}-{order.id}",
        type=verdict.type,
        priority=verdict.priority,
        title=f"Campaign starts {starts}",
        subtitle=f"{order.display_campaign_name} • {_plural(len(placements), 'placement')}",
        order_id=order.id,
        campaign_id=order.campaign_id,
        campaign_name=order.display_campaign_name,
        publication_id=order.publication_id,
        due_date=verdict.due_date,
        action_label="View Order",
        target=_target(order),
    )


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group_findings(findings: Iterable[PlacementFinding], *, now: datetime) -> list[ActionItem]:
    """Fold placement findings sharing (order, type, priority) into action items.

    Groups come out in the order their first placement was seen; each group's
    placement names keep first-seen order. Every finding lands in exactly one
    item.
    """

    groups: dict[tuple[str, ActionType, ActionPriority], _Group] = {}
    for finding in findings:
        key = (finding.order.id, *finding.verdict.group_key)
        group = groups.get(key)
        if group is None:
            group = groups[key] = _Group(order=finding.order, verdict=finding.verdict)
        group.placements.append(finding.placement)

    items: list[ActionItem] = []
    for group in groups.values():
        order = group.order
        verdict = group.verdict
        names = [p.name for p in group.placements]
        title, subtitle, label = render_group_copy(
            action_type=verdict.type,
            priority=verdict.priority,
            placement_names=names,
            campaign_name=order.display_campaign_name,
            due_date=verdict.due_date,
            now=now,
        )
        single = group.placements[0] if len(group.placements) == 1 else None
        prefix = _ID_PREFIXES[verdict.type]
        item_id = (
            f"{prefix}-{order.id}-{single.placement_id}" if single else f"{prefix}-{order.id}"
        )
        items.append(
            ActionItem(
                id=item_id,
                type=verdict.type,
                priority=verdict.priority,
                title=title,
                subtitle=subtitle,
                order_id=order.id,
                campaign_id=order.campaign_id,
                campaign_name=order.display_campaign_name,
                publication_id=order.publication_id,
                placement_id=single.placement_id if single else None,
                placement_name=single.name if single else None,
                channel=single.channel if single else None,
                due_date=verdict.due_date,
                action_label=label,
                target=_target(order),
                placement_names=names,
                placement_ids=[p.placement_id for p in group.placements],
                count=len(names),
            )
        )
    return items


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def sort_by_priority(items: Iterable[ActionItem], *, limit: int | None = None) -> list[ActionItem]:
    """Stable sort urgent -> soon -> info -> done, then keep the first `limit`.

    `limit` of None, 0 or a negative number keeps everything.
    """

    ordered = sorted(items, key=lambda item: PRIORITY_RANK[item.priority])
    if limit is not None and limit > 0:
        return ordered[:limit]
    return ordered


def group_by_priority(items: Iterable[ActionItem]) -> dict[str, list[ActionItem]]:
    """Split items into display sections; every section key is always present."""

    sections: dict[str, list[ActionItem]] = {p.value: [] for p in PRIORITY_ORDER}
    for item in items:
        sections[item.priority.value].append(item)
    return sections


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def classify_order(
    order: Order,
    entries: Sequence[PerformanceEntry],
    proofs: Sequence[ProofRecord],
    *,
    now: datetime,
    policy: ActionPolicy = DEFAULT_POLICY,
    rules: ClassificationRuleTable | None = None,
    placements: Sequence[Placement] | None = None,
) -> list[PlacementFinding]:
    """Classify every placement of one (already accepted) order."""

    if placements is None:
        placements = resolve_order_placements(order, policy=policy)

    findings: list[PlacementFinding] = []
    for placement in placements:
        facts = PlacementFacts(
            placement=placement,
            status=resolve_placement_status(
                placement.placement_id, order.placement_statuses, policy=policy
            ),
            evidence=check_placement_evidence(placement.placement_id, entries, proofs),
            start_date=order.start_date,
            end_date=order.end_date,
            assets_ready=order.assets_ready,
            now=now,
            policy=policy,
        )
        verdict = classify_placement(facts, rules=rules)
        if verdict is not None:
            findings.append(PlacementFinding(order=order, placement=placement, verdict=verdict))
    return findings


def derive_action_items(
    orders: Iterable[Order],
    performance_by_order: Mapping[str, Sequence[PerformanceEntry]] | None,
    proofs_by_order: Mapping[str, Sequence[ProofRecord]] | None,
    now: datetime,
    limit: int | None = None,
    *,
    policy: ActionPolicy = DEFAULT_POLICY,
    rules: ClassificationRuleTable | None = None,
) -> list[ActionItem]:
    """Compute the publication's prioritized action items from a snapshot."""

    now = as_utc(now)
    performance_by_order = performance_by_order or {}
    proofs_by_order = proofs_by_order or {}

    items: list[ActionItem] = []
    for order in orders:
        placements = resolve_order_placements(order, policy=policy)

        if needs_acceptance(order):
            items.append(_acceptance_item(order, placements))
            continue

        findings = classify_order(
            order,
            performance_by_order.get(order.id) or [],
            proofs_by_order.get(order.id) or [],
            now=now,
            policy=policy,
            rules=rules,
            placements=placements,
        )
        items.extend(group_findings(findings, now=now))

        starting = starting_soon_verdict(order, now=now, policy=policy)
        if starting is not None:
            items.append(_starting_soon_item(order, placements, starting))

    return sort_by_priority(items, limit=limit)
