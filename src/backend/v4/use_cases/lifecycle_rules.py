"""Lifecycle classification rules for the publication action center.

Placement-level classification is an ordered rule table: each rule is a guard
predicate plus a verdict function, and the first rule whose guard holds
decides. Some rules are terminal "stop" rules that decide "no action".

Order-level checks (acceptance gate, campaign starting soon) are separate
functions because they produce one singleton item per order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from src.backend.common.models.action_items import ActionPriority, ActionType
from src.backend.common.models.orders import Order
from src.backend.common.utils.date_utils import as_utc, whole_days_between
from src.backend.v4.use_cases.action_policy import DEFAULT_POLICY, ActionPolicy
from src.backend.v4.use_cases.placement_matching import Placement, PlacementEvidence


@dataclass(frozen=True, slots=True)
class PlacementFacts:
    """Everything the rules may look at for one placement."""

    placement: Placement
    status: str
    evidence: PlacementEvidence
    start_date: datetime | None
    end_date: datetime | None
    assets_ready: bool
    now: datetime
    policy: ActionPolicy = DEFAULT_POLICY

    @property
    def channel(self) -> str:
        return self.placement.channel

    @property
    def is_digital(self) -> bool:
        return self.placement.is_digital

    @property
    def has_entry(self) -> bool:
        return self.evidence.has_entry

    @property
    def has_proof(self) -> bool:
        return self.evidence.has_proof


@dataclass(frozen=True, slots=True)
class Verdict:
    type: ActionType
    priority: ActionPriority
    rule: str
    due_date: datetime | None = None

    @property
    def group_key(self) -> tuple[ActionType, ActionPriority]:
        return (self.type, self.priority)


Guard = Callable[[PlacementFacts], bool]
VerdictFn = Callable[[PlacementFacts], "Verdict | None"]


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    name: str
    guard: Guard
    verdict: VerdictFn


# ---------------------------------------------------------------------------
# Date predicates
# ---------------------------------------------------------------------------


def is_past(value: datetime | None, now: datetime) -> bool:
    return value is not None and as_utc(value) < as_utc(now)


def is_within_window(value: datetime | None, now: datetime, window_days: int) -> bool:
    """Strictly in the future and at most `window_days` whole days away."""

    if value is None or as_utc(value) <= as_utc(now):
        return False
    return 0 <= whole_days_between(value, now) <= window_days


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


class ClassificationRuleTable:
    """Ordered guard -> verdict rules; first match wins."""

    def __init__(self) -> None:
        self._rules: list[ClassificationRule] = []

    def rule(self, name: str, *, when: Guard) -> Callable[[VerdictFn], VerdictFn]:
        def _decorator(fn: VerdictFn) -> VerdictFn:
            if any(r.name == name for r in self._rules):
                raise ValueError(f"Duplicate classification rule: {name}")
            self._rules.append(ClassificationRule(name=name, guard=when, verdict=fn))
            return fn

        return _decorator

    def stop(self, name: str, *, when: Guard) -> None:
        """Register a terminal rule that decides "no action"."""

        self.rule(name, when=when)(lambda facts: None)

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        return tuple(self._rules)

    def rule_names(self) -> list[str]:
        return [r.name for r in self._rules]

    def match(self, facts: PlacementFacts) -> ClassificationRule | None:
        for r in self._rules:
            if r.guard(facts):
                return r
        return None

    def classify(self, facts: PlacementFacts) -> Verdict | None:
        r = self.match(facts)
        if r is None:
            return None
        return r.verdict(facts)


def _accepted(f: PlacementFacts) -> bool:
    return f.status == "accepted"


def _default_rule_table() -> ClassificationRuleTable:
    table = ClassificationRuleTable()

    # --- Accepted placements: get them live ---

    @table.rule(
        "awaiting_assets",
        when=lambda f: _accepted(f) and f.is_digital and not f.assets_ready,
    )
    def _awaiting_assets(f: PlacementFacts) -> Verdict:
        return Verdict(ActionType.awaiting_assets, ActionPriority.info, "awaiting_assets")

    @table.rule(
        "go_live_started",
        when=lambda f: _accepted(f) and is_past(f.start_date, f.now),
    )
    def _go_live_started(f: PlacementFacts) -> Verdict:
        return Verdict(ActionType.ready_to_go_live, ActionPriority.urgent, "go_live_started")

    @table.rule(
        "go_live_starting_soon",
        when=lambda f: _accepted(f)
        and is_within_window(f.start_date, f.now, f.policy.window_days),
    )
    def _go_live_starting_soon(f: PlacementFacts) -> Verdict:
        return Verdict(
            ActionType.ready_to_go_live,
            ActionPriority.soon,
            "go_live_starting_soon",
            due_date=f.start_date,
        )

    @table.rule("go_live_accepted", when=_accepted)
    def _go_live_accepted(f: PlacementFacts) -> Verdict:
        return Verdict(
            ActionType.ready_to_go_live,
            ActionPriority.info,
            "go_live_accepted",
            due_date=f.start_date,
        )

    # --- Reporting obligations (offline channels only) ---

    table.stop("digital_tracked_automatically", when=lambda f: f.is_digital)
    table.stop(
        "not_yet_reportable",
        when=lambda f: f.status not in f.policy.reporting_statuses,
    )

    @table.rule(
        "overdue_report",
        when=lambda f: is_past(f.end_date, f.now) and not f.has_entry,
    )
    def _overdue_report(f: PlacementFacts) -> Verdict:
        return Verdict(
            ActionType.overdue_report,
            ActionPriority.urgent,
            "overdue_report",
            due_date=f.end_date,
        )

    @table.rule(
        "missing_proof",
        when=lambda f: f.has_entry
        and not f.has_proof
        and f.channel in f.policy.proof_required_channels,
    )
    def _missing_proof(f: PlacementFacts) -> Verdict:
        return Verdict(ActionType.missing_proof, ActionPriority.urgent, "missing_proof")

    @table.rule(
        "ending_soon",
        when=lambda f: not f.has_entry
        and is_within_window(f.end_date, f.now, f.policy.window_days),
    )
    def _ending_soon(f: PlacementFacts) -> Verdict:
        return Verdict(
            ActionType.ending_soon,
            ActionPriority.soon,
            "ending_soon",
            due_date=f.end_date,
        )

    @table.rule(
        "completed",
        when=lambda f: f.has_entry
        and (f.has_proof or f.channel in f.policy.proof_exempt_channels),
    )
    def _completed(f: PlacementFacts) -> Verdict:
        return Verdict(ActionType.completed, ActionPriority.done, "completed")

    return table


PLACEMENT_RULES = _default_rule_table()


def classify_placement(
    facts: PlacementFacts, *, rules: ClassificationRuleTable | None = None
) -> Verdict | None:
    return (rules or PLACEMENT_RULES).classify(facts)


# ---------------------------------------------------------------------------
# Order-level checks
# ---------------------------------------------------------------------------


def needs_acceptance(order: Order) -> bool:
    """Orders still in `sent` gate every placement-level check."""

    return order.status == "sent"


def starting_soon_verdict(
    order: Order, *, now: datetime, policy: ActionPolicy = DEFAULT_POLICY
) -> Verdict | None:
    if order.status != "confirmed":
        return None
    if not is_within_window(order.start_date, now, policy.window_days):
        return None
    return Verdict(
        ActionType.starting_soon,
        ActionPriority.soon,
        "campaign_starting_soon",
        due_date=order.start_date,
    )
