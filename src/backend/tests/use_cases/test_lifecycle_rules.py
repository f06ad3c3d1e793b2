from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.backend.common.models.action_items import ActionPriority, ActionType
from src.backend.tests.builders import NOW, build_order, days_from_now
from src.backend.v4.use_cases.lifecycle_rules import (
    PLACEMENT_RULES,
    ClassificationRuleTable,
    PlacementFacts,
    classify_placement,
    is_within_window,
    needs_acceptance,
    starting_soon_verdict,
)
from src.backend.v4.use_cases.placement_matching import Placement, PlacementEvidence


def _facts(
    *,
    status: str,
    channel: str = "print",
    digital: bool = False,
    has_entry: bool = False,
    has_proof: bool = False,
    start: datetime | None = None,
    end: datetime | None = None,
    assets_ready: bool = True,
) -> PlacementFacts:
    return PlacementFacts(
        placement=Placement(placement_id="p1", name="Full Page", channel=channel, is_digital=digital),
        status=status,
        evidence=PlacementEvidence(has_entry=has_entry, has_proof=has_proof),
        start_date=start,
        end_date=end,
        assets_ready=assets_ready,
        now=NOW,
    )


def test_rule_table_order_is_stable() -> None:
    assert PLACEMENT_RULES.rule_names() == [
        "awaiting_assets",
        "go_live_started",
        "go_live_starting_soon",
        "go_live_accepted",
        "digital_tracked_automatically",
        "not_yet_reportable",
        "overdue_report",
        "missing_proof",
        "ending_soon",
        "completed",
    ]


def test_duplicate_rule_name_rejected() -> None:
    table = ClassificationRuleTable()
    table.stop("x", when=lambda f: True)
    with pytest.raises(ValueError):
        table.stop("x", when=lambda f: False)


def test_within_window_is_inclusive_and_whole_days() -> None:
    assert is_within_window(NOW + timedelta(hours=3), NOW, 7) is True
    assert is_within_window(NOW + timedelta(days=7, hours=23), NOW, 7) is True
    assert is_within_window(NOW + timedelta(days=8), NOW, 7) is False
    assert is_within_window(NOW, NOW, 7) is False
    assert is_within_window(NOW - timedelta(hours=1), NOW, 7) is False
    assert is_within_window(None, NOW, 7) is False


@pytest.mark.parametrize(
    "start, priority, rule",
    [
        (NOW - timedelta(days=1), ActionPriority.urgent, "go_live_started"),
        (NOW + timedelta(days=3), ActionPriority.soon, "go_live_starting_soon"),
        (NOW + timedelta(days=30), ActionPriority.info, "go_live_accepted"),
        (None, ActionPriority.info, "go_live_accepted"),
    ],
)
def test_accepted_placement_ready_to_go_live(start, priority, rule) -> None:
    verdict = classify_placement(_facts(status="accepted", start=start))
    assert verdict is not None
    assert verdict.type is ActionType.ready_to_go_live
    assert verdict.priority is priority
    assert verdict.rule == rule


def test_go_live_due_date_is_start_date_unless_started() -> None:
    soon = NOW + timedelta(days=2)
    assert classify_placement(_facts(status="accepted", start=soon)).due_date == soon

    started = NOW - timedelta(days=2)
    assert classify_placement(_facts(status="accepted", start=started)).due_date is None


def test_accepted_digital_without_assets_is_awaiting_assets() -> None:
    facts = _facts(
        status="accepted",
        channel="website",
        digital=True,
        start=NOW - timedelta(days=1),
        assets_ready=False,
    )
    verdict = classify_placement(facts)
    assert verdict.type is ActionType.awaiting_assets
    assert verdict.priority is ActionPriority.info


def test_accepted_offline_ignores_asset_readiness() -> None:
    facts = _facts(status="accepted", start=NOW - timedelta(days=1), assets_ready=False)
    assert classify_placement(facts).type is ActionType.ready_to_go_live


def test_digital_placements_have_no_reporting_obligation() -> None:
    facts = _facts(
        status="in_production",
        channel="website",
        digital=True,
        end=NOW - timedelta(days=10),
    )
    assert PLACEMENT_RULES.match(facts).name == "digital_tracked_automatically"
    assert classify_placement(facts) is None


@pytest.mark.parametrize("status", ["pending", "rejected", "something_else"])
def test_non_reporting_status_yields_nothing(status) -> None:
    assert classify_placement(_facts(status=status, end=NOW - timedelta(days=3))) is None


def test_overdue_report() -> None:
    end = NOW - timedelta(days=10)
    verdict = classify_placement(_facts(status="in_production", end=end))
    assert verdict.type is ActionType.overdue_report
    assert verdict.priority is ActionPriority.urgent
    assert verdict.due_date == end


@pytest.mark.parametrize("channel", ["print", "radio"])
def test_missing_proof_for_print_and_radio(channel) -> None:
    verdict = classify_placement(
        _facts(status="delivered", channel=channel, has_entry=True, end=NOW - timedelta(days=1))
    )
    assert verdict.type is ActionType.missing_proof
    assert verdict.priority is ActionPriority.urgent


def test_ending_soon_without_entry() -> None:
    end = NOW + timedelta(days=3)
    verdict = classify_placement(_facts(status="in_production", channel="radio", end=end))
    assert verdict.type is ActionType.ending_soon
    assert verdict.priority is ActionPriority.soon
    assert verdict.due_date == end


def test_completed_requires_proof_except_podcast() -> None:
    done = classify_placement(_facts(status="delivered", has_entry=True, has_proof=True))
    assert done.type is ActionType.completed
    assert done.priority is ActionPriority.done

    podcast = classify_placement(_facts(status="delivered", channel="podcast", has_entry=True))
    assert podcast.type is ActionType.completed

    # Channel outside the proof lists with an entry but no proof: nothing to do yet.
    assert classify_placement(_facts(status="delivered", channel="events", has_entry=True)) is None


def test_running_placement_far_from_end_yields_nothing() -> None:
    assert classify_placement(_facts(status="in_production", end=NOW + timedelta(days=20))) is None


def test_needs_acceptance_only_for_sent() -> None:
    assert needs_acceptance(build_order(status="sent")) is True
    assert needs_acceptance(build_order(status="confirmed")) is False


def test_starting_soon_requires_confirmed_and_window() -> None:
    soon = build_order(status="confirmed", start=days_from_now(2))
    verdict = starting_soon_verdict(soon, now=NOW)
    assert verdict.type is ActionType.starting_soon
    assert verdict.priority is ActionPriority.soon
    assert verdict.due_date == NOW + timedelta(days=2)

    assert starting_soon_verdict(build_order(status="accepted", start=days_from_now(2)), now=NOW) is None
    assert starting_soon_verdict(build_order(status="confirmed", start=days_from_now(9)), now=NOW) is None
    assert starting_soon_verdict(build_order(status="confirmed", start=days_from_now(-1)), now=NOW) is None
    assert starting_soon_verdict(build_order(status="confirmed"), now=NOW) is None
