"""Smoke test: action center policy + live derivation.

Always validates the action policy YAML (no external calls). When a
publication id is given it also fetches that publication's orders from the
order service and prints the derived action items, grouped by priority, so
you can cross-reference them against the dashboard.

Run:
  python scripts/action_center_smoke.py
  python scripts/action_center_smoke.py --publication-id 42 --limit 10

Optional env vars:
  ACTION_CENTER_POLICY_PATH   (default: data/action_center/action_policy.yaml)
  ACTION_CENTER_API_BASE_URL  (required for --publication-id)
  ACTION_CENTER_API_TOKEN
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Allow running as: `python scripts/action_center_smoke.py`
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from dotenv import load_dotenv

load_dotenv(override=False)

from src.backend.common.config.app_config import config
from src.backend.v4.integrations.orders_api_client import OrdersApiClient
from src.backend.v4.orchestration.action_center_loader import ActionCenterLoader
from src.backend.v4.use_cases.action_item_engine import group_by_priority
from src.backend.v4.use_cases.action_policy import ActionPolicy, load_action_policy
from src.backend.v4.use_cases.lifecycle_rules import PLACEMENT_RULES


def _fail(msg: str) -> int:
    print(f"ERROR: {msg}", file=sys.stderr)
    return 1


def _print_policy(policy: ActionPolicy, path: str) -> None:
    print("✅ Action policy parsed")
    print(f"- Path: {path}")
    print(f"- Policy ID: {policy.policy_id}")
    print(f"- Version: {policy.version}")
    print(f"- Status priority: {' > '.join(policy.status_priority)}")
    print(f"- Window: {policy.window_days} days")
    digital = sorted(c for c, is_digital in policy.digital_channels.items() if is_digital)
    print(f"- Digital channels: {', '.join(digital) or '(none)'}")
    print(f"- Placement rules (first match wins): {', '.join(PLACEMENT_RULES.rule_names())}")


async def _print_items(policy: ActionPolicy, publication_id: str, limit: int) -> int:
    loader = ActionCenterLoader(
        OrdersApiClient.from_env(),
        policy=policy,
        concurrency=config.ACTION_CENTER_FETCH_CONCURRENCY,
    )
    result = await loader.refresh(publication_id, limit=limit)
    if result is None or not result.ok:
        return _fail(result.error if result else "refresh was superseded")

    print(f"\n📋 Publication {publication_id}: {len(result.items)} action items")
    if result.degraded_orders:
        print(f"⚠️  Evidence unavailable for orders: {', '.join(result.degraded_orders)}")

    for section, items in group_by_priority(result.items).items():
        if not items:
            continue
        print(f"\n[{section.upper()}]")
        for item in items:
            due = f" (due {item.due_date.date().isoformat()})" if item.due_date else ""
            print(f"  - {item.title}{due}")
            print(f"      {item.subtitle}")
            print(f"      → {item.action_label}: {item.target.url}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--publication-id", help="Fetch and print this publication's action items")
    parser.add_argument("--limit", type=int, default=0, help="Keep only the first N items (0 = all)")
    args = parser.parse_args()

    path = config.policy_path()
    try:
        policy = load_action_policy(path)
    except (FileNotFoundError, ValueError) as e:
        return _fail(str(e))

    _print_policy(policy, str(path))

    if not args.publication_id:
        return 0
    return asyncio.run(_print_items(policy, args.publication_id, max(args.limit, 0)))


if __name__ == "__main__":
    raise SystemExit(main())
