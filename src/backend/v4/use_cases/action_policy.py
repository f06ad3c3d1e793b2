"""Action center policy tables.

The status tie-break order, digital channel list, proof rules and look-ahead
window live in a versioned YAML document
(`data/action_center/action_policy.yaml`). `DEFAULT_POLICY` mirrors that file
so the engine can run without touching disk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_CHANNELS: dict[str, bool] = {
    "website": True,
    "newsletter": True,
    "streaming": True,
    "print": False,
    "radio": False,
    "podcast": False,
    "social_media": False,
    "events": False,
    "other": False,
}

FALLBACK_CHANNEL = "other"


def normalize_channel(channel: str | None) -> str:
    """Lower-case a channel tag and replace whitespace with underscores."""

    s = (channel or "").strip().lower()
    if not s:
        return FALLBACK_CHANNEL
    return re.sub(r"\s+", "_", s)


@dataclass(frozen=True, slots=True)
class ActionPolicy:
    policy_id: str = "publication_action_center"
    version: str = "1"
    status_priority: tuple[str, ...] = (
        "delivered",
        "in_production",
        "accepted",
        "rejected",
        "pending",
    )
    default_status: str = "pending"
    reporting_statuses: frozenset[str] = frozenset({"in_production", "delivered"})
    proof_required_channels: frozenset[str] = frozenset({"print", "radio"})
    proof_exempt_channels: frozenset[str] = frozenset({"podcast"})
    window_days: int = 7
    digital_channels: dict[str, bool] = field(default_factory=lambda: dict(_DEFAULT_CHANNELS))

    def is_digital(self, channel: str | None) -> bool:
        """Digital flag for a channel; unknown channels fall back to `other`."""

        normalized = normalize_channel(channel)
        if normalized in self.digital_channels:
            return self.digital_channels[normalized]
        return self.digital_channels.get(FALLBACK_CHANNEL, False)


DEFAULT_POLICY = ActionPolicy()


def _str_list(value: Any, *, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise ValueError(f"policy.{key} must be a list of non-empty strings")
    return [v.strip() for v in value]


def policy_from_document(doc: Any) -> ActionPolicy:
    """Build an ActionPolicy from a parsed YAML document.

    Keys that are omitted fall back to DEFAULT_POLICY; keys that are present
    but malformed raise ValueError.
    """

    if not isinstance(doc, dict):
        raise ValueError("Action policy YAML must parse to a mapping (dict).")

    section = doc.get("policy") or {}
    if not isinstance(section, dict):
        raise ValueError("Top-level key `policy` must be a mapping")

    kwargs: dict[str, Any] = {}
    if section.get("id") is not None:
        kwargs["policy_id"] = str(section["id"])
    if section.get("version") is not None:
        kwargs["version"] = str(section["version"])

    if "status_priority" in section:
        kwargs["status_priority"] = tuple(
            _str_list(section["status_priority"], key="status_priority")
        )
    if "default_status" in section:
        default_status = section["default_status"]
        if not isinstance(default_status, str) or not default_status.strip():
            raise ValueError("policy.default_status must be a non-empty string")
        kwargs["default_status"] = default_status.strip()
    for key in ("reporting_statuses", "proof_required_channels", "proof_exempt_channels"):
        if key in section:
            values = _str_list(section[key], key=key)
            if key.endswith("_channels"):
                values = [normalize_channel(v) for v in values]
            kwargs[key] = frozenset(values)
    if "window_days" in section:
        window = section["window_days"]
        if isinstance(window, bool) or not isinstance(window, int) or window < 0:
            raise ValueError("policy.window_days must be a non-negative integer")
        kwargs["window_days"] = window

    channels = doc.get("channels")
    if channels is not None:
        if not isinstance(channels, dict):
            raise ValueError("Top-level key `channels` must be a mapping")
        table: dict[str, bool] = {}
        for name, cfg in channels.items():
            if not isinstance(cfg, dict) or not isinstance(cfg.get("digital"), bool):
                raise ValueError(f"channels.{name}.digital must be true/false")
            table[normalize_channel(str(name))] = cfg["digital"]
        kwargs["digital_channels"] = table

    return ActionPolicy(**kwargs)


def load_action_policy(path: Path | str) -> ActionPolicy:
    """Load and validate the action policy YAML file."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Action policy file not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        try:
            doc = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse action policy YAML {p}: {e}") from e
    return policy_from_document(doc)
