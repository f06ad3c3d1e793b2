"""Helpers for parsing order-service payloads.

These functions are intentionally "dumb" and deterministic so they can be
unit-tested without calling the order service.

The service wraps every list in an envelope:
- GET /publication-orders                 -> {"orders": [...]}
- GET /performance-entries/order/{id}     -> {"entries": [...]}
- GET /proof-of-performance/order/{id}    -> {"proofs": [...]}
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from src.backend.common.models.orders import Order, PerformanceEntry, ProofRecord

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _envelope_rows(payload: Any, key: str) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    rows = payload.get(key)
    return rows if isinstance(rows, list) else []


def _parse_rows(rows: Iterable[Any], model: type[ModelT], *, kind: str) -> list[ModelT]:
    out: list[ModelT] = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping {kind} row {i}: expected an object, got {type(row).__name__}")
            continue
        try:
            out.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {kind} row {i}: {e.error_count()} validation error(s)")
    return out


def parse_orders(payload: Any) -> list[Order]:
    return _parse_rows(_envelope_rows(payload, "orders"), Order, kind="order")


def parse_performance_entries(payload: Any) -> list[PerformanceEntry]:
    return _parse_rows(_envelope_rows(payload, "entries"), PerformanceEntry, kind="performance entry")


def parse_proof_records(payload: Any) -> list[ProofRecord]:
    return _parse_rows(_envelope_rows(payload, "proofs"), ProofRecord, kind="proof")
