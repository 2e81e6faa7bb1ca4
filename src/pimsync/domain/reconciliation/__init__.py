"""Reconciliation engine, per-entity tables and status classification."""

from __future__ import annotations

from .engine import Keyed, Reconciler
from .rules import FieldUpdate, ReconcileRules
from .status import assert_status_code, check_status
from .tables import (
    ATTRIBUTE_DEFINITION_RULES,
    CATEGORY_ATTRIBUTE_RULES,
    CATEGORY_RULES,
    CONTEXT_RULES,
    WEBHOOK_RULES,
    EventTypeChanges,
    apply_event_types,
)

__all__ = [
    "ATTRIBUTE_DEFINITION_RULES",
    "CATEGORY_ATTRIBUTE_RULES",
    "CATEGORY_RULES",
    "CONTEXT_RULES",
    "WEBHOOK_RULES",
    "EventTypeChanges",
    "FieldUpdate",
    "Keyed",
    "ReconcileRules",
    "Reconciler",
    "apply_event_types",
    "assert_status_code",
    "check_status",
]
