"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Reconcilable remote object types."""

    CONTEXT = "context"
    ATTRIBUTE_DEFINITION = "attribute_definition"
    CATEGORY = "category"
    CATEGORY_ATTRIBUTE = "category_attribute"
    WEBHOOK = "webhook"


class DataType(StrEnum):
    """Attribute data types; fixed for the lifetime of a definition."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    DATE_TIME = "date_time"
    LOCATION = "location"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    TEXT = "text"
    FORMATTED_TEXT = "formatted_text"
    PATTERN = "pattern"
    MULTILINE = "multiline"


class RestrictionKind(StrEnum):
    NONE = "none"
    ENUM = "enum"
    RANGE = "range"
    TEXT = "text"
