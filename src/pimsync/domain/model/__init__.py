"""Domain records for the reconcilable PIM entities."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from .attributes import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_ENUM_TYPE,
    AttributeDefinition,
    EnumRestriction,
    EnumValue,
    NoRestriction,
    RangeRestriction,
    Restrictions,
    TextRestriction,
)
from .enums import DataType, EntityKind, RestrictionKind
from .records import Category, CategoryAttribute, CategoryAttributeKey, Context, Webhook

type Record = Category | AttributeDefinition | CategoryAttribute | Webhook | Context

RECORD_TYPES: Final[Mapping[EntityKind, type[Record]]] = MappingProxyType(
    {
        EntityKind.CONTEXT: Context,
        EntityKind.ATTRIBUTE_DEFINITION: AttributeDefinition,
        EntityKind.CATEGORY: Category,
        EntityKind.CATEGORY_ATTRIBUTE: CategoryAttribute,
        EntityKind.WEBHOOK: Webhook,
    }
)

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_ENUM_TYPE",
    "RECORD_TYPES",
    "AttributeDefinition",
    "Category",
    "CategoryAttribute",
    "CategoryAttributeKey",
    "Context",
    "DataType",
    "EntityKind",
    "EnumRestriction",
    "EnumValue",
    "NoRestriction",
    "RangeRestriction",
    "Record",
    "RestrictionKind",
    "Restrictions",
    "TextRestriction",
    "Webhook",
]
