"""Attribute definitions and their restriction union."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .enums import DataType, RestrictionKind

DEFAULT_CONTENT_TYPE = "text/markdown"
DEFAULT_ENUM_TYPE = "text"


@dataclass(frozen=True, slots=True, kw_only=True)
class NoRestriction:
    """Explicit "no restriction selected" state."""

    kind: Literal[RestrictionKind.NONE] = RestrictionKind.NONE


@dataclass(frozen=True, slots=True, kw_only=True)
class EnumValue:
    value: str
    metadata: str | None = None
    number: str | None = None
    # assigned by the service; two values are the same option regardless of it
    value_id: str | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class EnumRestriction:
    type: str = DEFAULT_ENUM_TYPE
    values: tuple[EnumValue, ...] = ()
    kind: Literal[RestrictionKind.ENUM] = RestrictionKind.ENUM


@dataclass(frozen=True, slots=True, kw_only=True)
class RangeRestriction:
    min: str | None = None
    max: str | None = None
    step: str | None = None
    kind: Literal[RestrictionKind.RANGE] = RestrictionKind.RANGE


@dataclass(frozen=True, slots=True, kw_only=True)
class TextRestriction:
    max_length: int | None = None
    pattern: str | None = None
    whitespaces: bool | None = None
    kind: Literal[RestrictionKind.TEXT] = RestrictionKind.TEXT


type Restrictions = NoRestriction | EnumRestriction | RangeRestriction | TextRestriction


@dataclass(frozen=True, slots=True, kw_only=True)
class AttributeDefinition:
    name: str
    data_type: DataType
    id: str | None = None
    number: str | None = None
    description: str | None = None
    content_type: str = DEFAULT_CONTENT_TYPE
    character_set: str | None = None
    external_source: bool = False
    internal: bool = False
    group_id: str | None = None
    unit: str | None = None
    restrictions: Restrictions = field(default_factory=NoRestriction)

    @property
    def key(self) -> str | None:
        return self.id
