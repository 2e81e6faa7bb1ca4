"""Records for categories, category-attribute links, webhooks and contexts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple


@dataclass(frozen=True, slots=True, kw_only=True)
class Category:
    name: str
    id: str | None = None
    number: str | None = None
    description: str | None = None
    parent_id: str | None = None
    # localization context the remote calls are scoped to; not part of the wire record
    context_id: str | None = None

    @property
    def key(self) -> str | None:
        return self.id


class CategoryAttributeKey(NamedTuple):
    category_id: str
    attribute_definition_id: str

    def __str__(self) -> str:
        return f"{self.category_id}/{self.attribute_definition_id}"

    @classmethod
    def parse(cls, value: str) -> CategoryAttributeKey:
        category_id, sep, attribute_definition_id = value.partition("/")
        if not sep or not category_id or not attribute_definition_id:
            raise ValueError(
                f"Invalid category attribute key {value!r}, expected '<category>/<attribute>'"
            )
        return cls(category_id, attribute_definition_id)


@dataclass(frozen=True, slots=True, kw_only=True)
class CategoryAttribute:
    """Link between a category and an attribute definition."""

    category_id: str
    attribute_definition_id: str
    mandatory: bool = False

    @property
    def key(self) -> CategoryAttributeKey:
        return CategoryAttributeKey(self.category_id, self.attribute_definition_id)


@dataclass(frozen=True, slots=True, kw_only=True)
class Webhook:
    url: str
    # write-only on the service side; carried forward from the last known record
    secret: str | None = field(default=None, repr=False)
    id: str | None = None
    active: bool = True
    event_types: frozenset[str] = frozenset()

    @property
    def key(self) -> str | None:
        return self.id


@dataclass(frozen=True, slots=True, kw_only=True)
class Context:
    """Localization context. ``fallback_id`` is a weak reference to another context."""

    name: str
    locale: str
    id: str | None = None
    fallback_id: str | None = None

    @property
    def key(self) -> str | None:
        return self.id
