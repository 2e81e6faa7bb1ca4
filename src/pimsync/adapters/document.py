"""Desired-state document: a JSON file declaring every managed entity.

Identifier fields accept either a literal remote id or a reference of the
form ``@<kind>.<name>`` to another entry, resolved against the recorded state
when the entry is applied.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Final, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    model_validator,
)

from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    CategoryAttribute,
    Context,
    DataType,
    EntityKind,
    EnumRestriction,
    EnumValue,
    NoRestriction,
    RangeRestriction,
    Record,
    Restrictions,
    TextRestriction,
    Webhook,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

REFERENCE_PREFIX: Final[str] = "@"

APPLY_ORDER: Final[tuple[EntityKind, ...]] = (
    EntityKind.CONTEXT,
    EntityKind.ATTRIBUTE_DEFINITION,
    EntityKind.CATEGORY,
    EntityKind.CATEGORY_ATTRIBUTE,
    EntityKind.WEBHOOK,
)

REFERENCE_FIELDS: Final[Mapping[EntityKind, tuple[str, ...]]] = MappingProxyType(
    {
        EntityKind.CONTEXT: ("fallback_id",),
        EntityKind.ATTRIBUTE_DEFINITION: (),
        EntityKind.CATEGORY: ("parent_id", "context_id"),
        EntityKind.CATEGORY_ATTRIBUTE: ("category_id", "attribute_definition_id"),
        EntityKind.WEBHOOK: (),
    }
)

_ADDRESS_PATTERN = re.compile(r"^(?P<kind>[a-z_]+)\.(?P<name>[A-Za-z0-9_-]+)$")

type EntryName = Annotated[str, StringConstraints(pattern=r"^[A-Za-z0-9_-]+$")]


class DocumentError(ValueError):
    """The desired-state document cannot be loaded or resolved."""


def format_address(kind: EntityKind, name: str) -> str:
    return f"{kind}.{name}"


def parse_address(address: str) -> tuple[EntityKind, str]:
    match = _ADDRESS_PATTERN.match(address)
    if match is None:
        raise DocumentError(f"Invalid address {address!r}, expected '<kind>.<name>'")
    try:
        kind = EntityKind(match["kind"])
    except ValueError as exc:
        raise DocumentError(f"Unknown entity kind in address {address!r}") from exc
    return kind, match["name"]


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ContextSpec(DocumentModel):
    name: str
    locale: str
    fallback_id: str | None = None

    def to_record(self) -> Context:
        return Context(name=self.name, locale=self.locale, fallback_id=self.fallback_id)


class EnumValueSpec(DocumentModel):
    value: str
    metadata: str | None = None
    number: str | None = None


class EnumSpec(DocumentModel):
    type: Literal["text", "color"] = "text"
    values: list[EnumValueSpec] = Field(default_factory=list[EnumValueSpec])


class RangeSpec(DocumentModel):
    min: str | None = None
    max: str | None = None
    step: str | None = None


class TextSpec(DocumentModel):
    max_length: int | None = Field(default=None, ge=0)
    pattern: str | None = None
    whitespaces: bool | None = None


class RestrictionsSpec(DocumentModel):
    enum: EnumSpec | None = None
    range: RangeSpec | None = None
    text: TextSpec | None = None

    @model_validator(mode="after")
    def _single_branch(self) -> Self:
        branches = [name for name in ("enum", "range", "text") if getattr(self, name) is not None]
        if len(branches) > 1:
            raise ValueError(f"restrictions must set one of enum/range/text, got {branches}")
        return self

    def to_restrictions(self) -> Restrictions:
        if self.enum is not None:
            return EnumRestriction(
                type=self.enum.type,
                values=tuple(
                    EnumValue(value=value.value, metadata=value.metadata, number=value.number)
                    for value in self.enum.values
                ),
            )
        if self.range is not None:
            return RangeRestriction(min=self.range.min, max=self.range.max, step=self.range.step)
        if self.text is not None:
            return TextRestriction(
                max_length=self.text.max_length,
                pattern=self.text.pattern,
                whitespaces=self.text.whitespaces,
            )
        return NoRestriction()


class AttributeDefinitionSpec(DocumentModel):
    name: str
    data_type: DataType
    number: str | None = None
    description: str | None = None
    content_type: Literal["text/markdown", "html"] = "text/markdown"
    character_set: str | None = None
    external_source: bool = False
    internal: bool = False
    group_id: str | None = None
    unit: str | None = None
    restrictions: RestrictionsSpec | None = None

    def to_record(self) -> AttributeDefinition:
        return AttributeDefinition(
            name=self.name,
            data_type=self.data_type,
            number=self.number,
            description=self.description,
            content_type=self.content_type,
            character_set=self.character_set,
            external_source=self.external_source,
            internal=self.internal,
            group_id=self.group_id,
            unit=self.unit,
            restrictions=(
                self.restrictions.to_restrictions() if self.restrictions else NoRestriction()
            ),
        )


class CategorySpec(DocumentModel):
    name: str
    number: str | None = None
    description: str | None = None
    parent_id: str | None = None
    context_id: str | None = None

    def to_record(self) -> Category:
        return Category(
            name=self.name,
            number=self.number,
            description=self.description,
            parent_id=self.parent_id,
            context_id=self.context_id,
        )


class CategoryAttributeSpec(DocumentModel):
    category_id: str
    attribute_definition_id: str
    mandatory: bool = False

    def to_record(self) -> CategoryAttribute:
        return CategoryAttribute(
            category_id=self.category_id,
            attribute_definition_id=self.attribute_definition_id,
            mandatory=self.mandatory,
        )


class WebhookSpec(DocumentModel):
    url: str
    secret: str | None = None
    active: bool = True
    event_types: list[str] = Field(default_factory=list[str])

    def to_record(self) -> Webhook:
        return Webhook(
            url=self.url,
            secret=self.secret,
            active=self.active,
            event_types=frozenset(self.event_types),
        )


class DesiredStateDocument(DocumentModel):
    contexts: dict[EntryName, ContextSpec] = Field(default_factory=dict[EntryName, ContextSpec])
    attribute_definitions: dict[EntryName, AttributeDefinitionSpec] = Field(
        default_factory=dict[EntryName, AttributeDefinitionSpec]
    )
    categories: dict[EntryName, CategorySpec] = Field(default_factory=dict[EntryName, CategorySpec])
    category_attributes: dict[EntryName, CategoryAttributeSpec] = Field(
        default_factory=dict[EntryName, CategoryAttributeSpec]
    )
    webhooks: dict[EntryName, WebhookSpec] = Field(default_factory=dict[EntryName, WebhookSpec])

    def section(self, kind: EntityKind) -> Mapping[str, DocumentEntry]:
        sections: dict[EntityKind, Mapping[str, DocumentEntry]] = {
            EntityKind.CONTEXT: self.contexts,
            EntityKind.ATTRIBUTE_DEFINITION: self.attribute_definitions,
            EntityKind.CATEGORY: self.categories,
            EntityKind.CATEGORY_ATTRIBUTE: self.category_attributes,
            EntityKind.WEBHOOK: self.webhooks,
        }
        return sections[kind]


type DocumentEntry = (
    ContextSpec | AttributeDefinitionSpec | CategorySpec | CategoryAttributeSpec | WebhookSpec
)


@dataclass(frozen=True, slots=True)
class PlannedResource:
    address: str
    kind: EntityKind
    record: Record


def load_document(path: Path | str) -> DesiredStateDocument:
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise DocumentError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return DesiredStateDocument.model_validate_json(raw)
    except ValidationError as exc:
        raise DocumentError(f"Invalid document {path}:\n{exc}") from exc


def plan_document(document: DesiredStateDocument) -> tuple[PlannedResource, ...]:
    """Flatten the document into records, in apply order, with references unresolved."""

    return tuple(_iter_planned(document))


def _iter_planned(document: DesiredStateDocument) -> Iterator[PlannedResource]:
    for kind in APPLY_ORDER:
        for name, spec in document.section(kind).items():
            yield PlannedResource(
                address=format_address(kind, name),
                kind=kind,
                record=spec.to_record(),
            )


def is_reference(value: object) -> bool:
    return isinstance(value, str) and value.startswith(REFERENCE_PREFIX)


def resolve_references(
    planned: PlannedResource,
    lookup: Callable[[str], str | None],
) -> Record:
    """Replace ``@address`` values with the identifier ``lookup`` reports for that address."""

    changes: dict[str, str] = {}
    for field_name in REFERENCE_FIELDS[planned.kind]:
        value = getattr(planned.record, field_name)
        if not is_reference(value):
            continue
        target = value.removeprefix(REFERENCE_PREFIX)
        parse_address(target)
        resolved = lookup(target)
        if resolved is None:
            raise DocumentError(
                f"{planned.address}.{field_name} refers to {target}, which has not been applied"
            )
        changes[field_name] = resolved
    if not changes:
        return planned.record
    return dataclasses.replace(planned.record, **changes)
