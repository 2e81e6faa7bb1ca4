"""Pydantic models describing the Bluestone PIM wire payloads."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)

type FilterType = Literal["ID_IN"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class BluestoneBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = {f"{type(self).__name__}.{key}" for key in extras}.difference(
            self._logged_extra_keys
        )
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug("Bluestone payload carries unmodeled keys: %s", ", ".join(sorted(new_keys)))


class BluestoneRequest(BaseModel):
    """Outgoing body. Create requests omit unset fields, updates send explicit nulls."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    exclude_none: ClassVar[bool] = False

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=self.exclude_none)


class ErrorResponse(BluestoneBaseModel):
    error: str | None = None
    message: str | None = None
    status: int | None = None


class FilterDto(BluestoneRequest):
    type: FilterType = "ID_IN"
    values: list[str]


class FilterRequest(BluestoneRequest):
    filters: list[FilterDto]

    @classmethod
    def ids(cls, *ids: str) -> FilterRequest:
        return cls(filters=[FilterDto(values=list(ids))])


class PropertyUpdate(BluestoneRequest):
    value: str | None


class MetadataUpdateRequest(BluestoneRequest):
    description: PropertyUpdate


class CategoryPayload(BluestoneBaseModel):
    id: str
    name: str
    number: str | None = None
    description: str | None = None
    parent_id: str | None = Field(default=None, alias="parentId")

    normalize_parent = field_validator("parent_id", "number", mode="before")(_blank_to_none)


class CategoryListResponse(BluestoneBaseModel):
    data: list[CategoryPayload] = Field(default_factory=list[CategoryPayload])


class CategoryCreateRequest(BluestoneRequest):
    exclude_none: ClassVar[bool] = True

    name: str
    number: str | None = None
    parent_id: str | None = Field(default=None, alias="parentId")


class CategoryUpdateRequest(BluestoneRequest):
    name: str
    number: str | None = None


class MoveRequest(BluestoneRequest):
    # null moves the category to the root
    parent_id: str | None = Field(alias="parentId")


class EnumValuePayload(BluestoneBaseModel):
    value: str
    metadata: str | None = None
    number: str | None = None
    value_id: str | None = Field(default=None, alias="valueId")


class EnumRestrictionPayload(BluestoneBaseModel):
    type: str | None = None
    values: list[EnumValuePayload] = Field(default_factory=list[EnumValuePayload])


class RangePayload(BluestoneBaseModel):
    min: str | None = None
    max: str | None = None
    step: str | None = None


class TextPayload(BluestoneBaseModel):
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None
    whitespaces: bool | None = None


class RestrictionsPayload(BluestoneBaseModel):
    enum: EnumRestrictionPayload | None = None
    range: RangePayload | None = None
    text: TextPayload | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AttributeDefinitionPayload(BluestoneBaseModel):
    id: str
    name: str
    number: str | None = None
    description: str | None = None
    data_type: str | None = Field(default=None, alias="dataType")
    content_type: str | None = Field(default=None, alias="contentType")
    character_set: str | None = Field(default=None, alias="characterSet")
    external_source: bool | None = Field(default=None, alias="externalSource")
    internal: bool | None = None
    group_id: str | None = Field(default=None, alias="groupId")
    unit: str | None = None
    restrictions: RestrictionsPayload | None = None

    normalize_blank = field_validator("number", "group_id", "unit", mode="before")(
        _blank_to_none
    )


class AttributeDefinitionListResponse(BluestoneBaseModel):
    data: list[AttributeDefinitionPayload] = Field(
        default_factory=list[AttributeDefinitionPayload]
    )


class AttributeDefinitionCreateRequest(BluestoneRequest):
    exclude_none: ClassVar[bool] = True

    name: str
    number: str | None = None
    data_type: str = Field(alias="dataType")
    content_type: str | None = Field(default=None, alias="contentType")
    character_set: str | None = Field(default=None, alias="characterSet")
    external_source: bool | None = Field(default=None, alias="externalSource")
    internal: bool | None = None
    group_id: str | None = Field(default=None, alias="groupId")
    unit: str | None = None
    restrictions: dict[str, Any] | None = None


class AttributeDefinitionUpdateRequest(BluestoneRequest):
    name: str
    number: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    character_set: str | None = Field(default=None, alias="characterSet")
    external_source: bool | None = Field(default=None, alias="externalSource")
    internal: bool | None = None
    group_id: str | None = Field(default=None, alias="groupId")
    unit: str | None = None
    restrictions: dict[str, Any] | None = None


class CategoryAttributePayload(BluestoneBaseModel):
    attribute_definition_id: str = Field(alias="attributeDefinitionId")
    assigned_on: str | None = Field(default=None, alias="assignedOn")
    mandatory_set_on: str | None = Field(default=None, alias="mandatorySetOn")


class CategoryAttributeListResponse(BluestoneBaseModel):
    data: list[CategoryAttributePayload] = Field(default_factory=list[CategoryAttributePayload])


class CategoryAttributeUpdateRequest(BluestoneRequest):
    mandatory: bool


class WebhookPayload(BluestoneBaseModel):
    id: str
    url: str
    secret: str | None = None
    active: bool = True

    normalize_secret = field_validator("secret", mode="before")(_blank_to_none)


class SubscriptionsPayload(BluestoneBaseModel):
    event_types: list[str] = Field(default_factory=list[str], alias="eventTypes")


class WebhookCreateRequest(BluestoneRequest):
    exclude_none: ClassVar[bool] = True

    url: str
    secret: str | None = None
    active: bool = True


class WebhookUpdateRequest(BluestoneRequest):
    url: str
    secret: str | None = None
    active: bool


class EventTypesRequest(BluestoneRequest):
    event_types: list[str] = Field(alias="eventTypes")


class ContextPayload(BluestoneBaseModel):
    id: str
    name: str
    locale: str
    fallback: str | None = None
    archived: bool = False

    normalize_fallback = field_validator("fallback", mode="before")(_blank_to_none)


class ContextListResponse(BluestoneBaseModel):
    data: list[ContextPayload] = Field(default_factory=list[ContextPayload])


class ContextRequest(BluestoneRequest):
    name: str
    locale: str
    fallback: str | None = None
