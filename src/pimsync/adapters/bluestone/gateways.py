"""Entity gateways: reconciler calls mapped onto facade calls, classification and codec."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Final

from pimsync.domain.errors import AmbiguousResultError, MissingIdentifierError
from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    CategoryAttribute,
    CategoryAttributeKey,
    Context,
    Webhook,
)
from pimsync.domain.reconciliation import assert_status_code

from .schema import FilterRequest
from .translator import (
    decode_attribute_definition,
    decode_category,
    decode_category_attribute,
    decode_context,
    decode_webhook,
    encode_attribute_definition_create,
    encode_attribute_definition_update,
    encode_category_attribute_update,
    encode_category_create,
    encode_category_update,
    encode_context,
    encode_description,
    encode_event_types,
    encode_move,
    encode_webhook_create,
    encode_webhook_update,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Any

    from .client import GlobalSettingsClient, NotificationClient, PimClient
    from .responses import ApiResponse

RESOURCE_ID_HEADER: Final[str] = "Resource-Id"


def _resource_id(response: ApiResponse[Any]) -> str:
    resource_id = response.header(RESOURCE_ID_HEADER)
    if resource_id is None:
        raise MissingIdentifierError(header=RESOURCE_ID_HEADER, operation=response.operation)
    return resource_id


def _single_row[T](rows: Sequence[T], *, what: str) -> T | None:
    if not rows:
        return None
    if len(rows) > 1:
        raise AmbiguousResultError(expected=1, actual=len(rows), what=what)
    return rows[0]


class PimCategoryGateway:
    def __init__(self, client: PimClient) -> None:
        self.client = client

    async def create(self, record: Category) -> str:
        response = await self.client.create_category(
            encode_category_create(record), context=record.context_id
        )
        assert_status_code(response, HTTPStatus.CREATED)
        return _resource_id(response)

    async def fetch(self, key: str, *, prior: Category | None = None) -> Category | None:
        context_id = prior.context_id if prior is not None else None
        response = await self.client.filter_categories(FilterRequest.ids(key), context=context_id)
        assert_status_code(response, HTTPStatus.OK)
        row = _single_row(response.body().data, what="categories")
        return None if row is None else decode_category(row, context_id=context_id)

    async def update(self, key: str, planned: Category) -> None:
        response = await self.client.update_category(
            key, encode_category_update(planned), context=planned.context_id
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def update_description(self, key: str, planned: Category) -> None:
        response = await self.client.update_category_metadata(
            key, encode_description(planned.description), context=planned.context_id
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def move(self, key: str, planned: Category) -> None:
        response = await self.client.move_category(
            key, encode_move(planned), context=planned.context_id
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def delete(self, key: str) -> None:
        response = await self.client.delete_category(key)
        assert_status_code(response, HTTPStatus.NO_CONTENT)


class PimAttributeDefinitionGateway:
    def __init__(self, client: PimClient) -> None:
        self.client = client

    async def create(self, record: AttributeDefinition) -> str:
        response = await self.client.create_attribute_definition(
            encode_attribute_definition_create(record)
        )
        assert_status_code(response, HTTPStatus.CREATED)
        return _resource_id(response)

    async def fetch(
        self, key: str, *, prior: AttributeDefinition | None = None
    ) -> AttributeDefinition | None:
        _ = prior
        response = await self.client.filter_attribute_definitions(FilterRequest.ids(key))
        assert_status_code(response, HTTPStatus.OK)
        row = _single_row(response.body().data, what="attribute definitions")
        return None if row is None else decode_attribute_definition(row)

    async def update(self, key: str, planned: AttributeDefinition) -> None:
        response = await self.client.update_attribute_definition(
            key, encode_attribute_definition_update(planned)
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def update_description(self, key: str, planned: AttributeDefinition) -> None:
        response = await self.client.update_attribute_definition_metadata(
            key, encode_description(planned.description)
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def delete(self, key: str) -> None:
        response = await self.client.delete_attribute_definition(key)
        assert_status_code(response, HTTPStatus.ACCEPTED)


class PimCategoryAttributeGateway:
    def __init__(self, client: PimClient) -> None:
        self.client = client

    async def create(self, record: CategoryAttribute) -> CategoryAttributeKey:
        key = record.key
        response = await self.client.assign_attribute(key.category_id, key.attribute_definition_id)
        assert_status_code(response, HTTPStatus.ACCEPTED)
        return key

    async def fetch(
        self, key: CategoryAttributeKey, *, prior: CategoryAttribute | None = None
    ) -> CategoryAttribute | None:
        _ = prior
        response = await self.client.list_category_attributes(key.category_id)
        assert_status_code(response, HTTPStatus.OK)
        rows = [
            row
            for row in response.body().data
            if row.attribute_definition_id == key.attribute_definition_id
            # inherited links are listed too; only the one assigned here is ours
            and row.assigned_on == key.category_id
        ]
        row = _single_row(rows, what="category attribute links")
        return None if row is None else decode_category_attribute(row, category_id=key.category_id)

    async def update(self, key: CategoryAttributeKey, planned: CategoryAttribute) -> None:
        response = await self.client.update_category_attribute(
            key.category_id,
            key.attribute_definition_id,
            encode_category_attribute_update(planned),
        )
        assert_status_code(response, HTTPStatus.ACCEPTED)

    async def delete(self, key: CategoryAttributeKey) -> None:
        response = await self.client.unassign_attribute(
            key.category_id, key.attribute_definition_id
        )
        assert_status_code(response, HTTPStatus.NO_CONTENT)


class NotificationWebhookGateway:
    def __init__(self, client: NotificationClient) -> None:
        self.client = client

    async def create(self, record: Webhook) -> str:
        response = await self.client.create_webhook(encode_webhook_create(record))
        assert_status_code(response, HTTPStatus.CREATED)
        return _resource_id(response)

    async def fetch(self, key: str, *, prior: Webhook | None = None) -> Webhook | None:
        webhook = await self.client.get_webhook(key)
        assert_status_code(webhook, HTTPStatus.OK)
        subscriptions = await self.client.get_subscriptions(key)
        assert_status_code(subscriptions, HTTPStatus.OK)
        return decode_webhook(webhook.body(), subscriptions.body(), prior=prior)

    async def update(self, key: str, planned: Webhook) -> None:
        response = await self.client.update_webhook(key, encode_webhook_update(planned))
        assert_status_code(response, HTTPStatus.OK)

    async def subscribe(self, key: str, event_types: frozenset[str]) -> None:
        response = await self.client.subscribe(key, encode_event_types(event_types))
        assert_status_code(response, HTTPStatus.OK)

    async def unsubscribe(self, key: str, event_types: frozenset[str]) -> None:
        response = await self.client.unsubscribe(key, encode_event_types(event_types))
        assert_status_code(response, HTTPStatus.OK)

    async def delete(self, key: str) -> None:
        response = await self.client.delete_webhook(key)
        assert_status_code(response, HTTPStatus.OK)


class GlobalSettingsContextGateway:
    def __init__(self, client: GlobalSettingsClient) -> None:
        self.client = client

    async def create(self, record: Context) -> str:
        response = await self.client.create_context(encode_context(record))
        assert_status_code(response, HTTPStatus.CREATED)
        resource_id = response.header(RESOURCE_ID_HEADER)
        if resource_id is not None:
            return resource_id
        # some deployments omit the header here; the locale is unique among live contexts
        return await self._find_by_locale(record.locale, operation=response.operation)

    async def fetch(self, key: str, *, prior: Context | None = None) -> Context | None:
        _ = prior
        response = await self.client.get_context(key)
        assert_status_code(response, HTTPStatus.OK)
        payload = response.body()
        return None if payload.archived else decode_context(payload)

    async def update(self, key: str, planned: Context) -> None:
        response = await self.client.update_context(key, encode_context(planned))
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def delete(self, key: str) -> None:
        response = await self.client.archive_context(key)
        assert_status_code(response, HTTPStatus.NO_CONTENT)

    async def _find_by_locale(self, locale: str, *, operation: str) -> str:
        response = await self.client.list_contexts()
        assert_status_code(response, HTTPStatus.OK)
        rows = [
            row for row in response.body().data if row.locale == locale and not row.archived
        ]
        row = _single_row(rows, what=f"contexts with locale {locale}")
        if row is None:
            raise MissingIdentifierError(header=RESOURCE_ID_HEADER, operation=operation)
        return row.id

