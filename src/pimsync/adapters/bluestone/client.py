"""Bluestone service facades: one async method per remote endpoint.

The facades never retry and never interpret status codes; they return an
``ApiResponse`` for the gateways to classify. Network failures surface as
``TransportError``.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from pimsync.domain.errors import TransportError

from .responses import ApiResponse
from .schema import (
    AttributeDefinitionListResponse,
    CategoryAttributeListResponse,
    CategoryListResponse,
    ContextListResponse,
    ContextPayload,
    SubscriptionsPayload,
    WebhookPayload,
)

if TYPE_CHECKING:
    from pydantic import BaseModel

    from pimsync.adapters.http_resilience import RequestOptions, ResilientClient

    from .schema import (
        AttributeDefinitionCreateRequest,
        AttributeDefinitionUpdateRequest,
        BluestoneRequest,
        CategoryAttributeUpdateRequest,
        CategoryCreateRequest,
        CategoryUpdateRequest,
        ContextRequest,
        EventTypesRequest,
        FilterRequest,
        MetadataUpdateRequest,
        MoveRequest,
        WebhookCreateRequest,
        WebhookUpdateRequest,
    )

log = getLogger(__name__)


def _segment(value: str) -> str:
    return quote(value, safe="")


class BluestoneServiceClient:
    """Shared request plumbing for one service family."""

    def __init__(self, client: ResilientClient) -> None:
        self._client = client

    async def _call[T: BaseModel](
        self,
        operation: str,
        method: str,
        path: str,
        *,
        model: type[T] | None = None,
        body: BluestoneRequest | None = None,
        params: dict[str, str] | None = None,
    ) -> ApiResponse[T]:
        kwargs: RequestOptions = {}
        if body is not None:
            kwargs["json"] = body.to_wire()
        if params:
            kwargs["params"] = params
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{operation} failed: {exc}", operation=operation) from exc
        log.debug("%s -> HTTP %s", operation, response.status_code)
        return ApiResponse.from_httpx(operation, response, model)


def _context_params(context: str | None, **extra: str) -> dict[str, str]:
    params = dict(extra)
    if context is not None:
        params["context"] = context
    return params


class PimClient(BluestoneServiceClient):
    """Categories, attribute definitions and their links."""

    async def filter_categories(
        self, request: FilterRequest, *, context: str | None = None
    ) -> ApiResponse[CategoryListResponse]:
        return await self._call(
            "filter categories",
            "POST",
            "/categories/filter",
            model=CategoryListResponse,
            body=request,
            params=_context_params(context),
        )

    async def create_category(
        self, request: CategoryCreateRequest, *, context: str | None = None
    ) -> ApiResponse[Any]:
        return await self._call(
            "create category",
            "POST",
            "/categories",
            body=request,
            params=_context_params(context, validation="NAME"),
        )

    async def update_category(
        self, category_id: str, request: CategoryUpdateRequest, *, context: str | None = None
    ) -> ApiResponse[Any]:
        return await self._call(
            "update category",
            "PATCH",
            f"/categories/{_segment(category_id)}",
            body=request,
            params=_context_params(context),
        )

    async def update_category_metadata(
        self, category_id: str, request: MetadataUpdateRequest, *, context: str | None = None
    ) -> ApiResponse[Any]:
        return await self._call(
            "update category metadata",
            "PATCH",
            f"/categories/{_segment(category_id)}/metadata",
            body=request,
            params=_context_params(context),
        )

    async def move_category(
        self, category_id: str, request: MoveRequest, *, context: str | None = None
    ) -> ApiResponse[Any]:
        return await self._call(
            "move category",
            "POST",
            f"/categories/{_segment(category_id)}/move",
            body=request,
            params=_context_params(context),
        )

    async def delete_category(
        self, category_id: str, *, context: str | None = None
    ) -> ApiResponse[Any]:
        return await self._call(
            "delete category",
            "DELETE",
            f"/categories/{_segment(category_id)}",
            params=_context_params(context),
        )

    async def filter_attribute_definitions(
        self, request: FilterRequest
    ) -> ApiResponse[AttributeDefinitionListResponse]:
        return await self._call(
            "filter attribute definitions",
            "POST",
            "/attribute-definitions/filter",
            model=AttributeDefinitionListResponse,
            body=request,
        )

    async def create_attribute_definition(
        self, request: AttributeDefinitionCreateRequest
    ) -> ApiResponse[Any]:
        return await self._call(
            "create attribute definition",
            "POST",
            "/attribute-definitions",
            body=request,
            params={"validation": "NAME"},
        )

    async def update_attribute_definition(
        self, definition_id: str, request: AttributeDefinitionUpdateRequest
    ) -> ApiResponse[Any]:
        return await self._call(
            "update attribute definition",
            "PATCH",
            f"/attribute-definitions/{_segment(definition_id)}",
            body=request,
        )

    async def update_attribute_definition_metadata(
        self, definition_id: str, request: MetadataUpdateRequest
    ) -> ApiResponse[Any]:
        return await self._call(
            "update attribute definition metadata",
            "PATCH",
            f"/attribute-definitions/{_segment(definition_id)}/metadata",
            body=request,
        )

    async def delete_attribute_definition(self, definition_id: str) -> ApiResponse[Any]:
        return await self._call(
            "delete attribute definition",
            "DELETE",
            f"/attribute-definitions/{_segment(definition_id)}",
        )

    async def list_category_attributes(
        self, category_id: str
    ) -> ApiResponse[CategoryAttributeListResponse]:
        return await self._call(
            "list category attributes",
            "GET",
            f"/categories/{_segment(category_id)}/attributes",
            model=CategoryAttributeListResponse,
        )

    async def assign_attribute(self, category_id: str, definition_id: str) -> ApiResponse[Any]:
        return await self._call(
            "assign attribute",
            "POST",
            f"/categories/{_segment(category_id)}/attributes/{_segment(definition_id)}",
            params={"forceCla": "true"},
        )

    async def update_category_attribute(
        self, category_id: str, definition_id: str, request: CategoryAttributeUpdateRequest
    ) -> ApiResponse[Any]:
        return await self._call(
            "update category attribute",
            "PATCH",
            f"/categories/{_segment(category_id)}/attributes/{_segment(definition_id)}",
            body=request,
        )

    async def unassign_attribute(self, category_id: str, definition_id: str) -> ApiResponse[Any]:
        return await self._call(
            "unassign attribute",
            "DELETE",
            f"/categories/{_segment(category_id)}/attributes/{_segment(definition_id)}",
        )


class NotificationClient(BluestoneServiceClient):
    """Webhooks and their event subscriptions."""

    async def get_webhook(self, webhook_id: str) -> ApiResponse[WebhookPayload]:
        return await self._call(
            "get webhook", "GET", f"/webhooks/{_segment(webhook_id)}", model=WebhookPayload
        )

    async def get_subscriptions(self, webhook_id: str) -> ApiResponse[SubscriptionsPayload]:
        return await self._call(
            "get subscriptions",
            "GET",
            f"/webhooks/{_segment(webhook_id)}/subscriptions",
            model=SubscriptionsPayload,
        )

    async def create_webhook(self, request: WebhookCreateRequest) -> ApiResponse[Any]:
        return await self._call("create webhook", "POST", "/webhooks", body=request)

    async def update_webhook(
        self, webhook_id: str, request: WebhookUpdateRequest
    ) -> ApiResponse[Any]:
        return await self._call(
            "update webhook", "PATCH", f"/webhooks/{_segment(webhook_id)}", body=request
        )

    async def subscribe(self, webhook_id: str, request: EventTypesRequest) -> ApiResponse[Any]:
        return await self._call(
            "subscribe", "POST", f"/webhooks/{_segment(webhook_id)}/subscribe", body=request
        )

    async def unsubscribe(self, webhook_id: str, request: EventTypesRequest) -> ApiResponse[Any]:
        return await self._call(
            "unsubscribe", "POST", f"/webhooks/{_segment(webhook_id)}/unsubscribe", body=request
        )

    async def delete_webhook(self, webhook_id: str) -> ApiResponse[Any]:
        return await self._call("delete webhook", "DELETE", f"/webhooks/{_segment(webhook_id)}")


class GlobalSettingsClient(BluestoneServiceClient):
    """Localization contexts."""

    async def get_context(self, context_id: str) -> ApiResponse[ContextPayload]:
        return await self._call(
            "get context", "GET", f"/contexts/{_segment(context_id)}", model=ContextPayload
        )

    async def list_contexts(self) -> ApiResponse[ContextListResponse]:
        return await self._call("list contexts", "GET", "/contexts", model=ContextListResponse)

    async def create_context(self, request: ContextRequest) -> ApiResponse[Any]:
        return await self._call("create context", "POST", "/contexts", body=request)

    async def update_context(self, context_id: str, request: ContextRequest) -> ApiResponse[Any]:
        return await self._call(
            "update context", "PUT", f"/contexts/{_segment(context_id)}", body=request
        )

    async def archive_context(self, context_id: str) -> ApiResponse[Any]:
        return await self._call(
            "archive context", "POST", f"/contexts/{_segment(context_id)}/archive"
        )
