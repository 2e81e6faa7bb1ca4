"""Ports implemented by the remote service adapter, one per entity family."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pimsync.domain.model import (
        AttributeDefinition,
        Category,
        CategoryAttribute,
        CategoryAttributeKey,
        Context,
        Webhook,
    )


class ErrorBody(Protocol):
    @property
    def error(self) -> str | None: ...


class StatusResponse(Protocol):
    """What the status classifier needs from a remote response."""

    @property
    def status_code(self) -> int: ...

    @property
    def operation(self) -> str: ...

    def error_body(self) -> ErrorBody | None: ...


class EntityGateway[R, K](Protocol):
    """Create/read/delete for one entity family.

    Every method classifies the remote status before trusting a body and
    raises a ``ReconcileError`` subclass on failure.
    """

    async def create(self, record: R) -> K:
        """Issue the create call and return the identifier of the new entity."""
        ...

    async def fetch(self, key: K, *, prior: R | None = None) -> R | None:
        """Read the canonical record; ``prior`` supplies values the service never returns."""
        ...

    async def delete(self, key: K) -> None: ...


class CategoryGateway(EntityGateway["Category", str], Protocol):
    async def update(self, key: str, planned: Category) -> None: ...

    async def update_description(self, key: str, planned: Category) -> None: ...

    async def move(self, key: str, planned: Category) -> None: ...


class AttributeDefinitionGateway(EntityGateway["AttributeDefinition", str], Protocol):
    async def update(self, key: str, planned: AttributeDefinition) -> None: ...

    async def update_description(self, key: str, planned: AttributeDefinition) -> None: ...


class CategoryAttributeGateway(
    EntityGateway["CategoryAttribute", "CategoryAttributeKey"], Protocol
):
    async def update(self, key: CategoryAttributeKey, planned: CategoryAttribute) -> None: ...


class WebhookGateway(EntityGateway["Webhook", str], Protocol):
    async def update(self, key: str, planned: Webhook) -> None: ...

    async def subscribe(self, key: str, event_types: frozenset[str]) -> None: ...

    async def unsubscribe(self, key: str, event_types: frozenset[str]) -> None: ...


class ContextGateway(EntityGateway["Context", str], Protocol):
    async def update(self, key: str, planned: Context) -> None: ...
