"""Wire the Bluestone gateways to the generic reconciler, one HTTP client per use."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pimsync.adapters.http_resilience import ResilientClient
from pimsync.config import GLOBAL_SETTINGS_SERVICE, NOTIFICATION_SERVICE, PIM_SERVICE
from pimsync.domain.model import EntityKind
from pimsync.domain.reconciliation import (
    ATTRIBUTE_DEFINITION_RULES,
    CATEGORY_ATTRIBUTE_RULES,
    CATEGORY_RULES,
    CONTEXT_RULES,
    WEBHOOK_RULES,
    Reconciler,
)

from .client import GlobalSettingsClient, NotificationClient, PimClient
from .gateways import (
    GlobalSettingsContextGateway,
    NotificationWebhookGateway,
    PimAttributeDefinitionGateway,
    PimCategoryAttributeGateway,
    PimCategoryGateway,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from pimsync.config import PimConfig, ResilienceConfig
    from pimsync.domain.lifecycle import ReconcilerFactory
    from pimsync.domain.model import (
        AttributeDefinition,
        Category,
        CategoryAttribute,
        CategoryAttributeKey,
        Context,
        Webhook,
    )

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


@dataclass(slots=True)
class BluestoneReconcilers:
    """Factories yielding a ready reconciler per entity kind.

    Each context opens one HTTP client for the service family the entity
    lives in and closes it on exit.
    """

    config: PimConfig
    client_factory: ClientFactory = field(default=ResilientClient)

    @asynccontextmanager
    async def categories(self) -> AsyncIterator[Reconciler[Any, Category, str]]:
        async with self.client_factory(self.config.resilience(PIM_SERVICE)) as http:
            yield Reconciler(PimCategoryGateway(PimClient(http)), CATEGORY_RULES)

    @asynccontextmanager
    async def attribute_definitions(
        self,
    ) -> AsyncIterator[Reconciler[Any, AttributeDefinition, str]]:
        async with self.client_factory(self.config.resilience(PIM_SERVICE)) as http:
            yield Reconciler(
                PimAttributeDefinitionGateway(PimClient(http)), ATTRIBUTE_DEFINITION_RULES
            )

    @asynccontextmanager
    async def category_attributes(
        self,
    ) -> AsyncIterator[Reconciler[Any, CategoryAttribute, CategoryAttributeKey]]:
        async with self.client_factory(self.config.resilience(PIM_SERVICE)) as http:
            yield Reconciler(PimCategoryAttributeGateway(PimClient(http)), CATEGORY_ATTRIBUTE_RULES)

    @asynccontextmanager
    async def webhooks(self) -> AsyncIterator[Reconciler[Any, Webhook, str]]:
        async with self.client_factory(self.config.resilience(NOTIFICATION_SERVICE)) as http:
            yield Reconciler(NotificationWebhookGateway(NotificationClient(http)), WEBHOOK_RULES)

    @asynccontextmanager
    async def contexts(self) -> AsyncIterator[Reconciler[Any, Context, str]]:
        async with self.client_factory(self.config.resilience(GLOBAL_SETTINGS_SERVICE)) as http:
            yield Reconciler(
                GlobalSettingsContextGateway(GlobalSettingsClient(http)), CONTEXT_RULES
            )

    def provider_for(self, kind: EntityKind) -> ReconcilerFactory[Any, Any]:
        providers: dict[EntityKind, ReconcilerFactory[Any, Any]] = {
            EntityKind.CONTEXT: self.contexts,
            EntityKind.ATTRIBUTE_DEFINITION: self.attribute_definitions,
            EntityKind.CATEGORY: self.categories,
            EntityKind.CATEGORY_ATTRIBUTE: self.category_attributes,
            EntityKind.WEBHOOK: self.webhooks,
        }
        return providers[kind]
