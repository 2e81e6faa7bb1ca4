"""Bluestone PIM adapter: service facades, wire schema, codec and gateways."""

from __future__ import annotations

from .client import BluestoneServiceClient, GlobalSettingsClient, NotificationClient, PimClient
from .gateways import (
    RESOURCE_ID_HEADER,
    GlobalSettingsContextGateway,
    NotificationWebhookGateway,
    PimAttributeDefinitionGateway,
    PimCategoryAttributeGateway,
    PimCategoryGateway,
)
from .reconcilers import BluestoneReconcilers, ClientFactory
from .responses import ERROR_BODY_DECODERS, ApiResponse

__all__ = [
    "ERROR_BODY_DECODERS",
    "RESOURCE_ID_HEADER",
    "ApiResponse",
    "BluestoneReconcilers",
    "BluestoneServiceClient",
    "ClientFactory",
    "GlobalSettingsClient",
    "GlobalSettingsContextGateway",
    "NotificationClient",
    "NotificationWebhookGateway",
    "PimAttributeDefinitionGateway",
    "PimCategoryAttributeGateway",
    "PimCategoryGateway",
    "PimClient",
]
