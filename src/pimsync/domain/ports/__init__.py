"""Domain port definitions for adapters."""

from __future__ import annotations

from .remote import (
    AttributeDefinitionGateway,
    CategoryAttributeGateway,
    CategoryGateway,
    ContextGateway,
    EntityGateway,
    ErrorBody,
    StatusResponse,
    WebhookGateway,
)
from .state import StateEntry, StateRepository, StateUnitOfWork

__all__ = [
    "AttributeDefinitionGateway",
    "CategoryAttributeGateway",
    "CategoryGateway",
    "ContextGateway",
    "EntityGateway",
    "ErrorBody",
    "StateEntry",
    "StateRepository",
    "StateUnitOfWork",
    "StatusResponse",
    "WebhookGateway",
]
