"""Gateways and reconcilers against an in-memory Bluestone service."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from pimsync.adapters.bluestone import BluestoneReconcilers
from pimsync.adapters.http_resilience import ResilientClient
from pimsync.domain.errors import (
    AmbiguousResultError,
    MissingIdentifierError,
    ServiceError,
    TransportError,
)
from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    CategoryAttribute,
    CategoryAttributeKey,
    Context,
    DataType,
    EnumRestriction,
    EnumValue,
    Webhook,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pimsync.config import PimConfig, ResilienceConfig
    from tests.support.bluestone import FakeBluestone


def _run[T](
    reconcilers: BluestoneReconcilers,
    provider: str,
    action: Callable[[Any], Awaitable[T]],
) -> T:
    async def go() -> T:
        async with getattr(reconcilers, provider)() as reconciler:
            return await action(reconciler)

    return asyncio.run(go())


@pytest.fixture
def reconcilers(bluestone: FakeBluestone, config: PimConfig) -> BluestoneReconcilers:
    return BluestoneReconcilers(config, client_factory=bluestone.client_factory)


def test_category_create_applies_description_after_create(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    record = _run(
        reconcilers,
        "categories",
        lambda reconciler: reconciler.create(Category(name="Shoes", description="Warm")),
    )

    assert record == Category(id="cat-1", name="Shoes", description="Warm")
    assert bluestone.writes() == [
        "POST /pim/categories",
        "PATCH /pim/categories/cat-1/metadata",
    ]
    create = bluestone.requests[0]
    assert create.url.params["validation"] == "NAME"
    assert bluestone.token_requests == 1


def test_category_calls_are_scoped_to_the_context(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    record = _run(
        reconcilers,
        "categories",
        lambda reconciler: reconciler.create(Category(name="Schuhe", context_id="de")),
    )

    assert record.context_id == "de"
    assert [request.url.params.get("context") for request in bluestone.requests] == ["de", "de"]


def test_category_update_moves_and_renames(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.categories["c1"] = {"id": "c1", "name": "Shoes", "parentId": None}
    current = Category(id="c1", name="Shoes")

    record = _run(
        reconcilers,
        "categories",
        lambda reconciler: reconciler.update(
            current, Category(id="c1", name="Footwear", parent_id="root")
        ),
    )

    assert record == Category(id="c1", name="Footwear", parent_id="root")
    assert bluestone.writes() == ["PATCH /pim/categories/c1", "POST /pim/categories/c1/move"]


def test_filter_with_several_rows_is_ambiguous(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.overrides[("POST", "/pim/categories/filter")] = httpx.Response(
        200, json={"data": [{"id": "c1", "name": "A"}, {"id": "c1", "name": "B"}]}
    )

    with pytest.raises(AmbiguousResultError) as exc:
        _run(reconcilers, "categories", lambda reconciler: reconciler.read("c1"))

    assert (exc.value.kind, exc.value.key, exc.value.step) == ("category", "c1", "read")
    assert exc.value.actual == 2


def test_filter_without_rows_reads_as_gone(reconcilers: BluestoneReconcilers) -> None:
    assert _run(reconcilers, "categories", lambda reconciler: reconciler.read("c404")) is None


def test_create_without_resource_id_fails(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.overrides[("POST", "/pim/categories")] = httpx.Response(201)

    with pytest.raises(MissingIdentifierError) as exc:
        _run(
            reconcilers,
            "categories",
            lambda reconciler: reconciler.create(Category(name="Shoes")),
        )

    assert exc.value.step == "create"
    assert exc.value.header == "Resource-Id"


def test_service_error_message_is_surfaced(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.overrides[("POST", "/pim/categories")] = httpx.Response(
        409, json={"error": "Category name must be unique", "status": 409}
    )

    with pytest.raises(ServiceError) as exc:
        _run(
            reconcilers,
            "categories",
            lambda reconciler: reconciler.create(Category(name="Shoes")),
        )

    assert exc.value.service_message == "Category name must be unique"
    assert exc.value.actual == 409
    assert exc.value.expected == 201


def test_attribute_definition_round_trip(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    desired = AttributeDefinition(
        name="Colour",
        data_type=DataType.SINGLE_SELECT,
        description="Main colour",
        restrictions=EnumRestriction(values=(EnumValue(value="Red"), EnumValue(value="Blue"))),
    )

    record = _run(reconcilers, "attribute_definitions", lambda reconciler: reconciler.create(desired))

    assert record.id == "attr-1"
    assert record.data_type is DataType.SINGLE_SELECT
    assert record.restrictions == desired.restrictions
    assert bluestone.definitions["attr-1"]["dataType"] == "single_select"
    assert bluestone.writes() == [
        "POST /pim/attribute-definitions",
        "PATCH /pim/attribute-definitions/attr-1/metadata",
    ]


def test_attribute_definition_delete_expects_accepted(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.definitions["a1"] = {"id": "a1", "name": "Size", "dataType": "text"}

    _run(reconcilers, "attribute_definitions", lambda reconciler: reconciler.delete("a1"))

    assert bluestone.definitions == {}


def test_category_attribute_create_marks_mandatory(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    desired = CategoryAttribute(category_id="c1", attribute_definition_id="a1", mandatory=True)

    record = _run(reconcilers, "category_attributes", lambda reconciler: reconciler.create(desired))

    assert record == desired
    assert bluestone.writes() == [
        "POST /pim/categories/c1/attributes/a1",
        "PATCH /pim/categories/c1/attributes/a1",
    ]
    assert bluestone.requests[0].url.params["forceCla"] == "true"


def test_inherited_category_attribute_is_not_ours(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.links["c1"].append(
        {"attributeDefinitionId": "a1", "assignedOn": "root", "mandatorySetOn": "root"}
    )

    record = _run(
        reconcilers,
        "category_attributes",
        lambda reconciler: reconciler.read(CategoryAttributeKey("c1", "a1")),
    )

    assert record is None


def test_webhook_create_subscribes_and_keeps_secret(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    desired = Webhook(
        url="https://hook.test", secret="s3cret", event_types=frozenset({"b", "a"})
    )

    record = _run(reconcilers, "webhooks", lambda reconciler: reconciler.create(desired))

    assert record == Webhook(
        id="wh-1",
        url="https://hook.test",
        secret="s3cret",
        event_types=frozenset({"a", "b"}),
    )
    assert bluestone.writes() == [
        "POST /notification-external/webhooks",
        "POST /notification-external/webhooks/wh-1/subscribe",
    ]


def test_webhook_event_types_are_diffed(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.webhooks["w1"] = {"id": "w1", "url": "https://hook.test", "active": True}
    bluestone.subscriptions["w1"] = {"a", "b"}
    current = Webhook(id="w1", url="https://hook.test", event_types=frozenset({"a", "b"}))
    planned = Webhook(id="w1", url="https://hook.test", event_types=frozenset({"b", "c"}))

    record = _run(reconcilers, "webhooks", lambda reconciler: reconciler.update(current, planned))

    assert record.event_types == frozenset({"b", "c"})
    assert bluestone.writes() == [
        "POST /notification-external/webhooks/w1/unsubscribe",
        "POST /notification-external/webhooks/w1/subscribe",
    ]


def test_missing_webhook_is_a_service_error(reconcilers: BluestoneReconcilers) -> None:
    with pytest.raises(ServiceError) as exc:
        _run(reconcilers, "webhooks", lambda reconciler: reconciler.read("w404"))

    assert exc.value.service_message == "Webhook not found"
    assert exc.value.step == "read"


def test_archived_context_reads_as_gone(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.contexts["ctx-9"] = {
        "id": "ctx-9",
        "name": "Old",
        "locale": "fr-FR",
        "archived": True,
    }

    assert _run(reconcilers, "contexts", lambda reconciler: reconciler.read("ctx-9")) is None


def test_context_delete_archives(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.contexts["ctx-9"] = {"id": "ctx-9", "name": "Old", "locale": "fr-FR"}

    _run(reconcilers, "contexts", lambda reconciler: reconciler.delete("ctx-9"))

    assert bluestone.contexts["ctx-9"]["archived"] is True


def test_context_create_without_header_finds_the_new_context_by_locale(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.context_resource_id_header = False
    bluestone.contexts["ctx-old"] = {
        "id": "ctx-old",
        "name": "German (old)",
        "locale": "de-DE",
        "archived": True,
    }

    record = _run(
        reconcilers,
        "contexts",
        lambda reconciler: reconciler.create(Context(name="German", locale="de-DE")),
    )

    assert record == Context(id="ctx-1", name="German", locale="de-DE")
    assert "GET /global-settings/contexts" in bluestone.calls()


def test_context_create_without_header_or_match_fails(
    bluestone: FakeBluestone, reconcilers: BluestoneReconcilers
) -> None:
    bluestone.overrides[("POST", "/global-settings/contexts")] = httpx.Response(201)

    with pytest.raises(MissingIdentifierError) as exc:
        _run(
            reconcilers,
            "contexts",
            lambda reconciler: reconciler.create(Context(name="German", locale="de-DE")),
        )

    assert exc.value.step == "create"


def test_network_failure_is_a_transport_error(config: PimConfig) -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def client_factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(unreachable))

    reconcilers = BluestoneReconcilers(config, client_factory=client_factory)

    with pytest.raises(TransportError) as exc:
        _run(reconcilers, "categories", lambda reconciler: reconciler.read("c1"))

    assert exc.value.operation == "filter categories"
    assert exc.value.step == "read"
