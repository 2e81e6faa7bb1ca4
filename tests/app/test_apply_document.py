"""End-to-end apply, refresh, destroy and import against the in-memory service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from pimsync.adapters.document import DesiredStateDocument
from pimsync.app import (
    apply_document,
    destroy_resources,
    import_resource,
    list_state,
    lookup_resource,
    refresh_state,
)
from pimsync.domain.errors import RequiresReplacementError
from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    CategoryAttribute,
    DataType,
    EntityKind,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pimsync.adapters.sqlalchemy import SqlAlchemyStateUnitOfWork
    from pimsync.app import ApplyReport
    from pimsync.config import PimConfig
    from pimsync.domain.model import Record
    from tests.support.bluestone import FakeBluestone

ADDRESSES = [
    "context.de",
    "attribute_definition.size",
    "category.shoes",
    "category_attribute.shoes_size",
    "webhook.orders",
]


def _document(**overrides: Any) -> DesiredStateDocument:
    payload: dict[str, Any] = {
        "contexts": {"de": {"name": "German", "locale": "de-DE"}},
        "attribute_definitions": {
            "size": {
                "name": "Size",
                "data_type": "single_select",
                "description": "Shoe size",
                "restrictions": {"enum": {"values": [{"value": "42"}, {"value": "43"}]}},
            }
        },
        "categories": {"shoes": {"name": "Shoes", "description": "All shoes"}},
        "category_attributes": {
            "shoes_size": {
                "category_id": "@category.shoes",
                "attribute_definition_id": "@attribute_definition.size",
                "mandatory": True,
            }
        },
        "webhooks": {
            "orders": {
                "url": "https://hook.test/orders",
                "secret": "s3cret",
                "event_types": ["PRODUCT_CREATED", "PRODUCT_UPDATED"],
            }
        },
    }
    payload.update(overrides)
    return DesiredStateDocument.model_validate(payload)


class _Harness:
    def __init__(
        self,
        bluestone: FakeBluestone,
        config: PimConfig,
        unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
    ) -> None:
        self.bluestone = bluestone
        self.options: dict[str, Any] = {
            "config": config,
            "client_factory": bluestone.client_factory,
            "unit_of_work_factory": unit_of_work,
        }

    def apply(self, document: DesiredStateDocument, **kwargs: Any) -> ApplyReport:
        return apply_document(document, **self.options, **kwargs)

    def addresses(self, address: str | None = None) -> list[str]:
        entries = list_state(
            address=address, unit_of_work_factory=self.options["unit_of_work_factory"]
        )
        return [entry.address for entry in entries]

    def record(self, address: str) -> Record:
        (entry,) = list_state(
            address=address, unit_of_work_factory=self.options["unit_of_work_factory"]
        )
        return entry.record


@pytest.fixture
def harness(
    bluestone: FakeBluestone,
    config: PimConfig,
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> _Harness:
    return _Harness(bluestone, config, state_unit_of_work)


def test_first_apply_creates_everything_with_resolved_references(harness: _Harness) -> None:
    report = harness.apply(_document())

    assert report.created == ADDRESSES
    category = harness.record("category.shoes")
    definition = harness.record("attribute_definition.size")
    assert harness.record("category_attribute.shoes_size") == CategoryAttribute(
        category_id=str(category.key),
        attribute_definition_id=str(definition.key),
        mandatory=True,
    )
    assert harness.bluestone.categories[str(category.key)]["description"] == "All shoes"
    assert harness.bluestone.subscriptions[str(harness.record("webhook.orders").key)] == {
        "PRODUCT_CREATED",
        "PRODUCT_UPDATED",
    }


def test_second_apply_is_a_no_op(harness: _Harness) -> None:
    harness.apply(_document())
    harness.bluestone.reset_log()

    report = harness.apply(_document())

    assert report.unchanged == ADDRESSES
    assert harness.bluestone.writes() == []


def test_changed_field_is_updated_in_place(harness: _Harness) -> None:
    harness.apply(_document())
    category_id = harness.record("category.shoes").key
    harness.bluestone.reset_log()

    renamed = {"shoes": {"name": "Footwear", "description": "All shoes"}}

    report = harness.apply(_document(categories=renamed))

    assert report.updated == ["category.shoes"]
    assert harness.bluestone.writes() == [f"PATCH /pim/categories/{category_id}"]
    assert harness.record("category.shoes") == Category(
        id=category_id, name="Footwear", description="All shoes"
    )


def test_remote_drift_is_reverted_on_apply(harness: _Harness) -> None:
    harness.apply(_document())
    category_id = str(harness.record("category.shoes").key)
    harness.bluestone.categories[category_id]["name"] = "Hijacked"

    report = harness.apply(_document())

    assert report.updated == ["category.shoes"]
    assert harness.bluestone.categories[category_id]["name"] == "Shoes"
    assert harness.record("category.shoes").key == category_id


def test_entries_dropped_from_the_document_are_pruned(harness: _Harness) -> None:
    harness.apply(_document())

    report = harness.apply(_document(webhooks={}))

    assert report.destroyed == ["webhook.orders"]
    assert harness.bluestone.webhooks == {}
    assert harness.addresses() == sorted(ADDRESSES[:-1])


def test_no_prune_keeps_recorded_entries(harness: _Harness) -> None:
    harness.apply(_document())

    report = harness.apply(_document(webhooks={}), prune=False)

    assert report.destroyed == []
    assert len(harness.bluestone.webhooks) == 1


def test_data_type_change_replaces_definition_and_its_links(harness: _Harness) -> None:
    harness.apply(_document())
    old_id = harness.record("attribute_definition.size").key

    report = harness.apply(
        _document(attribute_definitions={"size": {"name": "Size", "data_type": "integer"}})
    )

    new_definition = harness.record("attribute_definition.size")
    assert report.replaced == ["attribute_definition.size", "category_attribute.shoes_size"]
    assert new_definition.key != old_id
    assert isinstance(new_definition, AttributeDefinition)
    assert new_definition.data_type is DataType.INTEGER
    assert old_id not in harness.bluestone.definitions
    link = harness.record("category_attribute.shoes_size")
    assert isinstance(link, CategoryAttribute)
    assert link.attribute_definition_id == new_definition.key


def test_replacement_can_be_refused(harness: _Harness) -> None:
    harness.apply(_document())
    old_id = harness.record("attribute_definition.size").key

    with pytest.raises(RequiresReplacementError) as exc:
        harness.apply(
            _document(attribute_definitions={"size": {"name": "Size", "data_type": "integer"}}),
            allow_replace=False,
        )

    assert exc.value.fields == ("data_type",)
    assert harness.record("attribute_definition.size").key == old_id
    assert old_id in harness.bluestone.definitions


def test_refresh_forgets_entities_deleted_remotely(harness: _Harness) -> None:
    harness.apply(_document())
    harness.bluestone.categories.clear()

    report = refresh_state(**harness.options)

    assert report.removed == ["category.shoes"]
    assert "category.shoes" not in report.refreshed
    assert harness.addresses("category.shoes") == []


def test_destroy_all_runs_in_reverse_dependency_order(harness: _Harness) -> None:
    harness.apply(_document())
    harness.bluestone.reset_log()

    destroyed = destroy_resources(**harness.options)

    assert destroyed == list(reversed(ADDRESSES))
    assert harness.bluestone.categories == {}
    assert harness.bluestone.definitions == {}
    assert all(context["archived"] for context in harness.bluestone.contexts.values())
    assert harness.addresses() == []


def test_import_adopts_an_existing_category(harness: _Harness) -> None:
    harness.bluestone.categories["legacy-1"] = {"id": "legacy-1", "name": "Legacy"}

    record = import_resource("category.legacy", "legacy-1", **harness.options)

    assert record == Category(id="legacy-1", name="Legacy")
    assert harness.record("category.legacy") == record
    assert harness.bluestone.writes() == []


def test_import_of_category_attribute_uses_composite_id(harness: _Harness) -> None:
    harness.bluestone.links["c1"].append(
        {"attributeDefinitionId": "a1", "assignedOn": "c1", "mandatorySetOn": None}
    )

    record = import_resource("category_attribute.c1_a1", "c1/a1", **harness.options)

    assert record == CategoryAttribute(category_id="c1", attribute_definition_id="a1")


def test_lookup_reads_without_recording_state(harness: _Harness) -> None:
    harness.bluestone.categories["legacy-1"] = {"id": "legacy-1", "name": "Legacy"}
    harness.bluestone.links["legacy-1"].append(
        {"attributeDefinitionId": "a1", "assignedOn": "legacy-1", "mandatorySetOn": "legacy-1"}
    )

    category = lookup_resource("category", "legacy-1", **harness.options)
    link = lookup_resource(EntityKind.CATEGORY_ATTRIBUTE, "legacy-1/a1", **harness.options)

    assert category == Category(id="legacy-1", name="Legacy")
    assert link == CategoryAttribute(
        category_id="legacy-1", attribute_definition_id="a1", mandatory=True
    )
    assert lookup_resource("category", "missing", **harness.options) is None
    assert harness.addresses() == []
    assert harness.bluestone.writes() == []
