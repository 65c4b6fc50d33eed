"""
Tests for import computation.
"""

from unittest import TestCase

from domain_scaffold.domain.imports import ImportResolver
from domain_scaffold.domain.models import TypeCategory, TypeClassification
from domain_scaffold.resolver import resolve_domain

from spec_samples import (
    address_value_object,
    money_value_object,
    order_aggregate,
    order_document,
    order_entity,
    order_item_entity,
    simple_entity,
)


class TestImportResolver(TestCase):
    """Test cases for ImportResolver"""

    def test_reference_with_base_package(self):
        resolver = ImportResolver("shop")

        assert resolver.reference(TypeCategory.ENTITY, "OrderItem") == "shop.domain.models.order_item.OrderItem"
        assert resolver.reference(TypeCategory.ENUM, "OrderStatus") == "shop.domain.enums.order_status.OrderStatus"

    def test_reference_without_base_package(self):
        resolver = ImportResolver()

        assert resolver.reference(TypeCategory.VALUE_OBJECT, "Address") == "domain.value_objects.address.Address"

    def test_trailing_dots_are_ignored(self):
        assert ImportResolver("shop.").base_package == "shop"

    def test_primitive_imports(self):
        resolver = ImportResolver()

        assert resolver.classification_imports(TypeClassification(TypeCategory.SCALAR, "String")) == set()
        assert resolver.classification_imports(TypeClassification(TypeCategory.SCALAR, "UUID")) == {"uuid.UUID"}

    def test_collection_imports(self):
        element = TypeClassification(TypeCategory.TEMPORAL, "LocalDate")
        collection = TypeClassification(TypeCategory.COLLECTION, "List", element=element)

        assert ImportResolver().classification_imports(collection) == {"typing.List", "datetime.date"}


def test_root_entity_imports(order_model):
    assert order_model.root_entity.imports == [
        "datetime.date",
        "decimal.Decimal",
        "shop.domain.enums.order_status.OrderStatus",
        "shop.domain.models.order_item.OrderItem",
        "shop.domain.value_objects.address.Address",
        "typing.List",
    ]


def test_child_entity_does_not_import_its_owner(order_model):
    assert order_model.aggregate.get_entity("OrderItem").imports == ["decimal.Decimal"]


def test_value_object_imports(order_model):
    assert order_model.value_objects[0].imports == []


def test_imports_are_sorted_and_unique(order_model):
    for entity in order_model.entities:
        assert entity.imports == sorted(set(entity.imports))


def test_one_to_one_child_is_imported_by_factory():
    root = order_entity()
    item = order_item_entity(relationships=[
        {"type": "OneToOne", "target": "ReturnReason", "mappedBy": "orderItem"},
    ])
    reason = simple_entity("ReturnReason", fields=[
        {"name": "id", "type": "Long"},
        {"name": "reason", "type": "String"},
        {"name": "reportedOn", "type": "LocalDateTime"},
    ])
    resolution = resolve_domain(order_document(order_aggregate([root, item, reason])), base_package="shop")

    imports = resolution.get_aggregate("Order").root_entity.imports
    assert "shop.domain.models.return_reason.ReturnReason" in imports
    assert "datetime.datetime" in imports


def test_value_object_method_signatures_are_imported():
    resolution = resolve_domain(
        order_document(order_aggregate(valueObjects=[address_value_object(), money_value_object()])), base_package="shop"
    )

    money = resolution.get_aggregate("Order").value_objects[1]
    assert money.imports == ["datetime.date", "decimal.Decimal"]
