"""
Tests for the schema parser and the module-wide enum registry.
"""

from unittest import TestCase

import pytest

from domain_scaffold.diagnostics import DiagnosticCode
from domain_scaffold.domain.models import FetchType, IdentityStrategy, RelationshipKind, TypeCategory
from domain_scaffold.domain.schema import parse_domain_document
from domain_scaffold.domain.schema_parser import build_enum_registry
from domain_scaffold.exceptions import AggregateResolutionError

from spec_samples import (
    address_value_object,
    money_value_object,
    one_to_many,
    order_aggregate,
    order_document,
    order_entity,
    order_item_entity,
    parse_first_aggregate,
    simple_entity,
)


parse = parse_first_aggregate


def error_codes(exc_info):
    return sorted(error.diagnostic_code.value for error in exc_info.value.errors)


class TestEnumRegistry(TestCase):
    """Test cases for build_enum_registry"""

    def test_aggregate_enums_are_registered(self):
        document = parse_domain_document(order_document())
        registry, errors, diagnostics = build_enum_registry(document.aggregates)

        assert "OrderStatus" in registry
        status = registry["OrderStatus"]
        assert status.values == ("PENDING", "CONFIRMED", "SHIPPED")
        assert status.initial_value == "PENDING"
        assert status.declared_in == "Order"
        assert status.transition_map()["PENDING"] == ["CONFIRMED"]
        assert errors == {}
        assert diagnostics == []

    def test_inline_field_enums_are_registered(self):
        item = order_item_entity()
        item["fields"].append({"name": "priority", "type": "Priority", "enumValues": ["LOW", "HIGH"]})
        document = parse_domain_document(order_document(order_aggregate([order_entity(), item])))

        registry, _, _ = build_enum_registry(document.aggregates)

        assert registry["Priority"].values == ("LOW", "HIGH")

    def test_redefinition_keeps_first_definition(self):
        first = {"name": "First", "entities": [simple_entity("One", isRoot=True)],
                 "enums": [{"name": "Status", "values": ["A", "B"]}]}
        second = {"name": "Second", "entities": [simple_entity("Two", isRoot=True)],
                  "enums": [{"name": "Status", "values": ["X"]}]}
        document = parse_domain_document(order_document(first, second))

        registry, _, diagnostics = build_enum_registry(document.aggregates)

        assert registry["Status"].values == ("A", "B")
        assert [d.code for d in diagnostics] == [DiagnosticCode.ENUM_REDEFINED]
        assert diagnostics[0].aggregate == "Second"

    def test_identical_redefinition_is_silent(self):
        first = {"name": "First", "entities": [simple_entity("One", isRoot=True)],
                 "enums": [{"name": "Status", "values": ["A"]}]}
        second = {"name": "Second", "entities": [simple_entity("Two", isRoot=True)],
                  "enums": [{"name": "Status", "values": ["A"]}]}
        document = parse_domain_document(order_document(first, second))

        _, _, diagnostics = build_enum_registry(document.aggregates)

        assert diagnostics == []

    def test_unknown_transition_value_is_attributed_to_aggregate(self):
        aggregate = order_aggregate(enums=[{
            "name": "OrderStatus",
            "values": ["PENDING"],
            "transitions": [{"from": "PENDING", "to": "DELIVERED"}],
        }])
        document = parse_domain_document(order_document(aggregate))

        registry, errors, _ = build_enum_registry(document.aggregates)

        assert "OrderStatus" not in registry
        assert [e.diagnostic_code for e in errors["Order"]] == [DiagnosticCode.UNKNOWN_ENUM_VALUE]

    def test_unknown_initial_value(self):
        aggregate = order_aggregate(enums=[{"name": "OrderStatus", "values": ["PENDING"], "initialValue": "NEW"}])

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(aggregate)

        assert "unknown_enum_value" in error_codes(exc_info)


class TestSchemaParser(TestCase):
    """Test cases for SchemaParser.parse_aggregate"""

    def test_order_aggregate(self):
        aggregate = parse(order_aggregate())

        assert aggregate.name == "Order"
        assert aggregate.table_name == "orders"
        assert [e.name for e in aggregate.entities] == ["Order", "OrderItem"]
        assert aggregate.root_entity.name == "Order"
        assert aggregate.get_entity("OrderItem").table_name == "order_items"
        assert [vo.name for vo in aggregate.value_objects] == ["Address"]
        assert [e.name for e in aggregate.enums] == ["OrderStatus"]

    def test_field_classification(self):
        order = parse(order_aggregate()).root_entity

        assert order.get_field("orderDate").python_type == "date"
        assert order.get_field("total").python_type == "Decimal"
        assert order.get_field("status").classification.category == TypeCategory.ENUM
        assert order.get_field("shippingAddress").classification.category == TypeCategory.VALUE_OBJECT

    def test_identity_strategy(self):
        aggregate = parse(order_aggregate())

        assert aggregate.root_entity.id_strategy == IdentityStrategy.UUID
        assert aggregate.get_entity("OrderItem").id_strategy == IdentityStrategy.SEQUENCE

    def test_enum_initial_value_marks_field(self):
        order = parse(order_aggregate()).root_entity
        status = order.get_field("status")

        assert status.auto_init_value == "PENDING"
        assert status.read_only is True
        assert "status" not in [f.name for f in order.command_fields]

    def test_validations(self):
        aggregate = parse(order_aggregate())

        assert aggregate.root_entity.get_field("total").validations == ["DecimalMin(value='0.0')"]
        assert aggregate.get_entity("OrderItem").get_field("productName").validations == ["NotBlank"]

    def test_relationship_defaults(self):
        rel = parse(order_aggregate()).root_entity.relationships[0]

        assert rel.kind == RelationshipKind.ONE_TO_MANY
        assert rel.owner == "Order"
        assert rel.target == "OrderItem"
        assert rel.field_name == "orderItems"
        assert rel.mapped_by == "order"
        assert rel.cascade == ["PERSIST", "MERGE"]
        assert rel.fetch == FetchType.LAZY

    def test_explicit_relationship_field_name(self):
        root = order_entity(relationships=[one_to_many("OrderItem", fieldName="lines", cascade=["persist"])])
        rel = parse(order_aggregate([root, order_item_entity()])).root_entity.relationships[0]

        assert rel.field_name == "lines"
        assert rel.cascade == ["PERSIST"]

    def test_every_error_is_reported(self):
        aggregate = {
            "name": "Broken",
            "entities": [
                {"name": "A", "isRoot": True, "fields": [{"name": "name", "type": "String"}],
                 "relationships": [one_to_many("Missing")]},
                {"name": "B", "isRoot": True,
                 "fields": [{"name": "id", "type": "Long"}, {"name": "x", "type": "Nope"}]},
            ],
        }

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(aggregate)

        assert exc_info.value.aggregate == "Broken"
        assert error_codes(exc_info) == [
            "invalid_aggregate_root",
            "missing_identity_field",
            "unknown_relationship_target",
            "unresolved_field_type",
        ]
        unresolved = [e for e in exc_info.value.errors if e.diagnostic_code == DiagnosticCode.UNRESOLVED_FIELD_TYPE]
        assert unresolved[0].entity == "B"
        assert unresolved[0].field == "x"

    def test_missing_root(self):
        aggregate = {"name": "Rootless", "entities": [simple_entity("Thing")]}

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(aggregate)

        assert error_codes(exc_info) == ["invalid_aggregate_root"]

    def test_id_must_be_first(self):
        entity = simple_entity("Thing", isRoot=True)
        entity["fields"].reverse()

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse({"name": "Thing", "entities": [entity]})

        assert error_codes(exc_info) == ["missing_identity_field"]

    def test_id_type_without_strategy(self):
        entity = simple_entity("Thing", isRoot=True, fields=[{"name": "id", "type": "Boolean"}])

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse({"name": "Thing", "entities": [entity]})

        error = exc_info.value.errors[0]
        assert error.diagnostic_code == DiagnosticCode.MISSING_IDENTITY_FIELD
        assert error.field == "id"

    def test_duplicate_type_names(self):
        aggregate = order_aggregate([order_entity(), order_item_entity(), simple_entity("Address")])

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(aggregate)

        assert error_codes(exc_info) == ["duplicate_name"]

    def test_duplicate_member_names(self):
        entity = simple_entity("Thing", isRoot=True)
        entity["fields"].append({"name": "label", "type": "String"})

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse({"name": "Thing", "entities": [entity]})

        error = exc_info.value.errors[0]
        assert error.diagnostic_code == DiagnosticCode.DUPLICATE_NAME
        assert error.field == "label"

    def test_value_object_cannot_embed_itself(self):
        aggregate = order_aggregate(valueObjects=[
            {"name": "Address", "fields": [{"name": "parent", "type": "Address"}]},
        ])

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(aggregate)

        assert error_codes(exc_info) == ["unresolved_field_type"]


class TestValueObjectMethods(TestCase):
    """Test cases for methods declared on value objects"""

    def parse_money(self):
        aggregate = parse(order_aggregate(valueObjects=[address_value_object(), money_value_object()]))
        return next(vo for vo in aggregate.value_objects if vo.name == "Money")

    def test_methods_are_kept(self):
        money = self.parse_money()

        assert [m.name for m in money.methods] == ["add", "isDueBy", "audit"]

    def test_method_may_use_its_own_value_object(self):
        add = self.parse_money().methods[0]

        assert add.return_type == "Money"
        assert add.return_classification.category == TypeCategory.VALUE_OBJECT
        assert [(p.name, p.python_type) for p in add.parameters] == [("other", "Money")]
        assert add.body == "return new Money(amount.add(other.amount), currency);"

    def test_parameter_types_are_classified(self):
        is_due_by = self.parse_money().methods[1]

        assert is_due_by.return_type == "bool"
        assert is_due_by.parameters[0].classification.category == TypeCategory.TEMPORAL
        assert is_due_by.parameters[0].python_type == "date"
        assert is_due_by.body == ""

    def test_void_method_returns_none(self):
        audit = self.parse_money().methods[2]

        assert audit.return_type == "None"
        assert audit.return_classification is None
        assert audit.parameters == []

    def test_unknown_parameter_type_is_an_error(self):
        money = money_value_object()
        money["methods"] = [
            {"name": "convert", "returnType": "Money", "parameters": [{"name": "rate", "type": "ExchangeRate"}]},
        ]

        with pytest.raises(AggregateResolutionError) as exc_info:
            parse(order_aggregate(valueObjects=[address_value_object(), money]))

        assert error_codes(exc_info) == ["unresolved_field_type"]
        assert exc_info.value.errors[0].field == "convert.rate"

    def test_to_dict_lists_methods(self):
        data = self.parse_money().to_dict()

        assert [m["name"] for m in data["methods"]] == ["add", "isDueBy", "audit"]
        assert data["methods"][1]["parameters"][0]["python_type"] == "date"


class TestAuditFields(TestCase):
    """Test cases for audit field injection"""

    def audit_names(self, entity):
        return [f.name for f in entity.fields if f.is_audit]

    def test_no_audit_by_default(self):
        aggregate = parse(order_aggregate())

        assert self.audit_names(aggregate.root_entity) == []

    def test_aggregate_audit_flag(self):
        aggregate = parse(order_aggregate(audit=True))

        assert self.audit_names(aggregate.root_entity) == ["createdAt", "updatedAt"]
        assert self.audit_names(aggregate.get_entity("OrderItem")) == ["createdAt", "updatedAt"]

    def test_audit_with_user_tracking(self):
        root = order_entity(audit={"enabled": True, "trackUser": True})
        order = parse(order_aggregate([root, order_item_entity()])).root_entity

        assert self.audit_names(order) == ["createdAt", "updatedAt", "createdBy", "updatedBy"]
        created_at = order.get_field("createdAt")
        assert created_at.read_only is True
        assert created_at.python_type == "datetime"
        assert order.get_field("createdBy").python_type == "str"

    def test_explicit_audit_overrides_aggregate(self):
        root = order_entity(audit={"enabled": False})
        order = parse(order_aggregate([root, order_item_entity()], audit=True)).root_entity

        assert self.audit_names(order) == []

    def test_legacy_auditable_flag(self):
        root = order_entity(auditable=True)

        with self.assertLogs("domain_scaffold.domain.schema_parser", level="WARNING") as logs:
            order = parse(order_aggregate([root, order_item_entity()])).root_entity

        assert self.audit_names(order) == ["createdAt", "updatedAt"]
        assert "deprecated" in logs.output[0]
