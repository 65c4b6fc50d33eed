"""
Tests for declared type classification.
"""

from unittest import TestCase

import pytest

from domain_scaffold.domain.models import EnumRegistry, EnumSpec, TypeCategory
from domain_scaffold.domain.type_resolver import TypeResolver
from domain_scaffold.exceptions import UnresolvedFieldTypeError


def make_resolver(**kwargs):
    defaults = {
        "value_object_names": ["Money", "Address"],
        "enum_registry": EnumRegistry([EnumSpec(name="OrderStatus", values=("PENDING", "SHIPPED"))]),
    }
    defaults.update(kwargs)
    return TypeResolver(**defaults)


class TestClassify(TestCase):
    """Test cases for TypeResolver.classify"""

    def setUp(self):
        self.resolver = make_resolver()

    def test_value_object(self):
        result = self.resolver.classify("Money")
        assert result.category == TypeCategory.VALUE_OBJECT
        assert result.type_name == "Money"

    def test_value_object_name_is_normalized(self):
        assert self.resolver.classify("money").category == TypeCategory.VALUE_OBJECT

    def test_enum(self):
        result = self.resolver.classify("OrderStatus")
        assert result.category == TypeCategory.ENUM

    def test_primitives(self):
        assert self.resolver.classify("String").category == TypeCategory.SCALAR
        assert self.resolver.classify("UUID").category == TypeCategory.SCALAR
        assert self.resolver.classify("LocalDateTime").category == TypeCategory.TEMPORAL
        assert self.resolver.classify("BigDecimal").category == TypeCategory.DECIMAL

    def test_collection(self):
        result = self.resolver.classify("List<Money>")
        assert result.category == TypeCategory.COLLECTION
        assert result.element.category == TypeCategory.VALUE_OBJECT
        assert result.python_type == "List[Money]"
        assert result.declared == "List<Money>"

    def test_nested_collection(self):
        result = self.resolver.classify("List<List<String>>")
        assert result.element.element.category == TypeCategory.SCALAR
        assert result.base_type_name == "String"
        assert result.python_type == "List[List[str]]"

    def test_collection_of_unknown_is_unresolved(self):
        assert self.resolver.classify("List<Nope>") is None

    def test_unknown(self):
        assert self.resolver.classify("Nope") is None
        assert self.resolver.classify("") is None

    def test_value_object_wins_over_enum(self):
        resolver = make_resolver(value_object_names=["OrderStatus"])
        assert resolver.classify("OrderStatus").category == TypeCategory.VALUE_OBJECT

    def test_entities_only_when_given(self):
        assert self.resolver.classify("OrderItem") is None
        resolver = make_resolver(entity_names=["OrderItem"])
        assert resolver.classify("OrderItem").category == TypeCategory.ENTITY

    def test_python_types(self):
        assert self.resolver.classify("LocalDate").python_type == "date"
        assert self.resolver.classify("BigDecimal").python_type == "Decimal"
        assert self.resolver.classify("Long").python_type == "int"


class TestResolve(TestCase):
    """Test cases for TypeResolver.resolve"""

    def test_unresolved_raises_with_location(self):
        resolver = make_resolver()
        with pytest.raises(UnresolvedFieldTypeError) as exc_info:
            resolver.resolve("Nope", aggregate="Order", entity="Order", field="thing")

        error = exc_info.value
        assert error.aggregate == "Order"
        assert error.entity == "Order"
        assert error.field == "thing"
        assert "Nope" in error.message
