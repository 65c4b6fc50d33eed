"""
Import computation for generated sources.

Every import is a dotted reference ending in the imported name, e.g.
``datetime.date`` or ``shop.domain.models.order_item.OrderItem``. Lists are
de-duplicated and sorted lexicographically so re-runs produce identical
output.
"""

import logging
from typing import Iterable, List, Set

from ..constants import COLLECTION_IMPORT, ModuleLayout, TYPE_IMPORT_MAP
from .models import (
    AggregateMethod,
    AggregateSpec,
    EntitySpec,
    FieldSpec,
    TypeCategory,
    TypeClassification,
    ValueObjectSpec,
)
from .naming import NamingConventions


logger = logging.getLogger(__name__)

_LAYOUT_BY_CATEGORY = {
    TypeCategory.ENTITY: ModuleLayout.ENTITIES,
    TypeCategory.VALUE_OBJECT: ModuleLayout.VALUE_OBJECTS,
    TypeCategory.ENUM: ModuleLayout.ENUMS,
}


class ImportResolver:
    """
    Computes the minimal set of type references for entities, value objects
    and aggregate methods.
    """

    def __init__(self, base_package: str = ""):
        self.base_package = base_package.strip(".") if base_package else ""

    def reference(self, category: TypeCategory, type_name: str) -> str:
        """Dotted reference of a generated type."""
        parts = [
            self.base_package,
            _LAYOUT_BY_CATEGORY[category],
            NamingConventions.module_name(type_name),
            type_name,
        ]
        return ".".join(part for part in parts if part)

    def classification_imports(self, classification: TypeClassification) -> Set[str]:
        if classification.element is not None:
            return {COLLECTION_IMPORT} | self.classification_imports(classification.element)
        if classification.category in _LAYOUT_BY_CATEGORY:
            return {self.reference(classification.category, classification.type_name)}
        reference = TYPE_IMPORT_MAP.get(classification.type_name)
        return {reference} if reference else set()

    def field_imports(self, fields: Iterable[FieldSpec]) -> Set[str]:
        result: Set[str] = set()
        for field_spec in fields:
            result |= self.classification_imports(field_spec.classification)
        return result

    def entity_imports(self, entity: EntitySpec) -> List[str]:
        """
        Imports needed by one entity.

        Inverse relationships only navigate back to an entity that already
        references this one, so they contribute no entity import.
        """
        result = self.field_imports(entity.fields)
        for rel in entity.relationships:
            if rel.is_collection:
                result.add(COLLECTION_IMPORT)
            if rel.is_owning and rel.target != entity.name:
                result.add(self.reference(TypeCategory.ENTITY, rel.target))
        return sorted(result)

    def value_object_imports(self, value_object: ValueObjectSpec) -> List[str]:
        """Imports of a value object's fields and method signatures, minus itself."""
        result = self.field_imports(value_object.fields)
        for method in value_object.methods:
            for param in method.parameters:
                result |= self.classification_imports(param.classification)
            if method.return_classification is not None:
                result |= self.classification_imports(method.return_classification)
        own = self.reference(TypeCategory.VALUE_OBJECT, value_object.name)
        return sorted(reference for reference in result if reference != own)

    def method_imports(self, methods: Iterable[AggregateMethod], owner: str = None) -> List[str]:
        result: Set[str] = set()
        for method in methods:
            for param in method.parameters:
                if param.classification is None:
                    continue
                if param.classification.category == TypeCategory.ENTITY and param.type_name == owner:
                    continue
                result |= self.classification_imports(param.classification)
            if method.is_factory and method.target != owner:
                result.add(self.reference(TypeCategory.ENTITY, method.target))
            for assignment in method.assignments:
                if assignment["entity"] != owner:
                    result.add(self.reference(TypeCategory.ENTITY, assignment["entity"]))
            if method.return_type.startswith("List["):
                result.add(COLLECTION_IMPORT)
        return sorted(result)

    def resolve(self, aggregate: AggregateSpec, methods: Iterable[AggregateMethod] = ()) -> None:
        """Set the import lists of every entity and value object in place."""
        methods = list(methods)
        root_name = aggregate.root_entity.name
        for entity in aggregate.entities:
            imports = set(self.entity_imports(entity))
            if entity.name == root_name:
                imports |= set(self.method_imports(methods, owner=root_name))
            entity.imports = sorted(imports)
            logger.debug(f"{entity.name}: {len(entity.imports)} import(s)")
        for value_object in aggregate.value_objects:
            value_object.imports = self.value_object_imports(value_object)
