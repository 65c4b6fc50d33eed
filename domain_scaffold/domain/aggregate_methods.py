"""
Behaviour methods of an aggregate root.

The root is the only entry point into its aggregate, so child entities are
created, added and removed through methods on the root rather than through
their own repositories.
"""

import logging
from typing import List, Optional

from .models import (
    AggregateMethod,
    AggregateSpec,
    EntitySpec,
    FieldSpec,
    MethodParameter,
    RelationshipKind,
    RelationshipSpec,
    TypeCategory,
    TypeClassification,
)
from .naming import singularize, to_camel_case, to_pascal_case


logger = logging.getLogger(__name__)


def _field_parameter(field_spec: FieldSpec, prefix: str = None) -> MethodParameter:
    name = field_spec.name
    if prefix:
        name = to_camel_case(prefix) + to_pascal_case(field_spec.name)
    return MethodParameter(
        name=name,
        type_name=field_spec.classification.declared,
        python_type=field_spec.python_type,
        classification=field_spec.classification,
    )


def _entity_parameter(name: str, entity_name: str) -> MethodParameter:
    return MethodParameter(
        name=name,
        type_name=entity_name,
        python_type=entity_name,
        classification=TypeClassification(TypeCategory.ENTITY, entity_name),
    )


class AggregateMethodBuilder:
    """Builds the add/remove/get/assign methods of an aggregate root."""

    def build(self, aggregate: AggregateSpec) -> List[AggregateMethod]:
        root = aggregate.root_entity
        methods: List[AggregateMethod] = []

        for rel in root.forward_relationships:
            if rel.kind == RelationshipKind.ONE_TO_MANY:
                methods.extend(self._collection_methods(aggregate, rel))

        for rel in root.forward_relationships:
            if rel.kind == RelationshipKind.ONE_TO_ONE and rel.mapped_by:
                method = self._assign_method(aggregate, rel)
                if method is not None:
                    methods.append(method)

        logger.debug(f"Built {len(methods)} aggregate method(s) for '{root.name}'")
        return methods

    def _collection_methods(
        self, aggregate: AggregateSpec, rel: RelationshipSpec
    ) -> List[AggregateMethod]:
        singular = to_pascal_case(singularize(rel.field_name))
        child = aggregate.get_entity(rel.target)
        methods = []

        parameters = [_field_parameter(f) for f in child.command_fields]
        assignments = []
        for oto in child.forward_relationships:
            if oto.kind != RelationshipKind.ONE_TO_ONE:
                continue
            oto_entity = aggregate.get_entity(oto.target)
            group = [_field_parameter(f, prefix=oto.field_name) for f in oto_entity.command_fields]
            parameters.extend(group)
            assignments.append({
                'entity': oto.target,
                'field_name': oto.field_name,
                'assign_method': f"assign{to_pascal_case(oto.field_name)}",
                'mapped_by': oto.mapped_by,
                'parameters': [
                    {'name': param.name, 'field': f.name}
                    for param, f in zip(group, oto_entity.command_fields)
                ],
            })

        methods.append(AggregateMethod(
            name=f"add{singular}",
            kind="add",
            field_name=rel.field_name,
            target=rel.target,
            parameters=parameters,
            is_factory=True,
            mapped_by=rel.mapped_by,
            assignments=assignments,
        ))
        methods.append(AggregateMethod(
            name=f"add{singular}",
            kind="add",
            field_name=rel.field_name,
            target=rel.target,
            parameters=[_entity_parameter(to_camel_case(singular), rel.target)],
            is_overload=True,
            mapped_by=rel.mapped_by,
        ))

        identity = child.identity_field
        methods.append(AggregateMethod(
            name=f"remove{singular}",
            kind="remove",
            field_name=rel.field_name,
            target=rel.target,
            parameters=[_field_parameter(identity)],
        ))
        methods.append(AggregateMethod(
            name=f"get{to_pascal_case(rel.field_name)}",
            kind="get",
            field_name=rel.field_name,
            target=rel.target,
            return_type=rel.python_type,
        ))
        return methods

    def _assign_method(
        self, aggregate: AggregateSpec, rel: RelationshipSpec
    ) -> Optional[AggregateMethod]:
        target: EntitySpec = aggregate.get_entity(rel.target)
        if target is None:
            return None
        return AggregateMethod(
            name=f"assign{to_pascal_case(rel.field_name)}",
            kind="assign",
            field_name=rel.field_name,
            target=rel.target,
            parameters=[_field_parameter(f) for f in target.command_fields],
            is_factory=True,
            is_overload=True,
            mapped_by=rel.mapped_by,
        )
