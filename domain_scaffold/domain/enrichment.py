"""
Nested relationship enrichment.

Expands an entity's one-to-many edges into the tree of nested payload shapes
used for nested create requests and nested responses. Traversal is bounded
by a path-local visited set and a hard depth ceiling, so it terminates on any
input, cyclic or not.
"""

import logging
from typing import Dict, List, Mapping, Tuple

from ..constants import MAX_DEPTH
from ..diagnostics import CycleDetected, Diagnostic, MaxDepthReached
from .models import AggregateSpec, EnrichedRelationship, EntitySpec, RelationshipKind


logger = logging.getLogger(__name__)


class NestedRelationshipEnricher:
    """
    Builds ``EnrichedRelationship`` trees by depth-first traversal.

    Only owning one-to-many edges are followed; synthesized and explicit
    back-references never are. ``max_depth`` may lower the ceiling but never
    raise it above ``MAX_DEPTH``.
    """

    def __init__(self, max_depth: int = MAX_DEPTH):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        if max_depth > MAX_DEPTH:
            logger.debug(f"max_depth {max_depth} capped at {MAX_DEPTH}")
        self.max_depth = min(max_depth, MAX_DEPTH)
        self.diagnostics: List[Diagnostic] = []
        self._aggregate_name = None

    def enrich(
        self, entity: EntitySpec, entities: Mapping[str, EntitySpec], aggregate_name: str = None
    ) -> List[EnrichedRelationship]:
        """
        Enrich one entity.

        Args:
            entity: Entity to start from (depth 0)
            entities: All entities of the aggregate, keyed by name
            aggregate_name: Used to attribute diagnostics

        Returns:
            One node per reachable one-to-many edge of ``entity``; empty when
            it has none. ``diagnostics`` holds only this call's findings.
        """
        self.diagnostics = []
        self._aggregate_name = aggregate_name
        return self._walk(entity, entities, 0, (entity.name,))

    def enrich_aggregate(self, aggregate: AggregateSpec) -> Dict[str, List[EnrichedRelationship]]:
        """Enrich every entity of an aggregate, root first."""
        entity_map = aggregate.entity_map
        result = {}
        collected: List[Diagnostic] = []
        for entity in aggregate.entities_in_resolution_order:
            result[entity.name] = self.enrich(entity, entity_map, aggregate.name)
            collected.extend(self.diagnostics)
        self.diagnostics = collected
        return result

    def _walk(
        self,
        entity: EntitySpec,
        entities: Mapping[str, EntitySpec],
        depth: int,
        path: Tuple[str, ...],
    ) -> List[EnrichedRelationship]:
        nodes = []
        for rel in entity.forward_relationships:
            if rel.kind != RelationshipKind.ONE_TO_MANY:
                continue
            target = entities.get(rel.target)
            if target is None:
                continue

            branch = path + (rel.target,)
            if rel.target in path:
                self._record(CycleDetected(
                    f"Cycle {' -> '.join(branch)} closed at '{entity.name}.{rel.field_name}'",
                    aggregate=self._aggregate_name, entity=path[0], path=branch,
                ))
                continue
            if depth >= self.max_depth:
                self._record(MaxDepthReached(
                    f"Nesting stopped at depth {self.max_depth} on '{entity.name}.{rel.field_name}'",
                    aggregate=self._aggregate_name, entity=path[0], path=branch,
                ))
                continue

            node = EnrichedRelationship(
                target=rel.target,
                field_name=rel.field_name,
                depth=depth,
                fields=list(target.projectable_fields),
            )
            node.children = self._walk(target, entities, depth + 1, branch)
            nodes.append(node)
        return nodes

    def _record(self, diagnostic: Diagnostic) -> None:
        logger.warning(diagnostic.message)
        self.diagnostics.append(diagnostic)
