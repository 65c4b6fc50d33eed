"""
Relationship resolution domain logic for Domain Scaffold.

This module closes every aggregate's relationship graph under inversion:
each owning one-to-many or one-to-one edge that names a ``mappedBy`` field
gets exactly one back-reference on its target, either the one the author
declared or one synthesized here.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..constants import RelationshipDefaults
from ..diagnostics import Diagnostic, RelationshipConsistencyWarning
from .models import (
    AggregateSpec,
    EntitySpec,
    FetchType,
    RelationshipKind,
    RelationshipSide,
    RelationshipSpec,
)
from .naming import default_join_column


logger = logging.getLogger(__name__)

_INVERTIBLE_KINDS = (RelationshipKind.ONE_TO_MANY, RelationshipKind.ONE_TO_ONE)


class RelationshipResolver:
    """
    Infers missing inverse relationships for one aggregate.

    The aggregate is treated as a graph: entities are nodes keyed by name and
    relationships are directed edges tagged owning or inverse. Edges are
    processed root first, then secondary entities in declaration order; the
    order is only visible in the order of the diagnostics.
    """

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def resolve(self, aggregate: AggregateSpec) -> List[Diagnostic]:
        """
        Resolve all relationships of an aggregate in place.

        Args:
            aggregate: Parsed aggregate skeleton

        Returns:
            Diagnostics recorded while resolving this aggregate
        """
        self.diagnostics = []
        adjacency = self.build_adjacency(aggregate)
        entity_map = aggregate.entity_map

        for entity in aggregate.entities_in_resolution_order:
            # iterate over a snapshot, synthesis may append to this very list
            for relationship in list(adjacency[entity.name]):
                if not self._needs_inverse(relationship):
                    continue
                self._resolve_inverse(
                    aggregate.name, relationship, entity, entity_map[relationship.target]
                )

        synthesized = sum(
            1 for edges in adjacency.values() for rel in edges if rel.is_inverse
        )
        logger.debug(
            f"Resolved relationships of '{aggregate.name}': "
            f"{synthesized} inverse(s) synthesized, {len(self.diagnostics)} warning(s)"
        )
        return list(self.diagnostics)

    def build_adjacency(self, aggregate: AggregateSpec) -> Dict[str, List[RelationshipSpec]]:
        """
        Map each entity name to its outgoing edges.

        The lists are the entities' own relationship lists, so edges added
        through the map land on the entities.
        """
        return {entity.name: entity.relationships for entity in aggregate.entities}

    def _needs_inverse(self, relationship: RelationshipSpec) -> bool:
        return (
            relationship.kind in _INVERTIBLE_KINDS
            and relationship.mapped_by is not None
            and relationship.is_owning
            and not relationship.is_inverse
        )

    def _resolve_inverse(
        self,
        aggregate_name: str,
        owning: RelationshipSpec,
        owner: EntitySpec,
        target: EntitySpec,
    ) -> None:
        expected_join_column = owning.join_column or default_join_column(owning.mapped_by)

        if self._already_paired(owning, target):
            return

        claimed = {
            rel.mapped_by for rel in owner.relationships
            if rel is not owning and rel.target == target.name and self._needs_inverse(rel)
        }
        explicit = self.find_back_reference(owning, target, claimed)
        if explicit is not None:
            explicit.side = RelationshipSide.INVERSE
            if explicit.effective_join_column != expected_join_column:
                self._warn(
                    f"'{owning.owner}.{owning.field_name}' is mapped by '{target.name}.{owning.mapped_by}' "
                    f"with join column '{expected_join_column}', but '{target.name}.{explicit.field_name}' "
                    f"declares join column '{explicit.effective_join_column}'; keeping the explicit declaration",
                    aggregate_name, target.name, explicit.field_name,
                )
            if explicit.field_name != owning.mapped_by:
                self._warn(
                    f"'{owning.owner}.{owning.field_name}' declares mappedBy '{owning.mapped_by}' "
                    f"but the back-reference on '{target.name}' is named '{explicit.field_name}'",
                    aggregate_name, target.name, explicit.field_name,
                )
            logger.debug(
                f"Explicit back-reference {target.name}.{explicit.field_name} "
                f"pairs with {owning.owner}.{owning.field_name}"
            )
            return

        if self._is_name_taken(target, owning.mapped_by):
            self._warn(
                f"Cannot synthesize inverse of '{owning.owner}.{owning.field_name}': "
                f"'{target.name}' already uses '{owning.mapped_by}' for something else",
                aggregate_name, target.name, owning.mapped_by,
            )
            return

        inverse = self.synthesize_inverse(owning, expected_join_column)
        target.relationships.append(inverse)
        logger.debug(
            f"Synthesized {inverse.kind.value} {target.name}.{inverse.field_name} -> {inverse.target} "
            f"(join column {inverse.join_column})"
        )

    def find_back_reference(
        self,
        owning: RelationshipSpec,
        target: EntitySpec,
        claimed: Iterable[str] = (),
    ) -> Optional[RelationshipSpec]:
        """
        Find an authored back-reference for an owning edge.

        Candidates point back at the owner with the inverse kind, carry no
        ``mappedBy`` of their own and are not already paired. A candidate
        named after ``mappedBy`` is preferred. Otherwise the first candidate
        wins, skipping any named in ``claimed``: those belong to another
        owning edge between the same two entities.
        """
        inverse_kind = owning.kind.inverse
        candidates = [
            rel for rel in target.relationships
            if rel is not owning
            and rel.target == owning.owner
            and rel.kind == inverse_kind
            and rel.mapped_by is None
            and rel.is_owning
        ]
        if not candidates:
            return None
        for candidate in candidates:
            if candidate.field_name == owning.mapped_by:
                return candidate
        claimed = set(claimed)
        for candidate in candidates:
            if candidate.field_name not in claimed:
                return candidate
        return None

    def synthesize_inverse(
        self, owning: RelationshipSpec, join_column: str = None
    ) -> RelationshipSpec:
        """Build the navigation-only back-reference for an owning edge."""
        return RelationshipSpec(
            kind=owning.kind.inverse,
            owner=owning.target,
            target=owning.owner,
            field_name=owning.mapped_by,
            join_column=join_column or default_join_column(owning.mapped_by),
            cascade=[],
            fetch=FetchType(RelationshipDefaults.FETCH),
            is_inverse=True,
            side=RelationshipSide.INVERSE,
        )

    def _already_paired(self, owning: RelationshipSpec, target: EntitySpec) -> bool:
        return any(
            not rel.is_owning
            and rel.target == owning.owner
            and rel.kind == owning.kind.inverse
            and rel.field_name == owning.mapped_by
            for rel in target.relationships
        )

    def _is_name_taken(self, entity: EntitySpec, name: str) -> bool:
        return entity.get_relationship(name) is not None or entity.get_field(name) is not None

    def _warn(self, message: str, aggregate: str, entity: str, member: str) -> None:
        logger.warning(message)
        self.diagnostics.append(RelationshipConsistencyWarning(
            message, aggregate=aggregate, entity=entity, path=(entity, member)
        ))


def unpaired_relationships(aggregate: AggregateSpec) -> List[RelationshipSpec]:
    """
    Owning ``mappedBy`` edges that have no back-reference on their target.

    Empty for every successfully resolved aggregate unless a name clash
    prevented synthesis.
    """
    entity_map = aggregate.entity_map
    unpaired = []
    for entity in aggregate.entities:
        for rel in entity.relationships:
            if rel.kind not in _INVERTIBLE_KINDS or rel.mapped_by is None or not rel.is_owning:
                continue
            target = entity_map[rel.target]
            back = [
                other for other in target.inverse_relationships
                if other.target == rel.owner and other.kind == rel.kind.inverse
            ]
            if not back:
                unpaired.append(rel)
    return unpaired
