"""
Type classification for declared field types.

A declared type string is matched, in order, against the aggregate's value
objects, the module-wide enum registry, the aggregate's entities (when
given), the primitive keywords and finally the ``List<X>`` collection form.
"""

import logging
import re
from typing import Iterable, Mapping, Optional

from ..constants import TypeKeywords
from ..exceptions import UnresolvedFieldTypeError
from .models import TypeCategory, TypeClassification
from .naming import to_pascal_case


logger = logging.getLogger(__name__)

_COLLECTION_PATTERN = re.compile(
    rf"^\s*{TypeKeywords.COLLECTION_CONTAINER}\s*<\s*(?P<inner>.+?)\s*>\s*$"
)


class TypeResolver:
    """
    Classifies declared type strings for one aggregate.

    Value objects are aggregate-scoped, enums are module-scoped; both are
    passed in explicitly.
    """

    def __init__(
        self,
        value_object_names: Iterable[str] = (),
        enum_registry: Optional[Mapping] = None,
        entity_names: Iterable[str] = (),
    ):
        self.value_object_names = frozenset(value_object_names)
        self.enum_names = frozenset(enum_registry or ())
        self.entity_names = frozenset(entity_names)

    def classify(self, declared_type: str) -> Optional[TypeClassification]:
        """Classify a type string, returning None when nothing matches."""
        if not isinstance(declared_type, str) or not declared_type.strip():
            return None
        declared_type = declared_type.strip()

        candidate = to_pascal_case(declared_type) if _is_plain_name(declared_type) else None

        # 1. value objects
        if candidate and candidate in self.value_object_names:
            return TypeClassification(TypeCategory.VALUE_OBJECT, candidate)

        # 2. enums
        if candidate and candidate in self.enum_names:
            return TypeClassification(TypeCategory.ENUM, candidate)

        # entity references (only when the caller allows them)
        if candidate and candidate in self.entity_names:
            return TypeClassification(TypeCategory.ENTITY, candidate)

        # 3. primitives
        if declared_type in TypeKeywords.SCALAR:
            return TypeClassification(TypeCategory.SCALAR, declared_type)
        if declared_type in TypeKeywords.TEMPORAL:
            return TypeClassification(TypeCategory.TEMPORAL, declared_type)
        if declared_type in TypeKeywords.DECIMAL:
            return TypeClassification(TypeCategory.DECIMAL, declared_type)

        # 4. collections
        match = _COLLECTION_PATTERN.match(declared_type)
        if match:
            element = self.classify(match.group("inner"))
            if element is None:
                return None
            return TypeClassification(
                TypeCategory.COLLECTION, TypeKeywords.COLLECTION_CONTAINER, element=element
            )

        return None

    def resolve(
        self,
        declared_type: str,
        aggregate: str = None,
        entity: str = None,
        field: str = None,
    ) -> TypeClassification:
        """Classify a type string or raise ``UnresolvedFieldTypeError``."""
        classification = self.classify(declared_type)
        if classification is None:
            logger.debug(f"Unresolved type '{declared_type}' for field '{field}' of '{entity}'")
            raise UnresolvedFieldTypeError(
                f"Field '{field}' has unresolved type '{declared_type}'",
                aggregate=aggregate,
                entity=entity,
                field=field,
            )
        return classification


def _is_plain_name(declared_type: str) -> bool:
    return re.fullmatch(r"[A-Za-z][A-Za-z0-9_\-]*", declared_type) is not None
