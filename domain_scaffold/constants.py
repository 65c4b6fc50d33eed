"""
Centralized constants for Domain Scaffold.

This module contains the type vocabulary of the domain specification format,
default configuration values and the naming conventions shared by the
resolver and the renderer.
"""

from typing import Dict, FrozenSet, List


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    OUTPUT_DIR = "./generated_domain"
    PACKAGE_NAME = ""
    SPEC_FILE = "domain.yaml"

    WARNINGS_AS_ERRORS = False
    FORMAT_CODE = True
    TEMPLATES = ["entity", "value_object", "enum", "dtos"]


# Hard ceiling for nested relationship enrichment
MAX_DEPTH = 5


# =============================================================================
# TYPE VOCABULARY
# =============================================================================

class TypeKeywords:
    """Primitive type keywords accepted in field declarations."""

    SCALAR: FrozenSet[str] = frozenset({
        "String", "Integer", "Long", "Double", "Float", "Boolean", "UUID",
    })
    TEMPORAL: FrozenSet[str] = frozenset({
        "LocalDate", "LocalDateTime", "LocalTime", "Instant",
    })
    DECIMAL: FrozenSet[str] = frozenset({"BigDecimal"})

    COLLECTION_CONTAINER = "List"

    # return types of value-object methods that return nothing
    VOID: FrozenSet[str] = frozenset({"void", "Void", "None"})

    STRING_IDENTITY: FrozenSet[str] = frozenset({"String", "UUID"})
    INTEGER_IDENTITY: FrozenSet[str] = frozenset({"Integer", "Long"})


# Python annotation used by the templates for each primitive keyword
PYTHON_TYPE_MAP: Dict[str, str] = {
    "String": "str",
    "Integer": "int",
    "Long": "int",
    "Double": "float",
    "Float": "float",
    "Boolean": "bool",
    "UUID": "UUID",
    "LocalDate": "date",
    "LocalDateTime": "datetime",
    "LocalTime": "time",
    "Instant": "datetime",
    "BigDecimal": "Decimal",
}

# Import reference required by a primitive keyword (if any)
TYPE_IMPORT_MAP: Dict[str, str] = {
    "UUID": "uuid.UUID",
    "LocalDate": "datetime.date",
    "LocalDateTime": "datetime.datetime",
    "LocalTime": "datetime.time",
    "Instant": "datetime.datetime",
    "BigDecimal": "decimal.Decimal",
}

COLLECTION_IMPORT = "typing.List"


# =============================================================================
# FIELD NAMES
# =============================================================================

class FieldNames:
    """Field names with special meaning in an entity."""

    IDENTITY = "id"

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    CREATED_BY = "createdBy"
    UPDATED_BY = "updatedBy"

    AUDIT_TIMESTAMPS: List[str] = [CREATED_AT, UPDATED_AT]
    AUDIT_USERS: List[str] = [CREATED_BY, UPDATED_BY]
    AUDIT_FIELDS: FrozenSet[str] = frozenset(AUDIT_TIMESTAMPS + AUDIT_USERS)

    AUDIT_TIMESTAMP_TYPE = "LocalDateTime"
    AUDIT_USER_TYPE = "String"


# =============================================================================
# RELATIONSHIP DEFAULTS
# =============================================================================

class RelationshipDefaults:
    """Default values applied while resolving relationships."""

    FETCH = "LAZY"
    JOIN_COLUMN_SUFFIX = "_id"


# =============================================================================
# GENERATED MODULE LAYOUT
# =============================================================================

class ModuleLayout:
    """Dotted sub-packages of a generated module, relative to its base package."""

    ENTITIES = "domain.models"
    VALUE_OBJECTS = "domain.value_objects"
    ENUMS = "domain.enums"
    DTOS = "application.dtos"


# Maps template ids to (template file, layout sub-package)
TEMPLATE_REGISTRY: Dict[str, Dict[str, str]] = {
    "entity": {"file": "entity.py.j2", "package": ModuleLayout.ENTITIES},
    "value_object": {"file": "value_object.py.j2", "package": ModuleLayout.VALUE_OBJECTS},
    "enum": {"file": "enum.py.j2", "package": ModuleLayout.ENUMS},
    "dtos": {"file": "dtos.py.j2", "package": ModuleLayout.DTOS},
}
