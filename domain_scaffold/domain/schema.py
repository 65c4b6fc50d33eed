"""
Pydantic models describing the raw domain specification document.

These models only check the *shape* of the document (types, required keys,
allowed literals). Structural rules that need the whole aggregate, such as
identity fields, unique names or relationship targets, are checked by the
schema parser so that every problem of an aggregate is reported at once.
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
    model_validator,
)

from ..exceptions import SpecificationError


logger = logging.getLogger(__name__)


class _SpecModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ValidationDefinition(_SpecModel):
    """A validation descriptor such as ``{type: Size, min: 1, max: 50}``."""

    type: str = Field(..., min_length=1)
    message: Optional[str] = None
    value: Optional[Any] = None
    min: Optional[Any] = None
    max: Optional[Any] = None
    regexp: Optional[str] = None
    integer: Optional[int] = None
    fraction: Optional[int] = None
    inclusive: Optional[bool] = None


class FieldDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    annotations: List[str] = Field(default_factory=list)
    enum_values: Optional[List[str]] = Field(default=None, alias="enumValues")
    read_only: StrictBool = Field(default=False, alias="readOnly")
    hidden: StrictBool = False
    validations: List[Union[str, ValidationDefinition]] = Field(default_factory=list)


class RelationshipDefinition(_SpecModel):
    type: Literal["OneToMany", "ManyToOne", "OneToOne", "ManyToMany"]
    target: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("target", "targetEntity")
    )
    mapped_by: Optional[str] = Field(default=None, alias="mappedBy")
    join_column: Optional[str] = Field(default=None, alias="joinColumn")
    field_name: Optional[str] = Field(default=None, alias="fieldName")
    cascade: List[str] = Field(default_factory=list)
    fetch: Literal["LAZY", "EAGER"] = "LAZY"

    @field_validator("cascade", mode="before")
    @classmethod
    def coerce_cascade(cls, v: Any) -> Any:
        """Accept a single cascade type as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("fetch", mode="before")
    @classmethod
    def normalize_fetch(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class AuditDefinition(_SpecModel):
    enabled: StrictBool = False
    track_user: StrictBool = Field(default=False, alias="trackUser")

    @model_validator(mode="after")
    def check_track_user(self) -> "AuditDefinition":
        if self.track_user and not self.enabled:
            raise ValueError("audit.trackUser requires audit.enabled to be true")
        return self


class EntityDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    is_root: StrictBool = Field(default=False, alias="isRoot")
    table_name: Optional[str] = Field(default=None, alias="tableName")
    field_definitions: List[FieldDefinition] = Field(
        default_factory=list, validation_alias=AliasChoices("fields", "properties")
    )
    relationships: List[RelationshipDefinition] = Field(default_factory=list)
    auditable: Optional[StrictBool] = None
    audit: Optional[AuditDefinition] = None


class ParameterDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class MethodDefinition(_SpecModel):
    """A behaviour method declared on a value object."""

    name: str = Field(..., min_length=1)
    return_type: Optional[str] = Field(default=None, alias="returnType")
    parameters: List[ParameterDefinition] = Field(default_factory=list)
    body: str = ""

    @field_validator("body", mode="before")
    @classmethod
    def strip_body(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class ValueObjectDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    field_definitions: List[FieldDefinition] = Field(
        default_factory=list, validation_alias=AliasChoices("fields", "properties")
    )
    methods: List[MethodDefinition] = Field(default_factory=list)


class TransitionDefinition(_SpecModel):
    sources: List[str] = Field(..., validation_alias=AliasChoices("from", "sources"))
    to: str = Field(..., min_length=1)
    method: Optional[str] = None

    @field_validator("sources", mode="before")
    @classmethod
    def coerce_sources(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


class EnumDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    values: List[str] = Field(..., min_length=1)
    transitions: List[TransitionDefinition] = Field(default_factory=list)
    initial_value: Optional[str] = Field(default=None, alias="initialValue")


class AggregateDefinition(_SpecModel):
    name: str = Field(..., min_length=1)
    table_name: Optional[str] = Field(default=None, alias="tableName")
    audit: StrictBool = False
    entities: List[EntityDefinition] = Field(default_factory=list)
    value_objects: List[ValueObjectDefinition] = Field(
        default_factory=list, alias="valueObjects"
    )
    enums: List[EnumDefinition] = Field(default_factory=list)


class DomainDocument(_SpecModel):
    """The whole specification of one module."""

    module: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("module", "moduleName")
    )
    aggregates: List[AggregateDefinition] = Field(...)

    @field_validator("aggregates", mode="before")
    @classmethod
    def check_aggregates_list(cls, v: Any) -> Any:
        if not isinstance(v, list):
            raise TypeError("'aggregates' must be a list")
        return v


def _format_error(error: Dict[str, Any]) -> str:
    loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
    loc_str = " -> ".join(loc_parts) if loc_parts else "document"
    return f"{loc_str}: {error.get('msg', 'Unknown validation error')}"


def parse_domain_document(raw: Dict[str, Any], source: str = None) -> DomainDocument:
    """
    Validate a raw (already parsed) specification against the document schema.

    Raises:
        SpecificationError: with one entry per pydantic error location
    """
    if not isinstance(raw, dict):
        raise SpecificationError(
            "The domain specification must be a mapping with an 'aggregates' list",
            spec_file=source,
        )
    try:
        document = DomainDocument.model_validate(raw)
    except ValidationError as e:
        errors = [_format_error(error) for error in e.errors()]
        logger.debug(f"Specification shape validation failed with {len(errors)} error(s)")
        raise SpecificationError(
            "The domain specification has an invalid structure",
            spec_file=source,
            errors=errors,
        ) from e
    logger.debug(f"Specification parsed: {len(document.aggregates)} aggregate(s)")
    return document
