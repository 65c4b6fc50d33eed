from argparse import Namespace
import logging
import keyword
from typing import List, Optional, Dict, Any
import yaml
from pathlib import Path

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
    ConfigDict,
)

from .constants import DefaultConfig, MAX_DEPTH, TEMPLATE_REGISTRY
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def is_valid_python_identifier(name: str) -> bool:
    """Check if a string is a valid Python identifier and not a keyword."""
    return name.isidentifier() and not keyword.iskeyword(name)


def is_valid_package_name(name: str) -> bool:
    """An empty string or a dotted path of Python identifiers."""
    if name == "":
        return True
    return all(is_valid_python_identifier(part) for part in name.split("."))


class ToolConfigSchema(BaseModel):
    """Pydantic schema defining the expected structure and types for the configuration."""

    spec_path: str = Field(
        DefaultConfig.SPEC_FILE,
        min_length=1,
        description="Path to the YAML domain specification.",
    )
    output_dir: str = Field(
        DefaultConfig.OUTPUT_DIR,
        min_length=1,
        description="Directory for generated sources.",
    )
    package_name: str = Field(
        DefaultConfig.PACKAGE_NAME,
        description="Dotted package prefix of generated imports (may be empty).",
    )
    module_name: Optional[str] = Field(
        default=None,
        description="Overrides the module name declared in the specification.",
    )
    max_depth: int = Field(
        default=MAX_DEPTH,
        ge=1,
        le=MAX_DEPTH,
        description="Depth of nested relationship payloads.",
    )
    warnings_as_errors: bool = Field(
        default=DefaultConfig.WARNINGS_AS_ERRORS,
        description="Fail generation when the resolver reports warnings.",
    )
    format_code: bool = Field(
        default=DefaultConfig.FORMAT_CODE,
        description="Format generated Python sources with black.",
    )
    templates: List[str] = Field(
        default_factory=lambda: list(DefaultConfig.TEMPLATES),
        description="Templates to render for every aggregate.",
    )

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access."""
        return getattr(self, key)

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    @field_validator("package_name")
    @classmethod
    def check_package_name(cls, v: str) -> str:
        v = v.strip().strip(".")
        if not is_valid_package_name(v):
            raise ValueError(
                f"'{v}' is not a valid dotted Python package name."
            )
        return v

    @field_validator("templates", mode="before")
    @classmethod
    def check_templates_list(cls, v: Any) -> Any:
        """Ensure templates is a list of known template ids."""
        if isinstance(v, str):
            v = [item.strip() for item in v.split(",") if item.strip()]
        if not isinstance(v, list):
            raise TypeError("templates must be a list.")
        unknown = [item for item in v if item not in TEMPLATE_REGISTRY]
        if unknown:
            raise ValueError(
                f"Unknown template(s): {', '.join(map(str, unknown))}. "
                f"Available: {', '.join(TEMPLATE_REGISTRY)}"
            )
        return v

    @model_validator(mode="after")
    def check_templates_not_empty(self) -> "ToolConfigSchema":
        if not self.templates:
            logger.warning("No templates selected; the resolved model will not be rendered.")
        return self

    model_config = ConfigDict(
        extra="ignore",  # Allow and ignore extra fields from input dict
    )


def _format_validation_errors(e: ValidationError) -> List[str]:
    messages = []
    for error in e.errors():
        loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
        loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
        messages.append(f"{loc_str}: {error.get('msg', 'Unknown validation error')}")
    return messages


def validate_and_parse_config(config_dict: Dict[str, Any], config_file: str = None) -> ToolConfigSchema:
    """
    Validates a raw configuration dictionary against the ToolConfigSchema.

    Raises:
        ConfigurationError: listing every invalid setting
    """
    try:
        validated_config = ToolConfigSchema.model_validate(config_dict)
        logger.debug(
            "Configuration dictionary parsed and validated successfully against schema."
        )
        return validated_config
    except ValidationError as e:
        logger.critical(
            "Configuration validation failed! Please check your config file or arguments."
        )
        raise ConfigurationError(
            "Invalid configuration",
            config_file=config_file,
            suggestions=_format_validation_errors(e),
        ) from e


def load_config(config_path: Optional[str], cli_args: Optional[Namespace] = None) -> ToolConfigSchema:
    """
    Loads configuration from YAML file, merges with CLI arguments,
    validates the result, and returns a validated Pydantic model instance.

    CLI arguments win over the file; only arguments that were actually given
    (not None) override.
    """
    raw_config: Dict[str, Any] = {}

    # 1. Load from YAML file if path is provided
    if config_path:
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ConfigurationError(f"Config file not found at {config_path}", config_file=config_path)
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML file {config_path}: {e}", config_file=config_path) from e
        if yaml_config and isinstance(yaml_config, dict):
            raw_config.update(yaml_config)
            logger.debug(f"Loaded configuration from {config_path}")
        elif yaml_config:
            logger.warning(
                f"Content in config file {config_path} is not a dictionary. Ignoring file content."
            )

    # 2. Override with CLI arguments (only those explicitly provided)
    cli_dict = vars(cli_args) if cli_args is not None else {}
    overridden_keys = set()
    for key, value in cli_dict.items():
        if value is not None and key in ToolConfigSchema.model_fields:
            raw_config[key] = value
            overridden_keys.add(key)
    if overridden_keys:
        logger.debug(f"Overridden config keys from CLI arguments: {sorted(overridden_keys)}")

    validated_config: ToolConfigSchema = validate_and_parse_config(raw_config, config_path)

    validated_config.output_dir = str(Path(validated_config.output_dir).resolve())

    logger.debug("Configuration loaded and validated successfully.")
    return validated_config
