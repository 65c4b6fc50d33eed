"""
Reading domain specifications from disk.

The resolver itself never performs I/O; this module turns a YAML file into
the validated ``DomainDocument`` it consumes.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .domain.schema import DomainDocument, parse_domain_document
from .exceptions import SpecificationError


logger = logging.getLogger(__name__)


def load_raw_specification(spec_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML specification without validating its shape.

    Raises:
        SpecificationError: if the file is missing or is not valid YAML
    """
    path = Path(spec_path)
    if not path.is_file():
        raise SpecificationError(
            f"Domain specification not found: {path}",
            spec_file=str(path),
            suggestions=["Pass the specification with -s/--spec or set 'spec_path' in the config file"],
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SpecificationError(f"Error parsing YAML file {path}: {e}", spec_file=str(path)) from e

    logger.debug(f"Loaded specification from {path}")
    return raw


def load_specification(spec_path: Union[str, Path]) -> DomainDocument:
    """Read and shape-validate a YAML specification."""
    raw = load_raw_specification(spec_path)
    return parse_domain_document(raw, source=str(spec_path))
