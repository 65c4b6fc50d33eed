import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
    ext as jinja2_extensions,
)

from .codegen_utils import write_source_file
from .config_validation import ToolConfigSchema
from .constants import COLLECTION_IMPORT, TEMPLATE_REGISTRY
from .domain.imports import ImportResolver
from .domain.models import ModuleResolution, ResolvedAggregate
from .domain.naming import (
    pluralize,
    singularize,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
    to_upper_snake_case,
)
from .exceptions import GenerationError, TemplateRenderingError


logger = logging.getLogger(__name__)

# Define the path to the templates directory relative to this file
TEMPLATE_DIR = Path(__file__).parent / "templates"


def import_module_filter(reference: str) -> str:
    """``datetime.date`` -> ``datetime``"""
    return reference.rsplit(".", 1)[0]


def import_name_filter(reference: str) -> str:
    """``datetime.date`` -> ``date``"""
    return reference.rsplit(".", 1)[-1]


def setup_jinja_env(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """Sets up and returns the Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        # Generated sources are Python, never HTML
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        trim_blocks=True,  # Remove first newline after a block tag
        lstrip_blocks=True,  # Strip leading whitespace from lines with block tags
        keep_trailing_newline=True,
        extensions=[
            jinja2_extensions.do,
            jinja2_extensions.loopcontrols,
        ],
    )
    env.filters["repr"] = repr
    env.filters["pascal"] = to_pascal_case
    env.filters["camel"] = to_camel_case
    env.filters["snake"] = to_snake_case
    env.filters["kebab"] = to_kebab_case
    env.filters["upper_snake"] = to_upper_snake_case
    env.filters["pluralize"] = pluralize
    env.filters["singularize"] = singularize
    env.filters["import_module"] = import_module_filter
    env.filters["import_name"] = import_name_filter
    return env


def render_template(
    template_id: str,
    resolved_aggregate: ResolvedAggregate,
    env: Optional[Environment] = None,
    **context: Any,
) -> str:
    """
    Render one template against a resolved aggregate.

    The aggregate is available to templates as ``model``; ``context`` adds
    the per-file values (``entity``, ``value_object``, ``enum`` ...).

    Raises:
        TemplateRenderingError: unknown template id or rendering failure
    """
    entry = TEMPLATE_REGISTRY.get(template_id)
    if entry is None:
        raise TemplateRenderingError(
            f"Unknown template '{template_id}'",
            template_id=template_id,
            aggregate=resolved_aggregate.name,
            suggestions=[f"Available templates: {', '.join(TEMPLATE_REGISTRY)}"],
        )

    env = env or setup_jinja_env()
    try:
        template = env.get_template(entry["file"])
        return template.render(model=resolved_aggregate, **context)
    except TemplateError as e:
        raise TemplateRenderingError(
            f"Error rendering template '{entry['file']}': {e}",
            template_id=template_id,
            aggregate=resolved_aggregate.name,
        ) from e


@dataclass
class GeneratedFile:
    """A rendered source file, relative to the output directory."""

    path: Path
    template_id: str
    content: str = ""
    context: Dict[str, Any] = field(default_factory=dict)


def package_path(package_name: str, layout_package: str) -> Path:
    parts = [part for part in package_name.split(".") if part] + layout_package.split(".")
    return Path(*parts)


def dto_imports(resolved: ResolvedAggregate) -> List[str]:
    """Imports of the nested request/response module of an aggregate."""
    resolver = ImportResolver(resolved.base_package)
    root = resolved.root_entity
    nodes = resolved.nested_for(root.name)

    result = resolver.field_imports(root.response_fields)
    for top in nodes:
        for node in top.walk():
            result |= resolver.field_imports(node.fields)
    if nodes:
        result.add(COLLECTION_IMPORT)
    return sorted(result)


def plan_aggregate_outputs(
    resolved: ResolvedAggregate, config: ToolConfigSchema
) -> List[GeneratedFile]:
    """List the files a resolved aggregate renders to, without rendering them."""
    planned: List[GeneratedFile] = []

    def add(template_id: str, name: str, **context: Any) -> None:
        directory = package_path(config.package_name, TEMPLATE_REGISTRY[template_id]["package"])
        planned.append(GeneratedFile(
            path=directory / f"{to_snake_case(name)}.py",
            template_id=template_id,
            context=context,
        ))

    if "entity" in config.templates:
        for entity in resolved.entities:
            add("entity", entity.name, entity=entity, nested=resolved.nested_for(entity.name))
    if "value_object" in config.templates:
        for value_object in resolved.value_objects:
            add("value_object", value_object.name, value_object=value_object)
    if "enum" in config.templates:
        for enum_spec in resolved.aggregate.enums:
            add("enum", enum_spec.name, enum=enum_spec)
    if "dtos" in config.templates:
        root = resolved.root_entity
        add(
            "dtos",
            f"{root.name}Dtos",
            entity=root,
            nested=resolved.nested_for(root.name),
            imports=dto_imports(resolved),
        )
    return planned


def render_aggregate(
    resolved: ResolvedAggregate, config: ToolConfigSchema, env: Optional[Environment] = None
) -> List[GeneratedFile]:
    env = env or setup_jinja_env()
    files = plan_aggregate_outputs(resolved, config)
    for generated in files:
        generated.content = render_template(generated.template_id, resolved, env=env, **generated.context)
    logger.debug(f"Rendered {len(files)} file(s) for aggregate '{resolved.name}'")
    return files


def _package_init_files(files: List[GeneratedFile], output_dir: Path) -> List[Path]:
    """Every package directory between the output root and a generated file."""
    directories = set()
    for generated in files:
        parent = generated.path.parent
        while parent != Path("."):
            directories.add(parent)
            parent = parent.parent
    return sorted(output_dir / directory / "__init__.py" for directory in directories)


def generate_sources(
    module_resolution: ModuleResolution,
    config: ToolConfigSchema,
    dry_run: bool = False,
) -> List[GeneratedFile]:
    """
    Render every resolved aggregate of a module and write the result.

    Raises:
        ModuleResolutionError: if any aggregate failed to resolve
        GenerationError: on warnings when ``warnings_as_errors`` is set
    """
    module_resolution.raise_for_errors()
    if config.warnings_as_errors and module_resolution.warnings:
        raise GenerationError(
            f"Module '{module_resolution.module_name}' has "
            f"{len(module_resolution.warnings)} warning(s) and warnings are treated as errors",
            diagnostics=module_resolution.warnings,
        )

    env = setup_jinja_env()
    files: List[GeneratedFile] = []
    for resolved in module_resolution.aggregates:
        logger.info(f"Rendering aggregate '{resolved.name}'...")
        files.extend(render_aggregate(resolved, config, env=env))

    if dry_run:
        for generated in files:
            logger.info(f"[dry-run] {generated.path}")
        return files

    output_dir = Path(config.output_dir)
    for generated in files:
        write_source_file(output_dir / generated.path, generated.content, format_code=config.format_code)
    for init_file in _package_init_files(files, output_dir):
        if not init_file.exists():
            write_source_file(init_file, "", format_code=False)

    logger.info(f"Wrote {len(files)} file(s) to {output_dir}")
    return files

