import argparse
import json
import logging
import sys
from typing import List, Optional

from domain_scaffold.config_validation import load_config
from domain_scaffold.loader import load_specification
from domain_scaffold.resolver import DomainModelResolver
from domain_scaffold.codegen import generate_sources
from domain_scaffold.exceptions import DomainScaffoldError

from domain_scaffold.colored_logging import (
    setup_colored_logging,
    get_colored_logger,
    log_success,
    log_progress,
    log_highlight,
    log_section
)

# Note: Colored logging will be configured after parsing args
logger = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domain-scaffold",
        description="Generate layered domain sources from a declarative YAML domain specification.",
    )
    parser.add_argument(
        "-s",
        "--spec",
        dest="spec_path",
        help="Path to the YAML domain specification. Overrides config file setting.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Directory to write generated sources to. Overrides config file setting.",
    )
    parser.add_argument(
        "-p",
        "--package",
        dest="package_name",
        help="Dotted package prefix for generated imports. Overrides config file setting.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Depth of nested relationship payloads (1-5).",
    )
    parser.add_argument(
        "--warnings-as-errors",
        action="store_true",
        default=None,
        help="Fail when the resolver reports warnings.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and render, but do not write any file.",
    )
    parser.add_argument(
        "--dump-model",
        action="store_true",
        help="Print the resolved model as JSON and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Logging Setup ---
    use_colors = not args.no_color
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=use_colors)

    global logger
    logger = get_colored_logger(__name__)

    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    # --- Main Execution Pipeline ---
    try:
        # 1. Load Configuration
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)
        logger.debug(f"Effective configuration loaded: {config}")

        # 2. Load the domain specification
        log_progress(logger, f"Loading specification {config.spec_path}...")
        document = load_specification(config.spec_path)
        if config.module_name:
            document.module = config.module_name

        # 3. Resolve the domain model
        log_section(logger, "Domain Model Resolution")
        resolver = DomainModelResolver(base_package=config.package_name, max_depth=config.max_depth)
        resolution = resolver.resolve_module(document)
        for diagnostic in resolution.warnings:
            log_highlight(logger, str(diagnostic))

        if args.dump_model:
            json.dump(resolution.to_dict(), sys.stdout, indent=2)
            sys.stdout.write("\n")
            resolution.raise_for_errors()
            return 0

        # 4. Render and write sources
        log_section(logger, "Source Generation")
        files = generate_sources(resolution, config, dry_run=args.dry_run)

        # --- Success ---
        log_section(logger, "COMPLETION")
        if args.dry_run:
            log_success(logger, f"Dry run done: {len(files)} file(s) would be written.")
        else:
            log_success(logger, f"Generated {len(files)} file(s) successfully in {config.output_dir}")
        return 0

    # --- Error Handling ---
    except DomainScaffoldError as e:
        logger.error(str(e), exc_info=args.verbose)
        return 1
    except Exception as e:
        logger.error(
            f"An unexpected error occurred during generation: {e}", exc_info=True
        )  # Always show traceback for unexpected
        return 1


# --- Script Entry Point ---
if __name__ == "__main__":
    sys.exit(main())
