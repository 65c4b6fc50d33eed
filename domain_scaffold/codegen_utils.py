import logging
from pathlib import Path

import black
from black import FileMode, NothingChanged as BlackNothingChanged, format_str as black_format_str


logger = logging.getLogger(__name__)

BLACK_FORMATTER_MODE = FileMode(line_length=120)


def format_python_code_using_black(filepath: Path, code_string: str) -> str:
    """Formats the given Python code using Black."""
    try:
        formatted_code = black_format_str(code_string, mode=BLACK_FORMATTER_MODE)
        logger.debug(f"Formatted code using Black: {filepath}")
        return formatted_code
    except BlackNothingChanged:
        logger.debug(f"Black formatter did not change the code: {filepath}")
        return code_string
    except black.InvalidInput as e:
        # Rendered template produced invalid Python; keep it so the user can inspect it
        logger.error(f"Could not format {filepath} using Black: {e}")
        logger.warning("Writing unformatted Python code due to Black error.")
        return code_string


def write_source_file(filepath: Path, content: str, format_code: bool = True) -> Path:
    """Write a generated source file, formatting Python output first."""
    if format_code and filepath.suffix == ".py":
        content = format_python_code_using_black(filepath, content)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(content, encoding="utf-8")
    logger.debug(f"Wrote {filepath}")
    return filepath
