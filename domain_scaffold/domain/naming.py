"""
Naming convention utilities for Domain Scaffold.

This module canonicalizes free-form identifiers from the domain specification
into the casing conventions used by the resolver and the generated sources:
PascalCase for types, camelCase for fields, kebab-case for resources,
UPPER_SNAKE_CASE for constants and snake_case for tables and modules.

Every transform splits its input into lowercase words first, so the same
logical name always normalizes identically regardless of its source casing.
"""

import re
from typing import List

import inflect

from ..constants import RelationshipDefaults


# Initialize inflect engine for pluralization
p = inflect.engine()

_SEPARATORS = re.compile(r"[-_\s]+")
_CASED_WORD = re.compile(r"[A-Z][a-z0-9]*|[a-z0-9]+")
_UPPER_WORD = re.compile(r"[A-Z0-9]+")
_UPPER_SNAKE = re.compile(r"[A-Z0-9]+(?:_[A-Z0-9]+)*")


def split_words(name: str) -> List[str]:
    """
    Split an identifier into lowercase words.

    Separators (hyphen, underscore, whitespace) always split. Inside a
    separator-delimited part every uppercase letter starts a new word, unless
    the input is all uppercase and contains a separator, in which case each
    part is one word (so ``ORDER_ITEM`` is ``order``/``item``). An all
    uppercase name without separators, such as ``XY``, splits per capital so
    that PascalCase output always splits back into the words it came from.

    Example:
        >>> split_words("orderItem")
        ['order', 'item']
        >>> split_words("ORDER_ITEM")
        ['order', 'item']
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    pattern = _word_pattern(name)
    words: List[str] = []
    for part in _SEPARATORS.split(name):
        words.extend(word.lower() for word in pattern.findall(part))
    return words


def _word_pattern(name: str):
    if re.search(r"[a-z]", name) or not _SEPARATORS.search(name):
        return _CASED_WORD
    return _UPPER_WORD


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def to_pascal_case(name: str) -> str:
    """
    Convert any identifier to PascalCase.

    Example:
        >>> to_pascal_case("order-item")
        'OrderItem'
        >>> to_pascal_case("order_item")
        'OrderItem'
    """
    return "".join(_capitalize(word) for word in split_words(name))


def to_camel_case(name: str) -> str:
    """
    Convert any identifier to camelCase.

    Example:
        >>> to_camel_case("OrderItem")
        'orderItem'
    """
    words = split_words(name)
    if not words:
        return ""
    return words[0] + "".join(_capitalize(word) for word in words[1:])


def to_kebab_case(name: str) -> str:
    """Convert any identifier to kebab-case."""
    return "-".join(split_words(name))


def to_snake_case(name: str) -> str:
    """Convert any identifier to snake_case."""
    return "_".join(split_words(name))


def to_upper_snake_case(name: str) -> str:
    """Convert any identifier to UPPER_SNAKE_CASE.

    Names already in UPPER_SNAKE_CASE (enum values like ``PENDING``) are
    returned unchanged.
    """
    if isinstance(name, str) and _UPPER_SNAKE.fullmatch(name):
        return name
    return "_".join(word.upper() for word in split_words(name))


def pluralize(name: str) -> str:
    """
    Pluralize the last word of an identifier, keeping its casing style.

    Example:
        >>> pluralize("orderItem")
        'orderItems'
        >>> pluralize("Category")
        'Categories'
    """
    words = split_words(name)
    if not words:
        return name
    plural = p.plural_noun(words[-1]) or words[-1] + "s"
    return _replace_last_word(name, plural)


def singularize(name: str) -> str:
    """
    Singularize the last word of an identifier, keeping its casing style.

    Returns the input unchanged when inflect considers it already singular.
    """
    words = split_words(name)
    if not words:
        return name
    singular = p.singular_noun(words[-1])
    if singular is False or not singular:
        return name
    return _replace_last_word(name, singular)


def _replace_last_word(name: str, word: str) -> str:
    """Swap the trailing word of ``name`` for ``word``, matching its casing."""
    pattern = _word_pattern(name)
    matches = list(pattern.finditer(name))
    if not matches:
        return name
    start = matches[-1].start()
    tail = name[start:]
    if tail.isupper():
        word = word.upper()
    elif tail[:1].isupper():
        word = _capitalize(word)
    return name[:start] + word


def default_join_column(field_name: str) -> str:
    """
    Join column for a reference field.

    Example:
        >>> default_join_column("parentOrder")
        'parent_order_id'
    """
    return f"{to_snake_case(field_name)}{RelationshipDefaults.JOIN_COLUMN_SUFFIX}"


def default_table_name(entity_name: str) -> str:
    """
    Table name for an entity: the snake_case plural of its name.

    Example:
        >>> default_table_name("OrderItem")
        'order_items'
    """
    return to_snake_case(pluralize(to_pascal_case(entity_name)))


def is_valid_identifier(name: str) -> bool:
    """Check if a name is made of the supported alphabet and has at least one word."""
    if not name or not re.fullmatch(r"[A-Za-z0-9_\-]+", name):
        return False
    return bool(split_words(name))


class NamingConventions:
    """
    Centralized naming convention utilities.

    This class provides consistent naming across the resolver.
    """

    @staticmethod
    def type_name(name: str) -> str:
        """Name of a generated class (entity, value object, enum)."""
        return to_pascal_case(name)

    @staticmethod
    def field_name(name: str) -> str:
        """Name of a field or relationship attribute."""
        return to_camel_case(name)

    @staticmethod
    def table_name(entity_name: str) -> str:
        return default_table_name(entity_name)

    @staticmethod
    def join_column(field_name: str) -> str:
        return default_join_column(field_name)

    @staticmethod
    def collection_field_name(target_name: str) -> str:
        """Attribute name holding a collection of ``target_name``."""
        return to_camel_case(pluralize(to_pascal_case(target_name)))

    @staticmethod
    def reference_field_name(target_name: str) -> str:
        """Attribute name holding a single ``target_name``."""
        return to_camel_case(target_name)

    @staticmethod
    def module_name(name: str) -> str:
        """Python module name for a generated type."""
        return to_snake_case(name)

    @staticmethod
    def constant_name(name: str) -> str:
        return to_upper_snake_case(name)

    @staticmethod
    def resource_name(name: str) -> str:
        return to_kebab_case(name)
