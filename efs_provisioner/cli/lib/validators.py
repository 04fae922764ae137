"""
Input validation functions.
"""

import re
from typing import Tuple

_TRUE_VALUES = ("1", "t", "true")
_FALSE_VALUES = ("0", "f", "false")


def parse_bool(value: str) -> bool:
    """
    Parse a boolean request parameter.

    Accepts 1/t/true and 0/f/false in any letter case.

    Args:
        value: Raw parameter string

    Returns:
        Parsed boolean

    Raises:
        ValueError: If value is not a recognized boolean
    """
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid syntax for a boolean: {value!r}")


def parse_key_value(item: str) -> Tuple[str, str]:
    """
    Split a KEY=VALUE command line item.

    Raises:
        ValueError: If the item has no '=' or an empty key
    """
    if "=" not in item:
        raise ValueError(f"Expected KEY=VALUE, got {item!r}")
    key, value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError(f"Empty key in {item!r}")
    return key, value.strip()


def validate_name(name: str) -> None:
    """
    Validate a claim, namespace or storage class name.

    Args:
        name: Name to validate

    Raises:
        ValueError: If name is invalid
    """
    if not name:
        raise ValueError("Name cannot be empty")

    if len(name) > 253:
        raise ValueError("Name must be at most 253 characters")

    # Names become directory names, so path separators are never allowed
    if not re.match(r'^[a-zA-Z0-9][a-zA-Z0-9._-]*$', name):
        raise ValueError("Name must start with alphanumeric and contain only alphanumeric, dots, underscores, or hyphens")
