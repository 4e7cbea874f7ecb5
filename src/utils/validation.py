"""
Input validation utilities for Scangate.

Provides validation functions for repository names, tags, severities, file
paths and numeric options so bad configuration is rejected before any
registry call is made.
"""

import re
from pathlib import Path
from typing import Optional

from core.exceptions import ValidationException
from core.models import SeverityLevel

# ECR repository naming rules
REPOSITORY_PATTERN = re.compile(r"^(?:[a-z0-9]+(?:[._-][a-z0-9]+)*/)*[a-z0-9]+(?:[._-][a-z0-9]+)*$")

# Docker tag grammar
TAG_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


def validate_repository_name(name: str, field_name: str = "repository") -> str:
    """
    Validate an ECR repository name.

    Args:
        name: Repository name (e.g., "acme/nexus")
        field_name: Field name for error messages

    Returns:
        Normalized repository name

    Raises:
        ValidationException: If the name is invalid

    Examples:
        >>> validate_repository_name("acme/nexus")
        'acme/nexus'
        >>> validate_repository_name("Acme/Nexus")
        ValidationException: ...
    """
    if not name or not name.strip():
        raise ValidationException("Repository name cannot be empty", field_name)

    name = name.strip()
    if len(name) > 256 or not REPOSITORY_PATTERN.match(name):
        raise ValidationException(f"Invalid repository name: {name}", field_name)

    return name


def validate_image_tag(tag: str, field_name: str = "tag") -> str:
    """
    Validate an image tag.

    Args:
        tag: Image tag (e.g., "2.14.12-02-30102019")
        field_name: Field name for error messages

    Returns:
        Normalized tag

    Raises:
        ValidationException: If the tag is invalid
    """
    if tag is None or not str(tag).strip():
        raise ValidationException("Tag cannot be empty", field_name)

    tag = str(tag).strip()
    if not TAG_PATTERN.match(tag):
        raise ValidationException(f"Invalid image tag: {tag}", field_name)

    return tag


def validate_severity(value: str, field_name: str = "cutoff") -> SeverityLevel:
    """
    Parse a severity name.

    Raises:
        ValidationException: If the value is not a known severity
    """
    severity = SeverityLevel.parse(value)
    if severity is None:
        valid = ", ".join(level.value for level in SeverityLevel.ordered_levels())
        raise ValidationException(
            f"Unknown severity '{value}'. Valid severities: {valid}",
            field_name,
        )
    return severity


def validate_file_path(path: Path, must_exist: bool = True) -> Path:
    """
    Validate file path.

    Args:
        path: Path to validate
        must_exist: Whether file must already exist

    Returns:
        Validated Path object

    Raises:
        ValidationException: If path is invalid
    """
    if not path:
        raise ValidationException("File path cannot be empty", "path")

    path = Path(path)
    if must_exist and not path.exists():
        raise ValidationException(f"File not found: {path}", "path")

    if must_exist and not path.is_file():
        raise ValidationException(f"Not a file: {path}", "path")

    return path


def validate_positive_number(
    value: float,
    field_name: str,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
) -> float:
    """
    Validate numeric value is within acceptable range.

    Args:
        value: Value to validate
        field_name: Field name for error messages
        min_value: Minimum acceptable value
        max_value: Maximum acceptable value (optional)

    Returns:
        Validated value

    Raises:
        ValidationException: If value is out of range
    """
    if value < min_value:
        raise ValidationException(
            f"Value must be >= {min_value}, got {value}",
            field_name
        )

    if max_value is not None and value > max_value:
        raise ValidationException(
            f"Value must be <= {max_value}, got {value}",
            field_name
        )

    return value


__all__ = [
    "validate_repository_name",
    "validate_image_tag",
    "validate_severity",
    "validate_file_path",
    "validate_positive_number",
]
