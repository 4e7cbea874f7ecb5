"""
Logging helper utilities for the scangate CLI.

Sections are framed by separator lines so configuration problems and audit
summaries stand out in long CI logs.
"""

import logging
from typing import Iterable, Optional

SEPARATOR_WIDTH = 60


def _log_section(
    level: int,
    title: str,
    lines: Iterable[str],
    logger: Optional[logging.Logger],
    width: int,
    char: str = "=",
) -> None:
    logger = logger or logging.getLogger()
    rule = char * width
    logger.log(level, rule)
    logger.log(level, title)
    for line in lines:
        logger.log(level, line or "")
    logger.log(level, rule)


def log_error_section(
    title: str,
    messages: Iterable[str],
    logger: Optional[logging.Logger] = None,
    width: int = SEPARATOR_WIDTH,
) -> None:
    """
    Log an error title followed by detail lines, framed by separators.

    Args:
        title: Summary of what went wrong
        messages: Detail lines (empty strings become blank lines)
        logger: Logger to write to (root logger if None)
        width: Separator width in characters

    Examples:
        >>> log_error_section(
        ...     "Invalid composition file",
        ...     ["Tag for nexus_version must be a string", "Quote versions in YAML"]
        ... )
        ============================================================
        Invalid composition file
        Tag for nexus_version must be a string
        Quote versions in YAML
        ============================================================
    """
    _log_section(logging.ERROR, title, messages, logger, width)


def log_warning_section(
    title: str,
    messages: Iterable[str],
    logger: Optional[logging.Logger] = None,
    width: int = SEPARATOR_WIDTH,
) -> None:
    """
    Log a warning title followed by detail lines, framed by separators.

    Examples:
        >>> log_warning_section(
        ...     "2 images could not be audited",
        ...     ["nexus: scan not found", "portal: repository not found"]
        ... )
    """
    _log_section(logging.WARNING, title, messages, logger, width)


def log_info_header(
    message: str,
    logger: Optional[logging.Logger] = None,
    width: int = SEPARATOR_WIDTH,
    char: str = "=",
) -> None:
    """Log a single framed informational line (e.g., "Auditing 12 images")."""
    _log_section(logging.INFO, message, (), logger, width, char)
