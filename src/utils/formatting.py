"""
Formatting utilities for Scangate.

Provides name and file-name helpers shared by the orchestrator and the report
generators.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional


def component_name(repository_name: str, base_repo: str = "") -> str:
    """
    Derive the component name of a repository.

    Args:
        repository_name: Full repository name
        base_repo: Shared prefix of all repositories (e.g., "acme")

    Returns:
        Repository name with the base prefix stripped

    Examples:
        >>> component_name("acme/nexus", "acme")
        'nexus'
        >>> component_name("other/nexus", "acme")
        'other/nexus'
        >>> component_name("nexus")
        'nexus'
    """
    if base_repo:
        prefix = base_repo.rstrip("/") + "/"
        if repository_name.startswith(prefix):
            return repository_name[len(prefix):]
    return repository_name


def repository_name(base_repo: str, component: str) -> str:
    """
    Build a repository name from base prefix and component.

    Examples:
        >>> repository_name("acme", "nexus")
        'acme/nexus'
        >>> repository_name("", "nexus")
        'nexus'
    """
    if not base_repo:
        return component
    return f"{base_repo.rstrip('/')}/{component}"


def timestamp_for_filename(now: Optional[datetime] = None) -> str:
    """
    Format a timestamp for use in file names.

    Examples:
        >>> timestamp_for_filename(datetime(2025, 11, 4, 9, 5, 30))
        '20251104-090530'
    """
    now = now or datetime.now()
    return now.strftime("%Y%m%d-%H%M%S")


def report_file_name(component: str, now: Optional[datetime] = None) -> str:
    """
    Build a timestamped report file name for a component.

    Slashes in nested component names are replaced so the result is a single
    path segment.

    Examples:
        >>> report_file_name("nexus", datetime(2025, 11, 4, 9, 5, 30))
        'nexus-20251104-090530.xml'
    """
    safe = component.replace("/", "_")
    return Path(f"{safe}-{timestamp_for_filename(now)}.xml").name
