"""Utility modules for loading, validation and formatting."""

from utils.loaders import load_allowlist, load_composition
from utils.formatting import component_name, repository_name

__all__ = [
    "load_allowlist",
    "load_composition",
    "component_name",
    "repository_name",
]
