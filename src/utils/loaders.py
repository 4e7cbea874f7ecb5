"""
YAML loaders for composition and allowlist files.

Both documents are decoded into typed records and validated at load time;
malformed documents raise ConfigurationException instead of producing
partially populated structures.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from constants import COMPOSITION_KEY_PREFIX, COMPOSITION_KEY_SUFFIX
from core.exceptions import ConfigurationException
from core.models import Allowlist

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global_allowlist"
COMPONENT_KEY = "container_allowlist"
LEGACY_GLOBAL_KEY = "global_whitelist"
LEGACY_COMPONENT_KEY = "container_whitelist"


def _read_yaml(path: Path, description: str):
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationException(f"Failed to parse {description} {path}: {e}")
    except OSError as e:
        raise ConfigurationException(f"Failed to read {description} {path}: {e}")


def normalize_component_key(
    key: str,
    strip_prefix: str = COMPOSITION_KEY_PREFIX,
    strip_suffix: str = COMPOSITION_KEY_SUFFIX,
) -> str:
    """
    Turn a composition key into a repository-name suffix.

    Examples:
        >>> normalize_component_key("nexus_version")
        'nexus'
        >>> normalize_component_key("patient_portal_version")
        'patient-portal'
    """
    if strip_prefix and key.startswith(strip_prefix):
        key = key[len(strip_prefix):]
    if strip_suffix and key.endswith(strip_suffix):
        key = key[: -len(strip_suffix)]
    return key.replace("_", "-")


def parse_composition(
    data,
    strip_prefix: str = COMPOSITION_KEY_PREFIX,
    strip_suffix: str = COMPOSITION_KEY_SUFFIX,
) -> dict[str, str]:
    """
    Validate and normalize a decoded composition document.

    Args:
        data: Decoded YAML (mapping of component identifier to tag)
        strip_prefix: Prefix removed from component identifiers
        strip_suffix: Suffix removed from component identifiers

    Returns:
        Normalized component name to tag, in document order

    Raises:
        ConfigurationException: If the document is malformed
    """
    if not isinstance(data, dict):
        raise ConfigurationException(
            f"Composition must be a mapping of component to tag, got {type(data).__name__}"
        )
    if not data:
        raise ConfigurationException("Composition is empty")

    components: dict[str, str] = {}
    sources: dict[str, str] = {}
    for key, tag in data.items():
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationException(f"Invalid composition key: {key!r}")
        # Unquoted YAML versions like 2.10 decode to floats and lose digits
        if not isinstance(tag, str):
            raise ConfigurationException(
                f"Tag for {key} must be a string (quote it in YAML), got {tag!r}"
            )
        if not tag.strip():
            raise ConfigurationException(f"Tag for {key} is empty")

        name = normalize_component_key(key.strip(), strip_prefix, strip_suffix)
        if name in components:
            raise ConfigurationException(
                f"Composition keys {sources[name]} and {key} both map to component {name}"
            )
        components[name] = tag.strip()
        sources[name] = key
    return components


def load_composition(
    path: Path,
    strip_prefix: str = COMPOSITION_KEY_PREFIX,
    strip_suffix: str = COMPOSITION_KEY_SUFFIX,
) -> dict[str, str]:
    """
    Load a composition file.

    Args:
        path: YAML file mapping component identifiers to tags
        strip_prefix: Prefix removed from component identifiers
        strip_suffix: Suffix removed from component identifiers

    Returns:
        Normalized component name to tag

    Raises:
        ConfigurationException: If the file cannot be read or is malformed
    """
    logger.info(f"Reading container names and tags from {path}")
    components = parse_composition(_read_yaml(path, "composition"), strip_prefix, strip_suffix)
    logger.info(f"Loaded {len(components)} components from {path}")
    return components


def _pattern_list(value, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigurationException(f"{where} must be a list of package patterns")
    patterns = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationException(f"{where} contains an invalid pattern: {item!r}")
        patterns.append(item.strip())
    return tuple(patterns)


def parse_allowlist(data) -> Allowlist:
    """
    Validate a decoded allowlist document.

    Args:
        data: Decoded YAML with global_allowlist and container_allowlist

    Returns:
        Allowlist

    Raises:
        ConfigurationException: If the document is malformed
    """
    if data is None:
        return Allowlist()
    if not isinstance(data, dict):
        raise ConfigurationException("Allowlist must be a mapping")

    global_key, component_key = GLOBAL_KEY, COMPONENT_KEY
    if LEGACY_GLOBAL_KEY in data or LEGACY_COMPONENT_KEY in data:
        if GLOBAL_KEY in data or COMPONENT_KEY in data:
            raise ConfigurationException("Allowlist mixes whitelist and allowlist keys")
        logger.warning(
            f"{LEGACY_GLOBAL_KEY}/{LEGACY_COMPONENT_KEY} are deprecated, "
            f"rename them to {GLOBAL_KEY}/{COMPONENT_KEY}"
        )
        global_key, component_key = LEGACY_GLOBAL_KEY, LEGACY_COMPONENT_KEY

    unknown = set(data) - {global_key, component_key}
    if unknown:
        raise ConfigurationException(f"Unknown allowlist keys: {', '.join(sorted(map(str, unknown)))}")

    global_patterns = _pattern_list(data.get(global_key), global_key)

    raw_components = data.get(component_key) or {}
    if not isinstance(raw_components, dict):
        raise ConfigurationException(f"{component_key} must be a mapping of component to patterns")
    component_patterns = {
        str(name): _pattern_list(patterns, f"{component_key}.{name}")
        for name, patterns in raw_components.items()
    }

    return Allowlist(global_patterns=global_patterns, component_patterns=component_patterns)


def load_allowlist(path: Optional[Path]) -> Allowlist:
    """
    Load an allowlist file.

    No path, or a path that does not exist, yields an empty allowlist.

    Raises:
        ConfigurationException: If the file exists but is malformed
    """
    if not path:
        logger.debug("No allowlist configured")
        return Allowlist()

    path = Path(path)
    if not path.exists():
        logger.warning(f"Allowlist {path} not found, continuing with an empty allowlist")
        return Allowlist()

    allowlist = parse_allowlist(_read_yaml(path, "allowlist"))
    logger.info(
        f"Loaded allowlist with {len(allowlist.global_patterns)} global entries and "
        f"{len(allowlist.component_patterns)} component sections"
    )
    return allowlist
