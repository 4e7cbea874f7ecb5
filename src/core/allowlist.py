"""
Allowlist lookup for package exemptions.

An allowlist has a global part that applies to every component and a
per-component part. For one component both are flattened into a single
ordered list of prefix patterns, global patterns first.
"""

from typing import Optional

from core.models import Allowlist


class AllowlistIndex:
    """
    Ordered prefix patterns for one component.

    The first pattern that is a prefix of the queried package key wins, so
    the order of the global and component lists is observable in which
    pattern is reported.
    """

    def __init__(self, patterns: tuple[str, ...] = ()):
        self.patterns = tuple(patterns)

    @classmethod
    def for_component(cls, allowlist: Allowlist, component: str) -> "AllowlistIndex":
        """
        Flatten an allowlist for one component.

        Args:
            allowlist: Loaded allowlist
            component: Component name (repository name without base prefix)

        Returns:
            AllowlistIndex with global patterns followed by component patterns
        """
        patterns = tuple(allowlist.global_patterns)
        patterns += tuple(allowlist.component_patterns.get(component, ()))
        return cls(patterns)

    def match(self, package_key: str) -> Optional[str]:
        """
        Find the first pattern matching a package key.

        Patterns may omit the version ("openssl") to allow every version of a
        package, or pin one ("openssl@1.0.1").

        Args:
            package_key: "<package_name>@<package_version>"

        Returns:
            The matching pattern, or None
        """
        for pattern in self.patterns:
            if package_key.startswith(pattern):
                return pattern
        return None

    def __len__(self) -> int:
        return len(self.patterns)

    def __repr__(self) -> str:
        return f"AllowlistIndex({list(self.patterns)!r})"
