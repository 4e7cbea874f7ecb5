"""
Latest-tag resolution for repositories.

Determines which tag of a repository to audit when only the repository is
known, by picking the most recently pushed image.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from core.exceptions import (
    AllTagsFilteredException,
    MetadataUnavailableException,
    NoTagsFoundException,
    RegistryException,
)
from core.registry_interface import RegistryClient

logger = logging.getLogger(__name__)


def filter_tags(tags: list[str], tag_filter: str) -> list[str]:
    """
    Drop every tag containing the filter substring.

    Args:
        tags: Candidate tags
        tag_filter: Substring marking tags to exclude (e.g., "rc", "SNAPSHOT")

    Returns:
        Remaining tags in their original order
    """
    if not tag_filter:
        return list(tags)
    return [tag for tag in tags if tag_filter not in tag]


class TagResolver:
    """
    Resolves the latest tag of a repository.

    The latest tag is the one with the smallest elapsed time since push.
    Among equally recent images the first one listed wins.
    """

    def __init__(
        self,
        registry: RegistryClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Registry client used for listing and metadata
            clock: Returns the current time (UTC); overridable for tests
        """
        self.registry = registry
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve_latest_tag(
        self,
        repository_name: str,
        tag_filter: str = "",
        registry_id: Optional[str] = None,
    ) -> str:
        """
        Find the most recently pushed tag of a repository.

        Args:
            repository_name: Full repository name
            tag_filter: Tags containing this substring are ignored
            registry_id: Registry the repository lives in

        Returns:
            The latest tag

        Raises:
            NoTagsFoundException: Repository has no tagged images
            AllTagsFilteredException: Every tag matched the filter
            MetadataUnavailableException: Push timestamps could not be read
            RegistryException: Listing the repository failed
        """
        logger.info(f"Grabbing list of tags for repository {repository_name}")
        tags = self.registry.list_image_identifiers(repository_name, registry_id)
        if not tags:
            logger.warning(f"No tags found for repository {repository_name}")
            raise NoTagsFoundException(repository_name)

        if tag_filter:
            candidates = filter_tags(tags, tag_filter)
            logger.info(
                f"{len(tags) - len(candidates)} tags of {repository_name} "
                f"matched filter '{tag_filter}'"
            )
            if not candidates:
                raise AllTagsFilteredException(repository_name, tag_filter)
        else:
            candidates = tags

        if len(candidates) == 1:
            return candidates[0]

        try:
            details = self.registry.get_image_details(
                repository_name, candidates, registry_id
            )
        except RegistryException as e:
            raise MetadataUnavailableException(repository_name, str(e)) from e

        # Registry may return tags outside the candidate set for multi-tag images
        candidate_set = set(candidates)
        details = [d for d in details if d.tag in candidate_set and d.pushed_at]
        if not details:
            raise MetadataUnavailableException(repository_name)

        now = self.clock()
        latest = min(details, key=lambda d: now - d.pushed_at)
        logger.info(
            f"Latest tag for {repository_name} is {latest.tag} "
            f"(pushed {latest.pushed_at.isoformat()})"
        )
        return latest.tag
