"""
Registry client interface.

Defines the contract the audit engine needs from a container registry that
also stores scan findings (e.g., ECR with basic scanning), so the engine can
be exercised against fakes without network access.
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.models import ImageDetail, ImageIdentity, RepositoryRef, ScanFindings


class RegistryClient(ABC):
    """
    Abstract base class for registry and scan-finding providers.

    Implementations raise RegistryException when the registry rejects a
    request and RegistryConnectionException when no session can be
    established.
    """

    @abstractmethod
    def name(self) -> str:
        """
        Return the registry name.

        Returns:
            Registry identifier (e.g., "ecr")
        """
        pass

    @abstractmethod
    def list_repositories(self, registry_id: Optional[str] = None) -> list[RepositoryRef]:
        """
        List repositories in a registry.

        Args:
            registry_id: Registry to list (default registry if None)

        Returns:
            Repositories in registry order
        """
        pass

    @abstractmethod
    def list_image_identifiers(
        self,
        repository_name: str,
        registry_id: Optional[str] = None,
    ) -> list[str]:
        """
        List tags of the tagged images in a repository.

        Args:
            repository_name: Full repository name
            registry_id: Registry the repository lives in

        Returns:
            Tags in registry listing order
        """
        pass

    @abstractmethod
    def get_image_details(
        self,
        repository_name: str,
        tags: list[str],
        registry_id: Optional[str] = None,
    ) -> list[ImageDetail]:
        """
        Get push timestamps for tags.

        Args:
            repository_name: Full repository name
            tags: Tags to describe
            registry_id: Registry the repository lives in

        Returns:
            One ImageDetail per requested tag that exists
        """
        pass

    @abstractmethod
    def get_scan_findings(self, image: ImageIdentity) -> ScanFindings:
        """
        Get scan findings for an image.

        Args:
            image: Image to fetch findings for

        Returns:
            Raw scan status and findings
        """
        pass


__all__ = [
    "RegistryClient",
]
