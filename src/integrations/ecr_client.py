"""
AWS ECR registry client.

Implements the RegistryClient interface on top of boto3, reading repository
listings, image push metadata and basic-scanning findings from ECR.
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from constants import (
    DESCRIBE_IMAGES_BATCH_SIZE,
    DESCRIBE_REPOSITORIES_PAGE_SIZE,
    LIST_IMAGES_PAGE_SIZE,
    SCAN_FINDINGS_PAGE_SIZE,
)
from core.error_classification import ErrorClassifier
from core.models import Finding, ImageDetail, ImageIdentity, RepositoryRef, ScanFindings
from core.registry_interface import RegistryClient

logger = logging.getLogger(__name__)


def _with_registry_id(params: dict, registry_id: Optional[str]) -> dict:
    if registry_id:
        params["registryId"] = registry_id
    return params


def parse_finding(raw: dict) -> Finding:
    """
    Convert an ECR finding into a Finding.

    Args:
        raw: Entry of imageScanFindings.findings

    Returns:
        Finding with attributes flattened into a dict
    """
    attributes = {}
    for attribute in raw.get("attributes", []):
        key = attribute.get("key")
        if key:
            attributes[key] = attribute.get("value", "")
    return Finding(
        name=raw.get("name", "unknown"),
        severity=raw.get("severity", "UNDEFINED"),
        description=raw.get("description"),
        uri=raw.get("uri"),
        attributes=attributes,
    )


class ECRClient(RegistryClient):
    """
    ECR-backed registry client.

    A single boto3 client is created up front and shared by all worker
    threads (boto3 clients are thread-safe, sessions are not).
    """

    def __init__(self, region: Optional[str] = None, client=None, timeout: Optional[float] = None):
        """
        Initialize the ECR client.

        Args:
            region: AWS region (falls back to the AWS default chain)
            client: Pre-built boto3 ECR client (for testing)
            timeout: Connect and read timeout per request in seconds

        Raises:
            RegistryConnectionException: If no client can be built (e.g., no region)
        """
        if client is not None:
            self.client = client
        else:
            try:
                config = Config(connect_timeout=timeout, read_timeout=timeout) if timeout else None
                self.client = boto3.client("ecr", region_name=region, config=config)
            except BotoCoreError as e:
                raise ErrorClassifier.to_exception("CreateClient", e) from e

    def name(self) -> str:
        """Return registry name."""
        return "ecr"

    def list_repositories(self, registry_id: Optional[str] = None) -> list[RepositoryRef]:
        """List repositories in a registry."""
        if registry_id:
            logger.info(f"Getting list of ECR repositories for registry {registry_id}")
        else:
            logger.info("Getting list of ECR repositories for default registry")

        params = _with_registry_id(
            {"PaginationConfig": {"PageSize": DESCRIBE_REPOSITORIES_PAGE_SIZE}},
            registry_id,
        )
        repositories = []
        try:
            paginator = self.client.get_paginator("describe_repositories")
            for page in paginator.paginate(**params):
                for repo in page.get("repositories", []):
                    repositories.append(
                        RepositoryRef(
                            repository_name=repo["repositoryName"],
                            registry_id=repo.get("registryId"),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise ErrorClassifier.to_exception("DescribeRepositories", e) from e

        logger.info(f"Found {len(repositories)} repositories")
        return repositories

    def list_image_identifiers(
        self,
        repository_name: str,
        registry_id: Optional[str] = None,
    ) -> list[str]:
        """List tags of the tagged images in a repository."""
        params = _with_registry_id(
            {
                "repositoryName": repository_name,
                "filter": {"tagStatus": "TAGGED"},
                "PaginationConfig": {"PageSize": LIST_IMAGES_PAGE_SIZE},
            },
            registry_id,
        )
        tags = []
        try:
            paginator = self.client.get_paginator("list_images")
            for page in paginator.paginate(**params):
                for image_id in page.get("imageIds", []):
                    tag = image_id.get("imageTag")
                    if tag:
                        tags.append(tag)
        except (ClientError, BotoCoreError) as e:
            raise ErrorClassifier.to_exception("ListImages", e) from e

        logger.debug(f"Repository {repository_name} has {len(tags)} tags")
        return tags

    def get_image_details(
        self,
        repository_name: str,
        tags: list[str],
        registry_id: Optional[str] = None,
    ) -> list[ImageDetail]:
        """Get push timestamps for tags."""
        logger.info(f"Getting details for {len(tags)} tagged images in {repository_name}")
        requested = set(tags)
        details = []
        for start in range(0, len(tags), DESCRIBE_IMAGES_BATCH_SIZE):
            chunk = tags[start:start + DESCRIBE_IMAGES_BATCH_SIZE]
            params = _with_registry_id(
                {
                    "repositoryName": repository_name,
                    "imageIds": [{"imageTag": tag} for tag in chunk],
                },
                registry_id,
            )
            try:
                response = self.client.describe_images(**params)
            except (ClientError, BotoCoreError) as e:
                raise ErrorClassifier.to_exception("DescribeImages", e) from e

            for image in response.get("imageDetails", []):
                pushed_at = image.get("imagePushedAt")
                for tag in image.get("imageTags", []):
                    if tag in requested:
                        details.append(ImageDetail(tag=tag, pushed_at=pushed_at))

        return details

    def get_scan_findings(self, image: ImageIdentity) -> ScanFindings:
        """Get basic-scanning findings for an image."""
        params = _with_registry_id(
            {
                "repositoryName": image.repository_name,
                "imageId": {"imageTag": image.tag},
                "PaginationConfig": {"PageSize": SCAN_FINDINGS_PAGE_SIZE},
            },
            image.registry_id,
        )

        status = None
        description = None
        findings: list[Finding] = []
        severity_counts: dict[str, int] = {}
        try:
            paginator = self.client.get_paginator("describe_image_scan_findings")
            for page in paginator.paginate(**params):
                scan_status = page.get("imageScanStatus", {})
                status = scan_status.get("status", status)
                description = scan_status.get("description", description)

                scan_findings = page.get("imageScanFindings", {})
                findings.extend(parse_finding(f) for f in scan_findings.get("findings", []))
                # Counts are repeated on every page; keep the last copy
                if scan_findings.get("findingSeverityCounts"):
                    severity_counts = dict(scan_findings["findingSeverityCounts"])
        except (ClientError, BotoCoreError) as e:
            raise ErrorClassifier.to_exception("DescribeImageScanFindings", e) from e

        return ScanFindings(
            status=status or "UNKNOWN",
            status_description=description,
            findings=tuple(findings),
            severity_counts=severity_counts,
        )


__all__ = ["ECRClient", "parse_finding"]
