"""
Scan result aggregation across images.

Fetches scan findings for one image or a batch of images. In batch mode every
image is fetched independently on a worker pool, and a failure for one image
is recorded as a FAILED result instead of aborting the batch.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, as_completed
from functools import partial
from typing import Callable, Mapping, Optional, TypeVar

from constants import DEFAULT_MAX_WORKERS, ECR_SCAN_COMPLETE
from core.exceptions import RegistryConnectionException, RegistryException
from core.models import ImageIdentity, ImageScanResult, ScanStatus
from core.registry_interface import RegistryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMED_OUT_MESSAGE = "Audit timed out before the image was processed"


def run_parallel(
    jobs: Mapping[str, Callable[[], T]],
    max_workers: int,
    timeout: Optional[float] = None,
) -> tuple[dict[str, T], list[str]]:
    """
    Run keyed jobs on a thread pool, waiting at most `timeout` seconds.

    Jobs are expected to record their own per-image errors; anything a job
    raises propagates. Jobs still running at the deadline are abandoned,
    not joined.

    Args:
        jobs: Key to zero-argument callable
        max_workers: Pool size
        timeout: Overall wait in seconds (None = unbounded)

    Returns:
        Tuple of (results by key, keys that did not finish in time)
    """
    results: dict[str, T] = {}
    executor = ThreadPoolExecutor(max_workers=max_workers)
    future_to_key = {executor.submit(job): key for key, job in jobs.items()}
    try:
        for i, future in enumerate(as_completed(future_to_key, timeout=timeout), 1):
            results[future_to_key[future]] = future.result()
            logger.info(f"Progress: {i}/{len(jobs)} images done")
    except FuturesTimeoutError:
        logger.error(f"Timed out after {timeout}s with {len(jobs) - len(results)} images unfinished")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return results, [key for key in jobs if key not in results]


class ScanResultAggregator:
    """
    Retrieves scan findings from a registry.

    Only RegistryConnectionException (the registry cannot be reached at all)
    escapes the batch call; everything image-specific becomes data.
    """

    def __init__(self, registry: RegistryClient, max_workers: int = DEFAULT_MAX_WORKERS):
        """
        Initialize the aggregator.

        Args:
            registry: Registry client
            max_workers: Maximum images fetched concurrently in batch mode
        """
        self.registry = registry
        self.max_workers = max_workers

    def get_findings(
        self,
        image: ImageIdentity,
        component: Optional[str] = None,
    ) -> ImageScanResult:
        """
        Fetch findings for a single image.

        Args:
            image: Image to fetch findings for
            component: Report key (defaults to the repository name)

        Returns:
            ImageScanResult; status is FAILED if the scan did not complete

        Raises:
            RegistryException: The registry rejected the request
            RegistryConnectionException: The registry could not be reached
        """
        component = component or image.repository_name
        logger.info(f"Fetching scan findings for {image}")
        scan = self.registry.get_scan_findings(image)

        if scan.status.upper() != ECR_SCAN_COMPLETE:
            description = scan.status_description or "no description"
            return ImageScanResult.failed(
                component,
                image,
                f"Scan of {image} is not complete (status {scan.status}): {description}",
            )

        return ImageScanResult(
            component=component,
            image=image,
            status=ScanStatus.SUCCEEDED,
            findings=scan.findings,
            severity_counts=dict(scan.severity_counts),
        )

    def get_findings_isolated(self, component: str, image: ImageIdentity) -> ImageScanResult:
        """
        Fetch findings for one image, recording per-image errors as data.

        Args:
            component: Report key
            image: Image to fetch findings for

        Returns:
            ImageScanResult, FAILED with a message if the image could not be fetched

        Raises:
            RegistryConnectionException: The registry could not be reached
        """
        try:
            return self.get_findings(image, component)
        except RegistryConnectionException:
            raise
        except RegistryException as e:
            logger.warning(f"Failed to fetch findings for {image}: {e}")
            return ImageScanResult.failed(component, image, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error fetching findings for {image}")
            return ImageScanResult.failed(component, image, f"Unexpected error: {e}")

    def get_findings_batch(
        self,
        images: Mapping[str, ImageIdentity],
        timeout: Optional[float] = None,
    ) -> dict[str, ImageScanResult]:
        """
        Fetch findings for many images in parallel.

        Args:
            images: Component name to image
            timeout: Overall wait in seconds; unfinished images are FAILED

        Returns:
            Component name to ImageScanResult, one entry per input image

        Raises:
            RegistryConnectionException: The registry could not be reached
        """
        logger.info(f"Fetching findings for {len(images)} images with {self.max_workers} workers")

        jobs = {
            component: partial(self.get_findings_isolated, component, image)
            for component, image in images.items()
        }
        results, unfinished = run_parallel(jobs, self.max_workers, timeout)
        for component in unfinished:
            results[component] = ImageScanResult.failed(component, images[component], TIMED_OUT_MESSAGE)

        failed = [c for c, r in results.items() if not r.succeeded]
        logger.info(
            f"Fetched findings: {len(results) - len(failed)} succeeded, {len(failed)} failed"
        )
        return {component: results[component] for component in images}
