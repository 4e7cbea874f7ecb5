"""
Error classification for registry calls.

Categorizes botocore/ECR errors into classes that decide whether a failure is
recorded against a single image or aborts the whole run.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional
import re

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    PartialCredentialsError,
)

from core.exceptions import RegistryConnectionException, RegistryException


class ErrorCategory(str, Enum):
    """
    Error categories for registry failures.
    """
    SERVER_ERROR = "server_error"
    """ECR ServerException"""

    INVALID_PARAMETER = "invalid_parameter"
    """Request was malformed (bad tag, bad registry id)"""

    REPOSITORY_NOT_FOUND = "repository_not_found"
    """Repository does not exist in the registry"""

    IMAGE_NOT_FOUND = "image_not_found"
    """Image tag does not exist in the repository"""

    SCAN_NOT_FOUND = "scan_not_found"
    """Image exists but was never scanned"""

    ACCESS_DENIED = "access_denied"
    """Credentials are valid but not allowed to read this resource"""

    RATE_LIMIT = "rate_limit"
    """Request was throttled"""

    TRANSPORT = "transport"
    """No credentials, no region, endpoint unreachable - fatal"""

    UNKNOWN = "unknown"
    """Unrecognized error - recorded per image"""


@dataclass(frozen=True)
class ClassifiedError:
    """
    An error with its classification and metadata.
    """
    category: ErrorCategory
    original_message: str
    fatal: bool = False
    error_code: Optional[str] = None


class ErrorClassifier:
    """
    Classifies botocore errors into categories.
    """

    # ECR error codes, see the ECR API reference
    ERROR_CODES = {
        "ServerException": ErrorCategory.SERVER_ERROR,
        "InvalidParameterException": ErrorCategory.INVALID_PARAMETER,
        "ValidationException": ErrorCategory.INVALID_PARAMETER,
        "RepositoryNotFoundException": ErrorCategory.REPOSITORY_NOT_FOUND,
        "ImageNotFoundException": ErrorCategory.IMAGE_NOT_FOUND,
        "ScanNotFoundException": ErrorCategory.SCAN_NOT_FOUND,
        "AccessDeniedException": ErrorCategory.ACCESS_DENIED,
        "ThrottlingException": ErrorCategory.RATE_LIMIT,
        "LimitExceededException": ErrorCategory.RATE_LIMIT,
    }

    # Codes meaning the session itself is unusable
    AUTH_CODES = {
        "UnrecognizedClientException",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "SignatureDoesNotMatch",
        "ExpiredTokenException",
        "MissingAuthenticationTokenException",
    }

    # Fallback for codes not listed above
    NOT_FOUND_PATTERNS = [
        r"not found",
        r"does not exist",
    ]

    FATAL_BOTOCORE_ERRORS = (
        NoCredentialsError,
        PartialCredentialsError,
        NoRegionError,
        EndpointConnectionError,
        ConnectTimeoutError,
    )

    @classmethod
    def classify(cls, error: Exception) -> ClassifiedError:
        """
        Classify an exception raised by a registry call.

        Args:
            error: Exception raised by boto3/botocore

        Returns:
            ClassifiedError with category and fatality
        """
        if isinstance(error, ClientError):
            details = error.response.get("Error", {})
            code = details.get("Code", "")
            message = details.get("Message") or str(error)

            if code in cls.AUTH_CODES:
                return ClassifiedError(
                    category=ErrorCategory.TRANSPORT,
                    original_message=message,
                    fatal=True,
                    error_code=code,
                )

            category = cls.ERROR_CODES.get(code)
            if category is None:
                if any(re.search(p, message.lower()) for p in cls.NOT_FOUND_PATTERNS):
                    category = ErrorCategory.IMAGE_NOT_FOUND
                else:
                    category = ErrorCategory.UNKNOWN

            return ClassifiedError(
                category=category,
                original_message=message,
                error_code=code or None,
            )

        if isinstance(error, cls.FATAL_BOTOCORE_ERRORS):
            return ClassifiedError(
                category=ErrorCategory.TRANSPORT,
                original_message=str(error),
                fatal=True,
            )

        if isinstance(error, BotoCoreError):
            return ClassifiedError(
                category=ErrorCategory.UNKNOWN,
                original_message=str(error),
            )

        return ClassifiedError(
            category=ErrorCategory.UNKNOWN,
            original_message=str(error),
        )

    @classmethod
    def to_exception(cls, operation: str, error: Exception) -> Exception:
        """
        Convert a botocore error into the matching Scangate exception.

        Args:
            operation: Registry operation that raised the error
            error: Original exception

        Returns:
            RegistryConnectionException for fatal errors, RegistryException otherwise
        """
        classified = cls.classify(error)
        if classified.fatal:
            return RegistryConnectionException(classified.original_message)
        return RegistryException(operation, classified.category, classified.original_message)
