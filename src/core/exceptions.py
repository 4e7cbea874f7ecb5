"""
Exception hierarchy for Scangate.

Separates recoverable, per-image or per-finding problems (recorded as data in
the report) from fatal ones (configuration, registry connectivity) that abort
the run. All exceptions inherit from ScanGateException.
"""


class ScanGateException(Exception):
    """Base exception for all Scangate errors."""
    pass


class ConfigurationException(ScanGateException):
    """Configuration is invalid or missing."""
    pass


class ValidationException(ScanGateException):
    """Input validation failed."""

    def __init__(self, message: str, field: str = None):
        """
        Initialize validation exception.

        Args:
            message: Validation error message
            field: Field that failed validation (optional)
        """
        self.field = field
        if field:
            super().__init__(f"Validation failed for {field}: {message}")
        else:
            super().__init__(f"Validation failed: {message}")


class RegistryConnectionException(ScanGateException):
    """Registry session could not be established (credentials, endpoint)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unable to reach container registry: {reason}")


class RegistryException(ScanGateException):
    """The registry rejected a single request."""

    def __init__(self, operation: str, category, message: str):
        """
        Initialize registry exception.

        Args:
            operation: Registry API operation that failed
            category: ErrorCategory describing the failure
            message: Error message returned by the registry
        """
        self.operation = operation
        self.category = category
        self.message = message
        super().__init__(f"{operation} failed ({category.value}): {message}")


class TagResolutionException(ScanGateException):
    """Latest tag could not be determined for a repository."""

    def __init__(self, repository: str, reason: str):
        self.repository = repository
        self.reason = reason
        super().__init__(f"Cannot resolve latest tag for {repository}: {reason}")


class NoTagsFoundException(TagResolutionException):
    """Repository has no tagged images."""

    def __init__(self, repository: str):
        super().__init__(repository, "no tagged images found")


class AllTagsFilteredException(TagResolutionException):
    """Every tag in the repository matched the exclusion filter."""

    def __init__(self, repository: str, tag_filter: str):
        self.tag_filter = tag_filter
        super().__init__(
            repository,
            f"all tags contain filter '{tag_filter}', check filter/available tags",
        )


class MetadataUnavailableException(TagResolutionException):
    """Push timestamps could not be retrieved."""

    def __init__(self, repository: str, reason: str = "could not retrieve image details"):
        super().__init__(repository, reason)


class MissingAttributeException(ScanGateException):
    """A finding lacks a required attribute."""

    def __init__(self, finding_name: str, key: str):
        self.finding_name = finding_name
        self.key = key
        super().__init__(
            f"Finding {finding_name} has no value for attribute '{key}'"
        )


class OutputException(ScanGateException):
    """Output generation failed."""

    def __init__(self, format_type: str, reason: str):
        """
        Initialize output exception.

        Args:
            format_type: Output format (junit, xlsx, elasticsearch)
            reason: Reason for failure
        """
        self.format_type = format_type
        self.reason = reason
        super().__init__(f"Failed to generate {format_type} output: {reason}")


__all__ = [
    "ScanGateException",
    "ConfigurationException",
    "ValidationException",
    "RegistryConnectionException",
    "RegistryException",
    "TagResolutionException",
    "NoTagsFoundException",
    "AllTagsFilteredException",
    "MetadataUnavailableException",
    "MissingAttributeException",
    "OutputException",
]
