"""
Centralized configuration constants for Scangate.

This module provides a single source of truth for configuration values
that are used across multiple modules, making them easier to update
and maintain.
"""

# ============================================================================
# Environment
# ============================================================================

ENV_PREFIX = "ESA_"
"""Prefix of environment variables that provide CLI defaults."""

# ============================================================================
# Policy Defaults
# ============================================================================

DEFAULT_SEVERITY_CUTOFF = "MEDIUM"
"""Lowest severity counted as a failure."""

PACKAGE_NAME_KEY = "package_name"
"""Finding attribute holding the affected package name."""

PACKAGE_VERSION_KEY = "package_version"
"""Finding attribute holding the affected package version."""

NO_DESCRIPTION_PLACEHOLDER = "No description provided"
"""Shown in failure messages when the scanner gives no description."""

# ============================================================================
# Composition Normalization
# ============================================================================

COMPOSITION_KEY_SUFFIX = "_version"
"""Suffix stripped from composition keys (e.g., "nexus_version" -> "nexus")."""

COMPOSITION_KEY_PREFIX = ""
"""Prefix stripped from composition keys."""

# ============================================================================
# Concurrency and Performance
# ============================================================================

DEFAULT_MAX_WORKERS = 4
"""Default number of images audited concurrently."""

# ============================================================================
# Registry (ECR) Settings
# ============================================================================

LIST_IMAGES_PAGE_SIZE = 100
"""Maximum results per ListImages page."""

DESCRIBE_IMAGES_BATCH_SIZE = 100
"""Maximum image ids per DescribeImages request (ECR limit)."""

DESCRIBE_REPOSITORIES_PAGE_SIZE = 1000
"""Maximum results per DescribeRepositories page."""

SCAN_FINDINGS_PAGE_SIZE = 1000
"""Maximum results per DescribeImageScanFindings page."""

ECR_SCAN_COMPLETE = "COMPLETE"
"""ECR scan status meaning findings are available."""

# ============================================================================
# Report Output
# ============================================================================

DEFAULT_OUTPUT_DIR = "reports"
"""Directory reports are written to."""

SINGLE_REPORT_FILE_NAME = "testreport.xml"
"""JUnit report file name in single-image mode."""

BATCH_REPORT_FILE_NAME = "report.xml"
"""JUnit report file name inside each component directory in batch mode."""

DEFAULT_XLSX_FILE_NAME = "scan-summary.xlsx"
"""Fleet summary workbook file name."""

# ============================================================================
# Elasticsearch Export
# ============================================================================

DEFAULT_ES_INDEX = "ecr-scan-findings"
"""Index findings are exported to."""

ES_REQUEST_TIMEOUT = 30
"""Timeout for Elasticsearch bulk requests (seconds)."""
