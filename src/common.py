"""
Common constants and helpers shared across the Scangate application.
"""

from typing import Optional

# Output configuration for all reporter types
OUTPUT_CONFIGS = {
    "junit": {
        "description": "JUnit XML test reports (one suite per image)",
    },
    "xlsx": {
        "description": "Audit summary workbook (XLSX)",
    },
    "elasticsearch": {
        "description": "Findings exported to Elasticsearch",
    },
}

DEFAULT_REPORTERS = {"junit"}


def parse_reporters(reporter_arg: Optional[str]) -> set[str]:
    """
    Parse a comma-delimited reporter list.

    Args:
        reporter_arg: e.g. "junit,xlsx" (None selects the default reporters)

    Returns:
        Set of reporter names

    Raises:
        ValueError: If a reporter name is unknown or the list is empty
    """
    valid_types = set(OUTPUT_CONFIGS.keys())
    if reporter_arg is None:
        return set(DEFAULT_REPORTERS)
    requested = {t.strip() for t in reporter_arg.split(",") if t.strip()}
    invalid = requested - valid_types
    if invalid:
        raise ValueError(
            f"Invalid reporter(s): {', '.join(sorted(invalid))}. "
            f"Valid reporters: {', '.join(sorted(valid_types))}"
        )
    if not requested:
        raise ValueError("At least one reporter must be specified")
    return requested
