"""Integrations with external services."""

from integrations.ecr_client import ECRClient

__all__ = [
    "ECRClient",
]
