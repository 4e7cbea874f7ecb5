"""
Base output generator interface.

Defines the contract that all output generators must implement.
"""

from abc import ABC, abstractmethod

from core.models import ImageReport
from outputs.config import GeneratorConfig


class OutputGenerator(ABC):
    """
    Abstract base class for report generators.

    All output generators (JUnit, XLSX, Elasticsearch) must implement this interface.
    """

    @abstractmethod
    def generate(
        self,
        reports: list[ImageReport],
        config: GeneratorConfig,
    ) -> list[str]:
        """
        Generate output from image reports.

        Args:
            reports: Image reports to include
            config: Generator-specific configuration

        Returns:
            Destinations written (file paths or URLs)

        Raises:
            OutputException: If generation fails
        """
        pass

    @abstractmethod
    def supports_format(self) -> str:
        """
        Return the format this generator supports.

        Returns:
            Format identifier (e.g., "junit", "xlsx")
        """
        pass
