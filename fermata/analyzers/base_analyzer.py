"""
Base Analyzer

Contract for analyzer collaborators that feed the Dimension Aggregator.
Each analyzer family returns a partial score breakdown for one name.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

import structlog

from ..models import NameContext

logger = structlog.get_logger(__name__)


class BaseAnalyzer(ABC):
    """
    Base class for per-name analyzers.

    Subclasses declare the breakdown fields they provide and implement
    analyze(). Callers enforce timeouts and treat any exception as an
    empty partial result.
    """

    name: str = "analyzer"
    provided_fields: Tuple[str, ...] = ()

    def __init__(self):
        self.logger = logger.bind(component=self.__class__.__name__)

    @abstractmethod
    async def analyze(self, name: str, context: NameContext) -> Dict[str, float]:
        """
        Analyze a single candidate name.

        Args:
            name: Candidate name
            context: Request context

        Returns:
            Partial score breakdown; fields in [0, 1]
        """

    def get_analyzer_info(self) -> Dict[str, object]:
        return {
            "analyzer": self.name,
            "provided_fields": list(self.provided_fields),
            "component_type": "BaseAnalyzer",
        }
