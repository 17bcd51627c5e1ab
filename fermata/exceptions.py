"""
Fermata Exceptions

Error taxonomy for the scoring, gating and ranking pipeline:
- AnalyzerUnavailable: an analyzer call failed or timed out
- InsufficientQualified: the gate admitted fewer names than required
- InternalComputationError: a stage failed on degenerate input
- ConfigurationError: a malformed request, rejected before processing
- ExternalServiceError: a word association backend failed
"""

from typing import Optional


class FermataError(Exception):
    """Base class for all Fermata errors."""


class AnalyzerUnavailable(FermataError):
    """An analyzer collaborator failed or exceeded its timeout."""

    def __init__(self, analyzer: str, name: str, reason: str):
        self.analyzer = analyzer
        self.name = name
        self.reason = reason
        super().__init__(f"Analyzer '{analyzer}' unavailable for '{name}': {reason}")


class InsufficientQualified(FermataError):
    """Fewer candidates passed the quality gate than the requested minimum."""

    def __init__(self, found: int, required: int):
        self.found = found
        self.required = required
        super().__init__(f"Only {found} qualified candidates, {required} required")


class InternalComputationError(FermataError):
    """A pipeline stage could not compute its output."""

    def __init__(self, stage: str, message: str, cause: Optional[Exception] = None):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {message}")


class ConfigurationError(FermataError):
    """A ranking request is invalid and cannot be processed."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.reason = reason
        self.field = field
        prefix = f"Invalid '{field}': " if field else "Invalid request: "
        super().__init__(prefix + reason)


class ExternalServiceError(FermataError):
    """An external HTTP service could not be reached or returned an error."""

    def __init__(self, service: str, message: str, status: Optional[int] = None):
        self.service = service
        self.status = status
        super().__init__(f"{service}: {message}")
