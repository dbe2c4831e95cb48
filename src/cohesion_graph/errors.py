"""Exception hierarchy for the cohesion graph."""

from typing import List, Optional


class CohesionGraphError(Exception):
    """Base class for every error raised by this package."""


class SourceParseError(CohesionGraphError):
    """Raised when a source file cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path}: {reason}")


class ClassNotFoundError(CohesionGraphError):
    """Raised when a requested class is not declared in the source."""

    def __init__(self, class_name: str, suggestions: Optional[List[str]] = None):
        self.class_name = class_name
        self.suggestions = suggestions or []
        msg = f"Class '{class_name}' not found."
        if self.suggestions:
            msg += f" Available: {', '.join(self.suggestions[:5])}"
        super().__init__(msg)


class GraphStoreError(CohesionGraphError):
    """Raised on store connectivity, constraint or persistence failures."""


class ClassAnalysisError(CohesionGraphError):
    """Raised when the analysis run for one class fails as a whole."""

    def __init__(self, class_name: str, reason: str):
        self.class_name = class_name
        self.reason = reason
        super().__init__(f"Analysis of class '{class_name}' failed: {reason}")
