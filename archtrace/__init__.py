"""ArchTrace: analysis graph and traceability engine for architecture models."""

__version__ = "0.1.0"

from archtrace.client import ArchTrace
from archtrace.explorer import TraceExplorer
from archtrace.models import (
    AnalysisPath,
    Element,
    ModelStats,
    PathsBetweenResult,
    PathStep,
    RelatedElementsResult,
    RelatedHit,
    RelationshipMatrixResult,
    ValidationResult,
)

__all__ = [
    "AnalysisPath",
    "ArchTrace",
    "Element",
    "ModelStats",
    "PathStep",
    "PathsBetweenResult",
    "RelatedElementsResult",
    "RelatedHit",
    "RelationshipMatrixResult",
    "TraceExplorer",
    "ValidationResult",
    "__version__",
]
