"""References server models."""

from .index_protocols import (
    ChildVisit,
    ChildVisitor,
    Cursor,
    SourceIndex,
    TranslationUnit,
    UnsavedFiles,
    visit_children,
)
from .reference_models import (
    AnalysisError,
    CursorLocation,
    FileLocation,
    FindUsagesResponse,
    MarkerAutoSelect,
    ParseResult,
    SourceIndexError,
    SourceLocation,
    SourceMarker,
    SourceMarkerSet,
    SourceMarkerType,
    UnsavedFile,
)

__all__ = [
    "AnalysisError",
    "CursorLocation",
    "FileLocation",
    "FindUsagesResponse",
    "MarkerAutoSelect",
    "ParseResult",
    "SourceIndexError",
    "SourceLocation",
    "SourceMarker",
    "SourceMarkerSet",
    "SourceMarkerType",
    "UnsavedFile",
    # AST/index capability interfaces
    "ChildVisit",
    "ChildVisitor",
    "Cursor",
    "SourceIndex",
    "TranslationUnit",
    "UnsavedFiles",
    "visit_children",
]
