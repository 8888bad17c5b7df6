"""
Find usages of the symbol under a caret position.

Resolves the client document path, collects the references through the
source index and renders them as a "Find Usages" marker set.
"""

import logging
from typing import Any

from .._security import get_project_root, resolve_aliased_path
from ..models.reference_models import (
    AnalysisError,
    FileLocation,
    FindUsagesResponse,
    MarkerAutoSelect,
    SourceIndexError,
    SourceMarkerSet,
)
from .find_references import find_references
from .source_index import TypeScriptSourceIndex
from .source_markers import SourceMarkerGenerator

logger = logging.getLogger(__name__)

FIND_USAGES_LABEL = "Find Usages"


def find_usages_impl(
    index: TypeScriptSourceIndex,
    file_path: str,
    line: int,
    column: int,
    project_root: str | None = None,
    force_reparse: bool = True,
) -> FindUsagesResponse:
    """
    Find all usages of the symbol at a position in a document.

    Args:
        index: Source index holding translation units and unsaved buffers
        file_path: Document path, absolute, relative to the project root or ~-prefixed
        line: 1-based line of the caret
        column: 1-based column of the caret
        project_root: Project root, MCP_FILE_ROOT when omitted
        force_reparse: Reparse the document before searching

    Returns:
        FindUsagesResponse with the "Find Usages" marker set
    """
    marker_set = SourceMarkerSet(name=FIND_USAGES_LABEL, auto_select=MarkerAutoSelect.NONE)

    try:
        resolved_path = str(resolve_aliased_path(file_path, get_project_root(project_root)))
    except ValueError as e:
        error = AnalysisError(code="INVALID_PATH", message=str(e), file=file_path)
        return FindUsagesResponse(marker_set=marker_set, errors=[error], success=False)

    if line < 1 or column < 1:
        error = AnalysisError(
            code="INVALID_LOCATION",
            message=f"Line and column must be 1-based, got {line}:{column}",
            file=resolved_path,
            line=line,
        )
        return FindUsagesResponse(marker_set=marker_set, errors=[error], success=False, searched_file=resolved_path)

    location = FileLocation(resolved_path, line, column)
    try:
        usage_locations = find_references(index, location, force_reparse=force_reparse)
    except SourceIndexError as e:
        logger.error("Find usages failed for %s:%d:%d: %s", resolved_path, line, column, e)
        error = AnalysisError(code="INDEX_ERROR", message=str(e), file=resolved_path, line=line)
        return FindUsagesResponse(marker_set=marker_set, errors=[error], success=False, searched_file=resolved_path)

    # One generator per call, its file cache dies with it
    marker_set.markers = SourceMarkerGenerator(index.unsaved_files).markers_for_cursor_locations(usage_locations)

    return FindUsagesResponse(
        marker_set=marker_set,
        errors=[],
        success=True,
        searched_file=resolved_path,
        total_usages=len(marker_set.markers),
    )


def update_unsaved_file_impl(
    index: TypeScriptSourceIndex, file_path: str, contents: str, project_root: str | None = None
) -> dict[str, Any]:
    """Register the in-memory contents of a document."""
    try:
        resolved_path = str(resolve_aliased_path(file_path, get_project_root(project_root)))
    except ValueError as e:
        return {"status": "error", "error": {"code": "INVALID_PATH", "message": str(e)}}

    index.update_unsaved_file(resolved_path, contents)
    logger.debug("Updated unsaved buffer for %s (%d chars)", resolved_path, len(contents))
    return {
        "status": "success",
        "data": {"file_path": resolved_path, "length": len(contents)},
    }


def remove_unsaved_file_impl(
    index: TypeScriptSourceIndex, file_path: str, project_root: str | None = None
) -> dict[str, Any]:
    """Drop the in-memory contents of a document so disk content is used again."""
    try:
        resolved_path = str(resolve_aliased_path(file_path, get_project_root(project_root)))
    except ValueError as e:
        return {"status": "error", "error": {"code": "INVALID_PATH", "message": str(e)}}

    removed = index.remove_unsaved_file(resolved_path)
    return {
        "status": "success",
        "data": {"file_path": resolved_path, "removed": removed},
    }
