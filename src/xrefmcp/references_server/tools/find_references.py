"""
Find references to the symbol at a source location within one translation unit.

The declaration under the location is resolved through the source index, its
USR is taken as the search key, and the translation unit is walked once,
recording every cursor whose referenced declaration carries the same USR.
"""

import logging
from dataclasses import dataclass, field

from ..models.index_protocols import ChildVisit, Cursor, SourceIndex
from ..models.reference_models import CursorLocation, FileLocation

logger = logging.getLogger(__name__)


@dataclass
class ReferenceQuery:
    """Accumulator for one traversal: the target USR and the matches so far."""

    usr: str
    references: list[CursorLocation] = field(default_factory=list)


def collect_references(index: SourceIndex, root: Cursor, main_file: str, usr: str) -> list[CursorLocation]:
    """
    Walk every cursor below ``root`` and collect references to ``usr``.

    Cursors located outside ``main_file`` are never recorded, but their children
    are still visited. Matches are returned in pre-order traversal order.
    """
    query = ReferenceQuery(usr)

    def visitor(cursor: Cursor, parent: Cursor) -> ChildVisit:
        # Nodes from other files may still wrap main file content
        if cursor.get_source_location().file_path != main_file:
            return ChildVisit.RECURSE

        referenced = cursor.get_referenced()
        if referenced.is_valid() and referenced.is_declaration() and referenced.get_usr() == query.usr:
            query.references.append(cursor.get_location())

        # recurse into namespaces, classes, function bodies, etc.
        return ChildVisit.RECURSE

    index.visit_children(root, visitor)
    return list(query.references)


def find_references(index: SourceIndex, location: FileLocation, force_reparse: bool = True) -> list[CursorLocation]:
    """
    Find all references to the declaration referenced at ``location``.

    Args:
        index: Source index owning the translation units
        location: File, 1-based line and 1-based column to resolve
        force_reparse: Reparse the file first so unsaved edits are reflected

    Returns:
        Reference locations in traversal order; empty when there is nothing
        searchable at the location

    Raises:
        SourceIndexError: If the index cannot load the translation unit
    """
    cursor = index.referenced_cursor_for_file_location(location)
    if not cursor.is_valid() or not cursor.is_declaration():
        logger.debug("No declaration referenced at %s:%d:%d", location.file_path, location.line, location.column)
        return []

    # bail if the declaration has no USR
    usr = cursor.get_usr()
    if not usr:
        logger.debug("Declaration at %s:%d:%d has no USR", location.file_path, location.line, location.column)
        return []

    tu = index.get_translation_unit(location.file_path, force_reparse)
    if tu is None:
        logger.debug("No translation unit for %s", location.file_path)
        return []

    references = collect_references(index, tu.get_cursor(), tu.path, usr)
    logger.debug("Found %d references to %s in %s", len(references), usr, tu.path)
    return references
