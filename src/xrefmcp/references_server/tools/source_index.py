"""
Source index owning parsed translation units and unsaved editor buffers.

The index hands out TypeScriptTranslationUnit instances keyed by absolute path.
Buffers registered as unsaved take precedence over disk content whenever a
file is (re)parsed.
"""

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterator

from ..models.index_protocols import ChildVisitor, visit_children
from ..models.reference_models import FileLocation, SourceIndexError, UnsavedFile
from .translation_unit import TreeSitterCursor, TypeScriptTranslationUnit
from .typescript_parser import TypeScriptParser, is_supported_file

logger = logging.getLogger(__name__)


class UnsavedFiles:
    """Ordered collection of in-memory buffers, one per absolute path."""

    def __init__(self):
        self._files: OrderedDict[str, UnsavedFile] = OrderedDict()
        self._lock = threading.RLock()

    def update(self, filename: str, contents: str) -> None:
        with self._lock:
            self._files[filename] = UnsavedFile(filename=filename, contents=contents)
            self._files.move_to_end(filename)

    def remove(self, filename: str) -> bool:
        with self._lock:
            return self._files.pop(filename, None) is not None

    def remove_all(self) -> None:
        with self._lock:
            self._files.clear()

    def get(self, filename: str) -> UnsavedFile | None:
        with self._lock:
            return self._files.get(filename)

    def num_unsaved_files(self) -> int:
        with self._lock:
            return len(self._files)

    def __iter__(self) -> Iterator[UnsavedFile]:
        # Iterate over a snapshot so callers never see a concurrent update
        with self._lock:
            files = list(self._files.values())
        return iter(files)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)


class TypeScriptSourceIndex:
    """
    Source index for TypeScript, TSX and JavaScript files.

    Translation units are parsed lazily and cached. A forced reparse reads the
    source again and only parses when it differs from the cached unit, so the
    caret lookup and the search of one request share a single unit.
    """

    def __init__(self, parser: TypeScriptParser | None = None, max_file_size_mb: int = 5):
        """
        Initialize the index.

        Args:
            parser: Parser to use, a new TypeScriptParser when omitted
            max_file_size_mb: Size limit passed to the parser it creates
        """
        self._parser = parser or TypeScriptParser(max_file_size_mb=max_file_size_mb)
        self._unsaved_files = UnsavedFiles()
        self._translation_units: dict[str, TypeScriptTranslationUnit] = {}
        self._lock = threading.RLock()

    @property
    def unsaved_files(self) -> UnsavedFiles:
        return self._unsaved_files

    def update_unsaved_file(self, file_path: str, contents: str) -> None:
        """Register the editor buffer for a file."""
        self._unsaved_files.update(file_path, contents)
        self.invalidate(file_path)

    def remove_unsaved_file(self, file_path: str) -> bool:
        """Forget the editor buffer for a file; disk content is used again."""
        removed = self._unsaved_files.remove(file_path)
        if removed:
            self.invalidate(file_path)
        return removed

    def invalidate(self, file_path: str) -> None:
        with self._lock:
            self._translation_units.pop(file_path, None)

    def get_translation_unit(self, file_path: str, force_reparse: bool = False) -> TypeScriptTranslationUnit | None:
        """
        Get the translation unit for a file, parsing it when needed.

        Args:
            file_path: Absolute path of the file
            force_reparse: Read the source again and reparse it when it changed

        Returns:
            The translation unit, or None when the file cannot be indexed

        Raises:
            SourceIndexError: If the file has no unsaved buffer and cannot be read
        """
        with self._lock:
            if not force_reparse and file_path in self._translation_units:
                return self._translation_units[file_path]

            if not is_supported_file(file_path):
                logger.warning("Not indexing unsupported file %s", file_path)
                return None

            content_bytes = self._read_contents(file_path)
            cached = self._translation_units.get(file_path)
            if cached is not None and cached.source == content_bytes:
                return cached

            result = self._parser.parse_content(content_bytes, file_path)
            if not result.success:
                for error in result.errors:
                    logger.warning("Cannot index %s: %s", file_path, error.message)
                self._translation_units.pop(file_path, None)
                return None

            tu = TypeScriptTranslationUnit(file_path, result.tree, content_bytes)
            self._translation_units[file_path] = tu
            return tu

    def referenced_cursor_for_file_location(self, location: FileLocation) -> TreeSitterCursor:
        """
        Resolve the declaration referenced at a file location.

        The file is checked for changes first so the caret is resolved against
        the content that will be searched.

        Returns:
            Cursor for the declaration, invalid when nothing is referenced there
        """
        tu = self.get_translation_unit(location.file_path, force_reparse=True)
        if tu is None:
            return TreeSitterCursor(None, None)
        return tu.cursor_at(location.line, location.column).get_referenced()

    def visit_children(self, root: TreeSitterCursor, visitor: ChildVisitor) -> bool:
        return visit_children(root, visitor)

    def _read_contents(self, file_path: str) -> bytes:
        unsaved = self._unsaved_files.get(file_path)
        if unsaved is not None:
            return unsaved.contents.encode("utf-8")

        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise SourceIndexError(f"Cannot read file {file_path}: {e}") from e

    def __len__(self) -> int:
        with self._lock:
            return len(self._translation_units)
