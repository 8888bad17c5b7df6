"""Turn reference locations into HTML source markers."""

import html
import logging
from pathlib import Path

import chardet

from ..models.index_protocols import UnsavedFiles
from ..models.reference_models import CursorLocation, SourceMarker, SourceMarkerType

logger = logging.getLogger(__name__)


class FileContentsCache:
    """
    Line-split contents of source files, loaded once per path.

    Unsaved editor buffers win over disk. A file that cannot be read is cached
    as an empty list so later lookups neither fail nor retry the read.
    """

    def __init__(self, unsaved_files: UnsavedFiles):
        self._unsaved_files = unsaved_files
        self._contents: dict[str, list[str]] = {}

    def lines_of(self, filename: str) -> list[str]:
        lines = self._contents.get(filename)
        if lines is None:
            lines = self._load(filename)
            self._contents[filename] = lines
        return lines

    def _load(self, filename: str) -> list[str]:
        for unsaved_file in self._unsaved_files:
            if unsaved_file.filename == filename:
                return unsaved_file.contents.split("\n")

        try:
            raw_content = Path(filename).read_bytes()
        except OSError as e:
            logger.error("Failed to read %s: %s", filename, e)
            return []

        try:
            content = raw_content.decode("utf-8")
        except UnicodeDecodeError:
            # Columns come from the parsed buffer, so only guess when it isn't UTF-8
            encoding = chardet.detect(raw_content).get("encoding") or "utf-8"
            try:
                content = raw_content.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                content = raw_content.decode("utf-8", errors="replace")

        # Only "\n" ends a line for the parser, so other separators stay in the text
        return [line[:-1] if line.endswith("\r") else line for line in content.split("\n")]

    def __contains__(self, filename: str) -> bool:
        return filename in self._contents


class SourceMarkerGenerator:
    """Builds one usage marker per reference location, highlighting the token."""

    def __init__(self, unsaved_files: UnsavedFiles):
        self._file_contents = FileContentsCache(unsaved_files)

    @property
    def file_contents(self) -> FileContentsCache:
        return self._file_contents

    def markers_for_cursor_locations(self, locations: list[CursorLocation]) -> list[SourceMarker]:
        markers = []
        for loc in locations:
            # get file contents and use it to create the message
            line = loc.line - 1
            message = ""
            lines = self._file_contents.lines_of(loc.file_path)
            if 0 <= line < len(lines):
                message = html_message(loc, lines[line])

            markers.append(
                SourceMarker(
                    type=SourceMarkerType.USAGE,
                    file_path=loc.file_path,
                    line=loc.line,
                    column=loc.column,
                    message=message,
                    message_is_html=True,
                )
            )
        return markers


def html_message(loc: CursorLocation, message: str) -> str:
    """Escape a source line, wrapping the referenced token in <strong>."""
    if loc.extent == 0:
        return "<strong>" + html.escape(message) + "</strong>"

    col = loc.column - 1
    if col + loc.extent > len(message):
        # Extent runs past the line (e.g. a multi-line token), show it plain
        return html.escape(message)

    return (
        html.escape(message[:col])
        + "<strong>"
        + html.escape(message[col : col + loc.extent])
        + "</strong>"
        + html.escape(message[col + loc.extent :])
    )
