"""
Reference search models for FastMCP integration.

These dataclasses describe source locations, the usage markers produced by a
find-usages search, and the tool response wrapping them.
"""

from dataclasses import dataclass, field


@dataclass
class AnalysisError:
    """Standard error information for reference operations."""

    code: str  # Error code like "INDEX_ERROR", "INVALID_PATH", etc.
    message: str  # Human-readable error message
    file: str | None = None  # File path where error occurred
    line: int | None = None  # Line number where error occurred


@dataclass(frozen=True)
class SourceLocation:
    """A position inside a source file as reported by the AST layer."""

    file_path: str  # Absolute path of the file containing the position
    line: int  # Line number (1-based)
    column: int  # Column number (1-based, in characters)


@dataclass(frozen=True)
class FileLocation:
    """A caller supplied position to resolve a symbol at."""

    file_path: str
    line: int  # 1-based
    column: int  # 1-based


@dataclass(frozen=True)
class CursorLocation:
    """One concrete occurrence of a symbol inside a translation unit."""

    file_path: str
    line: int  # 1-based
    column: int  # 1-based, in characters
    extent: int = 0  # Length of the token in characters, 0 when unknown

    @property
    def source_location(self) -> SourceLocation:
        return SourceLocation(self.file_path, self.line, self.column)


@dataclass
class UnsavedFile:
    """An in-memory editor buffer whose content may differ from disk."""

    filename: str
    contents: str

    @property
    def length(self) -> int:
        return len(self.contents)


class SourceMarkerType:
    """Constants for source marker types."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    USAGE = "usage"


class MarkerAutoSelect:
    """Which marker, if any, a client should select when showing a set."""

    NONE = "none"
    FIRST = "first"
    FIRST_ERROR = "first_error"


@dataclass(frozen=True)
class SourceMarker:
    """A display ready record for one location in a marker set."""

    type: str  # One of SourceMarkerType
    file_path: str
    line: int  # 1-based
    column: int  # 1-based
    message: str  # Already escaped when message_is_html is True
    message_is_html: bool = False


@dataclass
class SourceMarkerSet:
    """A labeled collection of markers presented to the user for navigation."""

    name: str
    markers: list[SourceMarker] = field(default_factory=list)
    auto_select: str = MarkerAutoSelect.NONE


@dataclass
class FindUsagesResponse:
    """Response for find_usages tool."""

    marker_set: SourceMarkerSet
    errors: list[AnalysisError] = field(default_factory=list)
    success: bool = True
    searched_file: str | None = None  # Resolved path the search ran against
    total_usages: int = 0


@dataclass
class ParseResult:
    """Result of parsing a single source buffer."""

    success: bool
    tree: object | None = None  # tree-sitter Tree when successful
    errors: list[AnalysisError] = field(default_factory=list)
    parse_time_ms: float = 0.0


class SourceIndexError(Exception):
    """Raised when the source index cannot load or parse a file it needs."""

    pass
