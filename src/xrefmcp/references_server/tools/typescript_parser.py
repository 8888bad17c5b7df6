"""
TypeScript parser with tree-sitter integration.

Turns TypeScript, TSX and JavaScript buffers into tree-sitter trees for the
source index. Buffers come from disk or from unsaved editor content, so the
parser works on bytes and never opens files itself.
"""

import logging
import time
from typing import Any

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Parser

from ..models.reference_models import AnalysisError, ParseResult

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSIONS = (".ts", ".mts", ".cts")
TSX_EXTENSIONS = (".tsx", ".js", ".jsx", ".mjs", ".cjs")


def is_supported_file(file_path: str) -> bool:
    """Check whether the parser has a grammar for this file."""
    return file_path.lower().endswith(TYPESCRIPT_EXTENSIONS + TSX_EXTENSIONS)


class TypeScriptParser:
    """
    Core TypeScript parser.

    Features:
    - Separate parsers for TypeScript (.ts) and TSX (.tsx, and JavaScript) files
    - File size limit
    - Syntax errors reported as PARSE_ERROR entries without failing the parse
    """

    def __init__(self, max_file_size_mb: int = 5):
        """
        Initialize TypeScript parser with configuration.

        Args:
            max_file_size_mb: Maximum individual buffer size to parse
        """
        self.max_file_size_mb = max_file_size_mb
        self.max_file_size_bytes = max_file_size_mb * 1024 * 1024

        self._ts_parser = Parser()
        self._tsx_parser = Parser()
        self._ts_parser.language = Language(ts_typescript.language_typescript())
        # TSX is a superset that also accepts plain JavaScript
        self._tsx_parser.language = Language(ts_typescript.language_tsx())

    def parse_content(self, content_bytes: bytes, file_path: str) -> ParseResult:
        """
        Parse a buffer belonging to ``file_path``.

        Args:
            content_bytes: UTF-8 encoded source text
            file_path: Path the buffer belongs to, used to pick the grammar

        Returns:
            ParseResult with success status, tree and any syntax errors
        """
        if not is_supported_file(file_path):
            error = AnalysisError(code="UNSUPPORTED_FILE", message=f"No grammar for file: {file_path}", file=file_path)
            return ParseResult(success=False, errors=[error])

        if len(content_bytes) > self.max_file_size_bytes:
            error = AnalysisError(
                code="FILE_TOO_LARGE",
                message=f"File exceeds size limit ({self.max_file_size_mb}MB): {file_path}",
                file=file_path,
            )
            return ParseResult(success=False, errors=[error])

        start_time = time.perf_counter()
        parser = self._ts_parser if file_path.lower().endswith(TYPESCRIPT_EXTENSIONS) else self._tsx_parser
        tree = parser.parse(content_bytes)

        errors = []
        if tree.root_node.has_error:
            for node in self._find_error_nodes(tree.root_node):
                errors.append(
                    AnalysisError(
                        code="PARSE_ERROR",
                        message=f"Syntax error at line {node.start_point[0] + 1}",
                        file=file_path,
                        line=node.start_point[0] + 1,
                    )
                )
            logger.debug("Parsed %s with %d syntax errors", file_path, len(errors))

        parse_time_ms = (time.perf_counter() - start_time) * 1000
        return ParseResult(success=True, tree=tree, errors=errors, parse_time_ms=parse_time_ms)

    def _find_error_nodes(self, root: Any) -> list[Any]:
        """Find all ERROR and MISSING nodes in the AST."""
        errors = []
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                errors.append(node)
            stack.extend(reversed(node.children))
        return errors
