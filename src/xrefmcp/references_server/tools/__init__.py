"""References server tools implementations."""

from typing import Any

from ..config import ReferencesServerConfig
from ..models.reference_models import FindUsagesResponse
from .find_usages import find_usages_impl, remove_unsaved_file_impl, update_unsaved_file_impl
from .source_index import TypeScriptSourceIndex


def register_reference_tools(mcp, index: TypeScriptSourceIndex, config: ReferencesServerConfig):
    """Register find usages tools with the MCP server."""

    @mcp.tool
    def find_usages(file_path: str, line: int, column: int) -> FindUsagesResponse:
        """
        Find every usage of the symbol at a position within its file.

        Use this tool when:
        - Checking where a variable, function, class or type is used in a file
        - Reviewing the impact of renaming or changing a local symbol
        - Navigating between the uses of a parameter or import

        Replaces bash commands: grep -n "symbolName" file.ts (without false
        positives from strings, comments or shadowed names)

        Args:
            file_path: Document path (absolute, relative to the project root, or ~-prefixed)
            line: 1-based line of the symbol
            column: 1-based column of the symbol

        Example:
            find_usages("src/app.ts", 12, 7)
            → FindUsagesResponse with a "Find Usages" marker set, one marker
              per usage with the symbol highlighted in <strong>

        Note: Searches the one file only; unsaved buffers registered with
        update_unsaved_file are searched instead of disk content.
        """
        return find_usages_impl(
            index,
            file_path=file_path,
            line=line,
            column=column,
            project_root=config.project_root,
            force_reparse=config.force_reparse,
        )

    @mcp.tool
    def update_unsaved_file(file_path: str, contents: str) -> dict[str, Any]:
        """
        Register the unsaved editor contents of a document.

        Args:
            file_path: Document path
            contents: Full text of the editor buffer
        """
        return update_unsaved_file_impl(index, file_path, contents, project_root=config.project_root)

    @mcp.tool
    def remove_unsaved_file(file_path: str) -> dict[str, Any]:
        """
        Forget the unsaved contents of a document (after save or close).

        Args:
            file_path: Document path
        """
        return remove_unsaved_file_impl(index, file_path, project_root=config.project_root)


__all__ = ["register_reference_tools"]
