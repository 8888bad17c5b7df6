"""Path resolution and validation for document paths sent by clients."""

import os
from pathlib import Path


def get_project_root(project_root: str | None = None) -> str:
    """Get project root from environment or default.

    Args:
        project_root: Provided project root, if None or "." will use environment

    Returns:
        Project root directory path from MCP_FILE_ROOT environment variable,
        or current directory as fallback
    """
    if project_root is None or project_root == ".":
        return os.getenv("MCP_FILE_ROOT", ".")
    return project_root


def resolve_aliased_path(file_path: str, project_root: str) -> Path:
    """Resolve a client document path to an absolute path inside the project.

    Home aliases (``~``) are expanded and relative paths are taken relative to
    the project root.

    Args:
        file_path: Document path as sent by the client
        project_root: Root directory of the project

    Returns:
        Resolved absolute path

    Raises:
        ValueError: If the path is empty or resolves outside the project root
    """
    if not file_path:
        raise ValueError("File path is empty")

    project_path = Path(project_root).resolve()
    path = Path(file_path).expanduser()

    if path.is_absolute():
        abs_path = path.resolve()
    else:
        abs_path = (project_path / path).resolve()

    # Security check: ensure the resolved path is within project_root
    try:
        abs_path.relative_to(project_path)
    except ValueError:
        raise ValueError(f"File path outside project root: {file_path}") from None

    return abs_path
