"""Tests for document path resolution."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from xrefmcp.references_server._security import get_project_root, resolve_aliased_path


class TestProjectRoot:
    """Test project root lookup."""

    def test_explicit_root(self):
        """Test that an explicit root is used as given."""
        assert get_project_root("/work/project") == "/work/project"

    def test_environment_root(self):
        """Test that MCP_FILE_ROOT is used when no root is given."""
        with patch.dict(os.environ, {"MCP_FILE_ROOT": "/work/env"}):
            assert get_project_root() == "/work/env"
            assert get_project_root(".") == "/work/env"

    def test_default_root(self):
        """Test the current directory fallback."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_project_root() == "."


class TestResolveAliasedPath:
    """Test client path resolution."""

    def test_relative_path(self):
        """Test that relative paths are taken from the project root."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir).resolve()

            assert resolve_aliased_path("src/app.ts", str(root)) == root / "src" / "app.ts"

    def test_absolute_path_inside_root(self):
        """Test that absolute paths inside the root are accepted."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir).resolve()
            path = root / "app.ts"

            assert resolve_aliased_path(str(path), str(root)) == path

    def test_dot_segments_normalized(self):
        """Test that . and .. segments staying inside the root are resolved."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir).resolve()

            assert resolve_aliased_path("./src/../lib/./util.ts", str(root)) == root / "lib" / "util.ts"

    def test_home_alias(self):
        """Test that ~ expands to the home directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            home = Path(temp_dir).resolve()

            with patch.dict(os.environ, {"HOME": str(home)}):
                assert resolve_aliased_path("~/app.ts", str(home)) == home / "app.ts"

    def test_path_traversal_rejected(self):
        """Test protection against directory traversal."""
        with tempfile.TemporaryDirectory() as temp_dir:
            malicious_paths = [
                "../../../etc/passwd",
                "/etc/shadow",
                "src/../../outside.ts",
            ]

            for path in malicious_paths:
                with pytest.raises(ValueError, match="outside project root"):
                    resolve_aliased_path(path, temp_dir)

    def test_empty_path_rejected(self):
        """Test that an empty path is rejected."""
        with pytest.raises(ValueError, match="empty"):
            resolve_aliased_path("", "/work/project")
