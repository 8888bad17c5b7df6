"""Tests for the references MCP server."""

import subprocess
import sys
from pathlib import Path

import pytest


class TestIndividualServers:
    """Test that the server can run independently."""

    @pytest.fixture
    def server_configs(self):
        """Get server configurations from pyproject.toml."""
        import tomllib

        with open("pyproject.toml", "rb") as f:
            config = tomllib.load(f)

        return config["tool"]["xrefmcp"]["servers"]

    def test_references_server_imports(self):
        """Test that references server can be imported."""
        from xrefmcp.references_server.server import mcp

        assert mcp.name == "XRefMCP References Server"
        assert hasattr(mcp, "run")

    def test_server_tools_registered(self):
        """Test that the server has its tool decorator."""
        from xrefmcp.references_server.server import mcp

        assert hasattr(mcp, "tool"), "references server missing tool decorator"
        assert callable(mcp.tool), "references server tool decorator not callable"

    def test_server_configs_exist(self, server_configs):
        """Test that every configured server has an existing entry point."""
        assert "references" in server_configs

        for server_name, server in server_configs.items():
            path = Path(server["entry_point"])
            assert path.exists(), f"Entry point for {server_name} does not exist"

    @pytest.mark.parametrize(
        "server_name,entry_point",
        [
            ("references", "servers/references/main.py"),
        ],
    )
    def test_server_entry_point_syntax(self, server_name, entry_point):
        """Test that server entry points have valid Python syntax."""
        result = subprocess.run([sys.executable, "-m", "py_compile", entry_point], capture_output=True, text=True)
        assert result.returncode == 0, f"{entry_point} has syntax errors: {result.stderr}"

    def test_server_version(self):
        """Test that the server has a version defined."""
        module = __import__("xrefmcp.references_server.server", fromlist=["__version__"])

        assert hasattr(module, "__version__"), "references server missing __version__"
        assert module.__version__ == "0.1.0", "references server has wrong version"

    def test_server_shares_one_index(self):
        """Test that the module level index is the one the tools search."""
        from xrefmcp.references_server import server

        assert len(server.index.unsaved_files) == 0
        assert server.config.server_name == server.mcp.name
