"""Test references server tool registration."""

import sys
from pathlib import Path

import pytest
from fastmcp import FastMCP

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xrefmcp.references_server.config import ReferencesServerConfig
from xrefmcp.references_server.tools import register_reference_tools
from xrefmcp.references_server.tools.source_index import TypeScriptSourceIndex


class TestServerRegistration:
    """Test suite for references server tool registration."""

    @pytest.mark.asyncio
    async def test_references_server_registration(self):
        """Test that references server tools register correctly."""
        mcp = FastMCP(name="Test References Server")
        register_reference_tools(mcp, TypeScriptSourceIndex(), ReferencesServerConfig())

        tools = await mcp.get_tools()
        tool_names = list(tools)

        expected_tools = ["find_usages", "update_unsaved_file", "remove_unsaved_file"]

        assert len(tool_names) == 3, f"Expected 3 reference tools, got {len(tool_names)}"
        for tool in expected_tools:
            assert tool in tool_names, f"Reference tool '{tool}' not registered"

    @pytest.mark.asyncio
    async def test_tools_share_index(self):
        """Test that buffers registered through one tool are seen by the others."""
        mcp = FastMCP(name="Test References Server")
        index = TypeScriptSourceIndex()
        register_reference_tools(mcp, index, ReferencesServerConfig(project_root="/work/project"))

        tools = await mcp.get_tools()
        result = tools["update_unsaved_file"].fn("src/app.ts", "let a = 1;")

        assert result["status"] == "success"
        assert index.unsaved_files.get("/work/project/src/app.ts") is not None

        tools["remove_unsaved_file"].fn("src/app.ts")
        assert index.unsaved_files.num_unsaved_files() == 0
