"""References MCP Server - Find usages of TypeScript symbols."""

import logging
import os
import sys

from fastmcp import FastMCP

from ..utils.output_capture import capture_standard_streams
from .config import get_config
from .tools import register_reference_tools
from .tools.source_index import TypeScriptSourceIndex

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

config = get_config()

# One index per server process, shared by all tool calls
index = TypeScriptSourceIndex(max_file_size_mb=config.max_file_size_mb)

# Initialize the References MCP server
mcp = FastMCP(
    name=config.server_name,
    version=__version__,
    instructions="""
        References server finds the usages of a symbol within a TypeScript,
        TSX or JavaScript file:

        Core Tools:
        - find_usages: Every usage of the symbol at a line/column, as a
          "Find Usages" marker set with the symbol highlighted
        - update_unsaved_file: Search an editor buffer instead of disk content
        - remove_unsaved_file: Go back to disk content after save or close

        Resolution is scope aware: shadowed names, strings and comments are
        never reported, and types and values with the same name are kept apart.

        Best Practices:
        - Send the caret position of the symbol, not of the line start
        - Register unsaved buffers before searching files with pending edits
    """,
)

# Register all reference tools
register_reference_tools(mcp, index, config)


def main():
    """Entry point for the references server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    # Apply log level from configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))

    capture = None
    if config.capture_output:
        # Keep native library chatter off the stdio transport
        native_logger = logging.getLogger("xrefmcp.native")
        capture = capture_standard_streams(
            lambda chunk: native_logger.info(chunk.decode("utf-8", errors="replace").rstrip()),
        )
        # The transport keeps writing to the real stdout
        sys.stdout = os.fdopen(os.dup(capture.stdout.original_fd), "w")

    logger.info(f"Starting references server: {config.server_name} (project root {config.project_root})")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    finally:
        if capture is not None:
            capture.stop()


if __name__ == "__main__":
    main()
