"""Entry point for XRefMCP References Server."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from src.xrefmcp.references_server.server import main

if __name__ == "__main__":
    main()
