"""
Entry point for running the log viewer server as a module.

This allows running the server with: python -m logviewer_mcp
"""

from .server import main

if __name__ == "__main__":
    main()
