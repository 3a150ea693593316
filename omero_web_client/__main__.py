"""
Main entry point for the omero_web_client package.

Allows running the client as: python -m omero_web_client
"""

import sys

from omero_web_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
