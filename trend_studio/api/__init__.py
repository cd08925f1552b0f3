"""HTTP API for TrendStudio.

Exposes trend discovery, drafting, previews and publishing over REST, and
serves the single-page client when a build directory is configured.
"""

from .app import create_app
from .dependencies import get_blogger_client, get_content_client
from .routes import router

__all__ = [
    "create_app",
    "router",
    "get_content_client",
    "get_blogger_client",
]
