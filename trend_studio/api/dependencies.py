"""Dependency injection for the API layer.

This module provides the content client and the Blogger client.
"""

from typing import Generator, Optional

from ..chains import ContentClient
from ..publisher import BloggerClient

# Global instances (can be replaced for testing)
_content_client: Optional[ContentClient] = None
_blogger_client: Optional[BloggerClient] = None


def get_content_client() -> Generator[ContentClient, None, None]:
    """Get the content client instance.

    This is a FastAPI dependency that provides the content client.
    """
    global _content_client
    if _content_client is None:
        _content_client = ContentClient()
    yield _content_client


def get_blogger_client() -> Generator[BloggerClient, None, None]:
    """Get the Blogger client instance."""
    global _blogger_client
    if _blogger_client is None:
        _blogger_client = BloggerClient()
    yield _blogger_client


def set_content_client(client: ContentClient) -> None:
    """Set the content client instance (for testing)."""
    global _content_client
    _content_client = client


def set_blogger_client(client: BloggerClient) -> None:
    """Set the Blogger client instance (for testing)."""
    global _blogger_client
    _blogger_client = client


def reset_dependencies() -> None:
    """Reset all dependencies to None (for testing)."""
    global _content_client, _blogger_client
    _content_client = None
    _blogger_client = None
