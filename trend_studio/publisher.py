"""Blogger publishing: HTML conversion and the authenticated post request."""

import logging
import re
from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict, List, Optional

import requests

from .auth import AuthProvider, troubleshooting_hints
from .config import (
    BLOGGER_API_BASE,
    BLOGGER_EXTRA_LABELS,
    BLOGGER_NEW_POST_URL,
    BLOGGER_POST_KIND,
    BLOGGER_POSTS_URL,
    BLOGGER_SCOPE,
    PUBLISH_TIMEOUT_SECONDS,
)
from .exceptions import AuthenticationError, PublishError
from .metrics import record_publish
from .models import GeneratedBlog

logger = logging.getLogger(__name__)

DEFAULT_PUBLISH_ERROR = "Failed to publish to Blogger."

IMAGE_STYLE = "max-width: 100%; height: auto; border-radius: 12px;"

# Ordered markdown substitutions; bold must run before italic
_MARKDOWN_RULES = [
    (re.compile(r"^# (.*)$", re.MULTILINE), r"<h1>\1</h1>"),
    (re.compile(r"^## (.*)$", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^### (.*)$", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.+?)\*"), r"<em>\1</em>"),
    (re.compile(r"^- (.*)$", re.MULTILINE), r"<li>\1</li>"),
]


@dataclass
class ClipboardPayload:
    """Rich and plain-text renditions for manual copy/paste."""

    html: str
    plain_text: str


@dataclass
class PublishOutcome:
    """Result of the publish action as shown in the publish dialog."""

    success: bool
    post: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    show_troubleshooting: bool = False
    hints: List[str] = field(default_factory=list)


def _image_block(url: str, margin: str, alt: Optional[str] = None) -> str:
    alt_attr = f' alt="{escape(alt)}"' if alt is not None else ""
    return (
        f'<div style="text-align: center; {margin}">'
        f'<img src="{escape(url)}" border="0" style="{IMAGE_STYLE}"{alt_attr} />'
        "</div>"
    )


def markdown_to_html(content: str) -> str:
    """Convert the markdown subset used by drafts into HTML.

    Headings, bold, italic and ``- `` list items are converted; every other
    blank-line-delimited block becomes a paragraph.
    """
    html = content
    for pattern, replacement in _MARKDOWN_RULES:
        html = pattern.sub(replacement, html)

    blocks = []
    for block in html.split("\n\n"):
        if block.startswith("<h") or block.startswith("<li"):
            blocks.append(block)
        else:
            blocks.append(f"<p>{block}</p>")
    return "".join(blocks)


def convert_blog_to_full_html(blog: GeneratedBlog) -> str:
    """Convert a draft and its images into one HTML string.

    The header image leads, the second image goes right after the first
    ``</h2>`` (or at the end when there is none), and the JSON-LD schema is
    appended in a hidden block. Body text is not escaped.

    The title only appears as the header image's ``alt`` attribute, which is
    HTML-escaped, so a title containing ``&``, ``<`` or quotes appears once in
    its escaped form rather than verbatim.
    """
    html = ""

    if blog.header_image:
        html += _image_block(blog.header_image.url, "margin-bottom: 30px;", alt=blog.title)

    html += markdown_to_html(blog.content)

    if blog.mid_image:
        insertion_point = html.find("</h2>")
        if insertion_point != -1:
            split = insertion_point + len("</h2>")
            html = html[:split] + _image_block(blog.mid_image.url, "margin: 30px 0;") + html[split:]
        else:
            html += _image_block(blog.mid_image.url, "margin-top: 30px;")

    html += f'<div style="display:none !important;">{blog.seo_data.schema_markup}</div>'
    return html


def build_clipboard_payload(blog: GeneratedBlog) -> ClipboardPayload:
    """HTML and plain-text versions of a post for pasting into an editor."""
    return ClipboardPayload(
        html=convert_blog_to_full_html(blog),
        plain_text=f"{blog.title}\n\n{blog.content}",
    )


def manual_editor_url(blog_id: Optional[str] = None) -> str:
    """URL of the Blogger editor to paste a copied post into."""
    if blog_id:
        return BLOGGER_POSTS_URL.format(blog_id=blog_id)
    return BLOGGER_NEW_POST_URL


def build_post_body(blog: GeneratedBlog, blog_id: str) -> Dict[str, Any]:
    """JSON body of a Blogger post insert request."""
    return {
        "kind": BLOGGER_POST_KIND,
        "blog": {"id": blog_id},
        "title": blog.title,
        "content": convert_blog_to_full_html(blog),
        "labels": [blog.style.value] + BLOGGER_EXTRA_LABELS,
    }


class BloggerClient:
    """Client for the Blogger v3 REST API.

    Attributes:
        base_url: API base URL.
        timeout: Request timeout in seconds.
    """

    def __init__(self, base_url: str = BLOGGER_API_BASE, timeout: int = PUBLISH_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def publish(self, blog: GeneratedBlog, blog_id: str, access_token: str) -> Dict[str, Any]:
        """Publish a post.

        Args:
            blog: The draft to publish.
            blog_id: Target blog id.
            access_token: Bearer token with the blogger scope.

        Returns:
            The created post as returned by the API.

        Raises:
            PublishError: If the request fails or the API rejects the post.
        """
        if not blog_id:
            raise PublishError("Blog ID is required to publish.")

        url = f"{self.base_url}/blogs/{blog_id}/posts/"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(url, json=build_post_body(blog, blog_id), headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error publishing to Blogger (network): {e}")
            raise PublishError(f"{DEFAULT_PUBLISH_ERROR} {e}") from e

        if not response.ok:
            message = DEFAULT_PUBLISH_ERROR
            try:
                payload = response.json()
                if isinstance(payload, dict):
                    message = (payload.get("error") or {}).get("message") or DEFAULT_PUBLISH_ERROR
            except ValueError:
                pass
            logger.error(f"Blogger rejected post '{blog.title}' ({response.status_code}): {message}")
            raise PublishError(message, status_code=response.status_code)

        post = response.json()
        logger.info(f"Published '{blog.title}' to blog {blog_id}: {post.get('url', post.get('id', ''))}")
        return post


def publish_with_auth(
    blog: GeneratedBlog,
    blog_id: str,
    client_id: str,
    auth: AuthProvider,
    client: Optional[BloggerClient] = None,
    origin: str = "http://localhost",
) -> PublishOutcome:
    """Acquire a token and publish, reporting every failure in the outcome.

    Args:
        blog: The draft to publish.
        blog_id: Target blog id.
        client_id: OAuth client id entered in the settings step.
        auth: Token provider.
        client: Optional Blogger client.
        origin: Calling origin, quoted in the troubleshooting hints.
    """
    if not client_id:
        return PublishOutcome(
            success=False,
            error="OAuth Client ID is required for API mode. Use Manual Mode instead.",
        )

    try:
        token = auth.acquire_token(client_id, BLOGGER_SCOPE)
    except AuthenticationError as e:
        logger.error(f"Token acquisition failed: {e}")
        record_publish("auth_failed")
        return PublishOutcome(success=False, error="Google Login failed. Use 'Manual Mode' if you see an error.")

    if not token.ok:
        record_publish("auth_failed")
        description = token.error_description or "Check your Authorized Origins."
        return PublishOutcome(
            success=False,
            error=f"{token.error or 'unknown_error'}: {description}",
            show_troubleshooting=True,
            hints=troubleshooting_hints(origin) if token.is_origin_mismatch else [],
        )

    client = client or BloggerClient()
    try:
        post = client.publish(blog, blog_id, token.access_token)
    except PublishError as e:
        record_publish("rejected")
        return PublishOutcome(success=False, error=str(e))

    record_publish("published")
    return PublishOutcome(success=True, post=post)
