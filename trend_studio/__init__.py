"""TrendStudio package.

Trend discovery, AI drafting with search grounding, previews and Blogger
publishing.

Requires Python 3.9 or higher.
"""

from .auth import AuthProvider, InstalledAppTokenProvider, StaticTokenProvider, TokenResponse
from .chains import (
    ContentClient,
    extend_draft,
    fetch_trends,
    generate_draft,
    generate_variations,
    refine_draft,
    rewrite_draft,
)
from .config import LLM_MODEL_NAME, VARIATION_STYLES
from .controller import StudioController, ViewState
from .exceptions import (
    AuthenticationError,
    ContentRequestError,
    ImageGenerationError,
    InvalidStateError,
    OperationInProgressError,
    PublishError,
    ResponseParseError,
    StudioError,
)
from .grounding import GroundingResult, SearchGrounder
from .images import ImageGenerator, ensure_min_images, generate_blog_images
from .models import (
    BlogImage,
    BlogMetrics,
    BlogStyle,
    Difficulty,
    GeneratedBlog,
    SeoData,
    SEOImprovement,
    TrendingTopic,
    TrendSource,
)
from .publisher import (
    BloggerClient,
    PublishOutcome,
    build_clipboard_payload,
    convert_blog_to_full_html,
    markdown_to_html,
    publish_with_auth,
)
from .rendering import render_article, render_feed, seo_checklist, word_count_badge
from .storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore, StudioStore
from .utils import generate_filename, slugify

__version__ = "0.1.0"

__all__ = [
    # Models
    "TrendingTopic",
    "TrendSource",
    "Difficulty",
    "BlogStyle",
    "BlogImage",
    "SeoData",
    "BlogMetrics",
    "GeneratedBlog",
    "SEOImprovement",
    # Content requests
    "ContentClient",
    "fetch_trends",
    "generate_draft",
    "generate_variations",
    "rewrite_draft",
    "refine_draft",
    "extend_draft",
    "SearchGrounder",
    "GroundingResult",
    "ImageGenerator",
    "generate_blog_images",
    "ensure_min_images",
    # Controller
    "StudioController",
    "ViewState",
    # Rendering and publishing
    "render_feed",
    "render_article",
    "word_count_badge",
    "seo_checklist",
    "markdown_to_html",
    "convert_blog_to_full_html",
    "build_clipboard_payload",
    "BloggerClient",
    "PublishOutcome",
    "publish_with_auth",
    "AuthProvider",
    "StaticTokenProvider",
    "InstalledAppTokenProvider",
    "TokenResponse",
    # Storage
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "StudioStore",
    # Exceptions
    "StudioError",
    "ContentRequestError",
    "ResponseParseError",
    "ImageGenerationError",
    "AuthenticationError",
    "PublishError",
    "OperationInProgressError",
    "InvalidStateError",
    # Utilities
    "generate_filename",
    "slugify",
    # Config
    "LLM_MODEL_NAME",
    "VARIATION_STYLES",
]
