"""Configuration settings for TrendStudio."""

import os
from typing import Dict, List, Tuple

# Trend discovery
DEFAULT_CATEGORY: str = "General"
TRENDS_PER_REQUEST: int = 20

TREND_CATEGORIES: List[str] = [
    "General",
    "Technology",
    "Business",
    "Entertainment",
    "Sports",
    "Science",
    "Health",
]

# Outlets the trend prompt asks the model to prioritise
TARGET_SOURCES: List[str] = [
    "9to5google.com",
    "electrek.co",
    "9to5mac.com",
    "english.patrikatimes.in",
]

# Styles requested in parallel when drafting variations for a topic
VARIATION_STYLES: List[str] = ["News", "How-to", "Opinion", "Listicle"]

# Advisory body length requested from the model (inclusive)
TARGET_WORD_RANGE: Tuple[int, int] = (420, 550)

# Ceiling for the whole body after an extension section is appended
EXTENSION_WORD_CEILING: int = 550

if TARGET_WORD_RANGE[0] > TARGET_WORD_RANGE[1]:
    raise ValueError(f"TARGET_WORD_RANGE is inverted: {TARGET_WORD_RANGE}")

# Images
MIN_BLOG_IMAGES: int = 2
FALLBACK_IMAGE_URL: str = "https://picsum.photos/1200/600"
IMAGE_ASPECT_RATIO: str = "16:9"

# Aspect-ratio hint -> size accepted by the image endpoint
IMAGE_SIZES: Dict[str, str] = {
    "16:9": "1536x1024",
    "1:1": "1024x1024",
    "9:16": "1024x1536",
}

# LLM models (can be overridden via environment variables)
LLM_MODEL_NAME: str = os.environ.get("OPENAI_MODEL", "gpt-4o")
IMAGE_MODEL_NAME: str = os.environ.get("OPENAI_IMAGE_MODEL", "gpt-image-1")

# Temperatures per operation
TEMPERATURES: Dict[str, float] = {
    "trends": 0.4,
    "draft": 0.8,
    "rewrite": 0.7,
    "refine": 0.6,
    "extend": 0.7,
}

# Search grounding
GROUNDING_MAX_RESULTS: int = 5
TAVILY_ENV_KEY: str = "TAVILY_API_KEY"

# Blogger
BLOGGER_API_BASE: str = os.environ.get("BLOGGER_API_BASE", "https://www.googleapis.com/blogger/v3")
BLOGGER_SCOPE: str = "https://www.googleapis.com/auth/blogger"
BLOGGER_POST_KIND: str = "blogger#post"
BLOGGER_EXTRA_LABELS: List[str] = ["AI Generated", "TrendSetter"]
BLOGGER_NEW_POST_URL: str = "https://www.blogger.com/go/newpost"
BLOGGER_POSTS_URL: str = "https://www.blogger.com/blog/posts/{blog_id}"
PUBLISH_TIMEOUT_SECONDS: int = 30

# Local key/value store
DEFAULT_STORE_PATH: str = os.environ.get("STUDIO_STORE_PATH", "./.trend_studio.json")
STORAGE_KEYS: Dict[str, str] = {
    "draft": "trendsetter_draft",
    "last_topic": "trendsetter_last_topic",
    "blog_id": "trendsetter_blog_id",
    "client_id": "trendsetter_client_id",
}

# Prebuilt single-page app served by the API server (optional)
STATIC_DIR: str = os.environ.get("STUDIO_STATIC_DIR", "./dist")

# Output directory for exported HTML
DEFAULT_OUTPUT_DIR: str = "./posts"
