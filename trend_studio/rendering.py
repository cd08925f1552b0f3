"""Draft rendering for the feed and article previews.

Both previews carry the same content: title, header image, the first three
paragraphs, the mid-article image and the remaining paragraphs. They differ
only in the surrounding markup.
"""

import json
from dataclasses import dataclass, field
from html import escape
from string import Template
from typing import Dict, List, Optional

from .config import FALLBACK_IMAGE_URL, TARGET_WORD_RANGE
from .models import BlogImage, BlogMetrics, GeneratedBlog, SEOImprovement
from .utils import word_count

LEAD_PARAGRAPHS = 3

FEED_TEMPLATE = Template(
    """<div class="feed-card">
  $header
  <div class="feed-card-meta"><span class="feed-card-source">$source</span></div>
  <h3 class="feed-card-title">$title</h3>
</div>
<article class="feed-body">
  <h1>$title</h1>
  $lead
  $mid
  $rest
</article>"""
)

ARTICLE_TEMPLATE = Template(
    """<article class="article">
  <header>
    <h1>$title</h1>
    <p class="article-meta">$style &middot; $words words</p>
  </header>
  $header
  <section class="article-body">
    $lead
    $mid
    $rest
  </section>
</article>"""
)


@dataclass
class PostPreview:
    """Layout-independent preview of a post."""

    title: str
    header_image: Optional[BlogImage]
    lead_paragraphs: List[str] = field(default_factory=list)
    mid_image: Optional[BlogImage] = None
    remaining_paragraphs: List[str] = field(default_factory=list)
    style: str = ""
    word_count: int = 0

    def _figure(self, image: Optional[BlogImage], css_class: str) -> str:
        if image is None:
            return ""
        return f'<img class="{css_class}" src="{escape(image.url)}" alt="{escape(self.title)}" />'

    @staticmethod
    def _paragraphs(paragraphs: List[str]) -> str:
        return "\n".join(f"<p>{escape(p)}</p>" for p in paragraphs)

    def _substitutions(self) -> dict:
        return {
            "title": escape(self.title),
            "header": self._figure(self.header_image, "header-image"),
            "lead": self._paragraphs(self.lead_paragraphs),
            "mid": self._figure(self.mid_image, "mid-image"),
            "rest": self._paragraphs(self.remaining_paragraphs),
            "style": escape(self.style),
            "words": self.word_count,
        }


@dataclass
class FeedPreview(PostPreview):
    """Content-discovery feed card followed by the post body."""

    source_label: str = "Your Blog Name"

    def to_html(self) -> str:
        return FEED_TEMPLATE.substitute(self._substitutions(), source=escape(self.source_label))


@dataclass
class ArticlePreview(PostPreview):
    """Full desktop article layout."""

    def to_html(self) -> str:
        return ARTICLE_TEMPLATE.substitute(self._substitutions())


@dataclass
class WordCountBadge:
    """Advisory word count shown next to the editor."""

    count: int
    minimum: int
    maximum: int

    @property
    def in_range(self) -> bool:
        return self.minimum <= self.count <= self.maximum

    @property
    def label(self) -> str:
        return f"{self.count} words (target {self.minimum}-{self.maximum})"


def split_paragraphs(content: str) -> List[str]:
    """Split a body on blank lines, dropping empty blocks."""
    return [block.strip() for block in content.split("\n\n") if block.strip()]


def _preview_fields(blog: GeneratedBlog) -> dict:
    paragraphs = split_paragraphs(blog.content)
    return {
        "title": blog.title,
        "header_image": blog.header_image,
        "lead_paragraphs": paragraphs[:LEAD_PARAGRAPHS],
        "mid_image": blog.mid_image,
        "remaining_paragraphs": paragraphs[LEAD_PARAGRAPHS:],
        "style": blog.style.value,
        "word_count": word_count(blog.content),
    }


def render_feed(blog: GeneratedBlog, source_label: str = "Your Blog Name") -> FeedPreview:
    """Render a post as it would appear in a content-discovery feed."""
    return FeedPreview(source_label=source_label, **_preview_fields(blog))


def render_article(blog: GeneratedBlog) -> ArticlePreview:
    """Render a post as a full desktop article."""
    return ArticlePreview(**_preview_fields(blog))


def word_count_badge(text: str) -> WordCountBadge:
    minimum, maximum = TARGET_WORD_RANGE
    return WordCountBadge(count=word_count(text), minimum=minimum, maximum=maximum)


def score_band(score: int, inverse: bool = False) -> str:
    """Classify a 0-100 score as good, fair or poor.

    Args:
        score: The score.
        inverse: True for scores where lower is better (AI probability).
    """
    if inverse:
        if score < 20:
            return "good"
        if score < 50:
            return "fair"
        return "poor"
    if score > 80:
        return "good"
    if score > 50:
        return "fair"
    return "poor"


def metric_bands(metrics: BlogMetrics) -> Dict[str, str]:
    """Band of every score, keyed by its camelCase name. AI probability is inverse."""
    return {
        "seoScore": score_band(metrics.seo_score),
        "keywordScore": score_band(metrics.keyword_score),
        "readabilityScore": score_band(metrics.readability_score),
        "aiScore": score_band(metrics.ai_score, inverse=True),
        "humanScore": score_band(metrics.human_score),
    }


def format_schema(schema: str) -> str:
    """Pretty-print JSON-LD markup, or return it unchanged when it is not JSON."""
    if not schema or not schema.strip():
        return "{}"
    try:
        return json.dumps(json.loads(schema), indent=2)
    except json.JSONDecodeError:
        return schema


def seo_checklist(blog: GeneratedBlog) -> List[SEOImprovement]:
    """Build the SEO checklist for a draft."""
    paragraphs = split_paragraphs(blog.content)
    long_paragraphs = [p for p in paragraphs if not p.startswith("#") and p.count(". ") >= 3]
    has_headings = any(line.startswith("## ") for line in blog.content.splitlines())
    meta_title_len = len(blog.seo_data.meta_title)
    meta_description_len = len(blog.seo_data.meta_description)

    return [
        SEOImprovement(
            type="readability",
            suggestion="Keep paragraphs short and mobile-friendly (2-3 sentences).",
            satisfied=not long_paragraphs,
        ),
        SEOImprovement(
            type="structure",
            suggestion="Break the post into sections with H2 headers.",
            satisfied=has_headings,
        ),
        SEOImprovement(
            type="structure",
            suggestion="Replace stock placeholder images with generated or uploaded ones.",
            satisfied=bool(blog.images) and all(image.url != FALLBACK_IMAGE_URL for image in blog.images),
        ),
        SEOImprovement(
            type="keyword",
            suggestion="Keep the meta title between 50 and 60 characters.",
            satisfied=50 <= meta_title_len <= 60,
        ),
        SEOImprovement(
            type="keyword",
            suggestion="Keep the meta description between 150 and 160 characters.",
            satisfied=150 <= meta_description_len <= 160,
        ),
        SEOImprovement(
            type="structure",
            suggestion="Add a URL slug.",
            satisfied=bool(blog.seo_data.slug),
        ),
        SEOImprovement(
            type="structure",
            suggestion="Add internal links to related posts.",
            satisfied="](" in blog.content,
        ),
    ]
