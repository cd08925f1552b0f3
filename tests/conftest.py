"""Shared fixtures for TrendStudio tests."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from trend_studio.exceptions import ImageGenerationError
from trend_studio.grounding import GroundingChunk, GroundingResult
from trend_studio.models import BlogImage, BlogMetrics, BlogStyle, GeneratedBlog, SeoData

SAMPLE_CONTENT = """Apple's newest phone landed this week, and the first hands-on reports are in.

## What changed

The camera got a bigger sensor. Battery life is up by about two hours.

## Should you upgrade

If your phone is more than three years old, probably yes."""


class FakeImageGenerator:
    """Image generator returning inline images, failing for the first ``failures`` calls."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    async def generate(self, prompt, aspect_ratio="16:9"):
        self.calls += 1
        if self.calls <= self.failures:
            raise ImageGenerationError("no image data")
        return BlogImage(url=f"data:image/png;base64,IMG{self.calls}", is_ai_generated=True)


def draft_json(
    title="iPhone 17 Review: What's New",
    content=SAMPLE_CONTENT,
    slug="iphone-17-review",
    seo_score=82,
    **extra,
) -> str:
    """Build a draft response as the model would return it."""
    payload = {
        "title": title,
        "content": content,
        "metaTitle": "iPhone 17 Review: Camera, Battery and Price Explained",
        "metaDescription": "A plain-English look at the iPhone 17.",
        "slug": slug,
        "schema": {"@context": "https://schema.org", "@type": "Article"},
        "metrics": {
            "seoScore": seo_score,
            "keywordScore": 75,
            "readabilityScore": 88,
            "aiScore": 12,
            "humanScore": 88,
        },
    }
    payload.update(extra)
    return json.dumps(payload)


def grounding(*uris: str, query: str = "query") -> GroundingResult:
    return GroundingResult(query=query, chunks=[GroundingChunk(uri=u, title=u) for u in uris])


@pytest.fixture
def context():
    """Shared context between BDD steps."""
    return {}


@pytest.fixture
def mock_llm():
    """Patch the LLM chain and yield it.

    Tests configure ``mock_llm.ainvoke.side_effect`` or ``return_value``.
    """
    with patch("trend_studio.chains.ChatOpenAI") as mock_llm_class:
        mock_llm_class.return_value = Mock()
        with patch("trend_studio.chains.ChatPromptTemplate.from_messages") as mock_prompt:
            mock_chain = Mock()
            mock_chain.ainvoke = AsyncMock()
            mock_prompt.return_value.__or__ = Mock(return_value=mock_chain)
            yield mock_chain


@pytest.fixture
def grounder():
    """Search grounder returning two fixed results."""
    mock_grounder = Mock()
    mock_grounder.search.return_value = grounding(
        "https://example.com/iphone-17",
        "https://news.example.org/apple-event",
    )
    return mock_grounder


@pytest.fixture
def image_generator():
    return FakeImageGenerator()


@pytest.fixture
def sample_blog():
    return GeneratedBlog(
        title="iPhone 17 Review: What's New",
        content=SAMPLE_CONTENT,
        style=BlogStyle.NEWS,
        images=[
            BlogImage(url="https://img.example.com/header.png", is_ai_generated=True),
            BlogImage(url="https://img.example.com/mid.png", is_ai_generated=True),
        ],
        seo_data=SeoData(
            meta_title="iPhone 17 Review: Camera, Battery and Price Explained",
            meta_description="A plain-English look at the iPhone 17.",
            slug="iphone-17-review",
            schema_markup='{"@type": "Article"}',
        ),
        references=["https://example.com/iphone-17"],
        metrics=BlogMetrics(seo_score=82, keyword_score=75, readability_score=88, ai_score=12, human_score=88),
    )


@pytest.fixture
def make_draft():
    """Factory for draft response JSON text."""
    return draft_json


@pytest.fixture
def make_grounding():
    """Factory for GroundingResult objects."""
    return grounding


@pytest.fixture
def failing_image_generator():
    """Factory for image generators whose first ``n`` calls fail."""
    return FakeImageGenerator
