"""Tests for feed/article rendering and the SEO panel helpers."""

import json

import pytest

from trend_studio.config import FALLBACK_IMAGE_URL
from trend_studio.models import BlogImage, BlogStyle, GeneratedBlog
from trend_studio.rendering import (
    format_schema,
    metric_bands,
    render_article,
    render_feed,
    score_band,
    seo_checklist,
    split_paragraphs,
    word_count_badge,
)

FIVE_PARAGRAPHS = "\n\n".join(f"Paragraph {i}." for i in range(1, 6))


def test_split_paragraphs_drops_empty_blocks():
    assert split_paragraphs("a\n\n\n\nb\n\n  \n\nc ") == ["a", "b", "c"]
    assert split_paragraphs("") == []


class TestFeedRendering:
    """Tests for the feed layout."""

    def test_lead_and_remaining_paragraphs(self, sample_blog):
        blog = sample_blog.model_copy(update={"content": FIVE_PARAGRAPHS})

        preview = render_feed(blog)

        assert preview.lead_paragraphs == ["Paragraph 1.", "Paragraph 2.", "Paragraph 3."]
        assert preview.remaining_paragraphs == ["Paragraph 4.", "Paragraph 5."]
        assert preview.header_image.url.endswith("header.png")
        assert preview.mid_image.url.endswith("mid.png")

    def test_mid_image_sits_between_lead_and_rest(self, sample_blog):
        blog = sample_blog.model_copy(update={"content": FIVE_PARAGRAPHS})

        html = render_feed(blog, source_label="Daily Tech").to_html()

        assert html.index("header.png") < html.index("Paragraph 1.")
        assert html.index("Paragraph 3.") < html.index("mid.png") < html.index("Paragraph 4.")
        assert "Daily Tech" in html

    def test_text_is_escaped(self, sample_blog):
        blog = sample_blog.model_copy(update={"title": "<script>x</script>", "content": "a < b & c"})

        html = render_feed(blog).to_html()

        assert "<script>" not in html
        assert "a &lt; b &amp; c" in html

    def test_short_post_has_no_remaining_paragraphs(self, sample_blog):
        blog = sample_blog.model_copy(update={"content": "Only one."})
        preview = render_feed(blog)
        assert preview.lead_paragraphs == ["Only one."]
        assert preview.remaining_paragraphs == []


class TestArticleRendering:
    """Tests for the article layout."""

    def test_same_content_different_chrome(self, sample_blog):
        feed = render_feed(sample_blog)
        article = render_article(sample_blog)

        assert article.lead_paragraphs == feed.lead_paragraphs
        assert article.remaining_paragraphs == feed.remaining_paragraphs
        html = article.to_html()
        assert html.startswith('<article class="article">')
        assert "News" in html
        assert f"{article.word_count} words" in html

    def test_without_images(self):
        blog = GeneratedBlog(title="Bare", content="Text.", style=BlogStyle.OPINION)
        html = render_article(blog).to_html()
        assert "<img" not in html


class TestWordCountBadge:
    """Tests for the advisory word count."""

    @pytest.mark.parametrize(
        "words,in_range",
        [(419, False), (420, True), (500, True), (550, True), (551, False)],
    )
    def test_range(self, words, in_range):
        badge = word_count_badge(" ".join(["word"] * words))
        assert badge.count == words
        assert badge.in_range is in_range

    def test_label(self):
        assert word_count_badge("one two").label == "2 words (target 420-550)"


class TestScoreBand:
    """Tests for score colouring."""

    @pytest.mark.parametrize("score,band", [(81, "good"), (80, "fair"), (51, "fair"), (50, "poor"), (0, "poor")])
    def test_higher_is_better(self, score, band):
        assert score_band(score) == band

    @pytest.mark.parametrize("score,band", [(19, "good"), (20, "fair"), (49, "fair"), (50, "poor")])
    def test_inverse(self, score, band):
        assert score_band(score, inverse=True) == band


def test_metric_bands(sample_blog):
    assert metric_bands(sample_blog.metrics) == {
        "seoScore": "good",
        "keywordScore": "fair",
        "readabilityScore": "good",
        "aiScore": "good",
        "humanScore": "good",
    }


def test_format_schema():
    assert json.loads(format_schema('{"@type":"Article"}')) == {"@type": "Article"}
    assert format_schema('{"@type":"Article"}').startswith("{\n")
    assert format_schema("not json") == "not json"
    assert format_schema("") == "{}"


class TestSeoChecklist:
    """Tests for the SEO checklist."""

    def _by_suggestion(self, blog):
        return {item.suggestion: item for item in seo_checklist(blog)}

    def test_well_formed_post(self, sample_blog):
        items = self._by_suggestion(sample_blog)

        assert items["Break the post into sections with H2 headers."].satisfied
        assert items["Keep the meta title between 50 and 60 characters."].satisfied
        assert items["Add a URL slug."].satisfied
        assert items["Replace stock placeholder images with generated or uploaded ones."].satisfied
        assert not items["Keep the meta description between 150 and 160 characters."].satisfied
        assert all(item.type in ("keyword", "readability", "structure") for item in items.values())

    def test_flags_missing_headers_and_stock_images(self, sample_blog):
        blog = sample_blog.model_copy(
            update={
                "content": "One. Two. Three. Four. Five.",
                "images": [BlogImage(url=FALLBACK_IMAGE_URL), BlogImage(url="https://img.example.com/x.png")],
            }
        )
        items = self._by_suggestion(blog)

        assert not items["Break the post into sections with H2 headers."].satisfied
        assert not items["Keep paragraphs short and mobile-friendly (2-3 sentences)."].satisfied
        assert not items["Replace stock placeholder images with generated or uploaded ones."].satisfied
