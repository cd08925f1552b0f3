"""Tests for the content request layer."""

import asyncio
import json
from unittest.mock import Mock

import openai
import pytest

from trend_studio.chains import (
    ContentClient,
    extend_draft,
    extract_json_text,
    fetch_trends,
    generate_draft,
    generate_variations,
    parse_response,
    parse_trends,
    refine_draft,
    rewrite_draft,
)
from trend_studio.config import FALLBACK_IMAGE_URL
from trend_studio.exceptions import ContentRequestError, ResponseParseError
from trend_studio.models import BlogStyle, DraftResponse, ExtensionResponse

TRENDS_JSON = json.dumps(
    {
        "topics": [
            {
                "title": "Pixel 10 launch",
                "source": "9to5google.com",
                "difficulty": "Easy",
                "intent": "Informational",
                "searchVolume": "100K+",
                "category": "Technology",
                "trendingSince": "3 hours ago",
            },
            {
                "title": "Rivian R2 deliveries",
                "source": "electrek.co",
                "difficulty": "Hard",
                "intent": "Commercial",
                "searchVolume": "20K+",
                "category": "Technology",
                "trendingSince": "Today",
            },
        ]
    }
)


class TestParsing:
    """Tests for response parsing."""

    def test_extract_json_text_strips_fences(self):
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert extract_json_text('  {"a": 1}  ') == '{"a": 1}'

    def test_parse_response_valid(self, make_draft):
        result = parse_response(make_draft(), DraftResponse)
        assert result.ok
        assert result.unwrap().title == "iPhone 17 Review: What's New"

    def test_parse_response_rejects_shape_mismatch(self):
        result = parse_response('{"content": "body only"}', ExtensionResponse)
        assert not result.ok
        assert "ExtensionResponse" in result.error
        with pytest.raises(ResponseParseError):
            result.unwrap()

    def test_parse_response_rejects_non_json(self):
        result = parse_response("Sorry, I can't help with that.", DraftResponse)
        assert not result.ok

    def test_parse_response_empty(self):
        assert parse_response("", DraftResponse).error == "Empty response"
        assert parse_response(None, DraftResponse).error == "Empty response"

    def test_parse_trends_envelope(self):
        topics = parse_trends(TRENDS_JSON)
        assert [t.title for t in topics] == ["Pixel 10 launch", "Rivian R2 deliveries"]

    def test_parse_trends_bare_list(self):
        items = json.loads(TRENDS_JSON)["topics"]
        assert len(parse_trends(json.dumps(items))) == 2

    def test_parse_trends_skips_invalid_items(self):
        items = json.loads(TRENDS_JSON)["topics"]
        items[1]["source"] = "Not a source"
        topics = parse_trends(json.dumps({"topics": items}))
        assert [t.title for t in topics] == ["Pixel 10 launch"]

    @pytest.mark.parametrize("text", ["not json at all", "", None, '{"topics": "nope"}', "42"])
    def test_parse_trends_failure_yields_empty(self, text):
        assert parse_trends(text) == []

    def test_parse_trends_deeply_nested_yields_empty(self):
        assert parse_trends("[" * 100000) == []

    def test_parse_response_deeply_nested_is_an_error(self):
        result = parse_response("[" * 100000, DraftResponse)
        assert not result.ok
        with pytest.raises(ResponseParseError):
            result.unwrap()

    def test_parse_response_non_finite_score_is_an_error(self, make_draft):
        payload = json.loads(make_draft())
        payload["metrics"]["seoScore"] = "Infinity"

        result = parse_response(json.dumps(payload), DraftResponse)

        assert not result.ok
        assert "DraftResponse" in result.error


class TestFetchTrends:
    """Tests for trend discovery."""

    def test_returns_topics_in_order(self, mock_llm, grounder):
        mock_llm.ainvoke.return_value = Mock(content=TRENDS_JSON)

        topics = asyncio.run(fetch_trends("Technology", grounder=grounder))

        assert [t.title for t in topics] == ["Pixel 10 launch", "Rivian R2 deliveries"]
        variables = mock_llm.ainvoke.call_args[0][0]
        assert variables["count"] == 20
        assert 'the category: "Technology"' == variables["search_context"]
        grounder.search.assert_called_once_with("latest trending Technology news today")

    def test_keyword_narrows_search(self, mock_llm, grounder):
        mock_llm.ainvoke.return_value = Mock(content=TRENDS_JSON)

        asyncio.run(fetch_trends("Technology", keyword="  EV  ", grounder=grounder))

        variables = mock_llm.ainvoke.call_args[0][0]
        assert '"EV"' in variables["search_context"]
        grounder.search.assert_called_once_with("EV latest news")

    def test_non_json_response_yields_empty(self, mock_llm):
        mock_llm.ainvoke.return_value = Mock(content="Here are some trends: ...")
        assert asyncio.run(fetch_trends(grounded=False)) == []

    def test_transport_error_yields_empty(self, mock_llm):
        mock_llm.ainvoke.side_effect = openai.OpenAIError("connection reset")
        assert asyncio.run(fetch_trends(grounded=False)) == []

    def test_unexpected_error_yields_empty(self, mock_llm):
        mock_llm.ainvoke.side_effect = RuntimeError("boom")
        assert asyncio.run(fetch_trends(grounded=False)) == []

    def test_deeply_nested_response_yields_empty(self, mock_llm):
        mock_llm.ainvoke.return_value = Mock(content="[" * 100000)
        assert asyncio.run(fetch_trends("Technology", grounded=False)) == []


class TestGenerateDraft:
    """Tests for single-style drafting."""

    def test_builds_blog_with_references_and_images(self, mock_llm, make_draft, grounder, image_generator):
        mock_llm.ainvoke.return_value = Mock(content=make_draft())

        blog = asyncio.run(
            generate_draft("iPhone 17 review", "News", grounder=grounder, image_generator=image_generator)
        )

        assert blog.style == BlogStyle.NEWS
        assert blog.seo_data.slug == "iphone-17-review"
        assert blog.references == ["https://example.com/iphone-17", "https://news.example.org/apple-event"]
        assert len(blog.images) == 2
        assert all(image.is_ai_generated for image in blog.images)
        assert image_generator.calls == 2

    def test_prompt_declares_schema_and_word_range(self, mock_llm, make_draft, image_generator):
        mock_llm.ainvoke.return_value = Mock(content=make_draft())

        asyncio.run(generate_draft("iPhone 17 review", grounded=False, image_generator=image_generator))

        variables = mock_llm.ainvoke.call_args[0][0]
        assert "metaDescription" in variables["schema"]
        assert variables["min_words"] == 420
        assert variables["max_words"] == 550
        assert variables["search_results"] == "No search results available."

    def test_failed_images_fall_back_to_stock(self, mock_llm, make_draft, failing_image_generator):
        mock_llm.ainvoke.return_value = Mock(content=make_draft())
        generator = failing_image_generator(2)

        blog = asyncio.run(generate_draft("iPhone 17 review", grounded=False, image_generator=generator))

        assert len(blog.images) == 2
        assert all(image.url == FALLBACK_IMAGE_URL for image in blog.images)
        assert not any(image.is_ai_generated for image in blog.images)

    def test_invalid_response_raises(self, mock_llm, image_generator):
        mock_llm.ainvoke.return_value = Mock(content="not json")

        with pytest.raises(ResponseParseError):
            asyncio.run(generate_draft("iPhone 17 review", grounded=False, image_generator=image_generator))

    def test_transport_error_raises_content_error(self, mock_llm, image_generator):
        mock_llm.ainvoke.side_effect = openai.OpenAIError("quota exceeded")

        with pytest.raises(ContentRequestError):
            asyncio.run(generate_draft("iPhone 17 review", grounded=False, image_generator=image_generator))

    def test_empty_topic_rejected(self):
        with pytest.raises(ValueError):
            asyncio.run(generate_draft("   ", grounded=False))


class TestGenerateVariations:
    """Tests for parallel style variations."""

    @staticmethod
    def _by_style(make_draft, failing=()):
        async def respond(variables):
            if variables["style"] in failing:
                raise openai.OpenAIError(f"{variables['style']} failed")
            return Mock(content=make_draft(title=f"{variables['style']} take"))

        return respond

    def test_four_styles_in_order_with_shared_grounding(self, mock_llm, make_draft, grounder, image_generator):
        mock_llm.ainvoke.side_effect = self._by_style(make_draft)

        drafts = asyncio.run(generate_variations("iPhone 17 review", grounder=grounder, image_generator=image_generator))

        assert [d.style.value for d in drafts] == ["News", "How-to", "Opinion", "Listicle"]
        assert [d.title for d in drafts] == ["News take", "How-to take", "Opinion take", "Listicle take"]
        grounder.search.assert_called_once()
        assert all(len(d.references) == 2 for d in drafts)

    def test_partial_failure_keeps_successes(self, mock_llm, make_draft, image_generator):
        mock_llm.ainvoke.side_effect = self._by_style(make_draft, failing=("How-to", "Listicle"))

        drafts = asyncio.run(generate_variations("iPhone 17 review", grounded=False, image_generator=image_generator))

        assert [d.style.value for d in drafts] == ["News", "Opinion"]

    def test_all_failing_raises(self, mock_llm, make_draft, image_generator):
        mock_llm.ainvoke.side_effect = self._by_style(
            make_draft, failing=("News", "How-to", "Opinion", "Listicle")
        )

        with pytest.raises(ContentRequestError, match="All 4 variations failed"):
            asyncio.run(generate_variations("iPhone 17 review", grounded=False, image_generator=image_generator))


class TestEditingOperations:
    """Tests for rewrite, refine and extend."""

    def test_rewrite_keeps_images_and_references(self, mock_llm, make_draft, sample_blog):
        mock_llm.ainvoke.return_value = Mock(content=make_draft(title="How to pick the iPhone 17", slug="how-to"))

        rewritten = asyncio.run(rewrite_draft(sample_blog, BlogStyle.HOW_TO))

        assert rewritten.style == BlogStyle.HOW_TO
        assert rewritten.title == "How to pick the iPhone 17"
        assert rewritten.seo_data.slug == "how-to"
        assert rewritten.images == sample_blog.images
        assert rewritten.references == sample_blog.references
        assert rewritten.id == sample_blog.id
        assert sample_blog.style == BlogStyle.NEWS

    def test_refine_twice_does_not_duplicate_references(self, mock_llm, make_draft, make_grounding, sample_blog):
        mock_llm.ainvoke.return_value = Mock(content=make_draft())
        repeated = Mock()
        repeated.search.return_value = make_grounding(
            "https://example.com/iphone-17",
            "https://reviews.example.net/iphone-17",
        )

        once = asyncio.run(refine_draft(sample_blog, "Add battery details", grounder=repeated))
        twice = asyncio.run(refine_draft(once, "Mention the price", grounder=repeated))

        assert twice.references == [
            "https://example.com/iphone-17",
            "https://reviews.example.net/iphone-17",
        ]

    def test_refine_rejects_empty_instruction(self, sample_blog):
        with pytest.raises(ValueError):
            asyncio.run(refine_draft(sample_blog, "  ", grounded=False))

    def test_extend_replaces_only_content_and_metrics(self, mock_llm, sample_blog):
        extended_body = sample_blog.content + "\n\n## And the Pixel 10\n\nGoogle answered a week later."
        mock_llm.ainvoke.return_value = Mock(
            content=json.dumps({"content": extended_body, "metrics": {"seoScore": 90, "aiScore": 10}})
        )

        extended = asyncio.run(extend_draft(sample_blog, "Pixel 10"))

        assert extended.content == extended_body
        assert extended.metrics.seo_score == 90
        assert extended.metrics.human_score == 90
        assert extended.title == sample_blog.title
        assert extended.seo_data == sample_blog.seo_data
        variables = mock_llm.ainvoke.call_args[0][0]
        assert variables["max_words"] == 550

    def test_extend_invalid_response_raises(self, mock_llm, sample_blog):
        mock_llm.ainvoke.return_value = Mock(content='{"metrics": {}}')

        with pytest.raises(ContentRequestError):
            asyncio.run(extend_draft(sample_blog, "Pixel 10"))


def test_content_client_forwards_settings(mock_llm, make_draft, grounder, image_generator):
    mock_llm.ainvoke.return_value = Mock(content=make_draft())
    client = ContentClient(grounder=grounder, image_generator=image_generator, grounded=False)

    blog = asyncio.run(client.generate_draft("iPhone 17 review", "Opinion"))

    assert blog.style == BlogStyle.OPINION
    assert blog.references == []
    grounder.search.assert_not_called()
