"""API routes for TrendStudio.

This module defines the RESTful endpoints for:
- Trend discovery
- Drafting, rewriting, refining and extending posts
- HTML export, previews and publishing

The API is stateless: the client sends the current draft with every request
and receives the updated draft back.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field

from ..chains import ContentClient
from ..config import DEFAULT_CATEGORY
from ..exceptions import ContentRequestError, PublishError
from ..metrics import record_publish
from ..models import BlogStyle, GeneratedBlog, SEOImprovement, StudioModel, TrendingTopic
from ..publisher import BloggerClient, build_clipboard_payload
from ..rendering import (
    format_schema,
    metric_bands,
    render_article,
    render_feed,
    seo_checklist,
    word_count_badge,
)
from .dependencies import get_blogger_client, get_content_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["studio"])


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------


class DraftRequest(StudioModel):
    topic: str = Field(min_length=1)
    style: BlogStyle = BlogStyle.NEWS


class VariationsRequest(StudioModel):
    topic: str = Field(min_length=1)


class RewriteRequest(StudioModel):
    blog: GeneratedBlog
    style: BlogStyle


class RefineRequest(StudioModel):
    blog: GeneratedBlog
    instruction: str = Field(min_length=1)


class ExtendRequest(StudioModel):
    blog: GeneratedBlog
    topic: str = Field(min_length=1)


class BlogRequest(StudioModel):
    blog: GeneratedBlog


class PublishRequest(StudioModel):
    blog: GeneratedBlog
    blog_id: str = Field(min_length=1, alias="blogId")
    access_token: str = Field(min_length=1, alias="accessToken")


class HtmlExport(StudioModel):
    html: str
    plain_text: str = Field(alias="plainText")


class PreviewResponse(StudioModel):
    layout: str
    html: str
    word_count: int = Field(alias="wordCount")
    word_count_in_range: bool = Field(alias="wordCountInRange")
    checklist: List[SEOImprovement] = Field(default_factory=list)
    score_bands: Dict[str, str] = Field(default_factory=dict, alias="scoreBands")
    schema_markup: str = Field(default="{}", alias="schema")


def _content_error(operation: str, e: Exception) -> HTTPException:
    if isinstance(e, ContentRequestError):
        logger.error(f"{operation} failed upstream: {e}")
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", summary="Health check")
async def health() -> Dict[str, str]:
    return {"status": "healthy"}


@router.get(
    "/trends",
    response_model=List[TrendingTopic],
    summary="Discover trending topics",
    description="Fetch the latest trending topics for a category, optionally narrowed by a keyword. "
    "Returns an empty list when no trends could be fetched.",
)
async def list_trends(
    category: str = Query(DEFAULT_CATEGORY, description="Trend category"),
    keyword: Optional[str] = Query(None, description="Keyword narrowing the search"),
    client: ContentClient = Depends(get_content_client),
) -> List[TrendingTopic]:
    return await client.fetch_trends(category, keyword)


@router.post("/drafts", response_model=GeneratedBlog, summary="Draft a post in one style")
async def create_draft(
    request: DraftRequest,
    client: ContentClient = Depends(get_content_client),
) -> GeneratedBlog:
    try:
        return await client.generate_draft(request.topic, request.style)
    except ValueError as e:
        raise _content_error("draft", e) from e


@router.post(
    "/drafts/variations",
    response_model=List[GeneratedBlog],
    summary="Draft a topic in several styles",
    description="Drafts are returned in style order; styles that failed are left out.",
)
async def create_variations(
    request: VariationsRequest,
    client: ContentClient = Depends(get_content_client),
) -> List[GeneratedBlog]:
    try:
        return await client.generate_variations(request.topic)
    except ValueError as e:
        raise _content_error("variations", e) from e


@router.post("/drafts/rewrite", response_model=GeneratedBlog, summary="Rewrite a draft in another style")
async def rewrite_draft(
    request: RewriteRequest,
    client: ContentClient = Depends(get_content_client),
) -> GeneratedBlog:
    try:
        return await client.rewrite(request.blog, request.style)
    except ValueError as e:
        raise _content_error("rewrite", e) from e


@router.post("/drafts/refine", response_model=GeneratedBlog, summary="Apply an instruction to a draft")
async def refine_draft(
    request: RefineRequest,
    client: ContentClient = Depends(get_content_client),
) -> GeneratedBlog:
    try:
        return await client.refine(request.blog, request.instruction)
    except ValueError as e:
        raise _content_error("refine", e) from e


@router.post("/drafts/extend", response_model=GeneratedBlog, summary="Append a section to a draft")
async def extend_draft(
    request: ExtendRequest,
    client: ContentClient = Depends(get_content_client),
) -> GeneratedBlog:
    try:
        return await client.extend(request.blog, request.topic)
    except ValueError as e:
        raise _content_error("extend", e) from e


@router.post("/drafts/html", response_model=HtmlExport, summary="Export a draft as HTML")
async def export_html(request: BlogRequest) -> HtmlExport:
    payload = build_clipboard_payload(request.blog)
    return HtmlExport(html=payload.html, plain_text=payload.plain_text)


@router.post("/drafts/preview", response_model=PreviewResponse, summary="Render a draft preview")
async def preview_draft(
    request: BlogRequest,
    layout: str = Query("feed", pattern="^(feed|article)$", description="feed or article"),
) -> PreviewResponse:
    blog = request.blog
    preview = render_feed(blog) if layout == "feed" else render_article(blog)
    badge = word_count_badge(blog.content)
    return PreviewResponse(
        layout=layout,
        html=preview.to_html(),
        word_count=badge.count,
        word_count_in_range=badge.in_range,
        checklist=seo_checklist(blog),
        score_bands=metric_bands(blog.metrics),
        schema_markup=format_schema(blog.seo_data.schema_markup),
    )


@router.post(
    "/publish",
    status_code=status.HTTP_201_CREATED,
    summary="Publish a draft to Blogger",
    description="Publishes with a caller-supplied access token. Platform rejections return 502 with the platform message.",
)
def publish(
    request: PublishRequest,
    client: BloggerClient = Depends(get_blogger_client),
) -> Dict[str, Any]:
    try:
        post = client.publish(request.blog, request.blog_id, request.access_token)
    except PublishError as e:
        record_publish("rejected")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    record_publish("published")
    return post
