"""View-state controller for the content studio.

The controller is the single owner of the trend list, the drafted variations
and the current draft, and tracks which screen is shown:

    trends --generate--> selecting-variation --select--> editing <--> previewing

Mutating requests (generate, rewrite, refine, extend) are serialised: each
one takes an operation token, a second request while one is in flight raises
``OperationInProgressError``, and a response whose token is no longer current
(after ``abandon()``) is discarded instead of overwriting the draft.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from .auth import AuthProvider, StaticTokenProvider
from .chains import ContentClient
from .config import DEFAULT_CATEGORY
from .exceptions import InvalidStateError, OperationInProgressError, StudioError
from .images import ensure_min_images
from .models import BlogImage, GeneratedBlog, SEOImprovement, TrendingTopic
from .publisher import (
    BloggerClient,
    ClipboardPayload,
    PublishOutcome,
    build_clipboard_payload,
    manual_editor_url,
    publish_with_auth,
)
from .rendering import (
    ArticlePreview,
    FeedPreview,
    WordCountBadge,
    render_article,
    render_feed,
    seo_checklist,
    word_count_badge,
)
from .storage import StudioStore

logger = logging.getLogger(__name__)

# Operations whose response replaces the current draft
DRAFT_OPERATIONS = ("rewrite", "refine", "extend")


class ViewState(str, Enum):
    """Screen currently shown."""

    TRENDS = "trends"
    SELECTING_VARIATION = "selecting-variation"
    EDITING = "editing"
    PREVIEWING = "previewing"


class StudioController:
    """Holds the studio's view state and runs user actions against it.

    Attributes:
        state: Current ViewState.
        trends: Latest fetched trending topics.
        variations: Drafts offered for the current topic.
        current_blog: Draft being edited, if any.
        loading: True while a mutating request is in flight.
        error: User-facing message of the last failed action.
    """

    def __init__(
        self,
        content: Optional[ContentClient] = None,
        store: Optional[StudioStore] = None,
        auth: Optional[AuthProvider] = None,
        blogger: Optional[BloggerClient] = None,
    ):
        self.content = content or ContentClient()
        self.store = store or StudioStore()
        self.auth = auth or StaticTokenProvider()
        self.blogger = blogger or BloggerClient()

        self.state = ViewState.TRENDS
        self.trends: List[TrendingTopic] = []
        self.variations: List[GeneratedBlog] = []
        self.current_blog: Optional[GeneratedBlog] = None
        self.current_topic: str = ""
        self.loading = False
        self.loading_trends = False
        self.publishing = False
        self.error: Optional[str] = None

        self._inflight: Optional[str] = None
        self._inflight_operation: Optional[str] = None
        self._trends_token: Optional[str] = None

    # ------------------------------------------------------------------
    # Operation tokens
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._inflight is not None

    def _begin(self, operation: str) -> str:
        if self._inflight is not None:
            raise OperationInProgressError(
                f"Cannot start '{operation}' while '{self._inflight_operation}' is in progress"
            )
        token = uuid.uuid4().hex
        self._inflight = token
        self._inflight_operation = operation
        self.loading = True
        self.error = None
        return token

    def _end(self, token: str) -> None:
        if self._inflight == token:
            self._inflight = None
            self._inflight_operation = None
            self.loading = False

    def abandon(self) -> None:
        """Stop waiting for the in-flight request; its response will be discarded."""
        if self._inflight is not None:
            logger.info(f"Abandoning in-flight '{self._inflight_operation}' request")
        self._inflight = None
        self._inflight_operation = None
        self.loading = False

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], None],
        on_failure: Optional[Callable[[Exception], None]] = None,
    ) -> bool:
        token = self._begin(operation)
        try:
            result = await call()
        except (StudioError, ValueError) as e:
            if self._inflight != token:
                logger.info(f"Ignoring failure of abandoned '{operation}' request: {e}")
                return False
            logger.error(f"'{operation}' failed: {e}")
            self.error = f"Error during {operation}. Please try again. ({e})"
            if on_failure:
                on_failure(e)
            return False
        else:
            if self._inflight != token:
                logger.warning(f"Discarding stale '{operation}' response")
                return False
            on_success(result)
            return True
        finally:
            self._end(token)

    def _require_blog(self) -> GeneratedBlog:
        if self.current_blog is None:
            raise InvalidStateError("No draft is open")
        return self.current_blog

    def _require_editing(self) -> GeneratedBlog:
        blog = self._require_blog()
        if self.state != ViewState.EDITING:
            raise InvalidStateError(f"Action requires the editor, current state is '{self.state.value}'")
        return blog

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    async def load_trends(self, category: str = DEFAULT_CATEGORY, keyword: Optional[str] = None) -> List[TrendingTopic]:
        """Fetch trends; an empty result means "no trends", not an error."""
        token = uuid.uuid4().hex
        self._trends_token = token
        self.loading_trends = True
        try:
            trends = await self.content.fetch_trends(category, keyword)
        finally:
            if self._trends_token == token:
                self.loading_trends = False

        if self._trends_token != token:
            logger.debug("Discarding superseded trend list")
            return self.trends

        self.trends = trends
        return trends

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    async def generate(self, topic: str) -> bool:
        """Draft style variations for a topic.

        Moves to selecting-variation; falls back to trends on failure.
        """
        if not topic or not topic.strip():
            raise ValueError("Topic cannot be empty")

        topic = topic.strip()

        def on_success(variations: List[GeneratedBlog]) -> None:
            self.variations = variations

        def on_failure(_: Exception) -> None:
            self.state = ViewState.TRENDS

        # Claim the token before touching state so a rejected call changes nothing
        if self.busy:
            raise OperationInProgressError(
                f"Cannot start 'generate' while '{self._inflight_operation}' is in progress"
            )
        self.state = ViewState.SELECTING_VARIATION
        self.variations = []
        self.current_topic = topic
        self.store.last_topic = topic

        return await self._run(
            "generate",
            lambda: self.content.generate_variations(topic),
            on_success,
            on_failure,
        )

    def select_variation(self, index: int) -> GeneratedBlog:
        """Open one of the drafted variations in the editor."""
        if self.state != ViewState.SELECTING_VARIATION or self.loading:
            raise InvalidStateError("No variations are ready to choose from")
        if not 0 <= index < len(self.variations):
            raise IndexError(f"Variation {index} does not exist ({len(self.variations)} available)")

        self.current_blog = self.variations[index]
        self.state = ViewState.EDITING
        return self.current_blog

    async def rewrite(self, style) -> bool:
        """Rewrite the current draft in another style."""
        blog = self._require_editing()
        return await self._run("rewrite", lambda: self.content.rewrite(blog, style), self._replace_blog)

    async def refine(self, instruction: str) -> bool:
        """Apply a free-text instruction to the current draft."""
        blog = self._require_editing()
        return await self._run("refine", lambda: self.content.refine(blog, instruction), self._replace_blog)

    async def extend(self, topic: str) -> bool:
        """Append a section about another topic to the current draft."""
        blog = self._require_editing()
        return await self._run("extend", lambda: self.content.extend(blog, topic), self._replace_blog)

    def _replace_blog(self, blog: GeneratedBlog) -> None:
        self.current_blog = blog

    def _commit_edit(self, blog: GeneratedBlog) -> None:
        # A hand edit supersedes any in-flight request that would replace the draft
        if self._inflight_operation in DRAFT_OPERATIONS:
            self.abandon()
        self.current_blog = blog

    # ------------------------------------------------------------------
    # Manual edits
    # ------------------------------------------------------------------

    def update_title(self, title: str) -> None:
        self._commit_edit(self._require_blog().model_copy(update={"title": title}))

    def update_content(self, content: str) -> None:
        self._commit_edit(self._require_blog().model_copy(update={"content": content}))

    def update_seo(self, **fields: str) -> None:
        """Edit SEO fields (meta_title, meta_description, slug, schema_markup)."""
        blog = self._require_blog()
        seo_data = blog.seo_data.model_copy(update=fields)
        self._commit_edit(blog.model_copy(update={"seo_data": seo_data}))

    def replace_image(self, slot: int, url: str) -> None:
        """Replace the header (0) or mid-article (1) image with an uploaded one."""
        blog = self._require_blog()
        images = ensure_min_images(blog.images)
        if not 0 <= slot < len(images):
            raise IndexError(f"Image slot {slot} does not exist")
        images[slot] = BlogImage(url=url, is_ai_generated=False)
        self._commit_edit(blog.model_copy(update={"images": images}))

    # ------------------------------------------------------------------
    # Navigation and previews
    # ------------------------------------------------------------------

    def show_preview(self) -> None:
        self._require_blog()
        self.state = ViewState.PREVIEWING

    def show_editor(self) -> None:
        self._require_blog()
        self.state = ViewState.EDITING

    def go_to_trends(self) -> None:
        self.state = ViewState.TRENDS

    def feed_preview(self) -> FeedPreview:
        return render_feed(self._require_blog())

    def article_preview(self) -> ArticlePreview:
        return render_article(self._require_blog())

    def word_count(self) -> WordCountBadge:
        return word_count_badge(self._require_blog().content)

    def seo_checklist(self) -> List[SEOImprovement]:
        return seo_checklist(self._require_blog())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @property
    def last_topic(self) -> str:
        return self.store.last_topic

    def save_draft(self) -> None:
        self.store.save_draft(self._require_blog())
        logger.info(f"Saved draft '{self.current_blog.title}'")

    def restore_draft(self) -> bool:
        """Reopen the saved draft snapshot in the editor."""
        blog = self.store.load_draft()
        if blog is None:
            return False
        self._commit_edit(blog)
        self.state = ViewState.EDITING
        return True

    def save_settings(self, blog_id: str, client_id: str) -> None:
        self.store.blog_id = blog_id.strip()
        self.store.client_id = client_id.strip()

    def load_settings(self) -> Tuple[str, str]:
        """Saved (blog_id, client_id), empty strings when unset."""
        return self.store.blog_id, self.store.client_id

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def clipboard_payload(self) -> ClipboardPayload:
        return build_clipboard_payload(self._require_blog())

    def manual_editor_url(self) -> str:
        return manual_editor_url(self.store.blog_id)

    async def publish(self, origin: str = "http://localhost") -> PublishOutcome:
        """Publish the current draft with the saved settings.

        Publishing does not change the view state; failures are reported in
        the returned outcome.
        """
        blog = self._require_blog()
        self.publishing = True
        try:
            return await asyncio.to_thread(
                publish_with_auth,
                blog,
                self.store.blog_id,
                self.store.client_id,
                self.auth,
                self.blogger,
                origin,
            )
        finally:
            self.publishing = False
