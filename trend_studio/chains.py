"""LangChain chains for discovering trends and drafting, rewriting, refining
and extending blog posts.

Every request declares its output schema (the pydantic model's JSON schema is
embedded in the system prompt) and every response is parsed and validated
against that schema before it reaches the data model.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Tuple, Type, TypeVar

import openai
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, ValidationError

from .config import (
    DEFAULT_CATEGORY,
    EXTENSION_WORD_CEILING,
    LLM_MODEL_NAME,
    TARGET_SOURCES,
    TARGET_WORD_RANGE,
    TEMPERATURES,
    TRENDS_PER_REQUEST,
    VARIATION_STYLES,
)
from .exceptions import ContentRequestError, ResponseParseError
from .grounding import GroundingResult, SearchGrounder
from .images import ImageGenerator, ensure_min_images, generate_blog_images
from .metrics import track_request
from .models import (
    BlogStyle,
    DraftResponse,
    ExtensionResponse,
    GeneratedBlog,
    RefinementResponse,
    TrendingTopic,
    TrendListResponse,
    TrendSource,
)
from .utils import get_long_date, merge_references

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

WRITER_SYSTEM_PROMPT = """You are an expert human blogger and SEO specialist.
STYLE GUIDE:
- Language: Simple, conversational, everyday English. Grade 6-8 reading level.
- Tone: Engaging, helpful, and direct.
- Structure: Short paragraphs (2-3 sentences max). Clear H2/H3 headers.
- NO AI WORDS: Avoid "delve," "moreover," "in conclusion," "comprehensive," "essential," "unleash," "navigate."
- Human Touch: Start with a personal-feeling hook.
- SEO: Optimize for natural search intent.
- Formatting: Use markdown for headers and lists. Separate paragraphs with a blank line.

Respond with a single JSON object that validates against this JSON schema:
{schema}"""

STYLE_GUIDES = {
    BlogStyle.NEWS: "Report it like a news story: lead with what happened, then who, when and why it matters.",
    BlogStyle.HOW_TO: "Write a practical step-by-step guide with numbered steps and clear outcomes.",
    BlogStyle.OPINION: "Take a clear position and argue it with evidence, while acknowledging the other side.",
    BlogStyle.LISTICLE: "Organise the post as a numbered list of points, each under its own H2 header.",
    BlogStyle.PROFESSIONAL: "Use a polished, businesslike voice suited to industry readers.",
    BlogStyle.CONVERSATIONAL: "Talk to the reader directly, like a friend explaining it over coffee.",
    BlogStyle.STORYTELLING: "Frame the topic as a story with a character, a problem and a resolution.",
    BlogStyle.TECHNICAL: "Go deep on specifications, mechanisms and trade-offs for a technical audience.",
}

DRAFT_FIELDS = """Return a JSON object containing:
- title: Catchy, emotion-neutral SEO title.
- content: Full markdown content body ({min_words}-{max_words} words).
- metaTitle: 50-60 characters SEO title.
- metaDescription: 150-160 characters summary.
- slug: URL-friendly version of the title.
- schema: valid Article JSON-LD schema, as a string.
- metrics: Object with seoScore, keywordScore, readabilityScore, aiScore, humanScore (integers 0-100)."""


@dataclass
class ParseResult(Generic[T]):
    """Outcome of validating a model response against its schema."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    def unwrap(self) -> T:
        """Return the value or raise ResponseParseError."""
        if not self.ok:
            raise ResponseParseError(self.error or "Empty response")
        return self.value


def get_llm(temperature: float = 0.7) -> ChatOpenAI:
    """Get a configured LLM instance.

    Args:
        temperature: The temperature setting for the LLM.

    Returns:
        Configured ChatOpenAI instance.

    Note:
        The model name can be configured via the OPENAI_MODEL environment
        variable. Defaults to "gpt-4o".
    """
    return ChatOpenAI(model=LLM_MODEL_NAME, temperature=temperature)


def schema_for(model: Type[BaseModel]) -> str:
    """JSON schema declared to the model for a response type."""
    return json.dumps(model.model_json_schema(by_alias=True))


def extract_json_text(text: str) -> str:
    """Strip a markdown code fence wrapped around a JSON payload."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


def parse_response(text: Optional[str], schema: Type[T]) -> ParseResult[T]:
    """Parse and validate a textual JSON response.

    Args:
        text: Raw response content.
        schema: Pydantic model the payload must validate against.

    Returns:
        ParseResult holding either the validated model or an error message.
    """
    if not text or not text.strip():
        return ParseResult(error="Empty response")
    try:
        return ParseResult(value=schema.model_validate_json(extract_json_text(text)))
    except ValidationError as e:
        logger.error(f"Error parsing {schema.__name__}: {e.error_count()} errors\nRaw response: {text[:500]}")
        return ParseResult(error=f"Response does not match {schema.__name__}: {e}")
    except RecursionError:
        logger.error(f"Error parsing {schema.__name__}: response nested too deeply")
        return ParseResult(error=f"Response does not match {schema.__name__}: nested too deeply")


def parse_trends(text: Optional[str]) -> List[TrendingTopic]:
    """Parse a trend list response.

    Accepts either the ``{"topics": [...]}`` envelope or a bare array. Items
    that fail validation are skipped; anything unparseable yields an empty list.
    """
    if not text or not text.strip():
        return []

    try:
        data = json.loads(extract_json_text(text))
    except (ValueError, RecursionError) as e:
        logger.error(f"Error parsing trends response: {e}\nRaw response: {text[:500]}")
        return []

    items = data.get("topics") if isinstance(data, dict) else data
    if not isinstance(items, list):
        logger.error(f"Expected list of topics, got {type(items).__name__}")
        return []

    topics: List[TrendingTopic] = []
    for item in items:
        try:
            topics.append(TrendingTopic.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid trending topic: {e.error_count()} validation errors")
    return topics


async def _invoke(
    operation: str,
    messages: Sequence[Tuple[str, str]],
    variables: dict,
) -> str:
    """Run one prompt through the LLM and return the raw text content."""
    llm = get_llm(temperature=TEMPERATURES.get(operation, 0.7))
    prompt = ChatPromptTemplate.from_messages(list(messages))
    chain = prompt | llm

    try:
        with track_request(operation):
            response = await chain.ainvoke(variables)
    except openai.OpenAIError as e:
        logger.error(f"Content request '{operation}' failed: {e}")
        raise ContentRequestError(f"Content request '{operation}' failed: {e}") from e

    return response.content


async def _ground(query: str, grounder: Optional[SearchGrounder]) -> GroundingResult:
    grounder = grounder or SearchGrounder()
    return await asyncio.to_thread(grounder.search, query)


def _style(style) -> BlogStyle:
    return style if isinstance(style, BlogStyle) else BlogStyle(style)


async def fetch_trends(
    category: str = DEFAULT_CATEGORY,
    keyword: Optional[str] = None,
    grounded: bool = True,
    grounder: Optional[SearchGrounder] = None,
) -> List[TrendingTopic]:
    """Fetch the latest trending topics for a category or keyword.

    Args:
        category: Category to look for trends in.
        keyword: Optional keyword narrowing the search inside the category.
        grounded: Whether to back the request with a live web search.
        grounder: Optional search grounder (defaults to Tavily).

    Returns:
        Topics in the order returned (relevance order). Empty when the request
        fails or the response cannot be parsed; this function never raises.
    """
    if keyword and keyword.strip():
        search_context = f'the specific keyword: "{keyword.strip()}" (within the {category} space)'
        query = f"{keyword.strip()} latest news"
    else:
        search_context = f'the category: "{category}"'
        query = f"latest trending {category} news today"

    try:
        grounding = await _ground(query, grounder) if grounded else GroundingResult(query=query)
        text = await _invoke(
            "trends",
            [
                (
                    "system",
                    """You are a real-time news analyst with SEO expertise.
Respond with a single JSON object that validates against this JSON schema:
{schema}""",
                ),
                (
                    "human",
                    """CRITICAL: Today is {today}.
Identify exactly {count} of the most viral, surging, and LATEST trending topics for today related to {search_context}.

STRICT RULES:
1. IGNORE anything older than the last 48 hours.
2. TARGET SOURCES: Prioritize trends reported on or discussed in: {target_sources}, alongside major platforms like Reddit, Twitter, and Google Trends.
3. Topics must be "Breaking News," "Fresh Product Launches," or "Viral Social Media Trends".
4. Analyze each for SEO potential: difficulty (Easy, Medium, Hard), search intent and search volume.

For "source", strictly use one of: {sources}.
Include "sourceUrl" when a search result below supports the topic.

Search results:
{search_results}""",
                ),
            ],
            {
                "schema": schema_for(TrendListResponse),
                "today": get_long_date(),
                "count": TRENDS_PER_REQUEST,
                "search_context": search_context,
                "target_sources": ", ".join(TARGET_SOURCES),
                "sources": ", ".join(f"'{s.value}'" for s in TrendSource),
                "search_results": grounding.context,
            },
        )
        topics = parse_trends(text)
    except ContentRequestError:
        return []
    except Exception as e:
        # Trend loading degrades to an empty feed instead of failing the caller
        logger.error(f"Unexpected error fetching trends: {type(e).__name__}: {e}")
        return []

    logger.info(f"Fetched {len(topics)} trending topics for {search_context}")
    return topics


async def generate_draft(
    topic: str,
    style=BlogStyle.NEWS,
    grounded: bool = True,
    grounding: Optional[GroundingResult] = None,
    grounder: Optional[SearchGrounder] = None,
    image_generator: Optional[ImageGenerator] = None,
) -> GeneratedBlog:
    """Draft a styled, SEO-optimized post for a topic, with two images.

    Args:
        topic: The topic to write about.
        style: BlogStyle (or its value) to write in.
        grounded: Whether to back the request with a live web search.
        grounding: Precomputed search results (skips the search).
        grounder: Optional search grounder.
        image_generator: Optional image generator.

    Returns:
        GeneratedBlog with at least two images.

    Raises:
        ContentRequestError: If the text request fails or its response is invalid.
    """
    if not topic or not topic.strip():
        raise ValueError("Topic cannot be empty")

    style = _style(style)
    if grounding is None:
        grounding = await _ground(topic, grounder) if grounded else GroundingResult(query=topic)

    min_words, max_words = TARGET_WORD_RANGE
    text = await _invoke(
        "draft",
        [
            ("system", WRITER_SYSTEM_PROMPT),
            (
                "human",
                'Topic: "{topic}"\n'
                "Style: {style}. {style_guide}\n\n"
                "Write a high-quality blog post of {min_words}-{max_words} words.\n"
                "Use these search results as sources where relevant:\n{search_results}\n\n"
                + DRAFT_FIELDS,
            ),
        ],
        {
            "schema": schema_for(DraftResponse),
            "topic": topic,
            "style": style.value,
            "style_guide": STYLE_GUIDES[style],
            "min_words": min_words,
            "max_words": max_words,
            "search_results": grounding.context,
        },
    )

    draft = parse_response(text, DraftResponse).unwrap()
    images = await generate_blog_images(topic, image_generator)

    blog = GeneratedBlog(
        title=draft.title,
        content=draft.content,
        style=style,
        images=ensure_min_images(images),
        seo_data=draft.to_seo_data(),
        references=merge_references([], grounding.uris),
        metrics=draft.metrics,
    )
    logger.info(f"Drafted '{blog.title}' ({style.value}) with {len(blog.references)} references")
    return blog


async def generate_variations(
    topic: str,
    styles: Optional[Sequence] = None,
    grounded: bool = True,
    grounder: Optional[SearchGrounder] = None,
    image_generator: Optional[ImageGenerator] = None,
) -> List[GeneratedBlog]:
    """Draft the topic concurrently in several styles.

    One search is shared by all variations. Variations that fail are logged
    and left out.

    Returns:
        Successful drafts in style order.

    Raises:
        ContentRequestError: If every variation fails.
    """
    styles = [_style(s) for s in (styles or VARIATION_STYLES)]
    grounding = await _ground(topic, grounder) if grounded else GroundingResult(query=topic)

    results = await asyncio.gather(
        *(
            generate_draft(
                topic,
                style,
                grounding=grounding,
                image_generator=image_generator,
            )
            for style in styles
        ),
        return_exceptions=True,
    )

    drafts: List[GeneratedBlog] = []
    failures: List[str] = []
    for style, result in zip(styles, results):
        if isinstance(result, Exception):
            logger.error(f"Variation '{style.value}' failed: {result}")
            failures.append(f"{style.value}: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            drafts.append(result)

    if not drafts:
        raise ContentRequestError(f"All {len(styles)} variations failed: " + "; ".join(failures))
    return drafts


async def rewrite_draft(blog: GeneratedBlog, style) -> GeneratedBlog:
    """Rewrite a draft in another style.

    Images and references are kept; title, body, SEO block and metrics are
    replaced.
    """
    style = _style(style)
    min_words, max_words = TARGET_WORD_RANGE
    text = await _invoke(
        "rewrite",
        [
            ("system", WRITER_SYSTEM_PROMPT),
            (
                "human",
                "Rewrite the following blog post in the {style} style. {style_guide}\n"
                "Keep the facts, keep it {min_words}-{max_words} words.\n\n"
                "Title: {title}\n\nContent:\n{content}\n\n" + DRAFT_FIELDS,
            ),
        ],
        {
            "schema": schema_for(DraftResponse),
            "style": style.value,
            "style_guide": STYLE_GUIDES[style],
            "min_words": min_words,
            "max_words": max_words,
            "title": blog.title,
            "content": blog.content,
        },
    )

    draft = parse_response(text, DraftResponse).unwrap()
    return blog.model_copy(
        update={
            "title": draft.title,
            "content": draft.content,
            "style": style,
            "seo_data": draft.to_seo_data(),
            "metrics": draft.metrics,
        },
        deep=True,
    )


async def refine_draft(
    blog: GeneratedBlog,
    instruction: str,
    grounded: bool = True,
    grounder: Optional[SearchGrounder] = None,
) -> GeneratedBlog:
    """Apply a free-text editing instruction to a draft.

    New grounding URLs are appended to the draft's references, skipping
    ones already present.
    """
    if not instruction or not instruction.strip():
        raise ValueError("Instruction cannot be empty")

    query = f"{blog.title} {instruction}"
    grounding = await _ground(query, grounder) if grounded else GroundingResult(query=query)

    text = await _invoke(
        "refine",
        [
            ("system", WRITER_SYSTEM_PROMPT),
            (
                "human",
                "Current title: {title}\n\nCurrent content:\n{content}\n\n"
                "Instruction: {instruction}\n\n"
                "Apply the instruction and return the full updated post, keeping the {style} style.\n"
                "Use these search results where they help:\n{search_results}\n\n" + DRAFT_FIELDS,
            ),
        ],
        {
            "schema": schema_for(RefinementResponse),
            "title": blog.title,
            "content": blog.content,
            "instruction": instruction,
            "style": blog.style.value,
            "search_results": grounding.context,
            "min_words": TARGET_WORD_RANGE[0],
            "max_words": TARGET_WORD_RANGE[1],
        },
    )

    refined = parse_response(text, RefinementResponse).unwrap()
    return blog.model_copy(
        update={
            "title": refined.title,
            "content": refined.content,
            "seo_data": refined.to_seo_data(),
            "metrics": refined.metrics,
            "references": merge_references(blog.references, grounding.uris),
        },
        deep=True,
    )


async def extend_draft(blog: GeneratedBlog, new_topic: str) -> GeneratedBlog:
    """Append a section about another topic to a draft.

    Only the body and the metrics are replaced.
    """
    if not new_topic or not new_topic.strip():
        raise ValueError("Topic cannot be empty")

    text = await _invoke(
        "extend",
        [
            (
                "system",
                """You are an expert human blogger extending an existing post.
Keep the voice, formatting and markdown conventions of the post.
Respond with a single JSON object that validates against this JSON schema:
{schema}""",
            ),
            (
                "human",
                "Title: {title}\n\nContent:\n{content}\n\n"
                'Add a new section about "{new_topic}" under its own H2 header and connect it to the post.\n'
                "The complete post must not exceed {max_words} words; tighten earlier sections if needed.\n"
                "Return content (the full updated markdown body) and metrics "
                "(seoScore, keywordScore, readabilityScore, aiScore, humanScore as integers 0-100).",
            ),
        ],
        {
            "schema": schema_for(ExtensionResponse),
            "title": blog.title,
            "content": blog.content,
            "new_topic": new_topic,
            "max_words": EXTENSION_WORD_CEILING,
        },
    )

    extension = parse_response(text, ExtensionResponse).unwrap()
    return blog.model_copy(update={"content": extension.content, "metrics": extension.metrics}, deep=True)


class ContentClient:
    """Content request layer bound to one grounder and image generator.

    The controller and the API server talk to this object, so tests can
    swap it for a fake.
    """

    def __init__(
        self,
        grounder: Optional[SearchGrounder] = None,
        image_generator: Optional[ImageGenerator] = None,
        grounded: bool = True,
    ):
        self.grounder = grounder or SearchGrounder()
        self.image_generator = image_generator or ImageGenerator()
        self.grounded = grounded

    async def fetch_trends(self, category: str = DEFAULT_CATEGORY, keyword: Optional[str] = None) -> List[TrendingTopic]:
        return await fetch_trends(category, keyword, grounded=self.grounded, grounder=self.grounder)

    async def generate_draft(self, topic: str, style) -> GeneratedBlog:
        return await generate_draft(
            topic,
            style,
            grounded=self.grounded,
            grounder=self.grounder,
            image_generator=self.image_generator,
        )

    async def generate_variations(self, topic: str) -> List[GeneratedBlog]:
        return await generate_variations(
            topic,
            grounded=self.grounded,
            grounder=self.grounder,
            image_generator=self.image_generator,
        )

    async def rewrite(self, blog: GeneratedBlog, style) -> GeneratedBlog:
        return await rewrite_draft(blog, style)

    async def refine(self, blog: GeneratedBlog, instruction: str) -> GeneratedBlog:
        return await refine_draft(blog, instruction, grounded=self.grounded, grounder=self.grounder)

    async def extend(self, blog: GeneratedBlog, new_topic: str) -> GeneratedBlog:
        return await extend_draft(blog, new_topic)
