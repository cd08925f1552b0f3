"""Pydantic models for TrendStudio.

Field aliases keep the camelCase names used by the browser client
(``searchVolume``, ``seoData``, ``isAiGenerated``...), so payloads can be
validated with either spelling and dumped with ``by_alias=True``.
"""

import json
import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import generate_id


class TrendSource(str, Enum):
    """Platforms and outlets a trending topic can originate from."""

    GOOGLE = "Google"
    REDDIT = "Reddit"
    TWITTER = "Twitter"
    YOUTUBE = "Youtube"
    NEWS = "News"
    NINE_TO_FIVE_GOOGLE = "9to5google.com"
    ELECTREK = "electrek.co"
    NINE_TO_FIVE_MAC = "9to5mac.com"
    PATRIKA_TIMES = "english.patrikatimes.in"
    GOOGLE_NEWS = "Google News"
    NEWSBYTES = "NewsBytes"
    THE_VERGE = "The Verge"


class Difficulty(str, Enum):
    """Ranking difficulty of a topic."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class BlogStyle(str, Enum):
    """Writing style of a drafted post."""

    NEWS = "News"
    HOW_TO = "How-to"
    OPINION = "Opinion"
    LISTICLE = "Listicle"
    PROFESSIONAL = "Professional"
    CONVERSATIONAL = "Conversational"
    STORYTELLING = "Storytelling"
    TECHNICAL = "Technical"


class StudioModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class TrendingTopic(StudioModel):
    """A candidate subject for a post."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    title: str = Field(min_length=1)
    source: TrendSource
    difficulty: Difficulty
    intent: str
    search_volume: str = Field(alias="searchVolume")
    category: str
    trending_since: str = Field(alias="trendingSince")
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @field_validator("id", "search_volume", "trending_since", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class BlogImage(StudioModel):
    """An image slot of a post: remote link or data URI."""

    url: str
    is_ai_generated: bool = Field(default=False, alias="isAiGenerated")


class SeoData(StudioModel):
    """Search metadata owned by a single post."""

    meta_title: str = Field(default="", alias="metaTitle")
    meta_description: str = Field(default="", alias="metaDescription")
    slug: str = ""
    schema_markup: str = Field(default="", alias="schema")


class BlogMetrics(StudioModel):
    """Model-estimated quality scores, each 0-100."""

    seo_score: int = Field(default=0, alias="seoScore")
    keyword_score: int = Field(default=0, alias="keywordScore")
    readability_score: int = Field(default=0, alias="readabilityScore")
    ai_score: int = Field(default=0, alias="aiScore")
    human_score: int = Field(default=0, alias="humanScore")

    @model_validator(mode="before")
    @classmethod
    def _derive_human_score(cls, data: Any) -> Any:
        # Older responses only carried the AI probability
        if isinstance(data, dict) and "humanScore" not in data and "human_score" not in data:
            ai_score = data.get("aiScore", data.get("ai_score"))
            if isinstance(ai_score, (int, float)):
                data = {**data, "humanScore": 100 - ai_score}
        return data

    @field_validator(
        "seo_score", "keyword_score", "readability_score", "ai_score", "human_score",
        mode="before",
    )
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = float(value.strip().rstrip("%"))
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Score must be a finite number, got {value}")
        if isinstance(value, (int, float)):
            return max(0, min(100, int(round(value))))
        return value


class GeneratedBlog(StudioModel):
    """One drafted post with its images, SEO block, references and scores."""

    id: str = Field(default_factory=generate_id)
    title: str
    content: str
    style: BlogStyle
    images: List[BlogImage] = Field(default_factory=list)
    seo_data: SeoData = Field(default_factory=SeoData, alias="seoData")
    references: List[str] = Field(default_factory=list)
    metrics: BlogMetrics = Field(default_factory=BlogMetrics)

    @property
    def header_image(self) -> Optional[BlogImage]:
        return self.images[0] if self.images else None

    @property
    def mid_image(self) -> Optional[BlogImage]:
        return self.images[1] if len(self.images) > 1 else None


class SEOImprovement(StudioModel):
    """A single suggestion from the SEO checklist."""

    type: str  # keyword, readability, structure
    suggestion: str
    satisfied: bool = False


# ---------------------------------------------------------------------------
# Response schemas declared to the model
# ---------------------------------------------------------------------------


class TrendListResponse(StudioModel):
    """Envelope for a list of trending topics."""

    topics: List[TrendingTopic]


class DraftResponse(StudioModel):
    """Payload of a drafting, rewrite or refinement request."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    meta_title: str = Field(alias="metaTitle")
    meta_description: str = Field(alias="metaDescription")
    slug: str
    schema_markup: str = Field(alias="schema")
    metrics: BlogMetrics

    @field_validator("schema_markup", mode="before")
    @classmethod
    def _schema_as_text(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    def to_seo_data(self) -> SeoData:
        return SeoData(
            meta_title=self.meta_title,
            meta_description=self.meta_description,
            slug=self.slug,
            schema_markup=self.schema_markup,
        )


class RefinementResponse(DraftResponse):
    """Payload of an instruction-based refinement request."""


class ExtensionResponse(StudioModel):
    """Payload of a request that appends a section to a post."""

    content: str = Field(min_length=1)
    metrics: BlogMetrics
