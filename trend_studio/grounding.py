"""Search grounding for content requests.

Grounded requests first run a Tavily web search for the topic; the results
are handed to the model as context and their URLs become the post's
reference list.

Note:
    Grounding is optional. Without TAVILY_API_KEY the grounder logs a
    warning and returns an empty result, and the request proceeds with the
    model's own knowledge.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from tavily import TavilyClient

from .config import GROUNDING_MAX_RESULTS, TAVILY_ENV_KEY

logger = logging.getLogger(__name__)

# Characters of each search result passed to the prompt
CONTEXT_SNIPPET_LENGTH = 500


@dataclass
class GroundingChunk:
    """One search result backing a grounded response."""

    uri: str
    title: str = ""
    content: str = ""


@dataclass
class GroundingResult:
    """Search results for a single grounded request."""

    query: str
    chunks: List[GroundingChunk] = field(default_factory=list)

    @property
    def uris(self) -> List[str]:
        return [chunk.uri for chunk in self.chunks if chunk.uri]

    @property
    def context(self) -> str:
        """Render the results as a numbered list for the prompt."""
        if not self.chunks:
            return "No search results available."
        lines = []
        for i, chunk in enumerate(self.chunks, 1):
            snippet = chunk.content[:CONTEXT_SNIPPET_LENGTH].replace("\n", " ")
            lines.append(f"[{i}] {chunk.title} ({chunk.uri})\n{snippet}")
        return "\n\n".join(lines)


class SearchGrounder:
    """Runs web searches through Tavily.

    Attributes:
        env_key: Environment variable holding the API key.
    """

    env_key: str = TAVILY_ENV_KEY

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or os.environ.get(self.env_key)

    def is_available(self) -> bool:
        """Check if grounding can be used (API key present)."""
        return bool(self.api_key)

    def search(self, query: str, max_results: int = GROUNDING_MAX_RESULTS) -> GroundingResult:
        """Search the web for a query.

        Args:
            query: The search query.
            max_results: Maximum number of results to return.

        Returns:
            GroundingResult, empty when grounding is unavailable or fails.
        """
        result = GroundingResult(query=query)
        if not query or not query.strip():
            return result

        if not self.is_available():
            logger.warning(f"Warning: {self.env_key} not set, skipping search grounding")
            return result

        try:
            client = TavilyClient(api_key=self.api_key)
            response = client.search(query=query, max_results=max_results, topic="news")

            for item in response.get("results", []):
                url = item.get("url", "")
                if not url:
                    continue
                result.chunks.append(
                    GroundingChunk(
                        uri=url,
                        title=item.get("title", ""),
                        content=item.get("content", "") or "",
                    )
                )
        except (requests.RequestException, ConnectionError, TimeoutError) as e:
            logger.error(f"Error running grounding search (network): {e}")
        except ValueError as e:
            logger.error(f"Error running grounding search (invalid response): {e}")
        except Exception as e:
            # Grounding is best effort; the request continues ungrounded
            logger.error(f"Unexpected error running grounding search: {type(e).__name__}: {e}")

        logger.debug(f"Grounding for '{query}' returned {len(result.chunks)} results")
        return result
