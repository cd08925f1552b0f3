"""AI image synthesis for drafted posts.

Every post carries a header image and a mid-article image. Both are
requested from the OpenAI Images API and embedded as data URIs. A failed
image is logged and skipped; ``ensure_min_images`` then fills the empty
slots with the stock fallback so rendering always has two images.
"""

import logging
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from .config import (
    FALLBACK_IMAGE_URL,
    IMAGE_ASPECT_RATIO,
    IMAGE_MODEL_NAME,
    IMAGE_SIZES,
    MIN_BLOG_IMAGES,
)
from .exceptions import ImageGenerationError
from .metrics import record_image_generation
from .models import BlogImage

logger = logging.getLogger(__name__)


def image_prompts(topic: str) -> List[str]:
    """Prompts for the header and the mid-article image of a topic."""
    return [
        f"High resolution realistic lifestyle photography related to {topic}. "
        "Natural lighting, blog header style. No text.",
        f"Close-up realistic detail shot related to {topic}. Cinematic lighting, no text.",
    ]


def to_data_uri(b64_data: str, mime_type: str = "image/png") -> str:
    """Wrap base64 image data in a data URI."""
    return f"data:{mime_type};base64,{b64_data}"


class ImageGenerator:
    """Generates images through the OpenAI Images API.

    Attributes:
        model: Image model name.
    """

    def __init__(self, model: str = IMAGE_MODEL_NAME, client: Optional[AsyncOpenAI] = None):
        self.model = model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def generate(self, prompt: str, aspect_ratio: str = IMAGE_ASPECT_RATIO) -> BlogImage:
        """Generate one image.

        Args:
            prompt: The image prompt.
            aspect_ratio: Aspect-ratio hint, mapped to a supported size.

        Returns:
            BlogImage with a data URI, flagged as AI generated.

        Raises:
            ImageGenerationError: If the response carries no image data.
        """
        size = IMAGE_SIZES.get(aspect_ratio, IMAGE_SIZES[IMAGE_ASPECT_RATIO])
        response = await self.client.images.generate(
            model=self.model,
            prompt=prompt,
            size=size,
            n=1,
        )

        data = response.data or []
        b64_data = data[0].b64_json if data else None
        if not b64_data:
            raise ImageGenerationError("Image response contained no inline data")

        return BlogImage(url=to_data_uri(b64_data), is_ai_generated=True)


async def generate_blog_images(topic: str, generator: Optional[ImageGenerator] = None) -> List[BlogImage]:
    """Generate the header and mid-article images for a topic.

    Requests run one after the other. Failures are logged and skipped, so the
    result may hold fewer than two images.
    """
    generator = generator or ImageGenerator()
    images: List[BlogImage] = []

    for prompt in image_prompts(topic):
        try:
            images.append(await generator.generate(prompt))
            record_image_generation("generated")
        except (openai.OpenAIError, ImageGenerationError) as e:
            record_image_generation("failed")
            logger.warning(f"Image generation failed for '{topic}': {e}")

    return images


def ensure_min_images(images: List[BlogImage], minimum: int = MIN_BLOG_IMAGES) -> List[BlogImage]:
    """Back-fill an image list with the stock fallback up to ``minimum`` entries.

    Returns:
        A new list; fallback entries are not flagged as AI generated.
    """
    filled = list(images)
    while len(filled) < minimum:
        filled.append(BlogImage(url=FALLBACK_IMAGE_URL, is_ai_generated=False))
        record_image_generation("fallback")
    return filled
