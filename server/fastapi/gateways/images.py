"""
Image generation side effect

Fired after every chat request. The result is only logged; failures never
reach the chat caller.
"""

import logging
from openai import AsyncOpenAI

import config

logger = logging.getLogger(__name__)

IMAGE_PROMPT = "A futuristic city with flying cars at sunset"
IMAGE_SIZE = "1024x1024"


async def generate_image(client: AsyncOpenAI) -> str | None:
    """Request one image and log its URL. Returns the URL, or None on failure."""
    try:
        response = await client.images.generate(
            model=config.IMAGE_MODEL,
            prompt=IMAGE_PROMPT,
            n=1,
            size=IMAGE_SIZE,
        )
        image_url = response.data[0].url
    except Exception as e:
        logger.error("Error generating image: %s", e)
        return None

    logger.info("Generated image URL: %s", image_url)
    return image_url
