"""DALL-E image generation client."""

import asyncio
import logging

import aiohttp

from .base import ImageGenerationBackend
from .openai_client import OpenAIClient, DEFAULT_BASE_URL
from ..errors import RemoteServiceError, PolicyRejectionError

logger = logging.getLogger(__name__)

POLICY_ERROR_CODE = "content_policy_violation"


class ImageGenerationClient(OpenAIClient, ImageGenerationBackend):
    """Requests a single image for a prompt and returns its URL."""
    
    def __init__(self,
                 api_key: str,
                 model: str = "dall-e-3",
                 size: str = "1024x1024",
                 quality: str = "standard",
                 style: str = "vivid",
                 base_url: str = DEFAULT_BASE_URL,
                 timeout_seconds: float = 120.0):
        """Initialize image generation client.
        
        Args:
            api_key: OpenAI API key
            model: Image model to use
            size: Requested image size
            quality: "standard" or "hd"
            style: "vivid" or "natural"
            base_url: API root
            timeout_seconds: Total budget for one request
        """
        super().__init__(api_key, base_url, timeout_seconds)
        self.model = model
        self.size = size
        self.quality = quality
        self.style = style
        logger.info(f"ImageGenerationClient initialized with model: {model} ({size}, {quality}, {style})")
    
    async def generate(self, prompt: str) -> str:
        data = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
            "quality": self.quality,
            "style": self.style,
        }
        
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self._url("images/generations"),
                                        headers=self._headers(), json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        self._raise_for_error(response.status, error_text)
                    result = await response.json()
        except asyncio.TimeoutError as e:
            logger.error("Image generation timed out")
            raise RemoteServiceError("Image generation timeout") from e
        except aiohttp.ClientError as e:
            logger.error("Image generation request failed: %s", e)
            raise RemoteServiceError(f"Image generation request failed: {e}") from e
        except ValueError as e:
            # Malformed JSON or undecodable text in the body
            logger.error("Image generation returned an unreadable body: %s", e)
            raise RemoteServiceError(f"Image generation returned an unreadable body: {e}") from e
        
        try:
            return result["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise RemoteServiceError(f"Image generation returned no URL: {result}") from e
    
    @staticmethod
    def _raise_for_error(status: int, error_text: str) -> None:
        if status == 400 and POLICY_ERROR_CODE in error_text:
            raise PolicyRejectionError(f"Prompt rejected by content policy: {error_text}")
        raise RemoteServiceError(f"Image generation API error: {status} - {error_text}")
