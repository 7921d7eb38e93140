"""Shared plumbing for calls to the OpenAI REST API."""

import logging
import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIClient:
    """Holds credentials, endpoint and timeout for one OpenAI endpoint family."""
    
    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout_seconds: float = 120.0):
        """Initialize client.
        
        Args:
            api_key: OpenAI API key
            base_url: API root, overridable for proxies and tests
            timeout_seconds: Total budget for one request
        """
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    
    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"
    
    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}
