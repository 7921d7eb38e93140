"""Whisper translation client: speech in any language to English text."""

import time
import asyncio
import logging
from pathlib import Path
from typing import Union

import aiohttp

from .base import TranscriptionBackend
from .openai_client import OpenAIClient, DEFAULT_BASE_URL
from ..errors import RemoteServiceError

logger = logging.getLogger(__name__)


class TranscriptionClient(OpenAIClient, TranscriptionBackend):
    """Sends a recording to the audio translation endpoint."""
    
    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 base_url: str = DEFAULT_BASE_URL,
                 timeout_seconds: float = 120.0):
        super().__init__(api_key, base_url, timeout_seconds)
        self.model = model
        logger.info(f"TranscriptionClient initialized with model: {model}")
    
    async def transcribe(self, audio_path: Union[str, Path]) -> str:
        audio_path = Path(audio_path)
        start_time = time.monotonic()
        
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                with open(audio_path, 'rb') as audio_file:
                    form = aiohttp.FormData()
                    form.add_field("model", self.model)
                    form.add_field("response_format", "text")
                    form.add_field("file", audio_file, filename=audio_path.name)
                    
                    async with session.post(self._url("audio/translations"),
                                            headers=self._headers(), data=form) as response:
                        body = await response.text()
                        if response.status != 200:
                            raise RemoteServiceError(
                                f"Transcription API error: {response.status} - {body}")
        except asyncio.TimeoutError as e:
            logger.error("Transcription timed out for %s", audio_path.name)
            raise RemoteServiceError(f"Transcription timeout ({audio_path.name})") from e
        except aiohttp.ClientError as e:
            logger.error("Transcription request failed for %s: %s", audio_path.name, e)
            raise RemoteServiceError(f"Transcription request failed ({audio_path.name}): {e}") from e
        except UnicodeDecodeError as e:
            logger.error("Transcription for %s is not valid text", audio_path.name)
            raise RemoteServiceError(f"Transcription returned undecodable text ({audio_path.name})") from e
        except OSError as e:
            logger.error("Could not read recording %s: %s", audio_path, e)
            raise RemoteServiceError(f"Could not read recording {audio_path.name}: {e}") from e
        
        logger.debug(f"Transcribed {audio_path.name} in {time.monotonic() - start_time:.2f}s")
        return body
