"""Downloads generated images to local storage."""

import os
import asyncio
import logging
from pathlib import Path
from typing import Union

import aiohttp

from ..errors import DownloadError

logger = logging.getLogger(__name__)


class ImageFetcher:
    """Fetches a remote image into a file, never leaving a partial file in place."""
    
    def __init__(self, timeout_seconds: float = 120.0, chunk_size: int = 64 * 1024):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.chunk_size = chunk_size
    
    async def download(self, url: str, dest_path: Union[str, Path]) -> Path:
        """Download url to dest_path.
        
        The body is written to ``<dest_path>.part`` and moved into place once
        complete.
        
        Returns:
            The destination path
            
        Raises:
            DownloadError: On a non-200 status, a timeout or a transport error
        """
        dest_path = Path(dest_path)
        temp_path = dest_path.with_name(dest_path.name + ".part")
        
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise DownloadError(f"Image download failed: HTTP {response.status}")
                    with open(temp_path, 'wb') as f:
                        async for chunk in response.content.iter_chunked(self.chunk_size):
                            f.write(chunk)
            os.replace(temp_path, dest_path)
        except asyncio.TimeoutError as e:
            raise DownloadError("Image download timeout") from e
        except aiohttp.ClientError as e:
            raise DownloadError(f"Image download failed: {e}") from e
        except OSError as e:
            raise DownloadError(f"Could not write {dest_path}: {e}") from e
        finally:
            if temp_path.exists():
                temp_path.unlink()
        
        logger.info(f"Image saved to {dest_path}")
        return dest_path
