from pathlib import Path

import aiohttp
from loguru import logger

CHUNK_SIZE = 64 * 1024


async def fetch_text(url: str) -> str:
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.text()


async def download(url: str, dest: Path) -> Path:
    """Stream the body at `url` into `dest`, following redirects"""
    logger.debug(f"Downloading {url} to {dest}")
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as response:
            try:
                response.raise_for_status()
            except aiohttp.ClientResponseError as e:
                logger.error(f"HTTP error {e.status} at {url}: {e.message}")
                raise

            with open(dest, "wb") as f:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    f.write(chunk)
    return dest
