"""Download helpers for media URLs."""
import uuid
from pathlib import PurePosixPath
from typing import Tuple
from urllib.parse import urlparse

import httpx

USER_AGENT = "Mozilla/5.0 (compatible; servicebot/1.0)"
DOWNLOAD_TIMEOUT = 60.0


def filename_from_url(url: str, content_type: str = "") -> str:
    """File name from the URL path, falling back to the content type for the extension."""
    name = PurePosixPath(urlparse(url).path).name
    if not name:
        name = f"download_{uuid.uuid4().hex[:8]}"
    if not PurePosixPath(name).suffix and "/" in content_type:
        name = f"{name}.{content_type.split('/')[1].split(';')[0].strip()}"
    return name


async def download_file(url: str, timeout: float = DOWNLOAD_TIMEOUT) -> Tuple[str, bytes]:
    """
    Fetch a media URL into memory.

    Returns:
        (file name, content)

    Raises:
        httpx.HTTPError: on transport errors or non-2xx status
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
        content_type = response.headers.get("content-type", "")
        return filename_from_url(url, content_type), response.content
