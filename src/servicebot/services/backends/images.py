"""Image generation strategy (OpenAI Images API).

The reserved ``model`` query field picks the sub-mode and is never sent to
the backend:

- ``generate`` (default): text prompt only
- ``edit`` / ``e``: edit the uploaded image following the prompt
- ``variation`` / ``v``: variations of the uploaded image
"""
from typing import Any, Dict, List, Optional, Tuple

import httpx
from openai import AsyncOpenAI, OpenAIError

from servicebot.core.config import settings
from servicebot.core.exceptions import BackendFailure
from servicebot.core.logging import logger
from servicebot.services.backends.base import ExecutionStrategy, Output, OutputKind
from servicebot.services.backends.files import download_file

MODEL_FIELD = "model"

EDIT_MODES = ("edit", "e")
VARIATION_MODES = ("variation", "v")


def _parse_count(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BackendFailure(f"Invalid image count: {value!r}", user_message="n must be a number.")


def split_model(query: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Separate the mode selector from the backend fields."""
    fields = dict(query)
    mode = str(fields.pop(MODEL_FIELD, "") or "").lower()
    return mode, fields


class ImageGenerationStrategy(ExecutionStrategy):
    """Generates, edits or varies images from the accumulated query."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, size: Optional[str] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )
        self.size = size or settings.images.size

    async def invoke(self, descriptor, query: Dict[str, Any]) -> List[Output]:
        mode, fields = split_model(query)
        n = _parse_count(fields.get("n"))
        logger.info(f"[Images] Running mode={mode or 'generate'} n={n} fields={sorted(fields)}")

        try:
            if mode in EDIT_MODES:
                data = await self._edit(fields, n)
            elif mode in VARIATION_MODES:
                data = await self._variation(fields, n)
            else:
                data = await self._generate(fields, n)
        except OpenAIError as e:
            message = getattr(e, "message", None) or str(e)
            logger.error(f"[Images] Backend error: {message}")
            raise BackendFailure(f"Image generation failed: {message}", user_message=message)
        except httpx.HTTPError as e:
            logger.error(f"[Images] Could not download source image: {e}")
            raise BackendFailure(f"Source image download failed: {e}")

        return [Output(kind=OutputKind.IMAGE, value=item.url) for item in data if getattr(item, "url", None)]

    async def _generate(self, fields: Dict[str, Any], n: Optional[int]):
        kwargs = {"prompt": fields.get("prompt", ""), "size": self.size, "response_format": "url"}
        if n:
            kwargs["n"] = n
        response = await self.client.images.generate(**kwargs)
        return response.data

    async def _edit(self, fields: Dict[str, Any], n: Optional[int]):
        image = await download_file(fields.get("image", ""))
        kwargs = {"image": image, "prompt": fields.get("prompt", ""), "size": self.size, "response_format": "url"}
        if n:
            kwargs["n"] = n
        response = await self.client.images.edit(**kwargs)
        return response.data

    async def _variation(self, fields: Dict[str, Any], n: Optional[int]):
        image = await download_file(fields.get("image", ""))
        kwargs = {"image": image, "size": self.size, "response_format": "url"}
        if n:
            kwargs["n"] = n
        response = await self.client.images.create_variation(**kwargs)
        return response.data
