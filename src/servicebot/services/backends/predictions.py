"""Request-style prediction strategy (Replicate-compatible HTTP API).

A prediction is created, then polled at a fixed interval until it reaches a
terminal status or the elapsed time reaches the configured timeout.
"""
import asyncio
import json
import time
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from servicebot.core.config import settings
from servicebot.core.exceptions import BackendFailure
from servicebot.core.logging import logger
from servicebot.services.backends.base import ExecutionStrategy, Output, OutputKind

TERMINAL_STATUSES = ("succeeded", "failed", "canceled")

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".oga", ".m4a", ".flac"}


def _is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def _output_for(value: str) -> Output:
    if _is_url(value):
        suffix = PurePosixPath(urlparse(value).path).suffix.lower()
        if suffix in IMAGE_EXTENSIONS:
            return Output(kind=OutputKind.IMAGE, value=value)
        if suffix in AUDIO_EXTENSIONS:
            return Output(kind=OutputKind.AUDIO, value=value)
    return Output(kind=OutputKind.TEXT, value=value)


def normalize_output(output: Any) -> List[Output]:
    """Turn a prediction's raw output into relayable items."""
    if output is None:
        return []
    if isinstance(output, str):
        return [_output_for(output)] if output.strip() else []
    if isinstance(output, list):
        if all(isinstance(item, str) for item in output):
            if any(_is_url(item) for item in output):
                return [_output_for(item) for item in output if item]
            # Streaming text models return token lists
            text = "".join(output).strip()
            return [Output(kind=OutputKind.TEXT, value=text)] if text else []
        items: List[Output] = []
        for item in output:
            items.extend(normalize_output(item))
        return items
    if isinstance(output, dict):
        if output.get("transcription"):
            return [Output(kind=OutputKind.TEXT, value=str(output["transcription"]).strip())]
        return [Output(kind=OutputKind.TEXT, value=json.dumps(output, indent=2))]
    return [Output(kind=OutputKind.TEXT, value=str(output))]


class PredictionStrategy(ExecutionStrategy):
    """Creates a prediction for the service's model version and waits for it."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.predictions.base_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.predictions.api_token
        self.poll_interval = poll_interval if poll_interval is not None else settings.predictions.poll_interval
        self.timeout = timeout if timeout is not None else settings.predictions.timeout

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _create_request(self, version: str, query: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        # "owner/name" targets the model's latest version, anything else is a version id
        if "/" in version:
            return f"{self.base_url}/models/{version}/predictions", {"input": query}
        return f"{self.base_url}/predictions", {"version": version, "input": query}

    async def invoke(self, descriptor, query: Dict[str, Any]) -> List[Output]:
        if not descriptor.version:
            raise BackendFailure(f"Service '{descriptor.name}' has no model version")

        url, body = self._create_request(descriptor.version, query)
        logger.info(f"[Predictions] Creating prediction for {descriptor.version} with fields {sorted(query)}")

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(url, json=body, headers=self._get_headers())
                if response.status_code >= 400:
                    raise BackendFailure(
                        f"Prediction create failed with status {response.status_code}",
                        user_message=self._error_detail(response),
                    )
                prediction = response.json()
                prediction = await self._wait(client, prediction)
        except httpx.HTTPError as e:
            logger.error(f"[Predictions] HTTP error: {e}")
            raise BackendFailure(f"Prediction request failed: {e}")

        status = prediction.get("status")
        if status != "succeeded":
            error = prediction.get("error") or f"Prediction {status}"
            logger.warning(f"[Predictions] {prediction.get('id')} ended with status {status}: {error}")
            raise BackendFailure(f"Prediction {status}: {error}", user_message=str(error))

        return normalize_output(prediction.get("output"))

    async def _wait(self, client: httpx.AsyncClient, prediction: Dict[str, Any]) -> Dict[str, Any]:
        """Poll until a terminal status; bounded by ``self.timeout`` seconds."""
        started = time.monotonic()
        poll_url = (prediction.get("urls") or {}).get("get") or f"{self.base_url}/predictions/{prediction.get('id')}"

        while prediction.get("status") not in TERMINAL_STATUSES:
            if time.monotonic() - started >= self.timeout:
                logger.warning(f"[Predictions] {prediction.get('id')} timed out after {self.timeout}s")
                raise BackendFailure("Prediction timed out", user_message="Sorry! The prediction timed out.")
            await asyncio.sleep(self.poll_interval)
            response = await client.get(poll_url, headers=self._get_headers())
            response.raise_for_status()
            prediction = response.json()

        return prediction

    @staticmethod
    def _error_detail(response: httpx.Response) -> Optional[str]:
        try:
            return response.json().get("detail")
        except ValueError:
            return None
