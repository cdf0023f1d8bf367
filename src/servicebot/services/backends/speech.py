"""Speech backends - transcription (whisper) and synthesis (tts)."""
from typing import Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from servicebot.core.config import settings
from servicebot.core.logging import logger
from servicebot.services.backends.files import download_file


class Transcriber:
    """Turns a voice message URL into text."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )
        self.model = model or settings.speech.transcription_model

    async def transcribe(self, audio_url: str, language: Optional[str] = None) -> Optional[str]:
        """
        Transcribe audio at ``audio_url``.

        Returns:
            The transcript, or None on any failure
        """
        try:
            audio_file = await download_file(audio_url)
            kwargs = {"model": self.model, "file": audio_file}
            if language:
                kwargs["language"] = language
            result = await self.client.audio.transcriptions.create(**kwargs)
        except (httpx.HTTPError, OpenAIError) as e:
            logger.error(f"[Speech] Transcription failed for {audio_url}: {e}")
            return None

        text = (getattr(result, "text", None) or "").strip()
        return text or None


class SpeechSynthesizer:
    """Turns text into spoken audio bytes."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )
        self.model = model or settings.speech.tts_model

    async def synthesize(self, text: str, voice: str) -> Optional[bytes]:
        try:
            response = await self.client.audio.speech.create(model=self.model, voice=voice, input=text)
        except OpenAIError as e:
            logger.error(f"[Speech] Synthesis failed: {e}")
            return None
        return response.content
