"""Agents API client - tool-using agents behind an HTTP endpoint."""
from typing import Any, Dict, List, Optional

import httpx

from servicebot.core.config import settings
from servicebot.core.exceptions import BackendFailure, UserInputError
from servicebot.core.logging import logger
from servicebot.services.backends.base import AnswerCapability, OutputKind
from servicebot.services.backends.predictions import normalize_output

AGENTS_TOOLS_SETTING = "agentsTools"
AGENTS_ACTOR_SETTING = "agentsActor"

GENERIC_ERROR = "Something went wrong. Please try again."


class AgentsAnswer(AnswerCapability):
    """Sends the turn with the user's configured tools to the agents API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.agents.url).rstrip("/")
        self.timeout = timeout or settings.agents.timeout

    async def get_answer(self, ctx, turns: List[Dict[str, str]]) -> Optional[str]:
        tools = ctx.session.settings.get(AGENTS_TOOLS_SETTING)
        if not tools:
            raise UserInputError("Please set up tools first: /settings --agentsTools <tools>")

        *history, question = turns
        body = {
            "input": question["content"],
            "tools": tools,
            "history": history,
            "actor": ctx.session.settings.get(AGENTS_ACTOR_SETTING, settings.agents.actor),
            "chat_id": ctx.session_id,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/chat", json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"[Agents] Request failed: {e}")
            return None

        if not data.get("success"):
            errors = data.get("error") or []
            raise BackendFailure("Agents request failed", user_message=errors[0] if errors else GENERIC_ERROR)

        output = data.get("output")
        if isinstance(output, dict):
            return await self._relay_prediction(ctx, output)
        return output or None

    async def _relay_prediction(self, ctx, output: Dict[str, Any]) -> Optional[str]:
        """Agents may answer with a finished prediction instead of text."""
        if not output.get("success"):
            errors = output.get("error") or []
            raise BackendFailure("Agent tool failed", user_message=errors[0] if errors else GENERIC_ERROR)

        prediction = output.get("prediction") or {}
        text_parts = []
        for item in normalize_output(prediction.get("output")):
            if item.kind == OutputKind.IMAGE:
                await ctx.responder.send_image(item.value)
            elif item.kind == OutputKind.AUDIO:
                await ctx.responder.send_audio(item.value)
            else:
                text_parts.append(item.value)
        return "\n".join(text_parts) or "Done."
