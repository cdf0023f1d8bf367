"""LLM service - chat completions against an OpenAI-compatible API."""
from typing import Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from servicebot.core.config import settings
from servicebot.core.logging import logger
from servicebot.services.backends.base import AnswerCapability

# Rough size heuristic used for budgeting
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count of a string."""
    return (len(text or "") + CHARS_PER_TOKEN - 1) // CHARS_PER_TOKEN


def estimate_messages_tokens(messages: List[Dict[str, str]]) -> int:
    return sum(estimate_tokens(m.get("content", "")) for m in messages)


class LLMService:
    """Service for LLM interactions."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """Initialize LLM client."""
        self.client = client or AsyncOpenAI(
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )
        self.model_name = settings.llm.model_name
        self.max_tokens = settings.llm.max_tokens
        self.response_max_tokens = settings.llm.response_max_tokens
        logger.info(f"[LLM] Client initialized: {settings.llm.base_url or 'default endpoint'} / {self.model_name}")

    def completion_budget(self, messages: List[Dict[str, str]]) -> int:
        """Tokens left for the completion; 0 or less means the prompt is too long."""
        return min(self.response_max_tokens, self.max_tokens - estimate_messages_tokens(messages))

    async def complete(
        self,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str] = None,
    ) -> Optional[str]:
        """
        Run a chat completion.

        Args:
            messages: Conversation as role/content dicts
            system_prompt: Prepended as a system message when given

        Returns:
            Completion text, or None when the prompt does not fit or the call fails
        """
        if system_prompt:
            messages = [{"role": "system", "content": system_prompt}, *messages]

        budget = self.completion_budget(messages)
        if budget <= 0:
            logger.warning(f"[LLM] Prompt too long ({estimate_messages_tokens(messages)} tokens)")
            return None

        try:
            resp = await self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=settings.llm.temperature,
                max_tokens=budget,
            )
            content = resp.choices[0].message.content
            return content.strip() if content else None
        except OpenAIError as e:
            logger.error(f"[LLM] Completion failed: {e}")
            return None


class ChatCompletionAnswer(AnswerCapability):
    """Answers chat turns with the configured system prompt."""

    def __init__(self, llm: LLMService, system_prompt: Optional[str] = None):
        self.llm = llm
        self.system_prompt = system_prompt or settings.llm.system_prompt

    async def get_answer(self, ctx, turns: List[Dict[str, str]]) -> Optional[str]:
        return await self.llm.complete(turns, system_prompt=self.system_prompt)
