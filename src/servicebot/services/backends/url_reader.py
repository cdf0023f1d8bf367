"""URL reader - fetches a page, keeps its readable text and runs article actions."""
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import httpx

from servicebot.core.exceptions import BackendFailure, UserInputError
from servicebot.core.logging import logger
from servicebot.services.backends.base import AnswerCapability
from servicebot.services.backends.files import USER_AGENT
from servicebot.services.backends.llm import LLMService
from servicebot.services.payload import select_url_action_payload
from servicebot.services.replies import Choice, Responder

PREVIEW_CHARS = 500
FETCH_TIMEOUT = 15.0

URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)

URL_NOT_FOUND = "Sorry! URL not found."
CONTENT_TOO_LONG = "Sorry! Page content is too long."


@dataclass(frozen=True)
class UrlAction:
    title: str
    subtitle: str
    prompt: Optional[Callable[[str], str]] = None

    @property
    def is_preview(self) -> bool:
        return self.prompt is None


URL_ACTIONS: List[UrlAction] = [
    UrlAction("Summarize", "Summarize in a sentence",
              lambda content: f"Summarize this article in 1 sentence: {content}"),
    UrlAction("Explain", "Explain in 3 sentences",
              lambda content: f"Explain this article in 3 sentences: {content}"),
    UrlAction("Key points", "Key points of this article",
              lambda content: f"Few key points of this article: {content}"),
    UrlAction("Additional reading", "Additional research or reading",
              lambda content: (
                  "5 additional research or reading I need to deepen my understanding "
                  f"of the topic covered in this article: {content}"
              )),
    UrlAction("Categories", "Categories of this article",
              lambda content: f"Categories of this article: {content}"),
    UrlAction("Tones", "Tones of this article",
              lambda content: f"Tone of this article: {content}"),
    UrlAction("Preview", "Show the article's preview"),
]


def is_url(text: str) -> bool:
    return bool(URL_PATTERN.match((text or "").strip()))


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def html_to_text(html: str) -> str:
    """Simple HTML to text conversion without external dependencies."""
    # Remove script and style elements
    html = re.sub(r'<script[^>]*>.*?</script>', '', html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r'<style[^>]*>.*?</style>', '', html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r'<!--.*?-->', '', html, flags=re.DOTALL)

    # Block elements become line breaks
    html = re.sub(r'<(p|div|br|h[1-6]|li|tr|article|section)[^>]*>', '\n', html, flags=re.IGNORECASE)
    html = re.sub(r'<[^>]+>', '', html)

    for entity, char in (('&nbsp;', ' '), ('&lt;', '<'), ('&gt;', '>'),
                         ('&quot;', '"'), ('&#39;', "'"), ('&amp;', '&')):
        html = html.replace(entity, char)

    lines = []
    for line in html.split('\n'):
        line = ' '.join(line.split())
        if line:
            lines.append(line)
    return '\n'.join(lines)


class UrlReader:
    """Loads articles into the session and answers the URL action buttons."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def fetch(self, url: str) -> str:
        """
        Fetch a page and return its readable text.

        Raises:
            BackendFailure: the page could not be fetched or has no text
        """
        try:
            async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
                response = await client.get(url, headers={"User-Agent": USER_AGENT})
                response.raise_for_status()
        except httpx.TimeoutException:
            raise BackendFailure(f"Timed out fetching {url}", user_message="Sorry! The page took too long to load.")
        except httpx.HTTPError as e:
            raise BackendFailure(f"Could not fetch {url}: {e}", user_message="Sorry! Can not read this URL.")

        content_type = response.headers.get("content-type", "")
        if "html" not in content_type and "text" not in content_type:
            raise BackendFailure(
                f"Unsupported content type {content_type} for {url}",
                user_message="Sorry! This link is not a web page.",
            )

        text = html_to_text(response.text) if "html" in content_type else response.text.strip()
        if not text:
            raise BackendFailure(f"No text in {url}", user_message="Sorry! Can not read this URL.")
        return text

    async def load(self, ctx, url: str) -> None:
        """Fetch ``url`` into ``data`` and offer the actions."""
        url = url.strip()
        content = await self.fetch(url)
        ctx.session.data = {"url": url, "content": content}
        logger.info(f"[UrlReader] Loaded {url} ({len(content)} chars)")
        await self.send_actions(ctx.responder)

    async def send_actions(self, responder: Responder) -> None:
        choices = [
            Choice(label=action.title, payload=select_url_action_payload(i))
            for i, action in enumerate(URL_ACTIONS)
        ]
        await responder.send_choices("Choose one below or ask me about this article.", choices)

    async def run_action(self, ctx, index: int) -> None:
        url = ctx.session.data.get("url")
        if not url:
            raise UserInputError(URL_NOT_FOUND)
        if not 0 <= index < len(URL_ACTIONS):
            raise UserInputError("Sorry. Unknown action.")

        action = URL_ACTIONS[index]
        content = ctx.session.data.get("content", "")

        if action.is_preview:
            result = truncate(content, PREVIEW_CHARS)
        else:
            messages = [{"role": "user", "content": action.prompt(content)}]
            if self.llm.completion_budget(messages) <= 0:
                raise UserInputError(CONTENT_TOO_LONG)
            await ctx.responder.send_typing()
            result = await self.llm.complete(messages)

        if not result:
            await ctx.reply("Sorry! Can not get the result.")
        else:
            await ctx.reply(result)
        await self.send_actions(ctx.responder)


class UrlAnswer(AnswerCapability):
    """Answers free-form questions about the article stored in ``data``."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    def build_messages(self, content: str, question: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": "Answer the user's question using only this article:\n\n" + content},
            {"role": "user", "content": question},
        ]

    async def get_answer(self, ctx, turns: List[Dict[str, str]]) -> Optional[str]:
        if not ctx.session.data.get("url"):
            raise UserInputError(URL_NOT_FOUND)

        messages = self.build_messages(ctx.session.data.get("content", ""), turns[-1]["content"])
        if self.llm.completion_budget(messages) <= 0:
            raise UserInputError(CONTENT_TOO_LONG)
        return await self.llm.complete(messages)
