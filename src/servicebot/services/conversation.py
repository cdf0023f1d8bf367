"""Conversational Turn Handler - context-carrying exchanges."""
from typing import Dict, List, Optional

from servicebot.core.config import settings
from servicebot.core.exceptions import BackendFailure, UserInputError
from servicebot.core.logging import logger
from servicebot.services import preferences

RETRY_MESSAGE = "Sorry! Please try again or create new conversation by /c"


class ConversationalTurnHandler:
    """Runs one turn against the active service's answer capability.

    A successful turn on a conversational service appends exactly the
    question and the answer to ``context``. A failed turn records nothing.
    """

    def __init__(self, max_context_entries: Optional[int] = None):
        # None keeps the whole conversation
        self.max_context_entries = max_context_entries or settings.max_context_entries

    def build_turns(self, context: List[Dict[str, str]], text: str) -> List[Dict[str, str]]:
        return [*context, {"role": "user", "content": text}]

    async def handle_turn(self, ctx, text: str) -> bool:
        """
        Answer ``text`` and relay the response.

        Returns:
            True when an answer was relayed

        Raises:
            UserInputError: the capability needs user action first
        """
        descriptor = ctx.descriptor
        answer = ctx.backends.answer_for(descriptor)
        if answer is None:
            logger.warning(f"[Conversation] No answer capability wired for '{descriptor.name}'")
            await ctx.reply(RETRY_MESSAGE)
            return False

        turns = self.build_turns(ctx.session.context, text)
        await ctx.responder.send_typing()

        try:
            response = await answer.get_answer(ctx, turns)
        except UserInputError:
            raise
        except BackendFailure as e:
            logger.error(f"[Conversation] Backend failure for '{descriptor.name}': {e}")
            await ctx.reply(e.user_message or RETRY_MESSAGE)
            return False
        except Exception as e:
            logger.error(f"[Conversation] Answer failed for '{descriptor.name}': {e}", exc_info=True)
            await ctx.reply(RETRY_MESSAGE)
            return False

        if not response:
            await ctx.reply(RETRY_MESSAGE)
            return False

        if descriptor.type.is_conversational:
            context = turns + [{"role": "assistant", "content": response}]
            if self.max_context_entries:
                context = context[-self.max_context_entries:]
            ctx.session.context = context

        await ctx.reply(response)

        if preferences.is_auto_speak(ctx.session):
            try:
                await self._speak(ctx, response)
            except Exception as e:
                logger.error(f"[Conversation] Auto-speak failed for {ctx.session_id}: {e}", exc_info=True)
        return True

    async def _speak(self, ctx, text: str) -> None:
        synthesizer = ctx.backends.synthesizer
        if synthesizer is None:
            return
        audio = await synthesizer.synthesize(text, preferences.get_voice_name(ctx.session))
        if audio:
            await ctx.responder.send_audio(audio)
        else:
            logger.warning(f"[Conversation] Auto-speak produced no audio for {ctx.session_id}")
