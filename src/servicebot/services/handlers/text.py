"""Plain text handler."""
from servicebot.core.logging import logger
from servicebot.services.backends.url_reader import is_url
from servicebot.services.events import EventCategory
from servicebot.services.handlers.base import EventContext, EventHandler
from servicebot.services.query import accumulate
from servicebot.services.registry import ServiceType
from servicebot.services.selection import check_active_service


class TextHandler(EventHandler):
    """Text fills a request field, loads a URL, or is a chat turn."""

    categories = [EventCategory.TEXT]

    async def handle(self, ctx: EventContext) -> None:
        if not await check_active_service(ctx):
            return

        descriptor = ctx.descriptor
        if descriptor.type.is_request:
            await accumulate(ctx, ctx.text)
            return

        if descriptor.type == ServiceType.URL_EXTRACTION and is_url(ctx.text):
            if ctx.backends.url_reader is None:
                logger.error("[Text] URL service selected but no URL reader is wired")
                await ctx.reply("Sorry! URL reading is not available.")
                return
            await ctx.responder.send_typing()
            await ctx.backends.url_reader.load(ctx, ctx.text)
            return

        await ctx.conversation.handle_turn(ctx, ctx.text)
