"""Payload handler - button presses from interactive choice lists."""
from servicebot.core.exceptions import PayloadDecodeError, UserInputError
from servicebot.core.logging import logger
from servicebot.services.events import EventCategory
from servicebot.services.handlers.base import EventContext, EventHandler
from servicebot.services.payload import PayloadType, decode_payload
from servicebot.services.query import set_query_option
from servicebot.services.selection import activate_service, check_active_service

UNKNOWN_ACTION = "Sorry. Unknown action."


class PayloadHandler(EventHandler):
    """Decodes the payload and applies it. Undecodable payloads change nothing."""

    categories = [EventCategory.PAYLOAD]

    async def handle(self, ctx: EventContext) -> None:
        try:
            payload = decode_payload(ctx.event.payload)
        except PayloadDecodeError as e:
            logger.warning(f"[Payload] Rejected payload from {ctx.session_id}: {e}")
            await ctx.reply(UNKNOWN_ACTION)
            return

        logger.debug(f"[Payload] {ctx.session_id}: {payload.type.value} {payload.args}")

        if payload.type == PayloadType.SELECT_SERVICE:
            await activate_service(ctx, payload.index)
            return

        if not await check_active_service(ctx):
            return

        if payload.type == PayloadType.SELECT_QUERY_OPTION:
            set_query_option(ctx.session, payload.field, payload.value)
            await ctx.reply(f"{payload.field}: {payload.value}")
        elif payload.type == PayloadType.SELECT_URL_ACTION:
            if ctx.backends.url_reader is None:
                raise UserInputError(UNKNOWN_ACTION)
            await ctx.backends.url_reader.run_action(ctx, payload.index)
