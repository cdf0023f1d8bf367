"""Submission Dispatcher - what "ok" means for the active service.

For request-style services "ok" finalizes the accumulated query and runs
the matching execution strategy. For every other type it is just another
chat line and goes to the conversational turn handler as raw text.
"""
from enum import Enum
from typing import Dict, List

from servicebot.core.exceptions import BackendFailure
from servicebot.core.logging import logger
from servicebot.services.backends.base import Output, OutputKind
from servicebot.services.events import EventCategory
from servicebot.services.handlers.base import EventContext, EventHandler
from servicebot.services.registry import ServiceType
from servicebot.services.selection import check_active_service
from servicebot.services.session import Session

GENERIC_BACKEND_ERROR = "Error! Please try again."


class SubmissionRoute(Enum):
    PREDICTION = "prediction"
    IMAGE_GENERATION = "image_generation"
    CONVERSATION = "conversation"


# Every ServiceType must appear here
SUBMISSION_ROUTES: Dict[ServiceType, SubmissionRoute] = {
    ServiceType.PREDICTION: SubmissionRoute.PREDICTION,
    ServiceType.IMAGE_GENERATION: SubmissionRoute.IMAGE_GENERATION,
    ServiceType.CHAT: SubmissionRoute.CONVERSATION,
    ServiceType.AGENTS: SubmissionRoute.CONVERSATION,
    ServiceType.URL_EXTRACTION: SubmissionRoute.CONVERSATION,
}


class SessionPhase(Enum):
    """Derived from session fields; never stored."""
    IDLE = "idle"
    SELECTED = "selected"
    ACCUMULATING = "accumulating"


def session_phase(session: Session) -> SessionPhase:
    if session.service is None:
        return SessionPhase.IDLE
    if not session.query:
        return SessionPhase.SELECTED
    return SessionPhase.ACCUMULATING


async def relay_outputs(ctx: EventContext, outputs: List[Output]) -> None:
    if not outputs:
        await ctx.reply("No output.")
        return
    for output in outputs:
        if output.kind == OutputKind.IMAGE:
            await ctx.responder.send_image(output.value)
        elif output.kind == OutputKind.AUDIO:
            await ctx.responder.send_audio(output.value)
        else:
            await ctx.reply(output.value)


class SubmissionHandler(EventHandler):
    """Handles the "ok" signal. No completeness check is made before dispatch."""

    categories = [EventCategory.SUBMISSION]

    async def handle(self, ctx: EventContext) -> None:
        if not await check_active_service(ctx):
            return

        descriptor = ctx.descriptor
        route = SUBMISSION_ROUTES[descriptor.type]

        if route == SubmissionRoute.CONVERSATION:
            await ctx.conversation.handle_turn(ctx, ctx.text)
            return

        if route == SubmissionRoute.PREDICTION:
            strategy = ctx.backends.prediction
        else:
            strategy = ctx.backends.image_generation

        if strategy is None:
            logger.error(f"[Submission] No strategy wired for {route.value}")
            await ctx.reply(GENERIC_BACKEND_ERROR)
            return

        query = dict(ctx.session.query)
        logger.info(f"[Submission] {ctx.session_id} running '{descriptor.name}' with fields {sorted(query)}")
        await ctx.responder.send_typing()

        try:
            outputs = await strategy.invoke(descriptor, query)
        except BackendFailure as e:
            logger.error(f"[Submission] '{descriptor.name}' failed: {e}")
            await ctx.reply(e.user_message or GENERIC_BACKEND_ERROR)
            return

        await relay_outputs(ctx, outputs)
