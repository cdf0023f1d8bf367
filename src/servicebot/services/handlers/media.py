"""Media handlers - image, audio, video, file and location events."""
from servicebot.core.logging import logger
from servicebot.services import preferences
from servicebot.services.events import EventCategory
from servicebot.services.handlers.base import EventContext, EventHandler
from servicebot.services.query import accumulate
from servicebot.services.selection import check_active_service

TRANSCRIPTION_ERROR = "Error getting transcription!"


class ImageHandler(EventHandler):
    """Uploaded images fill the active request's image field."""

    categories = [EventCategory.IMAGE]

    async def handle(self, ctx: EventContext) -> None:
        if not await check_active_service(ctx):
            return

        url = ctx.event.image_url
        if ctx.descriptor.type.is_request:
            await accumulate(ctx, url)
        else:
            await ctx.reply(f"received the image: {url}")


class AudioHandler(EventHandler):
    """Audio fills a request field, or is transcribed into a chat turn."""

    categories = [EventCategory.AUDIO]

    async def handle(self, ctx: EventContext) -> None:
        if not await check_active_service(ctx):
            return

        url = ctx.event.audio_url
        if ctx.descriptor.type.is_request:
            await accumulate(ctx, url)
            return

        service = preferences.get_speech_recognition_service(ctx.session)
        transcriber = ctx.backends.transcriber_for(service)
        if transcriber is None:
            logger.warning(f"[Audio] No transcriber for recognition service '{service}'")
            await ctx.reply(TRANSCRIPTION_ERROR)
            return

        await ctx.responder.send_typing()
        transcript = await transcriber.transcribe(url, preferences.get_recognition_lang(ctx.session))
        if not transcript:
            await ctx.reply(TRANSCRIPTION_ERROR)
            return

        await ctx.reply(f"_{transcript}_")
        await ctx.conversation.handle_turn(ctx, transcript)


class VideoHandler(EventHandler):
    categories = [EventCategory.VIDEO]

    async def handle(self, ctx: EventContext) -> None:
        await ctx.reply(f"received the video: {ctx.event.video_url}")


class FileHandler(EventHandler):
    categories = [EventCategory.FILE]

    async def handle(self, ctx: EventContext) -> None:
        await ctx.reply(f"received the file: {ctx.event.file_url}")


class LocationHandler(EventHandler):
    categories = [EventCategory.LOCATION]

    async def handle(self, ctx: EventContext) -> None:
        location = ctx.event.location
        await ctx.reply(f"received the location: lat: {location.lat}, long: {location.long}")
