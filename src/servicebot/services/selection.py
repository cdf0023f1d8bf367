"""Service selection flow and the active-service guard."""
from servicebot.core.logging import logger
from servicebot.services.payload import select_query_option_payload, select_service_payload
from servicebot.services.registry import ServiceType
from servicebot.services.replies import Choice

SELECT_PROMPT = "Select a service:"
SELECT_FIRST_PROMPT = "Please select a service first."
URL_PROMPT = "Send me a link to an article."


async def select_service_prompt(ctx, text: str = SELECT_PROMPT) -> None:
    """Offer the registry as a choice list. State is not touched."""
    choices = [Choice(label=d.name, payload=select_service_payload(d.id)) for d in ctx.registry]
    await ctx.responder.send_choices(text, choices)


async def check_active_service(ctx) -> bool:
    """
    Guard for handlers that need an active service.

    Returns:
        True when the session's service is set and still registered;
        otherwise prompts selection and returns False
    """
    if ctx.descriptor is None:
        if ctx.session.service is not None:
            logger.warning(f"[Selection] Session {ctx.session_id} points at unknown service {ctx.session.service}")
        await select_service_prompt(ctx, SELECT_FIRST_PROMPT)
        return False
    return True


async def show_active_service(ctx) -> None:
    await ctx.reply(ctx.descriptor.describe())


async def activate_service(ctx, service_id: int) -> None:
    """
    Make ``service_id`` active: reset query/context/data, keep settings.

    Raises:
        ServiceNotFoundError: id not in the registry
    """
    descriptor = ctx.registry.require(service_id)
    ctx.session.select_service(descriptor.id)
    logger.info(f"[Selection] Session {ctx.session_id} selected '{descriptor.name}' ({descriptor.type.value})")

    await show_active_service(ctx)

    if descriptor.type == ServiceType.URL_EXTRACTION:
        await ctx.reply(URL_PROMPT)

    for param in descriptor.option_params():
        choices = [
            Choice(label=option, payload=select_query_option_payload(param.name, option))
            for option in param.options
        ]
        await ctx.responder.send_choices(f"Choose {param.name}:", choices)
