"""Query Accumulator - maps incoming values onto the active service's fields."""
from typing import Optional

from servicebot.core.logging import logger
from servicebot.services.events import EventCategory
from servicebot.services.registry import ParamType, ServiceDescriptor
from servicebot.services.session import Session

# Event modalities that can fill a declared parameter
MODALITIES = {
    EventCategory.IMAGE: ParamType.IMAGE,
    EventCategory.AUDIO: ParamType.AUDIO,
    EventCategory.TEXT: ParamType.TEXT,
}


def acknowledgment(field_name: str) -> str:
    return f'{field_name} set. Send more inputs or "ok" to run.'


def set_value_for_query(
    session: Session,
    descriptor: ServiceDescriptor,
    category: EventCategory,
    value: str,
) -> Optional[str]:
    """
    Write ``value`` to the field whose declared type matches the event modality.

    Only request-style services accumulate. A value with no matching field
    is dropped.

    Returns:
        Name of the field written, or None when nothing changed
    """
    if not descriptor.type.is_request:
        return None

    modality = MODALITIES.get(category)
    field_name = descriptor.find_param_by_type(modality) if modality else None
    if field_name is None:
        logger.debug(f"[Query] '{descriptor.name}' has no {category.value} field, dropping value")
        return None

    session.query[field_name] = value
    return field_name


def set_query_option(session: Session, field_name: str, value: str) -> None:
    """Explicit field write from an option button; no type matching."""
    session.query[field_name] = value


async def accumulate(ctx, value: str) -> bool:
    """Accumulate the event's value and acknowledge the write."""
    field_name = set_value_for_query(ctx.session, ctx.descriptor, ctx.category, value)
    if field_name is None:
        return False
    await ctx.reply(acknowledgment(field_name))
    return True
