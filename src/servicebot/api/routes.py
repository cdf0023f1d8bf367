"""
API routes.

Endpoints:
    POST /events - Handle one inbound event, return the replies
    GET /services - List the service catalog
    GET /health - Health check
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from servicebot import __version__
from servicebot.core.config import settings
from servicebot.core.logging import logger
from servicebot.models.schemas import (
    ChoiceOut,
    EventRequest,
    EventResponse,
    ReplyOut,
    ServiceOut,
    ServiceParamOut,
)
from servicebot.services.engine import ChatEngine
from servicebot.services.replies import RecordingResponder

router = APIRouter()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


async def verify_api_key(authorization: Optional[str] = Security(api_key_header)) -> bool:
    """Verify API key from Authorization header.

    Expects: Authorization: Bearer <api_key>

    If no API key is configured, authentication is disabled.
    """
    if not settings.auth.api_key:
        return True

    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format. Use: Bearer <api_key>",
        )

    if parts[1] != settings.auth.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")

    return True


def get_engine(request: Request) -> ChatEngine:
    return request.app.state.engine


@router.get("/health")
def health_check(request: Request):
    """Health check endpoint."""
    engine = getattr(request.app.state, "engine", None)
    return {
        "status": "healthy" if engine is not None else "starting",
        "version": __version__,
        "services": len(engine.registry) if engine is not None else 0,
    }


@router.get("/services", response_model=List[ServiceOut])
def list_services(engine: ChatEngine = Depends(get_engine), _: bool = Depends(verify_api_key)):
    """List the selectable services."""
    return [
        ServiceOut(
            id=d.id,
            name=d.name,
            type=d.type.value,
            description=d.description,
            params=[ServiceParamOut(name=p.name, type=p.type, options=list(p.options)) for p in d.params],
        )
        for d in engine.registry
    ]


@router.post("/events", response_model=EventResponse)
async def handle_event(
    req: EventRequest,
    engine: ChatEngine = Depends(get_engine),
    _: bool = Depends(verify_api_key),
):
    """Run one event through the engine and return every reply it produced."""
    responder = RecordingResponder()
    category = await engine.handle_event(req.to_event(), responder)
    logger.info(f"[API] {req.session_id}: {category.value} -> {len(responder.replies)} replies")

    replies = []
    for reply in responder.replies:
        data = reply.to_dict()
        replies.append(ReplyOut(
            kind=data["kind"],
            content=data["content"],
            caption=data["caption"],
            choices=[ChoiceOut(**c) for c in data["choices"]],
        ))
    return EventResponse(session_id=req.session_id, category=category.value, replies=replies)
