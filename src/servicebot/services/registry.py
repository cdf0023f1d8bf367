"""Service Registry - static catalog of selectable backend capabilities.

The registry is built once at startup (from ``services.yml`` when present,
otherwise from the built-in catalog) and is never mutated afterwards.
A service's id is its position in the catalog.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from servicebot.core.exceptions import ServiceNotFoundError
from servicebot.core.logging import logger


class ServiceType(Enum):
    """Kind of backend behind a service; drives submission dispatch."""
    PREDICTION = "prediction"
    IMAGE_GENERATION = "image_generation"
    CHAT = "chat"
    AGENTS = "agents"
    URL_EXTRACTION = "url_extraction"

    @property
    def is_conversational(self) -> bool:
        """Whether turns are accumulated in the session context."""
        return self in (ServiceType.CHAT, ServiceType.AGENTS)

    @property
    def is_request(self) -> bool:
        """Whether inputs are assembled into a structured query."""
        return self in (ServiceType.PREDICTION, ServiceType.IMAGE_GENERATION)


class ParamType:
    """Declared parameter types. Modalities match event kinds."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    OPTION = "option"


@dataclass(frozen=True)
class ServiceParam:
    """A named input slot of a service."""
    name: str
    type: str
    options: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceParam":
        return cls(
            name=str(data["name"]),
            type=str(data.get("type", ParamType.TEXT)),
            options=tuple(str(o) for o in data.get("options") or ()),
        )


@dataclass(frozen=True)
class ServiceDescriptor:
    """Immutable registry entry."""
    id: int
    name: str
    type: ServiceType
    params: Tuple[ServiceParam, ...] = ()
    description: str = ""
    version: Optional[str] = None
    answer: Optional[str] = None

    def param_names(self) -> List[str]:
        return [p.name for p in self.params]

    def find_param_by_type(self, param_type: str) -> Optional[str]:
        """Name of the first declared parameter with the given type."""
        for param in self.params:
            if param.type == param_type:
                return param.name
        return None

    def option_params(self) -> List[ServiceParam]:
        return [p for p in self.params if p.options]

    def describe(self) -> str:
        """Human-readable identity and instructions."""
        lines = [f"Active service: {self.name}"]
        if self.description:
            lines.append(self.description)
        if self.params:
            fields = ", ".join(f"{p.name} ({p.type})" for p in self.params)
            lines.append(f"Inputs: {fields}")
            lines.append('Send the inputs, then "ok" to run.')
        return "\n".join(lines)


def _build(entries: List[Dict[str, Any]]) -> List[ServiceDescriptor]:
    services = []
    for index, entry in enumerate(entries):
        services.append(ServiceDescriptor(
            id=index,
            name=str(entry["name"]),
            type=ServiceType(entry["type"]),
            params=tuple(ServiceParam.from_dict(p) for p in entry.get("params") or ()),
            description=str(entry.get("description", "")),
            version=entry.get("version"),
            answer=entry.get("answer"),
        ))
    return services


DEFAULT_SERVICES: List[Dict[str, Any]] = [
    {
        "name": "Chat",
        "type": "chat",
        "answer": "chat",
        "description": "Talk with the assistant. Voice messages are transcribed.",
    },
    {
        "name": "Agents",
        "type": "agents",
        "answer": "agents",
        "description": "Ask the agents. Configure tools with /settings --agentsTools <tools>.",
    },
    {
        "name": "URL summary",
        "type": "url_extraction",
        "answer": "url",
        "description": "Send a link, then pick an action or ask about the page.",
    },
    {
        "name": "Image generation",
        "type": "image_generation",
        "description": "Describe an image. Send a picture to edit it or make variations.",
        "params": [
            {"name": "prompt", "type": "text"},
            {"name": "image", "type": "image"},
            {"name": "n", "type": "option", "options": ["1", "2", "4"]},
            {"name": "model", "type": "option", "options": ["generate", "edit", "variation"]},
        ],
    },
    {
        "name": "Image captioning",
        "type": "prediction",
        "version": "salesforce/blip",
        "description": "Send a picture to get a caption or ask a question about it.",
        "params": [
            {"name": "image", "type": "image"},
            {"name": "question", "type": "text"},
            {"name": "task", "type": "option", "options": ["image_captioning", "visual_question_answering"]},
        ],
    },
    {
        "name": "Speech to text",
        "type": "prediction",
        "version": "openai/whisper",
        "description": "Send an audio file to transcribe it.",
        "params": [
            {"name": "audio", "type": "audio"},
            {"name": "model", "type": "option", "options": ["base", "small", "medium", "large"]},
        ],
    },
    {
        "name": "Text to image",
        "type": "prediction",
        "version": "stability-ai/stable-diffusion",
        "description": "Describe an image to draw it.",
        "params": [
            {"name": "prompt", "type": "text"},
        ],
    },
]


class ServiceRegistry:
    """Ordered, read-only list of service descriptors."""

    def __init__(self, services: List[ServiceDescriptor]):
        self._services: Tuple[ServiceDescriptor, ...] = tuple(services)

    @classmethod
    def from_entries(cls, entries: List[Dict[str, Any]]) -> "ServiceRegistry":
        return cls(_build(entries))

    @classmethod
    def default(cls) -> "ServiceRegistry":
        return cls.from_entries(DEFAULT_SERVICES)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ServiceRegistry":
        """Load the catalog from a YAML file, or the built-in one if absent."""
        if path is None or not Path(path).exists():
            logger.info("[Registry] Using built-in service catalog")
            return cls.default()

        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        entries = raw.get("services", []) if isinstance(raw, dict) else raw
        registry = cls.from_entries(entries)
        logger.info(f"[Registry] Loaded {len(registry)} services from {path}")
        return registry

    def get(self, service_id: Optional[int]) -> Optional[ServiceDescriptor]:
        if service_id is None or not 0 <= service_id < len(self._services):
            return None
        return self._services[service_id]

    def require(self, service_id: Optional[int]) -> ServiceDescriptor:
        descriptor = self.get(service_id)
        if descriptor is None:
            raise ServiceNotFoundError("Sorry. Service not found.")
        return descriptor

    def __len__(self) -> int:
        return len(self._services)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self._services)
