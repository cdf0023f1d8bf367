"""External collaborators the engine calls into."""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from servicebot.core.config import settings
from servicebot.core.logging import logger
from servicebot.services.backends.base import AnswerCapability, ExecutionStrategy, Output, OutputKind

if TYPE_CHECKING:
    from servicebot.services.backends.speech import SpeechSynthesizer, Transcriber
    from servicebot.services.backends.url_reader import UrlReader

WHISPER = "whisper"


@dataclass
class Backends:
    """Backend capabilities available to the handlers.

    Every member is optional so tests and partial deployments can wire only
    what they use.
    """
    answers: Dict[str, AnswerCapability] = field(default_factory=dict)
    prediction: Optional[ExecutionStrategy] = None
    image_generation: Optional[ExecutionStrategy] = None
    url_reader: Optional["UrlReader"] = None
    transcribers: Dict[str, "Transcriber"] = field(default_factory=dict)
    synthesizer: Optional["SpeechSynthesizer"] = None

    def answer_for(self, descriptor) -> Optional[AnswerCapability]:
        """Answer capability named by the descriptor, if wired."""
        if descriptor is None or not descriptor.answer:
            return None
        return self.answers.get(descriptor.answer)

    def transcriber_for(self, service_name: str) -> Optional["Transcriber"]:
        return self.transcribers.get(service_name)

    @classmethod
    def from_settings(cls) -> "Backends":
        """Wire the production clients from ``settings``."""
        from servicebot.services.backends.agents import AgentsAnswer
        from servicebot.services.backends.images import ImageGenerationStrategy
        from servicebot.services.backends.llm import ChatCompletionAnswer, LLMService
        from servicebot.services.backends.predictions import PredictionStrategy
        from servicebot.services.backends.speech import SpeechSynthesizer, Transcriber
        from servicebot.services.backends.url_reader import UrlAnswer, UrlReader

        llm = LLMService()
        backends = cls(
            answers={
                "chat": ChatCompletionAnswer(llm),
                "agents": AgentsAnswer(),
                "url": UrlAnswer(llm),
            },
            prediction=PredictionStrategy(),
            image_generation=ImageGenerationStrategy(),
            url_reader=UrlReader(llm),
        )
        if settings.features.voice_transcription:
            backends.transcribers[WHISPER] = Transcriber()
        if settings.features.auto_speak:
            backends.synthesizer = SpeechSynthesizer()

        logger.info(f"[Backends] Wired answers={sorted(backends.answers)} transcribers={sorted(backends.transcribers)}")
        return backends


__all__ = ["Backends", "AnswerCapability", "ExecutionStrategy", "Output", "OutputKind", "WHISPER"]
