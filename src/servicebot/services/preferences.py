"""User preferences kept in ``Session.settings``.

Settings survive service changes and ``/clear``; only ``/reset`` drops them.
"""
import json
import shlex
from typing import Any, Dict

from servicebot.core.exceptions import UserInputError
from servicebot.services.session import Session

AUTO_SPEAK = "autoSpeak"
VOICE_NAME = "voiceName"
RECOGNITION_LANG = "whisperLang"
SPEECH_RECOGNITION_SERVICE = "speechRecognitionService"

DEFAULT_VOICE = "alloy"
DEFAULT_RECOGNITION_LANG = "en"
DEFAULT_RECOGNITION_SERVICE = "whisper"

MAX_STR_LENGTH = 50

SETTINGS_USAGE = "Use command `/settings --key value` to change settings."

QUICK_COMMANDS = """Quick commands

Auto speak replies
/settings --autoSpeak true
/settings --autoSpeak false

Voice and recognition language
/settings --voiceName nova --whisperLang en
/settings --voiceName onyx --whisperLang fr

Agents tools
/settings --agentsTools search,calculator"""


def _coerce(value: str) -> Any:
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def parse_settings_args(content: str) -> Dict[str, Any]:
    """
    Parse ``--key value`` pairs.

    Raises:
        UserInputError: a value without a key, or a key without a value
    """
    try:
        tokens = shlex.split(content or "")
    except ValueError:
        raise UserInputError(SETTINGS_USAGE)

    params: Dict[str, Any] = {}
    key = None
    for token in tokens:
        if token.startswith("--") and len(token) > 2:
            if key is not None:
                raise UserInputError(f"Missing value for --{key}.\n{SETTINGS_USAGE}")
            key = token[2:]
        elif key is None:
            raise UserInputError(f"Unexpected value {token!r}.\n{SETTINGS_USAGE}")
        else:
            params[key] = _coerce(token)
            key = None

    if key is not None:
        raise UserInputError(f"Missing value for --{key}.\n{SETTINGS_USAGE}")
    return params


def truncated_json(obj: Any) -> str:
    """JSON dump with long strings clipped, so URLs and texts stay readable."""
    def clip(value):
        if isinstance(value, str):
            return value[:MAX_STR_LENGTH] + "..." if len(value) > MAX_STR_LENGTH else value
        if isinstance(value, dict):
            return {k: clip(v) for k, v in value.items()}
        if isinstance(value, list):
            return [clip(v) for v in value]
        return value

    return json.dumps(clip(obj), indent=2, ensure_ascii=False)


def is_auto_speak(session: Session) -> bool:
    return bool(session.settings.get(AUTO_SPEAK))


def get_voice_name(session: Session) -> str:
    return session.settings.get(VOICE_NAME) or DEFAULT_VOICE


def get_recognition_lang(session: Session) -> str:
    return session.settings.get(RECOGNITION_LANG) or DEFAULT_RECOGNITION_LANG


def get_speech_recognition_service(session: Session) -> str:
    return session.settings.get(SPEECH_RECOGNITION_SERVICE) or DEFAULT_RECOGNITION_SERVICE
