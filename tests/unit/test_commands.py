"""Unit tests for command parsing, settings and the slash commands."""
import json

import pytest

from servicebot.core.exceptions import UserInputError
from servicebot.services import preferences
from servicebot.services.handlers.commands import CommandRegistry, HelpCommand, parse_command
from servicebot.services.session import Session


class TestParseCommand:
    @pytest.mark.parametrize("text,command,content", [
        ("/help", "help", None),
        ("/HELP", "help", None),
        (".s", "s", None),
        ("/settings --voiceName nova", "settings", "--voiceName nova"),
        ("/settings --a\nb", "settings", "--a\nb"),
    ])
    def test_parse(self, text, command, content):
        parsed = parse_command(text)
        assert parsed.command == command
        assert parsed.content == content

    @pytest.mark.parametrize("text", ["", "help", "ok", "/ help"])
    def test_not_a_command(self, text):
        assert parse_command(text) is None


class TestParseSettingsArgs:
    def test_pairs(self):
        params = preferences.parse_settings_args("--voiceName nova --whisperLang fr")
        assert params == {"voiceName": "nova", "whisperLang": "fr"}

    def test_booleans_coerced(self):
        params = preferences.parse_settings_args("--autoSpeak true --other false")
        assert params == {"autoSpeak": True, "other": False}

    def test_quoted_value(self):
        params = preferences.parse_settings_args('--agentsTools "search, calculator"')
        assert params == {"agentsTools": "search, calculator"}

    @pytest.mark.parametrize("content", ["--voiceName", "nova", "--a --b c", "--a 'unterminated"])
    def test_malformed(self, content):
        with pytest.raises(UserInputError):
            preferences.parse_settings_args(content)


class TestPreferences:
    def test_defaults(self):
        session = Session()
        assert preferences.is_auto_speak(session) is False
        assert preferences.get_voice_name(session) == "alloy"
        assert preferences.get_recognition_lang(session) == "en"
        assert preferences.get_speech_recognition_service(session) == "whisper"

    def test_overrides(self):
        session = Session(settings={"autoSpeak": True, "voiceName": "nova", "whisperLang": "de"})
        assert preferences.is_auto_speak(session) is True
        assert preferences.get_voice_name(session) == "nova"
        assert preferences.get_recognition_lang(session) == "de"

    def test_truncated_json(self):
        long_url = "https://cdn.example/" + "a" * 100
        dumped = json.loads(preferences.truncated_json({"query": {"image": long_url}, "n": [1, "x"]}))

        assert dumped["query"]["image"] == long_url[:50] + "..."
        assert dumped["n"] == [1, "x"]


class TestCommandRegistry:
    def test_aliases(self):
        registry = CommandRegistry()
        registry.register(HelpCommand)
        assert registry.get("help") is registry.get("h")
        assert registry.list_commands() == {"help": "HelpCommand", "h": "HelpCommand"}

    def test_clear(self):
        registry = CommandRegistry()
        registry.register(HelpCommand)
        registry.clear()
        assert registry.get("help") is None


class TestCommandsThroughEngine:
    """Commands as users send them."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["/help", "/h", ".help", "/HELP"])
    async def test_help(self, send, responder, text):
        await send(text=text)
        assert responder.texts[0].startswith("Commands:")

    @pytest.mark.asyncio
    async def test_unknown_command(self, send, responder, store):
        await send(text="/dance now")
        assert responder.texts == ["Sorry. Command not found."]
        assert store.get_state("s1").to_dict() == Session().to_dict()

    @pytest.mark.asyncio
    async def test_active(self, send, select, responder):
        await select(4)
        await send(text="/a")
        assert responder.texts[0].startswith("Active service: Captioning")

    @pytest.mark.asyncio
    async def test_clear(self, send, select, responder, store):
        await select(4)
        await send(text="a question")
        await send(text="/settings --voiceName nova")
        responder.replies.clear()

        await send(text="/c")

        state = store.get_state("s1")
        assert responder.texts == ["Cleared. Captioning is ready for new inputs."]
        assert state.service == 4
        assert state.query == {}
        assert state.settings == {"voiceName": "nova"}

    @pytest.mark.asyncio
    async def test_debug_shows_truncated_state(self, send, select, responder):
        await select(4)
        await send(image_url="https://cdn.example/" + "x" * 80)
        responder.replies.clear()

        await send(text="/debug")

        dumped = json.loads(responder.texts[0])
        assert dumped["service"] == 4
        assert dumped["query"]["image"].endswith("...")
        assert len(dumped["query"]["image"]) == 53

    @pytest.mark.asyncio
    async def test_debug_without_service(self, send, responder):
        await send(text="/d")
        assert json.loads(responder.texts[0])["service"] is None

    @pytest.mark.asyncio
    async def test_settings_usage(self, send, responder):
        await send(text="/settings")
        assert responder.texts[0] == "Use command `/settings --key value` to change settings."
        assert responder.texts[1].startswith("Quick commands")

    @pytest.mark.asyncio
    async def test_settings_usage_shows_current(self, send, responder):
        await send(text="/settings --voiceName nova")
        responder.replies.clear()

        await send(text="/settings")

        assert "Current settings" in responder.texts[0]
        assert '"voiceName": "nova"' in responder.texts[0]

    @pytest.mark.asyncio
    async def test_settings_update(self, send, responder, store):
        await send(text="/settings --autoSpeak true --whisperLang es")
        assert responder.texts == ["Settings updated."]
        assert store.get_state("s1").settings == {"autoSpeak": True, "whisperLang": "es"}

    @pytest.mark.asyncio
    async def test_settings_malformed_changes_nothing(self, send, responder, store):
        await send(text="/settings --voiceName nova --whisperLang")
        assert responder.texts[0].startswith("Missing value for --whisperLang.")
        assert store.get_state("s1").settings == {}

    @pytest.mark.asyncio
    async def test_reset(self, send, select, responder, store):
        await select(0)
        await send(text="/settings --voiceName nova")
        await send(text="/reset")

        state = store.get_state("s1")
        assert responder.texts[-1] == "Default settings restored."
        assert state.settings == {}
        assert state.service == 0
