"""Command parsing and the slash command handlers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from servicebot.core.logging import logger
from servicebot.services import preferences
from servicebot.services.events import COMMAND_PATTERN, EventCategory
from servicebot.services.handlers.base import EventContext, EventHandler
from servicebot.services.selection import check_active_service, select_service_prompt, show_active_service

COMMAND_NOT_FOUND = "Sorry. Command not found."

HELP_TEXT = """Commands:
/service (/s) - choose a service
/active (/a) - show the active service
/clear (/c) - start over with the active service
/settings --key value - change your settings
/reset - restore default settings
/debug (/d) - show the session state
/help (/h) - show this message

Send the inputs the service asks for, then "ok" to run it."""


@dataclass(frozen=True)
class ParsedCommand:
    command: str
    content: Optional[str] = None


def parse_command(text: str) -> Optional[ParsedCommand]:
    """Split ``/cmd rest`` into a lower-cased command and its content."""
    match = COMMAND_PATTERN.match(text or "")
    if not match:
        return None
    return ParsedCommand(command=match.group("command").lower(), content=match.group("content"))


class Command(ABC):
    """A slash command. ``commands`` lists the name and its aliases."""

    commands: List[str] = []

    @abstractmethod
    async def run(self, ctx: EventContext, content: Optional[str]) -> None:
        pass


class HelpCommand(Command):
    commands = ["help", "h"]

    async def run(self, ctx, content):
        await ctx.reply(HELP_TEXT)


class ServiceCommand(Command):
    commands = ["service", "s"]

    async def run(self, ctx, content):
        await select_service_prompt(ctx)


class ActiveCommand(Command):
    commands = ["active", "a"]

    async def run(self, ctx, content):
        if await check_active_service(ctx):
            await show_active_service(ctx)


class ClearCommand(Command):
    commands = ["clear", "c"]

    async def run(self, ctx, content):
        if not await check_active_service(ctx):
            return
        ctx.session.clear()
        await ctx.reply(f"Cleared. {ctx.descriptor.name} is ready for new inputs.")


class DebugCommand(Command):
    commands = ["debug", "d"]

    async def run(self, ctx, content):
        await ctx.reply(preferences.truncated_json(ctx.session.to_dict()))


class SettingsCommand(Command):
    """``/settings --key value ...``; without flags shows usage and current values."""

    commands = ["settings"]

    async def run(self, ctx, content):
        if not content or not content.strip():
            text = preferences.SETTINGS_USAGE
            if ctx.session.settings:
                text += "\n\nCurrent settings:\n" + preferences.truncated_json(ctx.session.settings)
            await ctx.reply(text)
            await ctx.reply(preferences.QUICK_COMMANDS)
            return

        params = preferences.parse_settings_args(content)
        for key, value in params.items():
            ctx.session.set_setting(key, value)
        logger.info(f"[Commands] Session {ctx.session_id} updated settings {sorted(params)}")
        await ctx.reply("Settings updated.")


class ResetCommand(Command):
    commands = ["reset"]

    async def run(self, ctx, content):
        ctx.session.settings = {}
        await ctx.reply("Default settings restored.")


class CommandRegistry:
    """Maps command names and aliases to commands."""

    def __init__(self):
        self._commands: Dict[str, Command] = {}

    def register(self, command_class: Type[Command]) -> None:
        command = command_class()
        for name in command.commands:
            if name in self._commands:
                logger.warning(f"Command '{name}' already registered, overwriting with {command_class.__name__}")
            self._commands[name] = command

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def list_commands(self) -> Dict[str, str]:
        return {name: command.__class__.__name__ for name, command in self._commands.items()}

    def clear(self) -> None:
        self._commands.clear()


BUILTIN_COMMANDS = [
    HelpCommand,
    ServiceCommand,
    ActiveCommand,
    ClearCommand,
    DebugCommand,
    SettingsCommand,
    ResetCommand,
]


class CommandHandler(EventHandler):
    """Dispatches ``/cmd`` and ``.cmd`` messages."""

    categories = [EventCategory.COMMAND]

    def __init__(self):
        self.registry = CommandRegistry()
        for command_class in BUILTIN_COMMANDS:
            self.registry.register(command_class)

    async def handle(self, ctx: EventContext) -> None:
        parsed = parse_command(ctx.text)
        command = self.registry.get(parsed.command) if parsed else None
        if command is None:
            logger.debug(f"[Commands] Unknown command in {ctx.text!r}")
            await ctx.reply(COMMAND_NOT_FOUND)
            return
        await command.run(ctx, parsed.content)
