"""
CLI Channel Implementation

Interactive terminal chat against a local engine. Media and button presses
are typed as colon directives:

    :image <url>   :audio <url>   :video <url>   :file <url>
    :location <lat> <long>
    :pick <n>      press the n-th button of the last choice list
    :payload <raw> send a raw payload
"""
import asyncio
from typing import List, Optional, Union

from rich.console import Console
from rich.markdown import Markdown

from servicebot.interfaces.base import Channel
from servicebot.services.engine import ChatEngine
from servicebot.services.events import InboundEvent, Location
from servicebot.services.replies import Choice, Responder

console = Console()

EXIT_WORDS = ("exit", "quit", "q")
MEDIA_DIRECTIVES = {
    ":image": "image_url",
    ":audio": "audio_url",
    ":video": "video_url",
    ":file": "file_url",
}


class CLIInputError(ValueError):
    """A directive that could not be turned into an event."""
    pass


def parse_line(line: str, session_id: str, last_choices: List[Choice]) -> InboundEvent:
    """
    Turn one input line into an InboundEvent.

    Raises:
        CLIInputError: malformed directive
    """
    directive, _, rest = line.strip().partition(" ")
    rest = rest.strip()
    base = {"session_id": session_id, "sender_id": session_id, "channel": "cli"}

    if directive in MEDIA_DIRECTIVES:
        if not rest:
            raise CLIInputError(f"Usage: {directive} <url>")
        return InboundEvent(**base, **{MEDIA_DIRECTIVES[directive]: rest})

    if directive == ":location":
        parts = rest.split()
        try:
            lat, long = float(parts[0]), float(parts[1])
        except (IndexError, ValueError):
            raise CLIInputError("Usage: :location <lat> <long>")
        return InboundEvent(**base, location=Location(lat=lat, long=long))

    if directive == ":pick":
        try:
            index = int(rest) - 1
            if index < 0:
                raise IndexError(index)
            choice = last_choices[index]
        except (ValueError, IndexError):
            raise CLIInputError(f"Pick a number between 1 and {len(last_choices)}" if last_choices else "Nothing to pick")
        return InboundEvent(**base, payload=choice.payload)

    if directive == ":payload":
        return InboundEvent(**base, payload=rest)

    return InboundEvent(**base, text=line.strip())


class CLIResponder(Responder):
    """Prints replies to the terminal and remembers the last choice list."""

    def __init__(self):
        self.last_choices: List[Choice] = []

    async def send_text(self, text: str) -> None:
        console.print("[bold green]Bot > [/bold green]")
        console.print(Markdown(text) if text else "[dim]No content[/dim]")

    async def send_image(self, url: str, caption: Optional[str] = None) -> None:
        console.print(f"[magenta]image[/magenta] {url}" + (f" [dim]{caption}[/dim]" if caption else ""))

    async def send_audio(self, audio: Union[str, bytes], caption: Optional[str] = None) -> None:
        if isinstance(audio, bytes):
            console.print(f"[magenta]audio[/magenta] [dim]<{len(audio)} bytes>[/dim]")
        else:
            console.print(f"[magenta]audio[/magenta] {audio}")

    async def send_choices(self, text: str, choices: List[Choice]) -> None:
        self.last_choices = list(choices)
        console.print(f"[bold green]Bot > [/bold green]{text}")
        for i, choice in enumerate(choices, 1):
            console.print(f"  [cyan]{i}.[/cyan] {choice.label}")
        console.print("[dim]Use :pick <n> to choose[/dim]")


class CLIChannel(Channel):
    """Terminal channel; one local conversation."""

    def __init__(self, engine: ChatEngine, session_id: str = "cli"):
        super().__init__(channel_id="cli", engine=engine)
        self.session_id = session_id
        self.responder = CLIResponder()

    async def start(self):
        self._is_running = True
        self.logger.info("CLI channel started")

    async def stop(self):
        self._is_running = False
        self.logger.info("CLI channel stopped")

    def is_available(self) -> bool:
        """CLI is always available."""
        return True

    async def handle_line(self, line: str) -> None:
        try:
            event = parse_line(line, self.session_id, self.responder.last_choices)
        except CLIInputError as e:
            console.print(f"[yellow]⚠[/yellow] {e}")
            return
        with console.status("[yellow]Thinking...[/yellow]", spinner="dots"):
            await self.engine.handle_event(event, self.responder)

    async def run(self) -> None:
        """Read-eval loop until exit or EOF."""
        await self.start()
        console.print("[bold green]servicebot terminal[/bold green]")
        console.print("[dim]Type /help for commands, 'exit' to quit[/dim]\n")

        try:
            while True:
                try:
                    line = await asyncio.to_thread(console.input, "[bold blue]You > [/bold blue]")
                except EOFError:
                    break

                if line.strip().lower() in EXIT_WORDS:
                    console.print("[dim]Goodbye![/dim]")
                    break
                if not line.strip():
                    continue

                await self.handle_line(line)
                console.print()
        finally:
            await self.stop()
