"""
Terminal front end for the memory match game.

Reads commands from stdin, forwards them as intents to the round
controller and prints the board. Round setup runs as a background task
so commands keep being accepted while cards are fetched.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from config import ConfigurationError, DesktopConfiguration
from core.api_client import PokeAPIClient
from core.cache_manager import CacheManager
from core.data_models import GameEvent
from core.exceptions import CacheError, DataUnavailable, InvalidStateTransition, PowerUpNotReady
from core.ui_logic import RoundController

from .board_view import render_board

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  start <easy|medium|hard>   start a new round
  flip <n>                   flip card number n
  reveal                     use the reveal power-up
  reset                      abandon the current round
  theme <light|dark>         change and save the display theme
  status                     show the board
  help                       show this text
  quit                       exit"""

# events that change what the player sees enough to redraw the board
_REDRAW_EVENTS = {
    "round_started",
    "card_flipped",
    "pair_matched",
    "pair_mismatched",
    "cards_hidden",
    "power_up_revealed",
    "power_up_hidden",
    "round_won",
    "round_lost",
}

LineReader = Callable[[], Awaitable[Optional[str]]]


async def _read_stdin() -> Optional[str]:
    try:
        return await asyncio.to_thread(input, "> ")
    except EOFError:
        return None


class ConsoleApp:
    """Command loop bridging stdin to a ``RoundController``."""

    def __init__(
        self,
        controller: RoundController,
        cache_manager: CacheManager,
        output: Callable[[str], None] = print,
    ) -> None:
        self.controller = controller
        self.cache_manager = cache_manager
        self.output = output
        self.theme = cache_manager.get_theme()
        self._setup_task: Optional[asyncio.Task] = None
        controller.add_listener(self._on_game_event)

    def _on_game_event(self, event: GameEvent) -> None:
        if event.event_type == "power_up_ready":
            self.output("Reveal power-up is ready.")
        elif event.event_type == "card_flipped" and event.snapshot.locked:
            # second card of a pair, drawn by the match or mismatch event
            return
        elif event.event_type in _REDRAW_EVENTS:
            self.output(render_board(event.snapshot, self.theme))

    async def _start_round(self, difficulty: str) -> None:
        try:
            await self.controller.start(difficulty)
        except DataUnavailable as e:
            self.output(f"Could not load cards ({e}). Try 'start {difficulty}' again.")
        except (InvalidStateTransition, ValueError) as e:
            self.output(str(e))

    async def handle_command(self, line: str) -> bool:
        """
        Execute one command line.

        Args:
            line: Raw input line

        Returns:
            False when the app should exit
        """
        parts = line.strip().split()
        if not parts:
            return True
        command, args = parts[0].lower(), parts[1:]

        if command in ("quit", "exit"):
            return False
        if command == "help":
            self.output(HELP_TEXT)
        elif command == "start":
            difficulty = args[0] if args else "easy"
            self._setup_task = asyncio.create_task(self._start_round(difficulty))
            # let setup reach its first await so the state reads "setup"
            await asyncio.sleep(0)
        elif command == "flip":
            if not args or not args[0].isdigit():
                self.output("Usage: flip <n>")
            elif not self.controller.select_card(str(int(args[0]) - 1)):
                logger.debug("Flip %s ignored", args[0])
        elif command == "reveal":
            try:
                if not self.controller.activate_power_up():
                    self.output("No round in progress.")
            except PowerUpNotReady as e:
                self.output(str(e))
        elif command == "reset":
            self.controller.reset()
            self.output(render_board(self.controller.snapshot(), self.theme))
        elif command == "theme":
            try:
                self.theme = self.cache_manager.set_theme(args[0] if args else "")
                self.output(f"Theme: {self.theme}")
            except (ValueError, CacheError) as e:
                self.output(str(e))
        elif command == "status":
            self.output(render_board(self.controller.snapshot(), self.theme))
        else:
            self.output(f"Unknown command {command!r}. Type 'help'.")
        return True

    async def run(self, read_line: LineReader = _read_stdin) -> None:
        self.output(f"Memory Match (theme: {self.theme}). Type 'help' for commands.")
        try:
            while True:
                line = await read_line()
                if line is None or not await self.handle_command(line):
                    break
        finally:
            if self._setup_task is not None and not self._setup_task.done():
                self._setup_task.cancel()
            self.controller.cleanup()


def main() -> int:
    try:
        config = DesktopConfiguration()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        cache_manager = CacheManager(config.cache_root)
    except CacheError as e:
        logger.error("Cannot open cache: %s", e)
        return 1

    provider = PokeAPIClient(
        config.api_base_url,
        cache_manager=cache_manager if config.cache_art else None,
        timeout=config.request_timeout,
        max_creature_id=config.max_creature_id,
        max_workers=config.fetch_workers,
    )
    controller = RoundController(provider, config.game_timings())
    app = ConsoleApp(controller, cache_manager)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0
