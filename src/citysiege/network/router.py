"""Command router — dispatches admin commands to handlers.

Commands arrive as chat-style text (``.citysiege start stormwind``) from
the host or as the ``command`` field of the REST endpoint.  Handlers are
async callables that receive the argument list and the calling session
(None for remote callers) and return reply lines.
"""

from __future__ import annotations

import logging
import shlex
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from citysiege.util.errors import SiegeError

if TYPE_CHECKING:
    from citysiege.world.interfaces import Session

log = logging.getLogger(__name__)

COMMAND_PREFIXES = (".citysiege", "citysiege", ".cs")

# Handler signature: async (args, caller) -> reply lines
Handler = Callable[[list[str], Optional["Session"]], Awaitable[list[str]]]


class Router:
    """Admin command dispatcher."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        """Register a handler for a subcommand name (case-insensitive)."""
        self._handlers[name.lower()] = handler
        log.debug("Command registered: %s", name)

    @property
    def registered_commands(self) -> list[str]:
        return sorted(self._handlers)

    def usage(self) -> list[str]:
        return [f"Usage: .citysiege <{'|'.join(self.registered_commands)}> [args]"]

    @staticmethod
    def parse(text: str) -> list[str]:
        """Split a command line, dropping the ``.citysiege`` prefix."""
        try:
            parts = shlex.split(text)
        except ValueError:
            parts = text.split()
        if parts and parts[0].lower() in COMMAND_PREFIXES:
            parts = parts[1:]
        return parts

    async def dispatch(self, text: str, caller: Optional[Session] = None) -> list[str]:
        """Parse and run a command line.

        Returns:
            Reply lines; a failing handler yields an error line rather
            than propagating.
        """
        parts = self.parse(text)
        if not parts:
            return self.usage()
        handler = self._handlers.get(parts[0].lower())
        if handler is None:
            log.debug("No handler for command: %s", parts[0])
            return [f"Unknown subcommand '{parts[0]}'."] + self.usage()
        try:
            return await handler(parts[1:], caller)
        except SiegeError as e:
            log.warning("Command %r failed: %s", text, e)
            return [f"Command failed: {e}"]
        except Exception:
            log.exception("Command %r crashed", text)
            return ["Command failed: internal error, see server log."]
