"""Command router for the ``/pet`` and ``/time`` chat commands.

Provides a lightweight registry of command definitions and a ``route`` helper
that parses a line such as ``pet feed OMELETTE_PLAIN`` and executes the
resolved command. Executors return a list of frames
(``{"type": "text" | "table", "data": ...}``) that the chat layer renders.
"""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from executors import table, text
from services.errors import PetBotError

logger = logging.getLogger(__name__)

CommandExec = Callable[[Dict[str, Any], Dict[str, Any]], List[Dict[str, Any]]]

MAX_LINE_LEN = 512


@dataclass
class CommandDef:
    name: str
    exec: CommandExec
    aliases: Optional[List[str]] = None
    description: str | None = None
    usage: str | None = None
    examples: Optional[List[str]] = None


_commands: Dict[str, CommandDef] = {}
_aliases: Dict[str, str] = {}


def register(cmd_def: Dict[str, Any] | CommandDef) -> CommandDef:
    """Register a command definition."""
    if isinstance(cmd_def, dict):
        cmd_def = CommandDef(**cmd_def)
    if not cmd_def.name:
        return cmd_def
    _commands[cmd_def.name] = cmd_def
    for a in cmd_def.aliases or []:
        _aliases[a] = cmd_def.name
    return cmd_def


def get(name: str) -> Optional[CommandDef]:
    """Get a command definition by name (canonical only)."""
    if not name:
        return None
    return _commands.get(name)


def resolve(name_or_alias: str) -> Optional[CommandDef]:
    """Resolve a command name or alias to its definition."""
    if not name_or_alias:
        return None
    name = _aliases.get(name_or_alias, name_or_alias)
    return get(name)


def _match(parts: Sequence[str]):
    """Longest match first: ``pet feed`` before ``pet``."""
    if len(parts) >= 2:
        cmd_def = resolve(f"{parts[0]} {parts[1]}")
        if cmd_def:
            return cmd_def, list(parts[2:])
    return resolve(parts[0]), list(parts[1:])


def route(line: str, user_id: Any, services: Any, **extra: Any) -> List[Dict[str, Any]]:
    """Parse ``line`` and execute the resolved command for ``user_id``.

    ``services`` is the :class:`services.Services` container; ``extra`` is
    passed through in the executor context (e.g. ``member_ids`` for
    ``time all``).
    """
    if not isinstance(line, str):
        return [text("Invalid input")]
    if len(line) > MAX_LINE_LEN:
        return [text("Line too long")]
    try:
        parts = shlex.split(line.lstrip("/"))
    except ValueError as e:
        return [text(str(e))]
    if not parts:
        return []
    cmd_def, args = _match(parts)
    if not cmd_def:
        return [text(f"Unknown command: {' '.join(parts[:2])}")]
    ctx = {"user_id": user_id, "services": services, **extra}
    cmd = {"cmd": cmd_def.name, "args": args, "flags": {}}
    try:
        frames = cmd_def.exec(cmd, ctx)
    except PetBotError as e:
        return [text(f"❌ {e.message}")]
    except Exception:
        logger.exception("command_failed cmd=%s user_id=%s", cmd_def.name, user_id)
        return [text("There was an error executing this command!")]
    return frames if isinstance(frames, list) else []


def route_mentions(mentioned_ids: Sequence[str], services: Any,
                   display_names: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """Reply to a plain chat message that mentions users with their local times."""
    if not mentioned_ids:
        return []
    try:
        return timezone.mention_frames(services, list(mentioned_ids), display_names)
    except PetBotError as e:
        return [text(f"❌ {e.message}")]
    except Exception:
        logger.exception("mentions_failed count=%s", len(mentioned_ids))
        return []


# --- Default command registrations ---------------------------------------
from executors import inventory, pet, timezone  # noqa: E402


def help_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Provide help information for commands."""
    args = cmd.get("args", [])
    if args:
        target, _ = _match(args)
        if not target:
            return [text(f"No help for {' '.join(args)}")]
        lines = [target.description or ""]
        if target.usage:
            lines.append(f"Usage: {target.usage}")
        if target.examples:
            lines.append("Examples:")
            lines.extend(f"  {ex}" for ex in target.examples)
        return [text("\n".join(lines))]

    rows = [
        {"command": d.name, "description": d.description or ""}
        for d in _commands.values()
    ]
    rows.sort(key=lambda r: r["command"])
    return [table(rows)]


register({
    "name": "help",
    "aliases": ["?"],
    "exec": help_cmd,
    "description": "List available commands or show help for a command",
    "usage": "help [command]",
    "examples": ["help", "help pet feed"],
})

register({
    "name": "pet adopt",
    "aliases": ["adopt"],
    "exec": pet.adopt_cmd,
    "description": "Adopt a pet",
    "usage": "pet adopt <species> <name>",
    "examples": ["pet adopt seedling Sprout"],
})

register({
    "name": "pet species",
    "exec": pet.species_cmd,
    "description": "List the species available for adoption",
})

register({
    "name": "pet info",
    "exec": pet.info_cmd,
    "description": "Get information about your pet",
})

register({
    "name": "pet feed",
    "aliases": ["feed"],
    "exec": pet.feed_cmd,
    "description": "Feed your pet an item from your bag",
    "usage": "pet feed [item]",
    "examples": ["pet feed OMELETTE_PLAIN", "pet feed"],
})

register({
    "name": "pet rename",
    "exec": pet.rename_cmd,
    "description": "Rename your pet",
    "usage": "pet rename <name>",
    "examples": ["pet rename Sprout"],
})

register({
    "name": "pet daily",
    "aliases": ["daily"],
    "exec": pet.daily_cmd,
    "description": "Claim your daily reward",
})

register({
    "name": "pet bag",
    "aliases": ["bag"],
    "exec": inventory.bag_cmd,
    "description": "Manage your inventory",
    "usage": "pet bag [view|store|use] [item] [quantity]",
    "examples": ["pet bag", "pet bag store OMELETTE_PLAIN 2", "pet bag use OMELETTE_PEPPER"],
})

register({
    "name": "pet storage",
    "aliases": ["storage"],
    "exec": inventory.storage_cmd,
    "description": "Manage your deposit box",
    "usage": "pet storage [view [page]|withdraw <item> [quantity]]",
    "examples": ["pet storage view 2", "pet storage withdraw OMELETTE_PLAIN"],
})

register({
    "name": "time set",
    "exec": timezone.set_cmd,
    "description": "Set your timezone",
    "usage": "time set <timezone> [location]",
    "examples": ["time set America/Chicago Chicago, IL"],
})

register({
    "name": "time get",
    "exec": timezone.get_cmd,
    "description": "Get the time for a user or a timezone",
    "usage": "time get <user_id|timezone>",
    "examples": ["time get 1234567890", "time get Europe/Paris"],
})

register({
    "name": "time all",
    "exec": timezone.all_cmd,
    "description": "List the time for everyone in this server",
    "usage": "time all [user_id...]",
})
