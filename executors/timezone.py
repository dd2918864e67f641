"""Time command executors."""
from __future__ import annotations

from typing import Any, Dict, List

from executors import text
from services.errors import ValidationError
from services.timezones import format_time, local_time


def set_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    args = cmd.get("args", [])
    if not args:
        raise ValidationError("Usage: time set <timezone> [location]")
    tz, location = args[0], " ".join(args[1:]) or args[0]
    record = ctx["services"].timezones.save_user(ctx["user_id"], tz, location)
    return [text(f"📍 **Location Updated**\nYou are set to: `{record.display_location}`")]


def get_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    args = cmd.get("args", [])
    if len(args) != 1:
        raise ValidationError("Please provide EITHER a user OR a timezone.")
    target = args[0]
    timezones = ctx["services"].timezones
    now = timezones.clock()

    if "/" in target or target.upper() == "UTC":
        return [text(f"Time in **{target}**\n`{format_time(local_time(target, now))}`")]

    user_id = target.strip("<@!>")
    record = timezones.get_single_user(user_id)
    if record is None:
        return [text("❌ That user hasn't set their timezone.")]
    name = (ctx.get("display_names") or {}).get(user_id, user_id)
    return [text(f"Time for **{name}** ({record.display_location})\n`{format_time(local_time(record.timezone, now))}`")]


def all_cmd(cmd: Dict[str, Any], ctx: Dict[str, Any]) -> List[Dict[str, Any]]:
    member_ids = list(cmd.get("args", [])) or list(ctx.get("member_ids") or [])
    groups = ctx["services"].timezones.group_by_offset(member_ids)
    if not groups:
        return [text("No users have set their timezone.")]
    names = ctx.get("display_names") or {}
    blocks = []
    for group in groups:
        users = "\n".join(f"\t{names.get(uid, uid)}" for uid in group.user_ids)
        blocks.append(f"`{group.local_time}` - **{group.label}**\n{users}")
    return [text("\n".join(blocks))]


def mention_frames(services: Any, mentioned_ids: List[str],
                   display_names: Dict[str, str] | None = None) -> List[Dict[str, Any]]:
    """Local time of each mentioned user, throttled per user."""
    names = display_names or {}
    return [
        text(f"It is **{when}** for {names.get(uid, uid)}.")
        for uid, when in services.timezones.announce_mentions(mentioned_ids)
    ]


__all__ = ["set_cmd", "get_cmd", "all_cmd", "mention_frames"]
