from __future__ import annotations

import re

from aiogram.types import Message

_ID_SPLIT_RE = re.compile(r"[\s,]+")


def command_args(message: Message) -> str:
    text = (message.text or "").strip()
    if not text:
        return ""
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[1].strip()


def split_ids(args: str) -> list[str]:
    return [p for p in _ID_SPLIT_RE.split(args.strip()) if p]


def parse_add_args(args: str) -> dict:
    """
    "/add Buy milk | 2026-03-01 14:00" -> title, due, time.
    Everything after '|' is optional.
    """
    title, _, rest = args.partition("|")
    fields: dict = {"title": title.strip()}
    when = rest.split()
    if when:
        fields["due"] = when[0]
    if len(when) > 1:
        fields["time"] = when[1]
    return fields
