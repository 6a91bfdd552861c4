from __future__ import annotations

import uuid

from app.domain.tasks.ports import IdGenerator


class UuidGenerator(IdGenerator):
    """Client-side ids: optimistic task ids and notification ids."""

    def new_id(self) -> str:
        return uuid.uuid4().hex
