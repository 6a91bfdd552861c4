from __future__ import annotations

from app.domain.tasks.models import TaskId
from app.domain.tasks.notifications import NOTICES_BY_KIND
from app.domain.tasks.ports import NotificationSink
from app.infra.api.client import ApiClient

EMAIL_PATH = "/notifications/email"


class EmailRelaySink(NotificationSink):
    """Asks the backend to e-mail the user about the status change."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def emit(self, kind: str, task_id: TaskId, title: str) -> None:
        notice = NOTICES_BY_KIND.get(kind)
        await self._client.request(
            "POST",
            EMAIL_PATH,
            {
                "title": notice.heading if notice else kind,
                "message": notice.message(title) if notice else title,
                "type": "task_status_change",
                "taskId": str(task_id),
            },
        )
