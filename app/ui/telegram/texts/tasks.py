from __future__ import annotations

import html
from datetime import datetime
from typing import Iterable, Optional, Sequence

from app.domain.tasks.analytics import TaskSummary
from app.domain.tasks.board import group_by_status
from app.domain.tasks.models import (
    ACTIVE,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    BulkResult,
    Notification,
    Task,
    TaskStatus,
)
from app.domain.tasks.status import is_past_due

STATUS_ICONS = {ACTIVE: "⚪", IN_PROGRESS: "🔵", OVERDUE: "🔴", COMPLETED: "✅"}

# words accepted in /move
STATUS_WORDS: dict[str, TaskStatus] = {
    "active": ACTIVE,
    "todo": ACTIVE,
    "progress": IN_PROGRESS,
    "inprogress": IN_PROGRESS,
    "in_progress": IN_PROGRESS,
    "in-progress": IN_PROGRESS,
    "started": IN_PROGRESS,
    "overdue": OVERDUE,
    "completed": COMPLETED,
    "complete": COMPLETED,
    "done": COMPLETED,
}


def parse_status_word(text: str) -> Optional[TaskStatus]:
    key = text.strip().lower().replace(" ", "")
    return STATUS_WORDS.get(key)


def task_line(task: Task, now: datetime) -> str:
    parts = [f"{STATUS_ICONS.get(task.status, '•')} <b>{html.escape(task.title)}</b>"]
    if task.due:
        due = task.due.isoformat() + (f" {task.time}" if task.time else "")
        if is_past_due(task, now) and not task.completed:
            due = f"⚠️ {due}"
        parts.append(due)
    if task.manual_status:
        parts.append("manual")
    parts.append(f"<code>{html.escape(str(task.id))}</code>")
    return " · ".join(parts)


def render_board(tasks: Iterable[Task], now: datetime, offline: bool = False) -> str:
    columns = group_by_status(tasks)
    lines: list[str] = []
    if offline:
        lines.append("<i>Offline: showing cached tasks.</i>")
    for status, items in columns.items():
        lines.append(f"\n<b>{status}</b> ({len(items)})")
        if not items:
            lines.append("–")
        for task in items:
            lines.append(task_line(task, now))
    return "\n".join(lines).strip() or "No tasks."


def render_task(task: Task, now: datetime) -> str:
    lines = [task_line(task, now)]
    if task.description:
        lines.append(html.escape(task.description))
    lines.append(f"{html.escape(task.category)} · {task.priority}")
    if task.in_progress_at:
        lines.append(f"Started: {task.in_progress_at:%Y-%m-%d %H:%M}")
    if task.completed and task.completed_at:
        lines.append(f"Completed: {task.completed_at:%Y-%m-%d %H:%M}")
    return "\n".join(lines)


def render_bulk_result(label: str, result: BulkResult) -> str:
    lines = [f"{label}: {len(result.succeeded)} task(s) done."]
    if result.excluded:
        lines.append(f"{len(result.excluded)} overdue task(s) cannot be reactivated.")
    if result.skipped:
        lines.append(f"{len(result.skipped)} task(s) already in that state.")
    for failure in result.failed:
        lines.append(f"⚠️ <code>{html.escape(str(failure.task_id))}</code>: {html.escape(failure.reason)}")
    return "\n".join(lines)


def render_summary(summary: TaskSummary) -> str:
    lines = [
        "<b>Stats</b>",
        f"Total: {summary.total}",
        f"Completed: {summary.completed} ({summary.completion_rate}%)",
        f"In Progress: {summary.in_progress} · Active: {summary.active} · Overdue: {summary.overdue}",
        f"Avg completion: {summary.average_completion_days} day(s)",
        f"Streak: {summary.streak} day(s)",
        "",
        "Last 7 days: " + " ".join(str(n) for n in summary.weekly_trend.values()),
    ]
    if summary.category_distribution:
        cats = ", ".join(f"{html.escape(k)} {v}" for k, v in sorted(summary.category_distribution.items()))
        lines.append(f"Categories: {cats}")
    return "\n".join(lines)


def render_inbox(items: Sequence[Notification]) -> str:
    if not items:
        return "No notifications."
    lines = ["<b>Notifications</b>"]
    for n in items:
        mark = "" if n.read else "🆕 "
        lines.append(f"{mark}<b>{html.escape(n.heading)}</b>: {html.escape(n.message)}")
    return "\n".join(lines)
