from __future__ import annotations

from datetime import datetime

from app.domain.common.errors import ConfirmationRequired, TransitionRejected, ValidationError
from app.domain.tasks.models import (
    ACTIVE,
    ALL_STATUSES,
    COMPLETED,
    IN_PROGRESS,
    OVERDUE,
    Task,
    TransitionCheck,
)
from app.domain.tasks.status import is_due_today, is_due_yesterday, is_past_due

REASON_OVERDUE_AUTOMATIC = "Overdue is automatic: it is set from the due date and cannot be chosen manually."
REASON_OVERDUE_ONLY_TO_COMPLETED = "Overdue tasks can only be moved to Completed."
REASON_DUE_TODAY = "Task due today cannot be set to Active or Overdue manually."
REASON_DUE_YESTERDAY = "Task due yesterday cannot be Active or In Progress; it should be Overdue."
REASON_REACTIVATE_PAST_DUE = "Completed task with overdue due date cannot be reactivated."
PROMPT_IN_PROGRESS_NOT_TODAY = "Task due date is not today. Set status to In Progress anyway?"


def validate_transition(
    task: Task,
    from_status: str,
    to_status: str,
    now: datetime,
    *,
    reopening: bool = False,
) -> TransitionCheck:
    """
    Check a manual status change. First failing rule wins.

    With `reopening` (undo of a completion) a task due today may go back
    to Active; past-due tasks still cannot.

    The In Progress confirmation gate is not a rejection: the result is
    allowed but flagged with needs_confirmation.
    """
    if to_status not in ALL_STATUSES:
        return TransitionCheck(False, f"Unknown status: {to_status!r}")

    if to_status == OVERDUE:
        return TransitionCheck(False, REASON_OVERDUE_AUTOMATIC)

    if from_status == OVERDUE and to_status != COMPLETED:
        return TransitionCheck(False, REASON_OVERDUE_ONLY_TO_COMPLETED)

    if is_due_today(task, now) and to_status in (ACTIVE, OVERDUE) and not reopening:
        return TransitionCheck(False, REASON_DUE_TODAY)

    if is_due_yesterday(task, now) and to_status in (ACTIVE, IN_PROGRESS):
        return TransitionCheck(False, REASON_DUE_YESTERDAY)

    if to_status == IN_PROGRESS and task.due is not None and not is_due_today(task, now):
        return TransitionCheck(True, PROMPT_IN_PROGRESS_NOT_TODAY, needs_confirmation=True)

    if to_status == ACTIVE and is_past_due(task, now):
        return TransitionCheck(False, REASON_REACTIVATE_PAST_DUE)

    return TransitionCheck(True)


def ensure_transition_allowed(
    task: Task,
    to_status: str,
    now: datetime,
    *,
    confirmed: bool = False,
    reopening: bool = False,
) -> None:
    check = validate_transition(task, task.status, to_status, now, reopening=reopening)
    if not check.allowed:
        raise TransitionRejected(check.reason or "Transition not allowed.")
    if check.needs_confirmation and not confirmed:
        raise ConfirmationRequired(check.reason or "Please confirm.")


def validate_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required.")
    return cleaned
