from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base for errors raised by domain services."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class TransitionRejected(ValidationError):
    """A manual status change broke one of the transition rules."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConfirmationRequired(DomainError):
    """
    Not a failure: the change is allowed but only after the user says yes.
    Callers re-invoke with confirmed=True.
    """

    def __init__(self, prompt: str) -> None:
        super().__init__(prompt)
        self.prompt = prompt


class RemotePersistenceError(DomainError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
