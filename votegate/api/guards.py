"""Fail-closed helpers for request handlers.

The engine answers with booleans only. Turning a False into an HTTP
rejection is the caller's job, and these helpers are that caller.
"""

from typing import Any, Optional

from fastapi import HTTPException, status

from votegate.core.decision.facade import AuthorizationChecker
from votegate.core.security.actor import Actor


def require_granted(
    checker: AuthorizationChecker,
    actor: Actor,
    attribute: str,
    subject: Optional[Any] = None,
) -> None:
    """
    Require that actor is granted attribute on subject.
    Raises HTTPException 403 if not.

    Usage:
        require_granted(checker, actor, "CAN_EDIT_POST", post)
    """
    if not checker.is_granted(actor, attribute, subject):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="forbidden",
        )
