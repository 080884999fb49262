"""
Access-control policy.

``authorize`` is a pure function of the actor, the action and (where
the rule needs one) the target record. It never touches the store.
``ensure_allowed`` turns a denial into the matching application error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from app.core.auth_context import AuthContext
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.models.user import UserRole


class Action(str, Enum):
    REGISTER = "register"
    LOGIN = "login"
    VIEW = "view"
    POST_QUESTION = "post_question"
    POST_ANSWER = "post_answer"
    VOTE = "vote"
    REPORT = "report"
    DELETE_CONTENT = "delete_content"
    UPDATE_PROFILE = "update_profile"
    MODERATE = "moderate"
    ADMINISTER = "administer"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    # True when the denial is caused by a missing identity (401), not a role (403)
    needs_login: bool = False

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def _login_required(reason: str = "Unauthorized") -> Decision:
    return Decision(allowed=False, reason=reason, needs_login=True)


def _deny(reason: str) -> Decision:
    return Decision(allowed=False, reason=reason)


def can_answer(actor: AuthContext, question_class: Optional[str]) -> Decision:
    """Admins, moderators and students of the question's class may answer."""
    if actor.is_anonymous:
        return _login_required()
    if actor.acts_as_admin or actor.acts_as_moderator:
        return ALLOW
    if actor.role == UserRole.STUDENT.value and actor.class_name == question_class:
        return ALLOW
    return _deny(f"Only students of class {question_class} can answer this question.")


def authorize(actor: AuthContext, action: Action, resource: Any = None) -> Decision:
    if action in (Action.REGISTER, Action.LOGIN, Action.VIEW):
        return ALLOW

    if action == Action.ADMINISTER:
        return ALLOW if actor.is_admin else _deny("Admin only")

    if action == Action.MODERATE:
        if actor.is_admin or actor.is_moderator:
            return ALLOW
        return _deny("Moderator only")

    if actor.is_anonymous:
        return _login_required()

    if action == Action.POST_QUESTION:
        if actor.acts_as_admin:
            return _deny("Admin cannot post questions.")
        return ALLOW

    if action == Action.VOTE:
        if actor.acts_as_admin:
            return _deny("Admin cannot vote.")
        return ALLOW

    if action == Action.POST_ANSWER:
        return can_answer(actor, getattr(resource, "class_name", None))

    if action == Action.UPDATE_PROFILE:
        if actor.user_id is None:
            return _login_required("Not logged in")
        return ALLOW

    # Ownership of the target is not checked for deletions or reports.
    if action in (Action.DELETE_CONTENT, Action.REPORT):
        return ALLOW

    return _deny("Forbidden")


def ensure_allowed(actor: AuthContext, action: Action, resource: Any = None) -> None:
    decision = authorize(actor, action, resource)
    if decision.allowed:
        return
    if decision.needs_login:
        raise AuthenticationError(decision.reason or "Unauthorized")
    raise PermissionDeniedError(decision.reason or "Forbidden")
