import uuid
from types import SimpleNamespace

import pytest

from app.core.auth_context import AuthContext
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.core.permissions import Action, authorize, can_answer, ensure_allowed


def _student(class_name="8"):
    return AuthContext(user_id=uuid.uuid4(), role="student", class_name=class_name)


def _moderator():
    return AuthContext(user_id=uuid.uuid4(), role="moderator", class_name="N/A", is_moderator=True)


ADMIN_FLAG_ONLY = AuthContext(is_admin=True)
ANONYMOUS = AuthContext.anonymous()


def test_registration_and_login_are_open_to_anonymous() -> None:
    assert authorize(ANONYMOUS, Action.REGISTER).allowed
    assert authorize(ANONYMOUS, Action.LOGIN).allowed


@pytest.mark.parametrize("action", [Action.POST_QUESTION, Action.POST_ANSWER, Action.VOTE, Action.DELETE_CONTENT])
def test_anonymous_writes_need_login(action) -> None:
    decision = authorize(ANONYMOUS, action, SimpleNamespace(class_name="8"))

    assert not decision.allowed
    assert decision.needs_login


def test_admin_cannot_post_questions_or_vote() -> None:
    assert authorize(ADMIN_FLAG_ONLY, Action.POST_QUESTION).reason == "Admin cannot post questions."
    assert authorize(ADMIN_FLAG_ONLY, Action.VOTE).reason == "Admin cannot vote."


@pytest.mark.parametrize("role", ["student", "teacher", "moderator"])
def test_non_admin_users_may_vote(role) -> None:
    actor = AuthContext(user_id=uuid.uuid4(), role=role)

    assert authorize(actor, Action.VOTE).allowed


def test_student_of_other_class_is_denied_with_question_class_named() -> None:
    decision = can_answer(_student("8"), "9")

    assert not decision.allowed
    assert not decision.needs_login
    assert "9" in decision.reason


def test_student_of_same_class_moderator_and_admin_may_answer() -> None:
    question = SimpleNamespace(class_name="9")

    assert authorize(_student("9"), Action.POST_ANSWER, question).allowed
    assert authorize(_moderator(), Action.POST_ANSWER, question).allowed
    assert authorize(ADMIN_FLAG_ONLY, Action.POST_ANSWER, question).allowed


def test_teacher_cannot_answer_even_in_matching_class() -> None:
    teacher = AuthContext(user_id=uuid.uuid4(), role="teacher", class_name="9")

    assert not authorize(teacher, Action.POST_ANSWER, SimpleNamespace(class_name="9")).allowed


def test_any_authenticated_user_may_delete_content() -> None:
    assert authorize(_student(), Action.DELETE_CONTENT).allowed


def test_moderator_namespace_needs_a_flag() -> None:
    assert authorize(_moderator(), Action.MODERATE).allowed
    assert authorize(ADMIN_FLAG_ONLY, Action.MODERATE).allowed
    # A moderator role without the session flag does not open the namespace
    role_only = AuthContext(user_id=uuid.uuid4(), role="moderator")
    assert not authorize(role_only, Action.MODERATE).allowed


def test_admin_namespace_needs_admin_flag() -> None:
    assert authorize(ADMIN_FLAG_ONLY, Action.ADMINISTER).allowed
    assert not authorize(_moderator(), Action.ADMINISTER).allowed
    admin_role_without_flag = AuthContext(user_id=uuid.uuid4(), role="admin")
    assert not authorize(admin_role_without_flag, Action.ADMINISTER).allowed


def test_ensure_allowed_maps_denials_to_status_errors() -> None:
    with pytest.raises(AuthenticationError):
        ensure_allowed(ANONYMOUS, Action.VOTE)

    with pytest.raises(PermissionDeniedError) as exc_info:
        ensure_allowed(ADMIN_FLAG_ONLY, Action.VOTE)

    assert exc_info.value.status_code == 403


def test_admin_role_without_session_flag_cannot_post_questions_or_vote() -> None:
    stored_admin = AuthContext(user_id=uuid.uuid4(), role="admin", class_name="-")

    assert not authorize(stored_admin, Action.POST_QUESTION).allowed
    assert not authorize(stored_admin, Action.VOTE).allowed
    assert can_answer(stored_admin, "9").allowed
