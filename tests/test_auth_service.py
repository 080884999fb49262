import io
import json

import pytest
from fastapi import UploadFile
from sqlalchemy import func, select

from app.core.auth_context import AuthContext
from app.core.exceptions import AuthenticationError, ConflictError, PermissionDeniedError, ValidationError
from app.models import User
from app.schemas.auth import ProfileUpdateRequest
from app.services.attachment_service import AttachmentService
from app.services.auth_service import AuthService
from app.services.session_service import SessionStore

from conftest import PNG_BYTES

REGISTRATION = {
    "name": "Ada  Lovelace",
    "email": "Ada@Example.com",
    "password": "s3cret",
    "institution_name": "Analytical School",
    "class_name": "8",
}


def _service(db, fake_redis, fake_storage):
    return AuthService(db, sessions=SessionStore(fake_redis), attachments=AttachmentService(fake_storage))


def _session_payloads(fake_redis):
    return [json.loads(raw) for raw in fake_redis.data.values()]


def test_register_creates_student_and_session(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        return await _service(db, fake_redis, fake_storage).register(**REGISTRATION)

    user, token = run_db(scenario)

    assert user.email == "ada@example.com"
    assert user.name == "Ada Lovelace"
    assert user.role == "student"
    assert user.password_hash != "s3cret"
    assert token
    assert _session_payloads(fake_redis)[0]["user_id"] == str(user.id)
    assert list(fake_redis.ttl.values()) == [24 * 60 * 60]


def test_register_twice_conflicts_without_second_record(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        await service.register(**REGISTRATION)
        with pytest.raises(ConflictError):
            await service.register(**{**REGISTRATION, "email": "ada@example.com"})
        return await db.scalar(select(func.count(User.id)))

    assert run_db(scenario) == 1


def test_register_requires_every_field(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        await _service(db, fake_redis, fake_storage).register(**{**REGISTRATION, "class_name": " "})

    with pytest.raises(ValidationError, match="All fields are required."):
        run_db(scenario)


def test_register_with_avatar_stores_reference(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        avatar = UploadFile(file=io.BytesIO(PNG_BYTES), filename="me.png")
        user, _ = await _service(db, fake_redis, fake_storage).register(**REGISTRATION, avatar=avatar)
        return user

    user = run_db(scenario)

    assert user.avatar in fake_storage.objects
    assert user.avatar.startswith("https://files.test/avatars/")


def test_login_rejects_wrong_password_and_suspended_user(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        user, _ = await service.register(**REGISTRATION)
        with pytest.raises(AuthenticationError):
            await service.login("ada@example.com", "wrong")
        with pytest.raises(AuthenticationError):
            await service.login("nobody@example.com", "s3cret")

        user.suspended = True
        await service.user_repo.save(user)
        with pytest.raises(PermissionDeniedError, match="suspended"):
            await service.login("ada@example.com", "s3cret")

    run_db(scenario)


def test_relogin_replaces_previous_session(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        _, first_token = await service.register(**REGISTRATION)
        first_sid, _ = await service.sessions.resolve(first_token)
        user, second_token = await service.login("ADA@example.com", "s3cret", previous_session_id=first_sid)
        return user, first_token, second_token, service.sessions

    user, first_token, second_token, _ = run_db(scenario)

    assert user.email == "ada@example.com"
    assert len(fake_redis.data) == 1
    assert first_token != second_token


def test_configured_admin_pair_grants_admin_flag(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        return await _service(db, fake_redis, fake_storage).login("admin@example.com", "admin-pass")

    user, _ = run_db(scenario)

    assert user is None
    [payload] = _session_payloads(fake_redis)
    assert payload["is_admin"] is True
    assert payload["user_id"] is None


def test_moderator_login_sets_moderator_flag(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        user, _ = await service.register(**REGISTRATION)
        user.role = "moderator"
        await service.user_repo.save(user)
        fake_redis.data.clear()
        return await service.login("ada@example.com", "s3cret")

    run_db(scenario)

    [payload] = _session_payloads(fake_redis)
    assert payload["is_moderator"] is True
    assert payload["is_admin"] is False


def test_admin_panel_login_only_accepts_fixed_pair(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        await service.register(**REGISTRATION)
        with pytest.raises(AuthenticationError, match="Invalid admin credentials"):
            await service.admin_login("ada@example.com", "s3cret")
        return await service.admin_login("admin@example.com", "admin-pass")

    token = run_db(scenario)

    assert token
    assert any(p["is_admin"] for p in _session_payloads(fake_redis))


def test_logout_deletes_server_side_session(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        user, token = await service.register(**REGISTRATION)
        sid, _ = await service.sessions.resolve(token)
        await service.logout(AuthContext.for_user(user, session_id=sid))
        return await service.sessions.resolve(token)

    assert run_db(scenario) is None
    assert fake_redis.data == {}


def test_update_profile_requires_class_for_students(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        user, _ = await service.register(**REGISTRATION)
        actor = AuthContext.for_user(user)
        with pytest.raises(ValidationError, match="Class is required."):
            await service.update_profile(actor, ProfileUpdateRequest(name="Ada", institutionName="X"))
        return await service.update_profile(
            actor,
            ProfileUpdateRequest(name="Ada", institutionName="X", **{"class": "9"}, bio="hi"),
        )

    user = run_db(scenario)

    assert user.class_name == "9"
    assert user.profile["bio"] == "hi"


def test_update_avatar_discards_previous(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        first = UploadFile(file=io.BytesIO(PNG_BYTES), filename="one.png")
        user, _ = await service.register(**REGISTRATION, avatar=first)
        previous = user.avatar
        second = UploadFile(file=io.BytesIO(PNG_BYTES), filename="two.png")
        user = await service.update_avatar(AuthContext.for_user(user), second)
        return previous, user

    previous, user = run_db(scenario)

    assert user.avatar != previous
    assert fake_storage.deleted == [previous]


def test_ensure_admin_user_is_idempotent(run_db, fake_redis, fake_storage) -> None:
    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        first = await service.ensure_admin_user()
        second = await service.ensure_admin_user()
        return first, second

    first, second = run_db(scenario)

    assert first.id == second.id
    assert (first.name, first.role, first.institution_name, first.class_name) == ("Admin", "admin", "Other", "-")


def test_ensure_admin_user_follows_rotated_password(run_db, fake_redis, fake_storage, monkeypatch) -> None:
    from app.core.config import settings

    async def scenario(db):
        service = _service(db, fake_redis, fake_storage)
        await service.ensure_admin_user()
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", "rotated-pass")
        return await service.ensure_admin_user()

    admin = run_db(scenario)

    assert admin.check_password("rotated-pass")
    assert not admin.check_password("admin-pass")
