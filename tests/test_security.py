from datetime import timedelta

from app.core.security import (
    create_session_token,
    credentials_match,
    get_password_hash,
    verify_password,
    verify_session_token,
)
from app.models import User
from app.repositories.user_repo import UserRepository


def test_password_hash_is_one_way_and_verifiable() -> None:
    hashed = get_password_hash("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_non_bcrypt_values() -> None:
    assert not verify_password("plain", "plain")
    assert not verify_password("", get_password_hash("x"))


def test_resaving_user_keeps_password_digest(run_db) -> None:
    async def scenario(db):
        repo = UserRepository(db)
        user = await repo.create_user(
            password="s3cret",
            name="Ada",
            email="ada@example.com",
            institution_name="School",
            class_name="8",
            badges=[],
            bookmarks=[],
        )
        digest = user.password_hash

        user.name = "Ada L."
        user = await repo.save(user)
        reloaded = await repo.get_by_email("ada@example.com")
        return digest, reloaded

    digest, user = run_db(scenario)

    assert isinstance(user, User)
    assert user.password_hash == digest
    assert user.check_password("s3cret")
    assert not user.check_password("other")


def test_credentials_match_needs_configured_pair() -> None:
    assert credentials_match("a@b.c", "pw", "a@b.c", "pw")
    assert not credentials_match("a@b.c", "nope", "a@b.c", "pw")
    assert not credentials_match("a@b.c", "pw", None, None)


def test_session_token_round_trip_and_expiry() -> None:
    token = create_session_token("abc")

    assert verify_session_token(token) == "abc"
    assert verify_session_token("not-a-token") is None
    assert verify_session_token(create_session_token("abc", expires_delta=timedelta(seconds=-1))) is None
