import io

import pytest
from fastapi import UploadFile

from app.core.auth_context import AuthContext
from app.core.exceptions import NotFoundError, PermissionDeniedError, UpstreamError, ValidationError
from app.repositories.user_repo import UserRepository
from app.services.attachment_service import AttachmentService
from app.services.question_service import QuestionService, parse_subject_tags

from conftest import PNG_BYTES


def _upload(name="notes.txt", content=b"some notes"):
    return UploadFile(file=io.BytesIO(content), filename=name)


async def _user(db, email, class_name="8", role="student"):
    user = await UserRepository(db).create_user(
        password="pw",
        name=email.split("@")[0],
        email=email,
        institution_name="School",
        class_name=class_name,
        role=role,
        badges=[],
        bookmarks=[],
    )
    return AuthContext.for_user(user, is_moderator=role == "moderator")


async def _question(service, actor, class_name="8", files=None):
    return await service.create_question(
        actor,
        title="Fractions",
        description="How do I add 1/2 and 1/3?",
        class_name=class_name,
        subject='["math", "fractions"]',
        files=files,
    )


def test_parse_subject_tags_accepts_json_and_plain_lists() -> None:
    assert parse_subject_tags('["math", "math", " physics "]') == ["math", "physics"]
    assert parse_subject_tags("math, biology") == ["math", "biology"]
    assert parse_subject_tags("") == []


def test_question_keeps_uploaded_references_and_author(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        actor = await _user(db, "a@example.com")
        question = await _question(service, actor, files=[_upload(), _upload("fig.png", PNG_BYTES)])
        return actor, question

    actor, question = run_db(scenario)

    assert len(question.files) == 2
    assert all(ref in fake_storage.objects for ref in question.files)
    assert question.author_id == actor.user_id
    assert question.subject == ["math", "fractions"]


def test_question_requires_fields(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        actor = await _user(db, "a@example.com")
        await service.create_question(actor, title="", description="x", class_name="8", subject='["math"]')

    with pytest.raises(ValidationError):
        run_db(scenario)


def test_admin_cannot_post_question(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        await _question(service, AuthContext(is_admin=True))

    with pytest.raises(PermissionDeniedError):
        run_db(scenario)


def test_student_of_other_class_cannot_answer_but_moderator_can(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com", class_name="8")
        other = await _user(db, "b@example.com", class_name="9")
        moderator = await _user(db, "m@example.com", class_name="N/A", role="moderator")
        question = await _question(service, author, class_name="8")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.create_answer(other, question.id, content="I think 5/6")

        answer = await service.create_answer(moderator, question.id, content="It is 5/6")
        refreshed = await service.get_question(question.id)
        return exc_info.value, answer, refreshed, moderator

    denial, answer, question, moderator = run_db(scenario)

    assert "8" in denial.message
    assert answer.author_id == moderator.user_id
    assert question.answer_ids == [answer.id]


def test_admin_answer_is_owned_by_stored_admin_user(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        question = await _question(service, author)
        answer = await service.create_answer(AuthContext(is_admin=True), question.id, content="Verified.")
        return answer

    answer = run_db(scenario)

    assert answer.author.email == "admin@example.com"
    assert answer.author.role == "admin"


def test_repeated_votes_keep_one_entry_per_user(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        voter = await _user(db, "v@example.com")
        question = await _question(service, author)
        for value in (1, -1, 1):
            await service.vote_question(voter, question.id, value)
        await service.vote_question(author, question.id, -1)
        return voter, await service.get_question(question.id)

    voter, question = run_db(scenario)

    assert question.votes == [
        {"user": str(voter.user_id), "value": 1},
        {"user": str(question.author_id), "value": -1},
    ]
    assert (question.upvotes, question.downvotes) == (1, 1)


def test_admin_vote_is_rejected(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        question = await _question(service, author)
        answer = await service.create_answer(author, question.id, content="self answer")
        with pytest.raises(PermissionDeniedError):
            await service.vote_question(AuthContext(is_admin=True), question.id, 1)
        with pytest.raises(PermissionDeniedError):
            await service.vote_answer(AuthContext(is_admin=True), question.id, answer.id, 1)
        return await service.vote_answer(author, question.id, answer.id, 1)

    answer = run_db(scenario)

    assert answer.upvotes == 1


def test_reports_accumulate(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        question = await _question(service, author)
        await service.report_question(author, question.id, "spam")
        return await service.report_question(author, question.id, "spam")

    question = run_db(scenario)

    assert len(question.reports) == 2


def test_delete_question_cascades_answers_and_files(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        classmate = await _user(db, "c@example.com")
        question = await _question(service, author, files=[_upload()])
        await service.create_answer(classmate, question.id, content="one", files=[_upload("a.txt", b"a")])
        await service.create_answer(author, question.id, content="two", files=[_upload("b.txt", b"b")])
        stored = list(fake_storage.objects)

        results = await service.delete_question(classmate, question.id)

        remaining_answers = await service.list_answers(question.id)
        remaining_questions = await service.list_questions()
        return stored, results, remaining_answers, remaining_questions

    stored, results, answers, questions = run_db(scenario)

    assert len(stored) == 3
    assert all(r.ok for r in results)
    assert sorted(fake_storage.deleted) == sorted(stored)
    assert answers == []
    assert questions == []


def test_delete_question_completes_when_file_cleanup_fails(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        question = await _question(service, author, files=[_upload(), _upload("b.txt", b"b")])
        fake_storage.fail_on_delete.add(question.files[0])

        results = await service.delete_question(author, question.id)

        with pytest.raises(NotFoundError):
            await service.get_question(question.id)
        return question, results

    question, results = run_db(scenario)

    assert [r.ok for r in results] == [False, True]
    assert results[0].reference == question.files[0]
    assert "cannot delete" in results[0].error


def test_delete_answer_detaches_from_question(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        question = await _question(service, author)
        keep = await service.create_answer(author, question.id, content="keep")
        drop = await service.create_answer(author, question.id, content="drop", files=[_upload()])

        await service.delete_answer(author, question.id, drop.id)

        return keep, drop, await service.get_question(question.id)

    keep, drop, question = run_db(scenario)

    assert question.answer_ids == [keep.id]
    assert drop.files[0] in fake_storage.deleted


def test_answer_of_another_question_is_not_found(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        first = await _question(service, author)
        second = await _question(service, author)
        answer = await service.create_answer(author, first.id, content="hi")
        await service.vote_answer(author, second.id, answer.id, 1)

    with pytest.raises(NotFoundError):
        run_db(scenario)


def test_stored_admin_without_session_flag_cannot_vote_or_post(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        author = await _user(db, "a@example.com")
        stored_admin = await _user(db, "root@example.com", class_name="-", role="admin")
        question = await _question(service, author)

        with pytest.raises(PermissionDeniedError):
            await service.vote_question(stored_admin, question.id, 1)
        with pytest.raises(PermissionDeniedError):
            await _question(service, stored_admin)
        return await service.get_question(question.id)

    question = run_db(scenario)

    assert question.votes == []


def test_failed_store_write_leaves_uploads_in_storage(run_db, fake_storage) -> None:
    async def scenario(db):
        service = QuestionService(db, AttachmentService(fake_storage))
        actor = await _user(db, "a@example.com")

        async def broken_commit():
            raise RuntimeError("database is locked")

        db.commit = broken_commit
        with pytest.raises(UpstreamError) as exc_info:
            await _question(service, actor, files=[_upload(), _upload("fig.png", PNG_BYTES)])
        return exc_info.value

    error = run_db(scenario)

    assert error.status_code == 500
    assert error.error == "database is locked"
    assert len(fake_storage.objects) == 2
