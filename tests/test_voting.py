import pytest

from app.core.exceptions import ValidationError
from app.core.voting import add_report, cast_vote, tally, vote_of


def test_last_vote_of_a_user_wins() -> None:
    votes = []
    for value in (1, -1, 1, -1):
        votes = cast_vote(votes, "alice", value)

    assert votes == [{"user": "alice", "value": -1}]


def test_votes_of_different_users_are_kept_in_order() -> None:
    votes = cast_vote([], "alice", 1)
    votes = cast_vote(votes, "bob", -1)
    votes = cast_vote(votes, "alice", -1)

    assert votes == [{"user": "alice", "value": -1}, {"user": "bob", "value": -1}]
    assert tally(votes).upvotes == 0
    assert tally(votes).downvotes == 2


def test_cast_vote_does_not_mutate_input() -> None:
    original = [{"user": "alice", "value": 1}]

    cast_vote(original, "alice", -1)

    assert original == [{"user": "alice", "value": 1}]


def test_duplicate_entries_collapse_to_one() -> None:
    votes = [{"user": "alice", "value": 1}, {"user": "bob", "value": 1}, {"user": "alice", "value": 1}]

    votes = cast_vote(votes, "alice", -1)

    assert [v["user"] for v in votes].count("alice") == 1
    assert vote_of(votes, "alice") == -1


@pytest.mark.parametrize("value", [0, 2, -2, True, 1.0, "up", None])
def test_invalid_vote_values_are_rejected(value) -> None:
    with pytest.raises(ValidationError):
        cast_vote([], "alice", value)


def test_string_vote_values_are_accepted() -> None:
    assert cast_vote([], "alice", "-1") == [{"user": "alice", "value": -1}]


def test_reports_are_never_deduplicated() -> None:
    reports = add_report([], "alice", "spam")
    reports = add_report(reports, "alice", "spam")
    reports = add_report(reports, "bob", None)

    assert len(reports) == 3
    assert reports[2] == {"user": "bob", "reason": ""}
