"""
Vote and report aggregation.

Votes and reports are stored as JSON lists on the target record:
``[{"user": "<uuid>", "value": 1}]`` and ``[{"user": "<uuid>", "reason": "..."}]``.
These helpers never mutate their input; callers assign the returned
list back so the ORM sees a changed value.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from app.core.exceptions import ValidationError

UPVOTE = 1
DOWNVOTE = -1
VOTE_VALUES = (UPVOTE, DOWNVOTE)


@dataclass(frozen=True)
class VoteTally:
    upvotes: int
    downvotes: int


def normalize_vote_value(value: Any) -> int:
    """Accept 1/-1 (also as strings); anything else is a validation error."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError("Vote value must be 1 or -1")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Vote value must be 1 or -1")
    if number not in VOTE_VALUES:
        raise ValidationError("Vote value must be 1 or -1")
    return number


def cast_vote(votes: Optional[Sequence[Dict[str, Any]]], user_id: Any, value: Any) -> List[Dict[str, Any]]:
    """
    Record ``user_id``'s vote. An existing entry for the user is
    overwritten in place; otherwise a new entry is appended.
    """
    value = normalize_vote_value(value)
    user_key = str(user_id)
    updated = []
    replaced = False
    for entry in votes or []:
        if entry.get("user") == user_key:
            if not replaced:
                updated.append({"user": user_key, "value": value})
                replaced = True
            # Drop duplicates left by earlier writers
            continue
        updated.append(dict(entry))
    if not replaced:
        updated.append({"user": user_key, "value": value})
    return updated


def add_report(reports: Optional[Sequence[Dict[str, Any]]], user_id: Any, reason: Optional[str]) -> List[Dict[str, Any]]:
    """Append a report. Repeated reports by the same user are kept."""
    updated = [dict(entry) for entry in reports or []]
    updated.append({"user": str(user_id), "reason": reason or ""})
    return updated


def tally(votes: Optional[Sequence[Dict[str, Any]]]) -> VoteTally:
    up = down = 0
    for entry in votes or []:
        if entry.get("value") == UPVOTE:
            up += 1
        elif entry.get("value") == DOWNVOTE:
            down += 1
    return VoteTally(upvotes=up, downvotes=down)


def vote_of(votes: Optional[Sequence[Dict[str, Any]]], user_id: Any) -> Optional[int]:
    user_key = str(user_id)
    for entry in votes or []:
        if entry.get("user") == user_key:
            return entry.get("value")
    return None
