"""Authorization policy for catalog actions.

`decide` is a pure function: given an action, the caller's identity
claim (or `None` for anonymous callers) and the target entity, it
returns `Allow` or `Deny(reason)`. Rules are checked in order and the
first match wins:

1. creating a course requires the PROFESSOR role;
2. changing or deleting a course, or adding/removing one of its
   resources, requires being the course owner;
3. adding a comment requires only a signed-in caller;
4. deleting a comment requires being its author;
5. reads are always allowed, anonymous callers included.

`authorize` is the raising variant used by services: a `Deny` becomes
`Forbidden` with a static message chosen by reason.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from . import models
from .errors import Forbidden, Unauthorized

logger = logging.getLogger("course_library.policy")


class Action(str, Enum):
    READ = "read"
    CREATE_COURSE = "create_course"
    UPDATE_COURSE = "update_course"
    DELETE_COURSE = "delete_course"
    ADD_RESOURCE = "add_resource"
    DELETE_RESOURCE = "delete_resource"
    ADD_COMMENT = "add_comment"
    DELETE_COMMENT = "delete_comment"


OWNER_ACTIONS = frozenset({
    Action.UPDATE_COURSE,
    Action.DELETE_COURSE,
    Action.ADD_RESOURCE,
    Action.DELETE_RESOURCE,
})

NOT_AUTHENTICATED = "not authenticated"
NOT_A_PROFESSOR = "not a professor"
NOT_THE_OWNER = "not the owner"
NOT_THE_AUTHOR = "not the author"

DENY_MESSAGES = {
    NOT_A_PROFESSOR: "Only professors can create courses",
    NOT_THE_OWNER: "You do not have access to this course",
    NOT_THE_AUTHOR: "You do not have access to this comment",
}


@dataclass(frozen=True)
class IdentityClaim:
    """Decoded identity carried by a valid session token."""
    id: int
    email: str
    name: str
    role: models.Role


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str
    allowed = False


Decision = Union[Allow, Deny]


def decide(action: Action, claim: Optional[IdentityClaim], target=None) -> Decision:
    """Return the decision for `claim` performing `action` on `target`.

    For owner-gated actions `target` is the course (for resource
    actions: the resource's parent course). For `DELETE_COMMENT` it is
    the comment. Other actions ignore `target`.
    """
    if action is Action.READ:
        return Allow()
    if claim is None:
        return Deny(NOT_AUTHENTICATED)
    if action is Action.CREATE_COURSE:
        return Allow() if claim.role == models.Role.PROFESSOR else Deny(NOT_A_PROFESSOR)
    if action in OWNER_ACTIONS:
        if target is None or target.owner_id != claim.id:
            return Deny(NOT_THE_OWNER)
        return Allow()
    if action is Action.ADD_COMMENT:
        return Allow()
    if action is Action.DELETE_COMMENT:
        if target is None or target.author_id != claim.id:
            return Deny(NOT_THE_AUTHOR)
        return Allow()
    raise ValueError(f"unknown action: {action!r}")


def authorize(action: Action, claim: Optional[IdentityClaim], target=None) -> None:
    """Raise `Forbidden` (`Unauthorized` for anonymous callers) unless allowed."""
    decision = decide(action, claim, target)
    if isinstance(decision, Deny):
        logger.warning(
            "authorization denied action=%s user_id=%s target_id=%s reason=%s",
            action.value,
            claim.id if claim else None,
            getattr(target, "id", None),
            decision.reason,
        )
        if decision.reason == NOT_AUTHENTICATED:
            raise Unauthorized()
        raise Forbidden(DENY_MESSAGES[decision.reason])
