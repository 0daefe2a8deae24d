"""
Authorization policy.

Every rule is a pure function of an ``Actor`` and the resource it targets and
returns a ``Decision``. Engines call ``enforce`` on the result; nothing here
touches the database except ``issue_list_filter``, which only builds a
WHERE clause.
"""

from dataclasses import dataclass
from typing import Optional

from sqlmodel import and_, or_

from hostel_tracker.core.exceptions import AuthorizationError
from hostel_tracker.models.issue import Issue
from hostel_tracker.models.user import User


STUDENT = "student"
STAFF = "staff"
MANAGEMENT = "management"

# Stable deny reason codes
ISSUE_NOT_VISIBLE = "issue_not_visible"
NOT_ASSIGNEE = "not_assignee"
ROLE_NOT_PERMITTED = "role_not_permitted"
PRIVATE_ISSUE = "private_issue"
NOT_OWNER = "not_owner"
OWN_ITEM = "own_item"
DUPLICATE_CLAIM = "duplicate_claim"
ITEM_ALREADY_CLAIMED = "item_already_claimed"
NOT_TARGETED = "not_targeted"


@dataclass(frozen=True)
class Actor:
    """The authenticated identity performing a request."""

    id: int
    public_id: str
    role: str
    hostel: str
    block: str
    room_number: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(
            id=user.id,
            public_id=user.public_id,
            role=user.role,
            hostel=user.hostel,
            block=user.block,
            room_number=user.room_number,
            phone=user.phone,
        )

    @property
    def is_management(self) -> bool:
        return self.role == MANAGEMENT


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def enforce(decision: Decision, message: str = "Not authorized") -> None:
    if not decision.allowed:
        raise AuthorizationError(message, reason=decision.reason)


# Issues

def can_view_issue(actor: Actor, issue) -> Decision:
    if issue.reporter_id == actor.id:
        return ALLOW
    if issue.assignee_id is not None and issue.assignee_id == actor.id:
        return ALLOW
    if actor.is_management:
        return ALLOW
    if issue.is_public and issue.hostel == actor.hostel:
        return ALLOW
    return deny(ISSUE_NOT_VISIBLE)


def issue_list_filter(actor: Actor):
    """WHERE clause scoping the issue list to what the actor may see, or None for everything."""
    if actor.role == STUDENT:
        return or_(
            Issue.reporter_id == actor.id,
            and_(Issue.is_public == True, Issue.hostel == actor.hostel),  # noqa: E712
        )
    if actor.role == STAFF:
        return Issue.assignee_id == actor.id
    if actor.is_management:
        return None
    # unknown roles see nothing
    return Issue.id.is_(None)


def can_update_status(actor: Actor, issue) -> Decision:
    if actor.is_management:
        return ALLOW
    if actor.role == STAFF:
        if issue.assignee_id is not None and issue.assignee_id == actor.id:
            return ALLOW
        return deny(NOT_ASSIGNEE)
    return deny(ROLE_NOT_PERMITTED)


def can_assign(actor: Actor) -> Decision:
    return ALLOW if actor.is_management else deny(ROLE_NOT_PERMITTED)


def can_comment(actor: Actor, issue) -> Decision:
    if not issue.is_public and actor.role == STUDENT and issue.reporter_id != actor.id:
        return deny(PRIVATE_ISSUE)
    return ALLOW


def can_upvote(actor: Actor, issue) -> Decision:
    return ALLOW if issue.is_public else deny(PRIVATE_ISSUE)


def can_delete_issue(actor: Actor, issue) -> Decision:
    if issue.reporter_id == actor.id or actor.is_management:
        return ALLOW
    return deny(NOT_OWNER)


# Lost & found

def can_claim(actor: Actor, item, existing_claimant_ids) -> Decision:
    if item.reporter_id == actor.id:
        return deny(OWN_ITEM)
    if item.status == "claimed":
        return deny(ITEM_ALREADY_CLAIMED)
    if actor.id in existing_claimant_ids:
        return deny(DUPLICATE_CLAIM)
    return ALLOW


def can_modify_item(actor: Actor, item) -> Decision:
    """Covers claim decisions, edits and deletion."""
    if item.reporter_id == actor.id or actor.is_management:
        return ALLOW
    return deny(NOT_OWNER)


# Announcements

def can_view_announcement(actor: Actor, announcement) -> Decision:
    # target_blocks is recorded on the announcement but not enforced here
    hostels = announcement.target_hostels or []
    roles = announcement.target_roles or []

    if hostels and actor.hostel not in hostels:
        return deny(NOT_TARGETED)
    if roles and actor.role not in roles:
        return deny(NOT_TARGETED)
    return ALLOW


def can_manage_announcements(actor: Actor) -> Decision:
    return ALLOW if actor.is_management else deny(ROLE_NOT_PERMITTED)


# Analytics

def can_view_analytics(actor: Actor) -> Decision:
    return ALLOW if actor.is_management else deny(ROLE_NOT_PERMITTED)
