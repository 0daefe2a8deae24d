"""
Issue lifecycle engine.

Each public function takes the database session and the acting user
explicitly, checks the policy, and commits its changes as one unit: the
status field and its history entry are never written separately.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlmodel import Session, func, or_, select

from hostel_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from hostel_tracker.db.db import commit
from hostel_tracker.models.issue import (
    Issue,
    IssueComment,
    IssueStatus,
    IssueStatusHistory,
    IssueUpvote,
)
from hostel_tracker.models.user import User
from hostel_tracker.services import policy
from hostel_tracker.services.notifications import notify
from hostel_tracker.services.policy import Actor, enforce
from hostel_tracker.utils.form_validator import ValidatedCreateIssue

logger = logging.getLogger(__name__)

UPVOTE_ATTEMPTS = 2


@dataclass
class IssueFilters:
    status: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    hostel: Optional[str] = None
    block: Optional[str] = None
    search: Optional[str] = None


def validate_transition(current: str, new: IssueStatus) -> None:
    """
    Hook for restricting status transitions.

    Every transition is currently permitted; the remarks on the history entry
    carry the reason for a jump. Raise ValidationError here to forbid one.
    """
    return None


def parse_status(value) -> IssueStatus:
    try:
        return IssueStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status '{value}'",
            details={"allowed": [s.value for s in IssueStatus]},
        )


def _load_issue(session: Session, issue_id: uuid.UUID, for_update: bool = False) -> Issue:
    query = select(Issue).where(Issue.id == issue_id)
    if for_update:
        query = query.with_for_update()

    issue = session.exec(query).first()
    if not issue:
        raise NotFoundError("Issue")
    return issue


def create_issue(
    session: Session,
    actor: Actor,
    data: ValidatedCreateIssue,
    media: Optional[List[str]] = None,
) -> Issue:
    # location always comes from the reporter's own profile
    issue = Issue(
        title=data.title,
        description=data.description,
        category=data.category,
        priority=data.priority,
        is_public=data.is_public,
        status=IssueStatus.REPORTED.value,
        reporter_id=actor.id,
        hostel=actor.hostel,
        block=actor.block,
        room=actor.room_number,
        media=list(media or []),
    )
    issue.status_history.append(
        IssueStatusHistory(
            status=IssueStatus.REPORTED.value,
            changed_by=actor.id,
            remarks="Issue created",
        )
    )

    session.add(issue)
    commit(session)
    session.refresh(issue)

    logger.info("Issue %s reported by user %s in %s/%s", issue.id, actor.id, issue.hostel, issue.block)
    return issue


def list_issues(session: Session, actor: Actor, filters: Optional[IssueFilters] = None) -> List[Issue]:
    filters = filters or IssueFilters()

    query = select(Issue).order_by(Issue.created_at.desc())

    scope = policy.issue_list_filter(actor)
    if scope is not None:
        query = query.where(scope)

    if filters.status:
        query = query.where(Issue.status == filters.status)
    if filters.category:
        query = query.where(Issue.category == filters.category)
    if filters.priority:
        query = query.where(Issue.priority == filters.priority)

    # location filters are a management tool; other roles are already scoped
    if actor.is_management:
        if filters.hostel:
            query = query.where(Issue.hostel == filters.hostel)
        if filters.block:
            query = query.where(Issue.block == filters.block)

    if filters.search:
        term = filters.search.strip().lower()
        query = query.where(
            or_(
                func.lower(Issue.title).contains(term, autoescape=True),
                func.lower(Issue.description).contains(term, autoescape=True),
            )
        )

    return list(session.exec(query).all())


def get_issue(session: Session, actor: Actor, issue_id: uuid.UUID) -> Issue:
    issue = _load_issue(session, issue_id)
    enforce(policy.can_view_issue(actor, issue), "Access denied to this issue")
    return issue


def update_status(
    session: Session,
    actor: Actor,
    issue_id: uuid.UUID,
    status,
    remarks: Optional[str] = None,
) -> Issue:
    new_status = parse_status(status)

    issue = _load_issue(session, issue_id, for_update=True)

    decision = policy.can_update_status(actor, issue)
    if decision.reason == policy.NOT_ASSIGNEE:
        enforce(decision, "You can only update issues assigned to you")
    enforce(decision, "Only staff or management can update issue status")

    validate_transition(issue.status, new_status)

    issue.status = new_status.value
    issue.status_history.append(
        IssueStatusHistory(
            status=new_status.value,
            changed_by=actor.id,
            remarks=(remarks or "").strip() or f"Status changed to {new_status.value}",
        )
    )

    if issue.reporter_id != actor.id:
        notify(
            session,
            user_id=issue.reporter_id,
            type="issue_status_changed",
            title="Issue status updated",
            message=f"Your issue '{issue.title}' is now {new_status.value}.",
            issue_id=issue.id,
        )

    session.add(issue)
    commit(session)
    session.refresh(issue)

    logger.info("Issue %s moved to %s by user %s", issue.id, issue.status, actor.id)
    return issue


def assign_issue(session: Session, actor: Actor, issue_id: uuid.UUID, assignee_public_id: str) -> Issue:
    enforce(policy.can_assign(actor), "Only management can assign issues")

    issue = _load_issue(session, issue_id, for_update=True)

    assignee = session.exec(
        select(User).where(User.public_id == assignee_public_id)
    ).first()

    if not assignee:
        raise NotFoundError("Assignee")

    if assignee.role != policy.STAFF:
        raise ValidationError("Issues can only be assigned to staff members")

    validate_transition(issue.status, IssueStatus.ASSIGNED)

    issue.assignee_id = assignee.id
    issue.status = IssueStatus.ASSIGNED.value
    issue.status_history.append(
        IssueStatusHistory(
            status=IssueStatus.ASSIGNED.value,
            changed_by=actor.id,
            remarks="Issue assigned to staff member",
        )
    )

    notify(
        session,
        user_id=assignee.id,
        type="issue_assigned",
        title="New issue assigned",
        message=f"You have been assigned '{issue.title}' in {issue.hostel}, block {issue.block}.",
        issue_id=issue.id,
    )

    session.add(issue)
    commit(session)
    session.refresh(issue)

    logger.info("Issue %s assigned to user %s by user %s", issue.id, assignee.id, actor.id)
    return issue


def add_comment(session: Session, actor: Actor, issue_id: uuid.UUID, text: Optional[str]) -> List[IssueComment]:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment text is required")

    issue = _load_issue(session, issue_id, for_update=True)
    enforce(policy.can_comment(actor, issue), "Cannot comment on private issues")

    issue.comments.append(IssueComment(user_id=actor.id, text=text))

    session.add(issue)
    commit(session)
    session.refresh(issue)

    return list(issue.comments)


def _apply_upvote_toggle(session: Session, actor: Actor, issue_id: uuid.UUID) -> bool:
    issue = _load_issue(session, issue_id, for_update=True)
    enforce(policy.can_upvote(actor, issue), "Cannot upvote private issues")

    existing = session.exec(
        select(IssueUpvote)
        .where(IssueUpvote.issue_id == issue.id)
        .where(IssueUpvote.user_id == actor.id)
    ).first()

    if existing:
        session.delete(existing)
        has_upvoted = False
    else:
        session.add(IssueUpvote(issue_id=issue.id, user_id=actor.id))
        has_upvoted = True

    commit(session, conflict_message="Upvote already recorded")
    return has_upvoted


def toggle_upvote(session: Session, actor: Actor, issue_id: uuid.UUID) -> Tuple[int, bool]:
    """
    Add the actor's upvote, or remove it if present. Returns (count, has_upvoted).

    A concurrent identical toggle can win the insert; the toggle is then
    re-read and applied once more against the committed state.
    """
    for attempt in range(UPVOTE_ATTEMPTS):
        try:
            has_upvoted = _apply_upvote_toggle(session, actor, issue_id)
            break
        except ConflictError:
            if attempt == UPVOTE_ATTEMPTS - 1:
                raise
            logger.info("Upvote race on issue %s for user %s, retrying", issue_id, actor.id)

    count = session.exec(
        select(func.count(IssueUpvote.id)).where(IssueUpvote.issue_id == issue_id)
    ).one()

    return count, has_upvoted


def delete_issue(session: Session, actor: Actor, issue_id: uuid.UUID) -> None:
    issue = _load_issue(session, issue_id, for_update=True)
    enforce(policy.can_delete_issue(actor, issue), "Not authorized to delete this issue")

    session.delete(issue)
    commit(session)

    logger.info("Issue %s deleted by user %s", issue_id, actor.id)
