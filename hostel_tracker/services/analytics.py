"""Read-only rollups over the issue table for the management dashboard."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, func, select

from hostel_tracker.models.issue import (
    RESOLVED_STATUSES,
    Issue,
    IssueComment,
    IssueStatusHistory,
    IssueUpvote,
)
from hostel_tracker.services import policy
from hostel_tracker.services.policy import Actor, enforce


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _date_filters(start_date: Optional[datetime], end_date: Optional[datetime]) -> list:
    filters = []
    if start_date:
        filters.append(Issue.created_at >= start_date)
    if end_date:
        filters.append(Issue.created_at <= end_date)
    return filters


def _group_counts(session: Session, columns: list, filters: list) -> list:
    return session.exec(
        select(*columns, func.count(Issue.id))
        .where(*filters)
        .group_by(*columns)
    ).all()


def _resolution_stats(session: Session, filters: list) -> Dict[str, Any]:
    """
    Average time from creation to the first resolved/closed history entry.

    Issues whose status says resolved but whose history has no such entry are
    left out entirely rather than counted as zero.
    """
    first_resolved_at = func.min(IssueStatusHistory.timestamp)

    rows = session.exec(
        select(Issue.created_at, first_resolved_at)
        .join(IssueStatusHistory, IssueStatusHistory.issue_id == Issue.id)
        .where(*filters)
        .where(Issue.status.in_(RESOLVED_STATUSES))
        .where(IssueStatusHistory.status.in_(RESOLVED_STATUSES))
        .group_by(Issue.id, Issue.created_at)
    ).all()

    total_seconds = 0.0
    for created_at, resolved_at in rows:
        total_seconds += (_as_utc(resolved_at) - _as_utc(created_at)).total_seconds()

    resolved_count = len(rows)
    avg_hours = total_seconds / resolved_count / 3600 if resolved_count else 0

    return {
        "avg_resolution_time_hours": round(avg_hours, 1),
        "resolved_count": resolved_count,
    }


def overview(
    session: Session,
    actor: Actor,
    hostel: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    enforce(policy.can_view_analytics(actor), "Management access required")

    date_filters = _date_filters(start_date, end_date)
    filters = list(date_filters)
    if hostel:
        filters.append(Issue.hostel == hostel)

    total_issues = session.exec(select(func.count(Issue.id)).where(*filters)).one()

    by_status = _group_counts(session, [Issue.status], filters)
    by_category = _group_counts(session, [Issue.category], filters)
    by_priority = _group_counts(session, [Issue.priority], filters)
    # hostel breakdown is always across all hostels, so only the date range applies
    by_hostel = _group_counts(session, [Issue.hostel], date_filters)
    by_block = _group_counts(session, [Issue.hostel, Issue.block], filters)

    return {
        "total_issues": total_issues,
        "issues_by_status": {status: count for status, count in by_status},
        "issues_by_category": [
            {"category": category, "count": count} for category, count in by_category
        ],
        "issues_by_priority": [
            {"priority": priority, "count": count} for priority, count in by_priority
        ],
        "issues_by_hostel": [
            {"hostel": name, "count": count} for name, count in by_hostel
        ],
        "issues_by_block": [
            {"hostel": name, "block": block, "count": count} for name, block, count in by_block
        ],
        **_resolution_stats(session, filters),
    }


def trends(session: Session, actor: Actor, days: int = 30, hostel: Optional[str] = None) -> Dict[str, Any]:
    enforce(policy.can_view_analytics(actor), "Management access required")

    start_date = datetime.now(timezone.utc) - timedelta(days=days)

    day = func.date(Issue.created_at)
    query = (
        select(day, func.count(Issue.id))
        .where(Issue.created_at >= start_date)
        .group_by(day)
        .order_by(day)
    )
    if hostel:
        query = query.where(Issue.hostel == hostel)

    return {
        "period": f"{days} days",
        "trends": [{"date": str(date), "count": count} for date, count in session.exec(query).all()],
    }


def _top_by(session: Session, child, limit: int) -> List[tuple]:
    child_count = func.count(child.id)
    return session.exec(
        select(Issue, child_count)
        .outerjoin(child, child.issue_id == Issue.id)
        .where(Issue.is_public == True)  # noqa: E712
        .group_by(Issue.id)
        .order_by(child_count.desc(), Issue.created_at.desc())
        .limit(limit)
    ).all()


def _summary(issue: Issue) -> Dict[str, Any]:
    return {
        "id": str(issue.id),
        "title": issue.title,
        "category": issue.category,
        "priority": issue.priority,
        "hostel": issue.hostel,
        "reporter": issue.reporter.name if issue.reporter else None,
        "created_at": issue.created_at,
    }


def top_issues(session: Session, actor: Actor, limit: int = 10) -> Dict[str, Any]:
    enforce(policy.can_view_analytics(actor), "Management access required")

    # the two rankings are independent; an issue can appear in both
    most_upvoted = _top_by(session, IssueUpvote, limit)
    most_commented = _top_by(session, IssueComment, limit)

    return {
        "most_upvoted": [{**_summary(issue), "upvotes": count} for issue, count in most_upvoted],
        "most_commented": [{**_summary(issue), "comments": count} for issue, count in most_commented],
    }
