from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from hostel_tracker.db.db import get_session
from hostel_tracker.services import analytics
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import get_current_actor

router = APIRouter()


@router.get("/overview")
def get_overview(
    hostel: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """Issue counts, breakdowns and average resolution time"""
    return analytics.overview(session, actor, hostel=hostel, start_date=start_date, end_date=end_date)


@router.get("/trends")
def get_trends(
    days: int = Query(30, ge=1, le=365),
    hostel: Optional[str] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """Daily issue counts over the trailing window"""
    return analytics.trends(session, actor, days=days, hostel=hostel)


@router.get("/top-issues")
def get_top_issues(
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    """Most upvoted and most commented public issues"""
    return analytics.top_issues(session, actor, limit=limit)
