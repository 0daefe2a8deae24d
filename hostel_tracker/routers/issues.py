import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field
from sqlmodel import Session

from hostel_tracker.db.db import get_session
from hostel_tracker.models.issue import Issue, IssueComment, IssueStatus
from hostel_tracker.models.user import User
from hostel_tracker.services import issues as issue_engine
from hostel_tracker.services.issues import IssueFilters
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import get_current_actor
from hostel_tracker.utils.form_validator import validate_create_issue_form
from hostel_tracker.utils.s3_service import ISSUE_MEDIA_FOLDER, upload_files


router = APIRouter()

MAX_MEDIA_FILES = 5


class StatusUpdateRequest(BaseModel):
    status: IssueStatus
    remarks: Optional[str] = Field(default=None, max_length=500)


class AssignRequest(BaseModel):
    assigned_to: str  # staff member's public id


class CommentRequest(BaseModel):
    text: Optional[str] = None


def _user_brief(user: Optional[User]) -> Optional[dict]:
    if not user:
        return None
    return {
        "public_id": user.public_id,
        "name": user.name,
        "role": user.role,
    }


def serialize_comment(comment: IssueComment) -> dict:
    return {
        "id": comment.id,
        "user": _user_brief(comment.user),
        "text": comment.text,
        "timestamp": comment.timestamp,
    }


def serialize_issue(issue: Issue, actor: Actor) -> dict:
    data = issue.model_dump(exclude={"reporter_id", "assignee_id"})

    data["reporter"] = _user_brief(issue.reporter)
    data["assignee"] = _user_brief(issue.assignee)
    data["status_history"] = [
        {
            "status": entry.status,
            "changed_by": _user_brief(entry.changed_by_user),
            "timestamp": entry.timestamp,
            "remarks": entry.remarks,
        }
        for entry in issue.status_history
    ]
    data["comments"] = [serialize_comment(c) for c in issue.comments]
    data["upvotes"] = len(issue.upvotes)
    data["has_upvoted"] = any(u.user_id == actor.id for u in issue.upvotes)

    return data


@router.post("", status_code=201)
async def create_issue(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    priority: str = Form(...),
    is_public: str = Form("true"),
    media: List[UploadFile] = File(default=[]),
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    # validate before touching storage
    data = validate_create_issue_form(title, description, category, priority, is_public)

    media_urls = await upload_files(media, ISSUE_MEDIA_FOLDER, MAX_MEDIA_FILES)

    issue = issue_engine.create_issue(session, actor, data, media_urls)

    return {
        "message": "Issue created successfully",
        "issue": serialize_issue(issue, actor),
    }


@router.get("")
def list_issues(
    status: Optional[str] = None,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    hostel: Optional[str] = None,
    block: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    filters = IssueFilters(
        status=status,
        category=category,
        priority=priority,
        hostel=hostel,
        block=block,
        search=search,
    )

    issues = issue_engine.list_issues(session, actor, filters)

    return {
        "count": len(issues),
        "issues": [serialize_issue(issue, actor) for issue in issues],
    }


@router.get("/{issue_id}")
def get_issue(
    issue_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    issue = issue_engine.get_issue(session, actor, issue_id)
    return serialize_issue(issue, actor)


@router.patch("/{issue_id}/status")
def update_status(
    issue_id: uuid.UUID,
    payload: StatusUpdateRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    issue = issue_engine.update_status(session, actor, issue_id, payload.status, payload.remarks)

    return {
        "message": "Status updated successfully",
        "issue": serialize_issue(issue, actor),
    }


@router.patch("/{issue_id}/assign")
def assign_issue(
    issue_id: uuid.UUID,
    payload: AssignRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    issue = issue_engine.assign_issue(session, actor, issue_id, payload.assigned_to)

    return {
        "message": "Issue assigned successfully",
        "issue": serialize_issue(issue, actor),
    }


@router.post("/{issue_id}/comment")
def add_comment(
    issue_id: uuid.UUID,
    payload: CommentRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    comments = issue_engine.add_comment(session, actor, issue_id, payload.text)

    return {
        "message": "Comment added successfully",
        "comments": [serialize_comment(c) for c in comments],
    }


@router.post("/{issue_id}/upvote")
def toggle_upvote(
    issue_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    count, has_upvoted = issue_engine.toggle_upvote(session, actor, issue_id)

    return {
        "message": "Upvoted successfully" if has_upvoted else "Upvote removed",
        "upvotes": count,
        "has_upvoted": has_upvoted,
    }


@router.delete("/{issue_id}")
def delete_issue(
    issue_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    issue_engine.delete_issue(session, actor, issue_id)
    return {"message": "Issue deleted successfully"}
