import uuid
from typing import Any, Dict, List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlmodel import Session

from hostel_tracker.db.db import get_session
from hostel_tracker.models.lost_found import LostFoundItem
from hostel_tracker.models.user import User
from hostel_tracker.services import lost_found as lost_found_engine
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import get_current_actor
from hostel_tracker.utils.form_validator import validate_create_item_form
from hostel_tracker.utils.s3_service import LOST_FOUND_FOLDER, upload_files


router = APIRouter()

MAX_IMAGES = 3


class ClaimDecisionRequest(BaseModel):
    status: Literal["approved", "rejected"]


def _contact(user: Optional[User]) -> Optional[dict]:
    if not user:
        return None
    return {
        "public_id": user.public_id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
    }


def serialize_item(item: LostFoundItem) -> dict:
    data = item.model_dump(exclude={"reporter_id"})

    data["reporter"] = _contact(item.reporter)
    data["claim_requests"] = [
        {
            "id": str(claim.id),
            "claimed_by": _contact(claim.claimant),
            "request_date": claim.request_date,
            "status": claim.status,
            "decided_at": claim.decided_at,
        }
        for claim in item.claim_requests
    ]

    return data


@router.post("", status_code=201)
async def report_item(
    item_name: str = Form(...),
    description: str = Form(...),
    location: str = Form(...),
    status: str = Form(...),
    contact_info: Optional[str] = Form(None),
    images: List[UploadFile] = File(default=[]),
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    data = validate_create_item_form(item_name, description, location, status, contact_info)

    image_urls = await upload_files(images, LOST_FOUND_FOLDER, MAX_IMAGES)

    item = lost_found_engine.report_item(session, actor, data, image_urls)

    return {
        "message": "Item reported successfully",
        "item": serialize_item(item),
    }


@router.get("")
def list_items(
    status: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    items = lost_found_engine.list_items(session, actor, status=status, search=search)

    return {
        "count": len(items),
        "items": [serialize_item(item) for item in items],
    }


@router.get("/{item_id}")
def get_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_item(lost_found_engine.get_item(session, actor, item_id))


@router.post("/{item_id}/claim")
def claim_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    item = lost_found_engine.claim_item(session, actor, item_id)

    return {
        "message": "Claim request submitted successfully",
        "item": serialize_item(item),
    }


@router.patch("/{item_id}/claim/{claim_id}")
def decide_claim(
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    payload: ClaimDecisionRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    item = lost_found_engine.decide_claim(session, actor, item_id, claim_id, payload.status)

    return {
        "message": f"Claim {payload.status} successfully",
        "item": serialize_item(item),
    }


@router.patch("/{item_id}")
def update_item(
    item_id: uuid.UUID,
    updates: Dict[str, Any],
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    item = lost_found_engine.update_item(session, actor, item_id, updates)

    return {
        "message": "Item updated successfully",
        "item": serialize_item(item),
    }


@router.delete("/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    lost_found_engine.delete_item(session, actor, item_id)
    return {"message": "Item deleted successfully"}
