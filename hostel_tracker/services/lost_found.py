"""
Lost & found items and their claim-request ledger.

A claim moves once, from pending to approved or rejected. Approving a claim
marks the item claimed; other pending claims on the item are left as they are.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, func, or_, select

from hostel_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from hostel_tracker.db.db import commit
from hostel_tracker.models.lost_found import ITEM_STATUSES, ClaimRequest, LostFoundItem
from hostel_tracker.services import policy
from hostel_tracker.services.notifications import notify
from hostel_tracker.services.policy import Actor, enforce
from hostel_tracker.utils.form_validator import ValidatedCreateItem

logger = logging.getLogger(__name__)

ALLOWED_UPDATE_FIELDS = {
    "item_name",
    "description",
    "location",
    "status",
    "contact_info",
}

CONFLICT_MESSAGES = {
    policy.DUPLICATE_CLAIM: "You have already submitted a claim request",
    policy.ITEM_ALREADY_CLAIMED: "Item already claimed",
}


def _load_item(session: Session, item_id: uuid.UUID, for_update: bool = False) -> LostFoundItem:
    query = select(LostFoundItem).where(LostFoundItem.id == item_id)
    if for_update:
        query = query.with_for_update()

    item = session.exec(query).first()
    if not item:
        raise NotFoundError("Item")
    return item


def report_item(
    session: Session,
    actor: Actor,
    data: ValidatedCreateItem,
    images: Optional[List[str]] = None,
) -> LostFoundItem:
    item = LostFoundItem(
        item_name=data.item_name,
        description=data.description,
        location=data.location,
        status=data.status,
        reporter_id=actor.id,
        images=list(images or []),
        hostel=actor.hostel,
        contact_info=data.contact_info or actor.phone,
    )

    session.add(item)
    commit(session)
    session.refresh(item)

    logger.info("Item %s reported %s by user %s", item.id, item.status, actor.id)
    return item


def list_items(
    session: Session,
    actor: Actor,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[LostFoundItem]:
    query = select(LostFoundItem).order_by(LostFoundItem.created_at.desc())

    if status:
        query = query.where(LostFoundItem.status == status)

    # students only see their own hostel's board
    if actor.role == policy.STUDENT:
        query = query.where(LostFoundItem.hostel == actor.hostel)

    if search:
        term = search.strip().lower()
        query = query.where(
            or_(
                func.lower(LostFoundItem.item_name).contains(term, autoescape=True),
                func.lower(LostFoundItem.description).contains(term, autoescape=True),
                func.lower(LostFoundItem.location).contains(term, autoescape=True),
            )
        )

    return list(session.exec(query).all())


def get_item(session: Session, actor: Actor, item_id: uuid.UUID) -> LostFoundItem:
    return _load_item(session, item_id)


def claim_item(session: Session, actor: Actor, item_id: uuid.UUID) -> LostFoundItem:
    item = _load_item(session, item_id, for_update=True)

    claimant_ids = {claim.claimant_id for claim in item.claim_requests}
    decision = policy.can_claim(actor, item, claimant_ids)

    if decision.reason in CONFLICT_MESSAGES:
        raise ConflictError(CONFLICT_MESSAGES[decision.reason], reason=decision.reason)
    enforce(decision, "You cannot claim your own item")

    claim = ClaimRequest(item_id=item.id, claimant_id=actor.id, status="pending")
    item.claim_requests.append(claim)

    notify(
        session,
        user_id=item.reporter_id,
        type="claim_created",
        title="New claim received",
        message=f"A user has submitted a claim for '{item.item_name}'.",
        item_id=item.id,
    )

    session.add(item)
    commit(session, conflict_message=CONFLICT_MESSAGES[policy.DUPLICATE_CLAIM])
    session.refresh(item)

    logger.info("User %s claimed item %s", actor.id, item.id)
    return item


def decide_claim(
    session: Session,
    actor: Actor,
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    status: str,
) -> LostFoundItem:
    if status not in ("approved", "rejected"):
        raise ValidationError("Claim status must be 'approved' or 'rejected'")

    item = _load_item(session, item_id, for_update=True)
    enforce(policy.can_modify_item(actor, item), "Not authorized")

    claim = next((c for c in item.claim_requests if c.id == claim_id), None)
    if not claim:
        raise NotFoundError("Claim request")

    if claim.status != "pending":
        raise ConflictError(f"Claim has already been {claim.status}", reason="claim_decided")

    if status == "approved" and item.status == "claimed":
        raise ConflictError("Item already claimed", reason=policy.ITEM_ALREADY_CLAIMED)

    claim.status = status
    claim.decided_at = datetime.now(timezone.utc)
    claim.decided_by = actor.id

    if status == "approved":
        item.status = "claimed"

    notify(
        session,
        user_id=claim.claimant_id,
        type=f"claim_{status}",
        title=f"Your claim has been {status}",
        message=f"Your claim for '{item.item_name}' has been {status}.",
        item_id=item.id,
    )

    session.add(item)
    commit(session)
    session.refresh(item)

    logger.info("Claim %s on item %s %s by user %s", claim_id, item.id, status, actor.id)
    return item


def update_item(session: Session, actor: Actor, item_id: uuid.UUID, updates: Dict[str, Any]) -> LostFoundItem:
    for field, value in updates.items():
        if field not in ALLOWED_UPDATE_FIELDS:
            raise ValidationError(f"Field '{field}' cannot be updated")
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Field '{field}' must be a non-empty string")

    if "status" in updates and updates["status"] not in ITEM_STATUSES:
        raise ValidationError("Invalid item status", details={"allowed": list(ITEM_STATUSES)})

    item = _load_item(session, item_id, for_update=True)
    enforce(policy.can_modify_item(actor, item), "Not authorized")

    for field, value in updates.items():
        setattr(item, field, value.strip())

    session.add(item)
    commit(session)
    session.refresh(item)

    return item


def delete_item(session: Session, actor: Actor, item_id: uuid.UUID) -> None:
    item = _load_item(session, item_id, for_update=True)
    enforce(policy.can_modify_item(actor, item), "Not authorized")

    session.delete(item)
    commit(session)

    logger.info("Item %s deleted by user %s", item_id, actor.id)
