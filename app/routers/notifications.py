import uuid
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import update
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.models.lost_disc import LostDisc
from app.models.notification import Notification
from app.models.profile import Profile
from app.services.notifier import mark_claim_notifications_read
from app.utils.auth_helper import get_current_profile


router = APIRouter()

ClaimEventType = Literal["claim_created", "claim_approved", "claim_rejected", "claim_completed"]


def serialize_notification(notification: Notification, lost_disc: Optional[LostDisc]) -> dict:
    data = notification.model_dump()

    # the report may have been deleted since, the link then goes nowhere
    data["disc_name"] = f"{lost_disc.brand} {lost_disc.name}" if lost_disc else None
    data["links"] = {
        "claim": f"/claims/{notification.claim_id}" if notification.claim_id else None,
        "lost_disc": f"/lost-discs/{notification.lost_disc_id}" if lost_disc else None,
    }

    return data


@router.get("/")
async def get_my_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    type: Optional[ClaimEventType] = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    query = (
        select(Notification, LostDisc)
        .join(LostDisc, Notification.lost_disc_id == LostDisc.id, isouter=True)
        .where(Notification.user_id == profile.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )

    if unread_only:
        query = query.where(Notification.is_read == False)

    if type:
        query = query.where(Notification.type == type)

    results = session.exec(query).all()

    return {"notifications": [serialize_notification(n, d) for n, d in results]}


@router.get("/count")
async def get_unread_notifications_count(
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    count = session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == profile.id)
        .where(Notification.is_read == False)
    ).one()

    return {"count": count}


@router.post("/{id}/mark-read")
async def mark_notification_read(
    id: uuid.UUID,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    notification = session.exec(
        select(Notification)
        .where(Notification.id == id)
        .where(Notification.user_id == profile.id)
    ).first()

    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = True
    session.add(notification)
    session.commit()

    return {"ok": True}


@router.post("/claims/{claim_id}/mark-read")
async def mark_claim_read(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    marked = mark_claim_notifications_read(session, profile.id, claim_id)

    return {"ok": True, "marked": marked}


@router.post("/mark-all-read")
async def mark_all_notifications_read(
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    result = session.exec(
        update(Notification)
        .where(Notification.user_id == profile.id)
        .where(Notification.is_read == False)
        .values(is_read=True)
    )
    session.commit()

    return {"ok": True, "marked": result.rowcount}
