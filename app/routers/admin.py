import logging
from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session, select, func
from sqlalchemy.orm import aliased
from pydantic import BaseModel

from app.db.db import get_session
from app.models.claim import ClaimStatus, DiscClaim
from app.models.lost_disc import LostDisc
from app.models.profile import Profile
from app.utils.auth_helper import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


# Response Models
class OverviewStats(BaseModel):
    total_lost_discs: int
    total_claims: int
    claims_by_status: dict


class ClaimDetail(BaseModel):
    id: str
    lost_disc_id: str
    disc_name: str
    finder_name: Optional[str]
    finder_id: str
    claimer_name: Optional[str]
    claimer_id: str
    status: ClaimStatus
    message: Optional[str]
    created_at: datetime
    updated_at: datetime


@router.get("/stats", response_model=OverviewStats)
def get_overview_stats(
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    """Counts for the admin dashboard"""
    total_lost_discs = session.exec(select(func.count(LostDisc.id))).one()

    rows = session.exec(
        select(DiscClaim.status, func.count(DiscClaim.id)).group_by(DiscClaim.status)
    ).all()

    claims_by_status = {status.value: 0 for status in ClaimStatus}
    for status, count in rows:
        claims_by_status[ClaimStatus(status).value] = count

    return OverviewStats(
        total_lost_discs=total_lost_discs,
        total_claims=sum(claims_by_status.values()),
        claims_by_status=claims_by_status,
    )


@router.get("/claims", response_model=List[ClaimDetail])
def get_claims_for_moderation(
    status: Optional[ClaimStatus] = None,
    limit: int = Query(50, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    """Recent claims across all users"""

    Finder = aliased(Profile)
    Claimer = aliased(Profile)

    query = (
        select(DiscClaim, LostDisc, Finder, Claimer)
        .join(LostDisc, DiscClaim.lost_disc_id == LostDisc.id)
        .join(Finder, DiscClaim.finder_id == Finder.id)
        .join(Claimer, DiscClaim.claimer_id == Claimer.id)
        .order_by(DiscClaim.created_at.desc())
        .limit(limit)
    )

    if status:
        query = query.where(DiscClaim.status == status)

    results = session.exec(query).all()

    return [
        ClaimDetail(
            id=str(claim.id),
            lost_disc_id=str(lost_disc.id),
            disc_name=f"{lost_disc.brand} {lost_disc.name}",
            finder_name=finder.name,
            finder_id=finder.id,
            claimer_name=claimer.name,
            claimer_id=claimer.id,
            status=claim.status,
            message=claim.message,
            created_at=claim.created_at,
            updated_at=claim.updated_at,
        )
        for claim, lost_disc, finder, claimer in results
    ]


@router.post("/users/{user_id}/set-admin")
def set_user_as_admin(
    user_id: str,
    request: Request,
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    """Grant admin rights to another user"""
    profile = session.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")

    profile.is_admin = True
    session.add(profile)
    session.commit()

    request.app.state.admin_cache.invalidate(user_id)

    logger.info("User %s granted admin by %s", user_id, admin.id)

    return {"ok": True}
