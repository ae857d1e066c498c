import uuid
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.claim import DiscClaim
from app.models.lost_disc import LostDisc
from app.models.profile import Profile
from app.services.claim_service import ClaimLifecycleService, ReviewDecision
from app.services.contact_gate import get_disclosed_contact
from app.services.notifier import ClaimNotifier, mark_claim_notifications_read
from app.services.results import ClaimErrorKind, ServiceResult
from app.utils.auth_helper import get_current_profile


router = APIRouter()

ERROR_STATUS_CODES = {
    ClaimErrorKind.duplicate_claim: 409,
    ClaimErrorKind.forbidden: 403,
    ClaimErrorKind.invalid_transition: 409,
    ClaimErrorKind.not_found: 404,
    ClaimErrorKind.storage_failure: 500,
}


def get_claim_service(session: Session = Depends(get_session)) -> ClaimLifecycleService:
    return ClaimLifecycleService(session, notifier=ClaimNotifier(session))


def unwrap(result: ServiceResult):
    if not result.ok:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES[result.error],
            detail={"code": result.error.value, "message": result.detail},
        )
    return result.value


def serialize_claims(session: Session, claims: List[DiscClaim]) -> list:
    """Attach disc details and both parties' display names to each claim."""
    disc_ids = {claim.lost_disc_id for claim in claims}
    user_ids = {claim.claimer_id for claim in claims} | {claim.finder_id for claim in claims}

    discs = {}
    if disc_ids:
        discs = {d.id: d for d in session.exec(select(LostDisc).where(LostDisc.id.in_(disc_ids))).all()}

    names = {}
    if user_ids:
        names = {p.id: p.name for p in session.exec(select(Profile).where(Profile.id.in_(user_ids))).all()}

    response = []
    for claim in claims:
        data = claim.model_dump()
        disc = discs.get(claim.lost_disc_id)

        data["disc_details"] = {
            "brand": disc.brand,
            "name": disc.name,
            "color": disc.color,
            "written_info": disc.written_info,
        } if disc else None
        data["claimer_name"] = names.get(claim.claimer_id) or "Unknown"
        data["finder_name"] = names.get(claim.finder_id) or "Unknown"

        response.append(data)

    return response


class ClaimCreateRequest(BaseModel):
    lost_disc_id: uuid.UUID
    message: Optional[str] = Field(default=None, max_length=500)

@router.post("/create", status_code=201)
def create_claim(
    payload: ClaimCreateRequest,
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    claim = unwrap(service.submit_claim(payload.lost_disc_id, profile.id, payload.message))

    return {
        "ok": True,
        "claim_id": str(claim.id),
        "status": claim.status.value,
    }


@router.get("/mine")
def get_my_claims(
    session: Session = Depends(get_session),
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    """
    Claims the current user made on discs other people found.
    """
    claims = unwrap(service.list_my_claims(profile.id))
    return {"claims": serialize_claims(session, claims)}


@router.get("/on-my-discs")
def get_claims_on_my_discs(
    session: Session = Depends(get_session),
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    """
    Claims other users made on discs the current user found.
    """
    claims = unwrap(service.list_claims_on_my_discs(profile.id))
    return {"claims": serialize_claims(session, claims)}


@router.get("/{claim_id}")
def get_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    claim = unwrap(service.get_claim(claim_id, profile.id))

    # viewing a claim clears its unread notifications
    mark_claim_notifications_read(session, profile.id, claim.id)

    return {"claim": serialize_claims(session, [claim])[0]}


@router.post("/{claim_id}/approve")
def approve_claim(
    claim_id: uuid.UUID,
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    claim = unwrap(service.review_claim(claim_id, profile.id, ReviewDecision.approve))
    return {"ok": True, "status": claim.status.value}


@router.post("/{claim_id}/reject")
def reject_claim(
    claim_id: uuid.UUID,
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    claim = unwrap(service.review_claim(claim_id, profile.id, ReviewDecision.reject))
    return {"ok": True, "status": claim.status.value}


@router.post("/{claim_id}/complete")
def complete_claim(
    claim_id: uuid.UUID,
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    claim = unwrap(service.complete_claim(claim_id, profile.id))
    return {"ok": True, "status": claim.status.value}


@router.delete("/{claim_id}")
def delete_claim(
    claim_id: uuid.UUID,
    service: ClaimLifecycleService = Depends(get_claim_service),
    profile: Profile = Depends(get_current_profile),
):
    unwrap(service.delete_claim(claim_id, profile.id))
    return {"ok": True}


@router.get("/{claim_id}/contact/{target}")
def get_claim_contact(
    claim_id: uuid.UUID,
    target: Literal["finder", "claimer"],
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    contact = unwrap(get_disclosed_contact(session, claim_id, profile.id, target))
    return {"contact": contact}
