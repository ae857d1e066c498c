"""
Contact disclosure for disc claims.

A party's contact details are only handed to the *other* party of a claim,
and only once the finder has approved it. Pending and rejected claims never
disclose anything, whoever asks.
"""
import logging
import uuid
from typing import Literal

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.models.claim import ClaimStatus
from app.models.profile import Profile
from app.services.claim_store import ClaimStore
from app.services.results import ClaimErrorKind, ServiceResult

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"

DISCLOSABLE_STATUSES = {ClaimStatus.approved, ClaimStatus.completed}

ContactTarget = Literal["finder", "claimer"]


class ContactProfile(BaseModel):
    name: str
    email: str
    phone_number: str
    location: str

    @classmethod
    def from_profile(cls, profile: Profile) -> "ContactProfile":
        return cls(
            name=profile.name or NOT_PROVIDED,
            email=profile.email or NOT_PROVIDED,
            phone_number=profile.phone_number or NOT_PROVIDED,
            location=profile.location or NOT_PROVIDED,
        )


def get_disclosed_contact(
    session: Session,
    claim_id: uuid.UUID,
    requester_id: str,
    target: ContactTarget,
) -> ServiceResult[ContactProfile]:
    try:
        claim = ClaimStore(session).find_by_id(claim_id)
        if not claim:
            return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")

        if target == "finder":
            requester_role, target_id = claim.claimer_id, claim.finder_id
        elif target == "claimer":
            requester_role, target_id = claim.finder_id, claim.claimer_id
        else:
            return ServiceResult.failure(ClaimErrorKind.forbidden, "Unknown contact target")

        # Only the opposite party may ask, which also rules out outsiders
        if requester_id != requester_role:
            return ServiceResult.failure(ClaimErrorKind.forbidden, "Not authorized to view this contact")

        if claim.status not in DISCLOSABLE_STATUSES:
            return ServiceResult.failure(
                ClaimErrorKind.forbidden,
                "Contact information is only available for approved claims",
            )

        profile = session.get(Profile, target_id)
        if not profile:
            return ServiceResult.failure(ClaimErrorKind.not_found, "Contact not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Database error while disclosing %s contact for claim %s", target, claim_id)
        return ServiceResult.failure(ClaimErrorKind.storage_failure, "Something went wrong")

    return ServiceResult.success(ContactProfile.from_profile(profile))
