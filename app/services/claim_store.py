import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.claim import ClaimStatus, DiscClaim
from app.services.results import DuplicateClaimError


class ClaimStore:
    """
    Row-level access to the disc_claims table.

    Every method is a single statement plus commit, except
    ``delete_for_lost_disc`` which leaves the commit to the caller so it can
    share the report deletion's transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    def insert(self, claim: DiscClaim) -> DiscClaim:
        lost_disc_id, claimer_id = claim.lost_disc_id, claim.claimer_id

        self.session.add(claim)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            # Only the (lost disc, claimer) index is an expected conflict
            if self.find_by_lost_disc_and_claimer(lost_disc_id, claimer_id):
                raise DuplicateClaimError(str(lost_disc_id)) from e
            raise

        self.session.refresh(claim)
        return claim

    def find_by_lost_disc_and_claimer(self, lost_disc_id: uuid.UUID, claimer_id: str) -> Optional[DiscClaim]:
        return self.session.exec(
            select(DiscClaim)
            .where(DiscClaim.lost_disc_id == lost_disc_id)
            .where(DiscClaim.claimer_id == claimer_id)
        ).first()

    def find_by_id(self, claim_id: uuid.UUID) -> Optional[DiscClaim]:
        return self.session.get(DiscClaim, claim_id)

    def update_status(self, claim_id: uuid.UUID, expected: ClaimStatus, new: ClaimStatus) -> bool:
        # compare-and-swap: a concurrent transition makes this match zero rows
        result = self.session.exec(
            update(DiscClaim)
            .where(DiscClaim.id == claim_id)
            .where(DiscClaim.status == expected)
            .values(status=new, updated_at=datetime.now(timezone.utc))
        )
        self.session.commit()

        return result.rowcount == 1

    def delete(self, claim_id: uuid.UUID) -> bool:
        result = self.session.exec(
            delete(DiscClaim).where(DiscClaim.id == claim_id)
        )
        self.session.commit()

        return result.rowcount == 1

    def list_by_claimer(self, claimer_id: str) -> List[DiscClaim]:
        return self.session.exec(
            select(DiscClaim)
            .where(DiscClaim.claimer_id == claimer_id)
            .order_by(DiscClaim.created_at.desc())
        ).all()

    def list_by_finder(self, finder_id: str) -> List[DiscClaim]:
        return self.session.exec(
            select(DiscClaim)
            .where(DiscClaim.finder_id == finder_id)
            .order_by(DiscClaim.created_at.desc())
        ).all()

    def delete_for_lost_disc(self, lost_disc_id: uuid.UUID) -> int:
        result = self.session.exec(
            delete(DiscClaim).where(DiscClaim.lost_disc_id == lost_disc_id)
        )
        return result.rowcount
