"""
Claim lifecycle: submit, review, complete and delete disc claims.

::

    pending --approve--> approved --complete--> completed
    pending --reject---> rejected
    any status --delete--> (removed)

Every transition is written as a compare-and-swap on the prior status, so of
two racing reviewers exactly one wins and the other gets
``invalid_transition``. Authorization is re-checked on every call against
the stored claim; the actor id comes from the verified token.
"""
import logging
import uuid
from enum import Enum
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session

from app.models.claim import ClaimStatus, DiscClaim
from app.models.lost_disc import LostDisc
from app.services.claim_store import ClaimStore
from app.services.notifier import ClaimNotifier
from app.services.results import ClaimErrorKind, DuplicateClaimError, ServiceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reads are retried once on a transient database error, mutations never
READ_RETRIES = 1


class ReviewDecision(str, Enum):
    approve = "approve"
    reject = "reject"


REVIEW_OUTCOMES = {
    ReviewDecision.approve: ClaimStatus.approved,
    ReviewDecision.reject: ClaimStatus.rejected,
}


class ClaimLifecycleService:

    def __init__(self, session: Session, notifier: Optional[ClaimNotifier] = None, store: Optional[ClaimStore] = None):
        self.session = session
        self.store = store or ClaimStore(session)
        self.notifier = notifier

    def submit_claim(self, lost_disc_id: uuid.UUID, claimer_id: str, message: Optional[str] = None) -> ServiceResult[DiscClaim]:
        try:
            lost_disc = self.session.get(LostDisc, lost_disc_id)
            if not lost_disc:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Lost disc not found")

            if lost_disc.finder_id == claimer_id:
                return ServiceResult.failure(ClaimErrorKind.forbidden, "You cannot claim a disc you found")

            claim = self.store.insert(DiscClaim(
                lost_disc_id=lost_disc.id,
                claimer_id=claimer_id,
                finder_id=lost_disc.finder_id,
                message=(message or "").strip() or None,
            ))
        except DuplicateClaimError:
            logger.info("Duplicate claim on lost disc %s by %s", lost_disc_id, claimer_id)
            return ServiceResult.failure(ClaimErrorKind.duplicate_claim, "You have already claimed this disc")
        except SQLAlchemyError:
            return self._storage_failure("submit_claim")

        self._notify("claim_created", claim, claim.finder_id)

        return ServiceResult.success(claim)

    def review_claim(self, claim_id: uuid.UUID, reviewer_id: str, decision: ReviewDecision) -> ServiceResult[DiscClaim]:
        try:
            new_status = REVIEW_OUTCOMES[ReviewDecision(decision)]
        except ValueError:
            logger.warning("Unknown review decision %r for claim %s", decision, claim_id)
            return ServiceResult.failure(ClaimErrorKind.invalid_transition, "Unknown review decision")

        try:
            claim = self.store.find_by_id(claim_id)
            if not claim:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")

            if claim.finder_id != reviewer_id:
                return ServiceResult.failure(ClaimErrorKind.forbidden, "Only the finder can review this claim")

            if claim.status != ClaimStatus.pending:
                return self._invalid_transition(claim_id, claim.status, new_status)

            if not self.store.update_status(claim_id, ClaimStatus.pending, new_status):
                return self._invalid_transition(claim_id, ClaimStatus.pending, new_status)

            claim = self.store.find_by_id(claim_id)
            if not claim:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")
        except SQLAlchemyError:
            return self._storage_failure("review_claim")

        self._notify(f"claim_{new_status.value}", claim, claim.claimer_id)

        return ServiceResult.success(claim)

    def complete_claim(self, claim_id: uuid.UUID, actor_id: str) -> ServiceResult[DiscClaim]:
        try:
            claim = self.store.find_by_id(claim_id)
            if not claim:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")

            if actor_id not in (claim.finder_id, claim.claimer_id):
                return ServiceResult.failure(ClaimErrorKind.forbidden, "Not authorized to complete this claim")

            if claim.status != ClaimStatus.approved:
                return self._invalid_transition(claim_id, claim.status, ClaimStatus.completed)

            if not self.store.update_status(claim_id, ClaimStatus.approved, ClaimStatus.completed):
                return self._invalid_transition(claim_id, ClaimStatus.approved, ClaimStatus.completed)

            claim = self.store.find_by_id(claim_id)
            if not claim:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")
        except SQLAlchemyError:
            return self._storage_failure("complete_claim")

        other_party = claim.claimer_id if actor_id == claim.finder_id else claim.finder_id
        self._notify("claim_completed", claim, other_party)

        return ServiceResult.success(claim)

    def delete_claim(self, claim_id: uuid.UUID, actor_id: str) -> ServiceResult[None]:
        try:
            claim = self.store.find_by_id(claim_id)
            if not claim:
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")

            if actor_id not in (claim.finder_id, claim.claimer_id):
                return ServiceResult.failure(ClaimErrorKind.forbidden, "Not authorized to delete this claim")

            if not self.store.delete(claim_id):
                return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")
        except SQLAlchemyError:
            return self._storage_failure("delete_claim")

        logger.info("Claim %s deleted by %s", claim_id, actor_id)
        return ServiceResult.success()

    def get_claim(self, claim_id: uuid.UUID, actor_id: str) -> ServiceResult[DiscClaim]:
        result = self._read("get_claim", lambda: self.store.find_by_id(claim_id))
        if not result.ok:
            return result

        claim = result.value
        if not claim:
            return ServiceResult.failure(ClaimErrorKind.not_found, "Claim not found")

        if actor_id not in (claim.finder_id, claim.claimer_id):
            return ServiceResult.failure(ClaimErrorKind.forbidden, "Not authorized to view this claim")

        return result

    def list_my_claims(self, claimer_id: str) -> ServiceResult[List[DiscClaim]]:
        return self._read("list_my_claims", lambda: self.store.list_by_claimer(claimer_id))

    def list_claims_on_my_discs(self, finder_id: str) -> ServiceResult[List[DiscClaim]]:
        return self._read("list_claims_on_my_discs", lambda: self.store.list_by_finder(finder_id))

    def _read(self, operation: str, fetch: Callable[[], T]) -> ServiceResult[T]:
        attempt = 0
        while True:
            try:
                return ServiceResult.success(fetch())
            except OperationalError:
                self.session.rollback()
                if attempt >= READ_RETRIES:
                    return self._storage_failure(operation)
                attempt += 1
                logger.warning("Retrying %s after a database error", operation)
            except SQLAlchemyError:
                return self._storage_failure(operation)

    def _invalid_transition(self, claim_id: uuid.UUID, current: ClaimStatus, requested: ClaimStatus) -> ServiceResult:
        # Usually a stale client or a lost race with the other party
        logger.warning(
            "Rejected transition for claim %s: %s -> %s",
            claim_id, ClaimStatus(current).value, requested.value,
        )
        return ServiceResult.failure(ClaimErrorKind.invalid_transition, "This claim could not be updated")

    def _storage_failure(self, operation: str) -> ServiceResult:
        self.session.rollback()
        logger.exception("Database error during %s", operation)
        return ServiceResult.failure(ClaimErrorKind.storage_failure, "Something went wrong")

    def _notify(self, event: str, claim: DiscClaim, recipient_id: str) -> None:
        if self.notifier is None:
            return

        # Fire-and-forget: the claim change is already committed
        try:
            self.notifier.send(event, claim, recipient_id)
        except Exception:
            self.session.rollback()
            logger.exception("Failed to send %s notification for claim %s", event, claim.id)
