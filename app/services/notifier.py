import uuid
from sqlalchemy import update
from sqlmodel import Session

from app.models.claim import DiscClaim
from app.models.lost_disc import LostDisc
from app.models.notification import Notification


TEMPLATES = {
    "claim_created": (
        "New claim received",
        "Someone has claimed the {disc} you found.",
    ),
    "claim_approved": (
        "Your claim has been approved",
        "Your claim for the {disc} has been approved by the finder. You can now see their contact information.",
    ),
    "claim_rejected": (
        "Your claim has been rejected",
        "Your claim for the {disc} has been rejected by the finder.",
    ),
    "claim_completed": (
        "Claim completed",
        "The {disc} has been marked as returned to its owner.",
    ),
}


class ClaimNotifier:
    """Writes in-app notifications for claim events, one commit per event."""

    def __init__(self, session: Session):
        self.session = session

    def send(self, event: str, claim: DiscClaim, recipient_id: str) -> Notification:
        title, message = TEMPLATES[event]

        notification = Notification(
            user_id=recipient_id,
            type=event,
            title=title,
            message=message.format(disc=self._disc_name(claim.lost_disc_id)),
            lost_disc_id=claim.lost_disc_id,
            claim_id=claim.id,
        )

        self.session.add(notification)
        self.session.commit()

        return notification

    def _disc_name(self, lost_disc_id: uuid.UUID) -> str:
        lost_disc = self.session.get(LostDisc, lost_disc_id)
        if not lost_disc:
            return "disc"
        return f"{lost_disc.brand} {lost_disc.name}"


def mark_claim_notifications_read(session: Session, user_id: str, claim_id: uuid.UUID) -> int:
    """Marks every unread notification about one claim as read for its recipient."""
    result = session.exec(
        update(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.claim_id == claim_id)
        .where(Notification.is_read == False)
        .values(is_read=True)
    )
    session.commit()

    return result.rowcount
