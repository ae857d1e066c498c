from enum import Enum
from typing import Optional
import uuid
from sqlmodel import Field, SQLModel, UniqueConstraint
from datetime import datetime, timezone


class ClaimStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    completed = "completed"


class DiscClaim(SQLModel, table=True):
    __tablename__ = "disc_claims"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Linked report
    lost_disc_id: uuid.UUID = Field(foreign_key="lost_discs.id", index=True, ondelete="CASCADE")

    # Parties. finder_id is copied from the report when the claim is made
    claimer_id: str = Field(foreign_key="profiles.id", index=True)
    finder_id: str = Field(foreign_key="profiles.id", index=True)

    status: ClaimStatus = Field(default=ClaimStatus.pending, index=True)

    message: Optional[str] = None

    __table_args__ = (
        # One claim per claimer per disc. This index is the duplicate guard,
        # concurrent submits race on it rather than on a prior select
        UniqueConstraint(
            "lost_disc_id",
            "claimer_id",
            name="uq_disc_claims_lost_disc_claimer"
        ),
    )
