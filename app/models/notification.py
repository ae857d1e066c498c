from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Ownership
    user_id: str = Field(foreign_key="profiles.id", index=True)

    # Notification fields
    type: str = Field(index=True) # values: "claim_created", "claim_approved", "claim_rejected", "claim_completed"

    title: str
    message: str

    # Plain references, the claim or report may be deleted later
    lost_disc_id: Optional[uuid.UUID] = Field(default=None, index=True)
    claim_id: Optional[uuid.UUID] = Field(default=None)

    is_read: bool = Field(default=False)
