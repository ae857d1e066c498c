from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # Same id the identity provider puts in the token's "sub"
    id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Contact fields, disclosed to the other party of an approved claim
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None

    pdga_number: Optional[str] = None
    show_in_directory: bool = Field(default=False)

    is_admin: bool = Field(default=False)
