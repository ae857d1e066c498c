from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class LostDisc(SQLModel, table=True):
    __tablename__ = "lost_discs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Finder info
    finder_id: str = Field(foreign_key="profiles.id", index=True)

    # Disc fields
    brand: str = Field(index=True)
    name: str = Field(index=True)  # mold name
    color: str
    description: Optional[str] = None
    written_info: Optional[str] = None  # ink on the disc: name, number, PDGA #

    # Where it was found
    location: str
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    phone_number: Optional[str] = None
    date_found: datetime


class LostDiscImage(SQLModel, table=True):
    __tablename__ = "lost_disc_images"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    lost_disc_id: uuid.UUID = Field(foreign_key="lost_discs.id", index=True, ondelete="CASCADE")

    storage_key: str
