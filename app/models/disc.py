from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class Disc(SQLModel, table=True):
    __tablename__ = "discs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Owner
    owner_id: str = Field(foreign_key="profiles.id", index=True)

    # Disc fields
    name: str = Field(index=True)  # mold name
    brand: str = Field(index=True)
    plastic: Optional[str] = None
    weight: Optional[int] = None  # grams
    condition: Optional[str] = None
    color: Optional[str] = None
    stamp: Optional[str] = None
    notes: Optional[str] = None
    inked: bool = Field(default=False)

    # Marketplace
    for_sale: bool = Field(default=False, index=True)
    price: Optional[float] = None  # null unless for_sale


class DiscImage(SQLModel, table=True):
    __tablename__ = "disc_images"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    disc_id: uuid.UUID = Field(foreign_key="discs.id", index=True, ondelete="CASCADE")

    storage_key: str
