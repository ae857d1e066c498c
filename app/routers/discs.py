import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy import delete
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.models.disc import Disc, DiscImage
from app.models.profile import Profile
from app.utils.auth_helper import get_current_profile, get_current_user_optional
from app.utils.form_validator import read_image_upload
from app.utils.s3_service import ALLOWED_CONTENT_TYPES, delete_s3_object, get_all_urls, upload_to_s3


logger = logging.getLogger(__name__)

router = APIRouter()


class DiscCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    brand: str = Field(min_length=2, max_length=50)
    plastic: Optional[str] = Field(default=None, max_length=50)
    weight: Optional[int] = Field(default=None, ge=1, le=300)
    condition: Optional[str] = Field(default=None, max_length=30)
    color: Optional[str] = Field(default=None, max_length=30)
    stamp: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    inked: bool = False
    for_sale: bool = False
    price: Optional[float] = Field(default=None, ge=0)


class DiscUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    brand: Optional[str] = Field(default=None, min_length=2, max_length=50)
    plastic: Optional[str] = Field(default=None, max_length=50)
    weight: Optional[int] = Field(default=None, ge=1, le=300)
    condition: Optional[str] = Field(default=None, max_length=30)
    color: Optional[str] = Field(default=None, max_length=30)
    stamp: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    inked: Optional[bool] = None
    for_sale: Optional[bool] = None
    price: Optional[float] = Field(default=None, ge=0)


def get_owned_disc(session: Session, disc_id: uuid.UUID, profile: Profile, action: str) -> Disc:
    disc = session.get(Disc, disc_id)

    if not disc:
        raise HTTPException(status_code=404, detail="Disc not found")

    if disc.owner_id != profile.id:
        raise HTTPException(
            status_code=403,
            detail=f"Unauthorized to {action} this disc",
        )

    return disc


def image_keys(session: Session, disc_id: uuid.UUID) -> list:
    return session.exec(
        select(DiscImage.storage_key)
        .where(DiscImage.disc_id == disc_id)
        .order_by(DiscImage.created_at)
    ).all()


def apply_disc_fields(disc: Disc, fields: dict):
    for field, value in fields.items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(disc, field, value)

    # a price only means something while the disc is listed
    if not disc.for_sale:
        disc.price = None


@router.post("/create")
async def add_disc(
    payload: DiscCreateRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    disc = Disc(owner_id=profile.id, name=payload.name.strip(), brand=payload.brand.strip())
    apply_disc_fields(disc, payload.model_dump(exclude={"name", "brand"}))

    session.add(disc)
    session.commit()
    session.refresh(disc)

    logger.info("Disc %s added by %s", disc.id, profile.id)

    return {"id": str(disc.id)}


@router.get("/mine")
async def get_my_discs(
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    discs = session.exec(
        select(Disc)
        .where(Disc.owner_id == profile.id)
        .order_by(Disc.created_at.desc())
    ).all()

    return {"discs": discs}


@router.get("/for-sale")
async def get_discs_for_sale(
    brand: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    query = (
        select(Disc)
        .where(Disc.for_sale == True)
        .order_by(Disc.created_at.desc())
    )

    if brand:
        query = query.where(func.lower(Disc.brand) == brand.strip().lower())

    discs = session.exec(query.offset(offset).limit(limit)).all()

    return {"discs": discs}


@router.get("/{disc_id}")
async def get_disc(
    disc_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_optional),
):
    disc = session.get(Disc, disc_id)

    is_owner = bool(disc and current_user and current_user.get("sub") == disc.owner_id)

    # unlisted discs are visible to their owner only
    if not disc or not (disc.for_sale or is_owner):
        raise HTTPException(status_code=404, detail="Disc not found")

    owner = session.get(Profile, disc.owner_id)

    return {
        "disc": disc.model_dump(),
        "images": get_all_urls(image_keys(session, disc.id)),
        "owner": {
            "id": disc.owner_id,
            "name": owner.name if owner else None,
        },
        "is_owner": is_owner,
    }


@router.patch("/{disc_id}")
async def update_disc(
    disc_id: uuid.UUID,
    payload: DiscUpdateRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    disc = get_owned_disc(session, disc_id, profile, "edit")

    updates = payload.model_dump(exclude_unset=True)

    if not updates:
        raise HTTPException(status_code=400, detail="Nothing to update")

    for field in ("name", "brand", "inked", "for_sale"):
        if field not in updates:
            continue

        value = updates[field]
        if value is None or (isinstance(value, str) and not value.strip()):
            raise HTTPException(status_code=400, detail=f"Field '{field}' cannot be empty")

    apply_disc_fields(disc, updates)
    disc.updated_at = datetime.now(timezone.utc)

    session.add(disc)
    session.commit()
    session.refresh(disc)

    return disc


@router.delete("/{disc_id}")
async def delete_disc(
    disc_id: uuid.UUID,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    disc = get_owned_disc(session, disc_id, profile, "delete")

    keys = image_keys(session, disc.id)

    session.exec(delete(DiscImage).where(DiscImage.disc_id == disc.id))
    session.delete(disc)
    session.commit()

    for key in keys:
        delete_s3_object(key)

    logger.info("Disc %s deleted by %s", disc_id, profile.id)

    return {"ok": True}


@router.post("/{disc_id}/images")
async def add_disc_image(
    disc_id: uuid.UUID,
    image: UploadFile = File(...),
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    disc = get_owned_disc(session, disc_id, profile, "edit")

    raw_bytes = await read_image_upload(image, ALLOWED_CONTENT_TYPES)

    key = upload_to_s3(raw_bytes, image.content_type, image.filename, f"discs/{disc.id}")

    db_image = DiscImage(disc_id=disc.id, storage_key=key)

    session.add(db_image)
    session.commit()
    session.refresh(db_image)

    return {"id": str(db_image.id)}
