import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import delete
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.models.lost_disc import LostDisc, LostDiscImage
from app.models.profile import Profile
from app.services.claim_store import ClaimStore
from app.utils.auth_helper import get_current_profile, get_current_user_optional
from app.utils.form_validator import ValidatedLostDisc, read_image_upload, validate_lost_disc_form, validate_lost_disc_updates
from app.utils.s3_service import ALLOWED_CONTENT_TYPES, delete_s3_object, get_all_urls, upload_to_s3


logger = logging.getLogger(__name__)

router = APIRouter()

def get_owned_disc(session: Session, disc_id: uuid.UUID, profile: Profile, action: str) -> LostDisc:
    lost_disc = session.get(LostDisc, disc_id)

    if not lost_disc:
        raise HTTPException(status_code=404, detail="Lost disc not found")

    # ownership check
    if lost_disc.finder_id != profile.id:
        raise HTTPException(
            status_code=403,
            detail=f"Unauthorized to {action} this lost disc",
        )

    return lost_disc


def image_keys(session: Session, disc_id: uuid.UUID) -> list:
    return session.exec(
        select(LostDiscImage.storage_key)
        .where(LostDiscImage.lost_disc_id == disc_id)
        .order_by(LostDiscImage.created_at)
    ).all()


@router.post("/create")
async def add_lost_disc(
    brand: str = Form(...),
    name: str = Form(...),
    color: str = Form(...),
    location: str = Form(...),
    date_found: str = Form(...),
    description: Optional[str] = Form(None),
    written_info: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None),
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    form = validate_lost_disc_form(
        brand=brand,
        name=name,
        color=color,
        location=location,
        date_found=date_found,
        description=description,
        written_info=written_info,
        city=city,
        state=state,
        country=country,
        phone_number=phone_number,
    )

    lost_disc = LostDisc(finder_id=profile.id, **form.model_dump())

    session.add(lost_disc)
    session.commit()
    session.refresh(lost_disc)

    logger.info("Lost disc %s reported by %s", lost_disc.id, profile.id)

    return {"id": str(lost_disc.id)}


@router.get("/all")
async def get_all_lost_discs(
    brand: Optional[str] = None,
    name: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    query = select(LostDisc).order_by(LostDisc.created_at.desc())

    if brand:
        query = query.where(func.lower(LostDisc.brand) == brand.strip().lower())

    if name:
        query = query.where(func.lower(LostDisc.name) == name.strip().lower())

    lost_discs = session.exec(query.offset(offset).limit(limit)).all()

    return {"lost_discs": lost_discs}


@router.get("/{disc_id}")
async def get_lost_disc(
    disc_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_optional),
):
    query = (
        select(LostDisc, Profile)
        .join(Profile, Profile.id == LostDisc.finder_id)
        .where(LostDisc.id == disc_id)
    )

    result = session.exec(query).first()
    if not result:
        raise HTTPException(status_code=404, detail="Lost disc not found")

    lost_disc, finder = result

    # the viewer's own claim, if any. Other people's claims stay private
    claim_status = "none"

    if current_user:
        claim = ClaimStore(session).find_by_lost_disc_and_claimer(lost_disc.id, current_user["sub"])
        if claim:
            claim_status = claim.status.value

    return {
        "lost_disc": lost_disc.model_dump(),
        "images": get_all_urls(image_keys(session, lost_disc.id)),
        "finder": {
            "id": finder.id,
            "name": finder.name,
        },
        "claim_status": claim_status,
    }


@router.patch("/{disc_id}")
async def update_lost_disc(
    disc_id: uuid.UUID,
    updates: dict,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    lost_disc = get_owned_disc(session, disc_id, profile, "edit")

    current = ValidatedLostDisc.model_validate(lost_disc.model_dump(include=set(ValidatedLostDisc.model_fields)))
    validated = validate_lost_disc_updates(current, updates)

    for field in updates:
        setattr(lost_disc, field, getattr(validated, field))

    lost_disc.updated_at = datetime.now(timezone.utc)

    session.add(lost_disc)
    session.commit()
    session.refresh(lost_disc)

    return {"id": str(lost_disc.id)}


@router.delete("/{disc_id}")
async def delete_lost_disc(
    disc_id: uuid.UUID,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    lost_disc = get_owned_disc(session, disc_id, profile, "delete")

    keys = image_keys(session, lost_disc.id)

    # images, claims and the report go in one transaction
    session.exec(delete(LostDiscImage).where(LostDiscImage.lost_disc_id == lost_disc.id))

    removed_claims = ClaimStore(session).delete_for_lost_disc(lost_disc.id)

    session.delete(lost_disc)
    session.commit()

    for key in keys:
        delete_s3_object(key)

    logger.info("Lost disc %s deleted with %d claim(s)", disc_id, removed_claims)

    return {"ok": True, "claims_removed": removed_claims}


@router.post("/{disc_id}/images")
async def add_lost_disc_image(
    disc_id: uuid.UUID,
    image: UploadFile = File(...),
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
):
    lost_disc = get_owned_disc(session, disc_id, profile, "edit")

    raw_bytes = await read_image_upload(image, ALLOWED_CONTENT_TYPES)

    key = upload_to_s3(raw_bytes, image.content_type, image.filename, f"lost-discs/{lost_disc.id}")

    db_image = LostDiscImage(lost_disc_id=lost_disc.id, storage_key=key)

    session.add(db_image)
    session.commit()
    session.refresh(db_image)

    return {"id": str(db_image.id)}
