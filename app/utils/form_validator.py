from datetime import datetime
from typing import Optional
from fastapi import HTTPException, UploadFile
from pydantic import BaseModel, Field, ValidationError


class ValidatedLostDisc(BaseModel):
    brand: str = Field(min_length=2, max_length=50)
    name: str = Field(min_length=1, max_length=50)
    color: str = Field(min_length=2, max_length=30)
    description: Optional[str] = Field(default=None, max_length=500)
    written_info: Optional[str] = Field(default=None, max_length=200)
    location: str = Field(min_length=3, max_length=100)
    city: Optional[str] = Field(default=None, max_length=60)
    state: Optional[str] = Field(default=None, max_length=60)
    country: Optional[str] = Field(default=None, max_length=60)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    date_found: datetime


# Fields a finder may change after the report is created
EDITABLE_FIELDS = set(ValidatedLostDisc.model_fields)


def parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise HTTPException(status_code=400, detail="Date not parseable")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def validate_lost_disc_form(
    brand: str,
    name: str,
    color: str,
    location: str,
    date_found: str,
    description: Optional[str] = None,
    written_info: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> ValidatedLostDisc:
    parsed_date = parse_date(date_found)

    try:
        return ValidatedLostDisc(
            brand=brand.strip(),
            name=name.strip(),
            color=color.strip(),
            description=_clean(description),
            written_info=_clean(written_info),
            location=location.strip(),
            city=_clean(city),
            state=_clean(state),
            country=_clean(country),
            phone_number=_clean(phone_number),
            date_found=parsed_date,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


def validate_lost_disc_updates(current: ValidatedLostDisc, updates: dict) -> ValidatedLostDisc:
    for field in updates:
        if field not in EDITABLE_FIELDS:
            raise HTTPException(
                status_code=400,
                detail=f"Field '{field}' cannot be updated",
            )

    merged = current.model_dump()
    for field, value in updates.items():
        if field == "date_found":
            value = parse_date(value)
        elif isinstance(value, str):
            value = _clean(value)
        merged[field] = value

    try:
        return ValidatedLostDisc(**merged)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


MAX_UPLOAD_SIZE_MB = 5
MAX_UPLOAD_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024


async def read_image_upload(image: UploadFile, allowed_types) -> bytes:
    if image.content_type not in allowed_types:
        raise HTTPException(status_code=400, detail="Unsupported image type")

    raw_bytes = await image.read()

    if len(raw_bytes) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail=f"Image exceeds {MAX_UPLOAD_SIZE_MB}MB limit")

    return raw_bytes
