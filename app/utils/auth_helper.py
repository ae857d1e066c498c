from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.config import JWT_ALGORITHM, JWT_SECRET
from app.db.db import get_session
from app.models.profile import Profile

bearer_scheme_optional = HTTPBearer(auto_error=False)


def decode_token(credentials: str) -> dict:
    if not JWT_SECRET:
        raise JWTError("JWT_SECRET is not configured")

    return jwt.decode(credentials, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def get_current_user_optional(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_optional)):
    if not token:
        return None

    try:
        return decode_token(token.credentials)
    except JWTError:
        return None

bearer_scheme_required = HTTPBearer(auto_error=True)

def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)):
    try:
        payload = decode_token(token.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Token has no subject")

    return payload


def get_db_profile(session: Session, current_user) -> Profile:
    # The identity provider owns accounts; the profile row is created lazily
    profile = session.get(Profile, current_user["sub"])

    if not profile:
        profile = Profile(
            id=current_user["sub"],
            email=current_user.get("email"),
            name=current_user.get("name"),
        )
        session.add(profile)
        try:
            session.commit()
        except IntegrityError:
            # a concurrent first request created it
            session.rollback()
            profile = session.get(Profile, current_user["sub"])
            if not profile:
                raise
        else:
            session.refresh(profile)

    return profile


def get_current_profile(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
) -> Profile:
    return get_db_profile(session, current_user)


def require_admin(
    request: Request,
    session: Session = Depends(get_session),
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    # Checked per request against the profile table, through the app's TTL cache
    if not request.app.state.admin_cache.is_admin(session, profile.id):
        raise HTTPException(status_code=403, detail="Admin access required")
    return profile
