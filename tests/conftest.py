"""
tests/conftest.py: in-memory database, seeded users and
reports, and an API client whose requests carry signed tokens.
"""
import os
from datetime import datetime, timedelta, timezone

# must be set before app.config is first imported
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.config import JWT_ALGORITHM, JWT_SECRET
from app.db.db import get_session, init_db
from app.main import app
from app.models.claim import ClaimStatus, DiscClaim
from app.models.lost_disc import LostDisc
from app.models.profile import Profile

FINDER_ID = "finder-0001"
CLAIMER_ID = "claimer-0002"
OUTSIDER_ID = "outsider-0003"


def make_token(sub: str, **claims) -> str:
    payload = {
        "sub": sub,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(sub: str) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, email=f'{sub}@example.com')}"}


class FakeS3:
    """Stands in for the boto3 client; keeps uploaded objects in a dict."""

    def __init__(self):
        self.objects = {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[key] = fileobj.read()

    def generate_presigned_url(self, method, Params, ExpiresIn):
        return f"https://signed.example/{Params['Key']}"

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)


def seed(session: Session) -> LostDisc:
    session.add(Profile(
        id=FINDER_ID,
        name="Frankie Finder",
        email="finder@example.com",
        phone_number="555-0100",
        location="Maple Hill DGC",
    ))
    # Claimer left most contact fields blank on purpose
    session.add(Profile(id=CLAIMER_ID, name="Casey Claimer", email="claimer@example.com"))
    session.add(Profile(id=OUTSIDER_ID, name="Xavi Outsider", email="x@example.com"))

    lost_disc = LostDisc(
        finder_id=FINDER_ID,
        brand="Innova",
        name="Destroyer",
        color="Red",
        written_info="CASEY 555-0199",
        location="Hole 7, left of the pond",
        city="Leicester",
        state="MA",
        country="USA",
        date_found=datetime(2024, 5, 4, tzinfo=timezone.utc),
    )
    session.add(lost_disc)
    session.commit()
    session.refresh(lost_disc)

    return lost_disc


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def file_engine(tmp_path):
    """A file-backed database, for tests that need several real connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'claims.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def lost_disc(session):
    return seed(session)


@pytest.fixture()
def make_claim(session, lost_disc):
    """Insert a claim directly in the given status, bypassing the service."""
    def _make(status: ClaimStatus = ClaimStatus.pending, claimer_id: str = CLAIMER_ID) -> DiscClaim:
        claim = DiscClaim(
            lost_disc_id=lost_disc.id,
            claimer_id=claimer_id,
            finder_id=lost_disc.finder_id,
            status=status,
            message="It has my name on the back",
        )
        session.add(claim)
        session.commit()
        session.refresh(claim)
        return claim

    return _make


@pytest.fixture()
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.state.admin_cache.clear()

    yield TestClient(app)

    app.dependency_overrides.clear()
