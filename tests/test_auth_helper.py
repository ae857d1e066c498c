"""tests/test_auth_helper.py: token verification and lazy profile creation"""
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session

from app.config import JWT_SECRET
from app.main import app as api
from app.models.profile import Profile
from app.utils.auth_helper import get_db_profile
from tests.conftest import CLAIMER_ID, FINDER_ID, auth


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_token_signed_with_another_secret_is_refused(client, lost_disc):
    forged = jwt.encode({"sub": FINDER_ID}, "your_really_long_secret_key", algorithm="HS256")

    resp = client.get("/profile/me", headers=_bearer(forged))
    assert resp.status_code == 401


def test_every_token_refused_without_secret(client, lost_disc, monkeypatch):
    monkeypatch.setattr("app.utils.auth_helper.JWT_SECRET", None)

    resp = client.get("/profile/me", headers=auth(FINDER_ID))
    assert resp.status_code == 401

    # the optional dependency treats it as anonymous
    resp = client.get(f"/lost-discs/{lost_disc.id}", headers=auth(CLAIMER_ID))
    assert resp.status_code == 200
    assert resp.json()["claim_status"] == "none"


def test_startup_fails_without_secret(monkeypatch):
    monkeypatch.setattr("app.main.JWT_SECRET", None)

    with pytest.raises(RuntimeError):
        with TestClient(api):
            pass


def test_token_without_subject_is_refused(client):
    token = jwt.encode({"email": "nobody@example.com"}, JWT_SECRET, algorithm="HS256")
    resp = client.get("/profile/me", headers=_bearer(token))
    assert resp.status_code == 401


def test_concurrent_first_request_rereads_profile(engine, lost_disc, monkeypatch):
    with Session(engine) as session:
        real_get = session.get
        calls = []

        # the first lookup misses, as if another request inserted the row meanwhile
        def get_after_race(model, key):
            calls.append(key)
            return None if len(calls) == 1 else real_get(model, key)

        monkeypatch.setattr(session, "get", get_after_race)

        profile = get_db_profile(session, {"sub": CLAIMER_ID, "email": "other@example.com"})

        assert isinstance(profile, Profile)
        assert profile.name == "Casey Claimer"
        assert profile.email == "claimer@example.com"
        assert len(calls) == 2
