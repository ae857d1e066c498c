"""tests/test_lost_discs_api.py: lost disc reports, profiles and admin views"""
from app.main import app as api
from app.models.profile import Profile
from tests.conftest import CLAIMER_ID, FINDER_ID, OUTSIDER_ID, FakeS3, auth


DISC_FORM = {
    "brand": "Discraft",
    "name": "Buzzz",
    "color": "Yellow",
    "location": "Basket 12 drop zone",
    "date_found": "2024-06-01T15:30:00Z",
    "written_info": "  ",
}


def test_create_and_get_lost_disc(client):
    resp = client.post("/lost-discs/create", data=DISC_FORM, headers=auth(OUTSIDER_ID))
    assert resp.status_code == 200
    disc_id = resp.json()["id"]

    resp = client.get(f"/lost-discs/{disc_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["lost_disc"]["name"] == "Buzzz"
    assert body["lost_disc"]["written_info"] is None
    assert body["finder"]["id"] == OUTSIDER_ID
    assert body["images"] == []
    assert body["claim_status"] == "none"


def test_create_validates_form(client):
    resp = client.post("/lost-discs/create", data={**DISC_FORM, "date_found": "yesterday"}, headers=auth(OUTSIDER_ID))
    assert resp.status_code == 400

    resp = client.post("/lost-discs/create", data={**DISC_FORM, "color": "x"}, headers=auth(OUTSIDER_ID))
    assert resp.status_code == 400


def test_list_filters_by_brand(client, lost_disc):
    client.post("/lost-discs/create", data=DISC_FORM, headers=auth(OUTSIDER_ID))

    discs = client.get("/lost-discs/all", params={"brand": "innova"}).json()["lost_discs"]
    assert [d["name"] for d in discs] == ["Destroyer"]

    assert len(client.get("/lost-discs/all").json()["lost_discs"]) == 2


def test_list_is_paged(client, lost_disc):
    client.post("/lost-discs/create", data=DISC_FORM, headers=auth(OUTSIDER_ID))

    first = client.get("/lost-discs/all", params={"limit": 1}).json()["lost_discs"]
    second = client.get("/lost-discs/all", params={"limit": 1, "offset": 1}).json()["lost_discs"]

    assert len(first) == 1
    assert len(second) == 1
    assert first[0]["id"] != second[0]["id"]

    assert client.get("/lost-discs/all", params={"limit": 0}).status_code == 422
    assert client.get("/lost-discs/all", params={"limit": 101}).status_code == 422


def test_get_shows_viewers_own_claim_status(client, lost_disc):
    client.post("/claims/create", json={"lost_disc_id": str(lost_disc.id)}, headers=auth(CLAIMER_ID))

    assert client.get(f"/lost-discs/{lost_disc.id}", headers=auth(CLAIMER_ID)).json()["claim_status"] == "pending"
    assert client.get(f"/lost-discs/{lost_disc.id}", headers=auth(OUTSIDER_ID)).json()["claim_status"] == "none"


def test_only_finder_edits(client, lost_disc):
    resp = client.patch(f"/lost-discs/{lost_disc.id}", json={"color": "Blue"}, headers=auth(CLAIMER_ID))
    assert resp.status_code == 403

    resp = client.patch(f"/lost-discs/{lost_disc.id}", json={"finder_id": CLAIMER_ID}, headers=auth(FINDER_ID))
    assert resp.status_code == 400

    resp = client.patch(f"/lost-discs/{lost_disc.id}", json={"color": "Blue"}, headers=auth(FINDER_ID))
    assert resp.status_code == 200
    assert client.get(f"/lost-discs/{lost_disc.id}").json()["lost_disc"]["color"] == "Blue"


def test_deleting_report_removes_its_claims(client, lost_disc):
    claim_id = client.post(
        "/claims/create",
        json={"lost_disc_id": str(lost_disc.id)},
        headers=auth(CLAIMER_ID),
    ).json()["claim_id"]

    assert client.delete(f"/lost-discs/{lost_disc.id}", headers=auth(CLAIMER_ID)).status_code == 403

    resp = client.delete(f"/lost-discs/{lost_disc.id}", headers=auth(FINDER_ID))
    assert resp.status_code == 200
    assert resp.json()["claims_removed"] == 1

    assert client.get(f"/lost-discs/{lost_disc.id}").status_code == 404
    assert client.get(f"/claims/{claim_id}", headers=auth(CLAIMER_ID)).status_code == 404


def test_image_upload_rejects_non_images(client, lost_disc):
    resp = client.post(
        f"/lost-discs/{lost_disc.id}/images",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth(FINDER_ID),
    )
    assert resp.status_code == 400


def test_profile_created_on_first_request(client):
    resp = client.get("/profile/me", headers=auth("new-user-42"))
    assert resp.status_code == 200
    assert resp.json()["email"] == "new-user-42@example.com"
    assert resp.json()["is_admin"] is False


def test_profile_update_cannot_grant_admin(client, lost_disc):
    resp = client.patch(
        "/profile/me",
        json={"phone_number": " 555-0111 ", "is_admin": True},
        headers=auth(CLAIMER_ID),
    )
    assert resp.status_code == 200
    assert resp.json()["phone_number"] == "555-0111"
    assert resp.json()["is_admin"] is False


def test_admin_endpoints_require_admin(client, session, lost_disc):
    assert client.get("/admin/stats", headers=auth(OUTSIDER_ID)).status_code == 403

    admin = session.get(Profile, OUTSIDER_ID)
    admin.is_admin = True
    session.add(admin)
    session.commit()
    api.state.admin_cache.clear()

    client.post("/claims/create", json={"lost_disc_id": str(lost_disc.id)}, headers=auth(CLAIMER_ID))

    stats = client.get("/admin/stats", headers=auth(OUTSIDER_ID)).json()
    assert stats["total_lost_discs"] == 1
    assert stats["claims_by_status"]["pending"] == 1
    assert stats["total_claims"] == 1

    claims = client.get("/admin/claims", params={"status": "pending"}, headers=auth(OUTSIDER_ID)).json()
    assert [c["disc_name"] for c in claims] == ["Innova Destroyer"]

    resp = client.post(f"/admin/users/{FINDER_ID}/set-admin", headers=auth(OUTSIDER_ID))
    assert resp.status_code == 200
    assert client.get("/admin/stats", headers=auth(FINDER_ID)).status_code == 200


def test_images_are_stored_signed_and_removed(client, lost_disc, monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr("app.utils.s3_service.s3", fake)

    resp = client.post(
        f"/lost-discs/{lost_disc.id}/images",
        files={"image": ("destroyer.jpg", b"\xff\xd8jpeg-bytes", "image/jpeg")},
        headers=auth(FINDER_ID),
    )
    assert resp.status_code == 200

    [key] = fake.objects
    assert key.startswith(f"lost-discs/{lost_disc.id}/destroyer-")
    assert key.endswith(".jpg")

    images = client.get(f"/lost-discs/{lost_disc.id}").json()["images"]
    assert images == [f"https://signed.example/{key}"]

    assert client.delete(f"/lost-discs/{lost_disc.id}", headers=auth(FINDER_ID)).status_code == 200
    assert fake.objects == {}


def test_only_finder_uploads_images(client, lost_disc, monkeypatch):
    monkeypatch.setattr("app.utils.s3_service.s3", FakeS3())

    resp = client.post(
        f"/lost-discs/{lost_disc.id}/images",
        files={"image": ("destroyer.jpg", b"jpeg", "image/jpeg")},
        headers=auth(CLAIMER_ID),
    )
    assert resp.status_code == 403
