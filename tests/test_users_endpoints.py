import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_stutax.db")

from fastapi.testclient import TestClient  # noqa: E402

from backend import app as app_module  # noqa: E402
from backend.db import init_db  # noqa: E402

init_db()
client = TestClient(app_module.app)


def _email():
    return f"user-{uuid.uuid4().hex[:8]}@example.com"


def test_minimal_registration_creates_profile():
    email = _email()
    resp = client.post(
        "/api/users",
        json={"firstName": "Ana", "lastName": "Lopez", "dateOfBirth": "1999-04-02", "email": email},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["id"]
    assert data["personalInfo"]["email"] == email
    assert data["personalInfo"]["ssnTin"] == ""
    assert data["statusInfo"]["status"] == "student"
    assert data["w2"] == []


def test_duplicate_email_rejected():
    email = _email()
    payload = {"firstName": "Ana", "lastName": "Lopez", "dateOfBirth": "1999-04-02", "email": email}
    assert client.post("/api/users", json=payload).status_code == 201
    resp = client.post("/api/users", json=payload)
    assert resp.status_code == 400


def test_invalid_registration_is_422():
    resp = client.post("/api/users", json={"firstName": "Ana", "email": "not-an-email"})
    assert resp.status_code == 422


def test_full_profile_w2s_are_normalized():
    email = _email()
    resp = client.post(
        "/api/users",
        json={
            "personalInfo": {"firstName": "Ana", "lastName": "Lopez", "email": email},
            "w2": [{"tax_year": "2024", "federal_wages_and_taxes": {"box_1_wages_tips_other_comp": "1200.50"}}],
        },
    )
    assert resp.status_code == 201
    w2 = resp.json()["w2"][0]
    assert w2["tax_year"] == 2024
    assert w2["federal_wages_and_taxes"]["box_1_wages_tips_other_comp"] == 1200.5
    assert w2["identification_and_address"]["box_e_employee_name"]["first"] == ""


def test_get_user_by_query_or_header():
    email = _email()
    created = client.post(
        "/api/users", json={"firstName": "Ana", "lastName": "Lopez", "dateOfBirth": "1999-04-02", "email": email}
    ).json()

    assert client.get("/api/users", params={"email": email}).json()["id"] == created["id"]
    assert client.get("/api/users", headers={"X-User-Email": email}).json()["id"] == created["id"]
    assert client.get("/api/users").status_code == 400
    assert client.get("/api/users", params={"email": _email()}).status_code == 404


def test_update_user():
    email = _email()
    created = client.post(
        "/api/users", json={"firstName": "Ana", "lastName": "Lopez", "dateOfBirth": "1999-04-02", "email": email}
    ).json()

    resp = client.put(
        "/api/users",
        params={"id": created["id"]},
        json={
            "address": {"addressLine1": "5 Elm St", "city": "Urbana", "state": "IL", "zip": "61801"},
            "w2": [{"tax_year": 2024, "federal_wages_and_taxes": {"box_2_federal_income_tax_withheld": "99"}}],
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["address"]["city"] == "Urbana"
    assert data["personalInfo"]["firstName"] == "Ana"
    assert data["w2"][0]["federal_wages_and_taxes"]["box_2_federal_income_tax_withheld"] == 99.0


def test_update_user_errors():
    assert client.put("/api/users", json={}).status_code == 400
    assert client.put("/api/users", params={"id": "missing"}, json={}).status_code == 404
