"""HTTP surface: authentication, the request lifecycle and error mapping"""
import pytest

from app.models import Role

from tests.conftest import PASSWORD, auth_headers


@pytest.fixture
async def household(db, make_user, municipality):
    user = await make_user(Role.HOUSEHOLD, municipality)
    await db.commit()
    return user


@pytest.fixture
async def collector(db, make_user, municipality):
    user = await make_user(Role.COLLECTOR, municipality)
    await db.commit()
    return user


REQUEST_BODY = {
    "description": "Garden clippings",
    "waste_type": "ORGANIC",
    "estimated_volume": 8,
    "address": "3 Hill Road",
}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ============================================================================
# Authentication
# ============================================================================

async def test_login_returns_token(client, household):
    response = await client.post("/api/auth/login", json={"email": household.email, "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == household.id

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == household.email


async def test_login_with_wrong_password(client, household):
    response = await client.post("/api/auth/login", json={"email": household.email, "password": "not-the-one"})
    assert response.status_code == 401


async def test_disabled_account_login_is_forbidden(client, db, make_user, municipality):
    user = await make_user(Role.HOUSEHOLD, municipality, enabled=False)
    await db.commit()
    response = await client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 403


async def test_register_household(client, db, municipality):
    await db.commit()
    response = await client.post("/api/auth/register", json={
        "first_name": "Ines",
        "last_name": "Mbarga",
        "email": "ines.mbarga@example.com",
        "password": PASSWORD,
        "address": "9 Lake Avenue",
        "municipality_id": municipality.id,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "HOUSEHOLD"
    assert body["profile"]["role"] == "HOUSEHOLD"


async def test_missing_or_bad_token(client):
    assert (await client.get("/api/auth/me")).status_code in (401, 403)
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


# ============================================================================
# Lifecycle
# ============================================================================

async def test_request_lifecycle_over_http(client, household, collector):
    created = await client.post("/api/household/requests", json=REQUEST_BODY, headers=auth_headers(household))
    assert created.status_code == 201
    request_id = created.json()["id"]
    assert created.json()["status"] == "PENDING"

    queue = await client.get("/api/collector/queue", headers=auth_headers(collector))
    assert request_id in [r["id"] for r in queue.json()]

    accepted = await client.post(f"/api/collector/requests/{request_id}/accept", headers=auth_headers(collector))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "ACCEPTED"

    started = await client.post(f"/api/collector/requests/{request_id}/start", headers=auth_headers(collector))
    assert started.json()["status"] == "IN_PROGRESS"

    completed = await client.post(
        f"/api/collector/requests/{request_id}/complete",
        json={"actual_weight": 7.5, "note": "All bags collected"},
        headers=auth_headers(collector),
    )
    assert completed.status_code == 200
    assert completed.json()["actual_weight"] == 7.5

    detail = await client.get(f"/api/service-requests/{request_id}", headers=auth_headers(household))
    assert detail.json()["status"] == "COMPLETED"

    rated = await client.post(
        "/api/household/rate-collector",
        json={"service_request_id": request_id, "rating": 5},
        headers=auth_headers(household),
    )
    assert rated.status_code == 201

    again = await client.post(
        "/api/household/rate-collector",
        json={"service_request_id": request_id, "rating": 4},
        headers=auth_headers(household),
    )
    assert again.status_code == 400
    assert again.json()["error"] == "validation_error"


# ============================================================================
# Error mapping
# ============================================================================

async def test_unknown_request_is_404(client, household):
    response = await client.get("/api/service-requests/missing", headers=auth_headers(household))
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


async def test_invalid_payload_is_400(client, household):
    response = await client.post(
        "/api/household/requests",
        json={**REQUEST_BODY, "estimated_volume": 0},
        headers=auth_headers(household),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


async def test_illegal_transition_is_409(client, household, collector):
    created = await client.post("/api/household/requests", json=REQUEST_BODY, headers=auth_headers(household))
    request_id = created.json()["id"]

    response = await client.post(f"/api/collector/requests/{request_id}/start", headers=auth_headers(collector))
    assert response.status_code == 409
    assert response.json()["error"] == "invalid_state"


async def test_wrong_role_is_403(client, household):
    response = await client.get("/api/collector/dashboard", headers=auth_headers(household))
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


async def test_clearing_waste_type_is_400(client, household):
    created = await client.post("/api/household/requests", json=REQUEST_BODY, headers=auth_headers(household))
    request_id = created.json()["id"]

    response = await client.put(
        f"/api/service-requests/{request_id}", json={"waste_type": None}, headers=auth_headers(household)
    )
    assert response.status_code == 400
    assert response.json()["field"] == "waste_type"
