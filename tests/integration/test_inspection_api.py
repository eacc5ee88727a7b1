"""Integration tests for the inspection report and car part API.

The application runs against the in-memory service factory seeded with the
demo users and car, so no database is needed.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from uuid import uuid4

from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.value_objects.auth import UserRole
from src.car_inspection.infrastructure.security import JWTTokenIssuer
from src.car_inspection.infrastructure.seed import SAMPLE_CAR_ID
from src.car_inspection.infrastructure.services import InMemoryServiceFactory, get_service_factory
from src.car_inspection.presentation.api.main import create_app

# Mark all async tests in this module
pytestmark = pytest.mark.asyncio

INSPECTIONS = "/api/v1/inspections"
CAR_PARTS = "/api/v1/car-parts"

PASSWORDS = {
    "admin@example.com": "admin12345",
    "inspector@example.com": "inspector123",
    "owner@example.com": "owner12345",
    "second@example.com": "second12345",
}

REPORT_BODY = {
    "car": str(SAMPLE_CAR_ID),
    "overallRating": 8.5,
    "overallCondition": "Good",
    "overallAssessment": {"recommendation": "Recommended", "estimatedMarketValue": 2800000},
    "checkpoints": [
        {"section": "exterior", "name": "Paint", "condition": "Good"},
        {"section": "engine", "name": "Oil Leak", "condition": "Leaking"},
        {"section": "brakes", "name": "Pads", "condition": "Worn"},
    ],
}


@pytest_asyncio.fixture
async def service_factory():
    factory = InMemoryServiceFactory(JWTTokenIssuer("integration-secret"), seed_demo_data=True)
    await factory.initialize()
    await factory.add_user(User("second@example.com", "Second Inspector", UserRole.INSPECTOR),
                           PASSWORDS["second@example.com"])
    return factory


@pytest_asyncio.fixture
async def client(service_factory):
    """HTTP client for an app wired to the in-memory factory."""
    app = create_app()
    app.dependency_overrides[get_service_factory] = lambda: service_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def login(client, email):
    response = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORDS[email]})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest_asyncio.fixture
async def inspector(client):
    return await login(client, "inspector@example.com")


@pytest_asyncio.fixture
async def admin(client):
    return await login(client, "admin@example.com")


@pytest_asyncio.fixture
async def owner(client):
    return await login(client, "owner@example.com")


@pytest_asyncio.fixture
async def second_inspector(client):
    return await login(client, "second@example.com")


async def create_report(client, headers, **overrides):
    body = dict(REPORT_BODY)
    body.update(overrides)
    response = await client.post(INSPECTIONS, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def publish(client, headers, report_id):
    response = await client.put(f"{INSPECTIONS}/{report_id}/publish", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestAuthentication:
    """Authentication through the API."""

    async def test_login_returns_token_and_role(self, client):
        response = await client.post("/api/v1/auth/login", json={
            "email": "inspector@example.com", "password": "inspector123"
        })

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["role"] == "inspector"
        assert body["token"]

    async def test_wrong_password(self, client):
        response = await client.post("/api/v1/auth/login", json={
            "email": "inspector@example.com", "password": "not-the-password"
        })

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_profile(self, client, owner):
        response = await client.get("/api/v1/auth/me", headers=owner)

        assert response.status_code == 200
        assert response.json()["email"] == "owner@example.com"

    async def test_missing_token(self, client):
        response = await client.post(INSPECTIONS, json=REPORT_BODY)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_logout_revokes_token(self, client, inspector):
        response = await client.post("/api/v1/auth/logout", headers=inspector)
        assert response.json()["success"] is True

        response = await client.get(INSPECTIONS, headers=inspector)
        assert response.status_code == 401


class TestReportLifecycle:
    """Create, update, publish and share a report."""

    async def test_create_draft(self, client, inspector):
        report = await create_report(client, inspector)

        assert report["reportNumber"].startswith("INS-")
        assert report["isPublished"] is False
        assert report["shareableLink"] is None
        assert report["viewCount"] == 0
        assert report["inspectionSummary"]["totalCheckpoints"] == 3
        assert report["inspectionSummary"]["passedCheckpoints"] == 1
        assert report["inspectionSummary"]["failedCheckpoints"] == 1
        assert report["inspectionSummary"]["warningCheckpoints"] == 1

    async def test_owner_cannot_create(self, client, owner):
        response = await client.post(INSPECTIONS, json=REPORT_BODY, headers=owner)

        assert response.status_code == 403

    @pytest.mark.parametrize("overrides", [
        {"overallRating": 11},
        {"overallCondition": "Mint"},
        {"car": None},
        {"checkpoints": [{"section": "exterior", "name": "Paint", "condition": "Excelent"}]},
    ])
    async def test_invalid_create(self, client, inspector, overrides):
        body = dict(REPORT_BODY)
        body.update(overrides)

        response = await client.post(INSPECTIONS, json=body, headers=inspector)

        assert response.status_code == 400

    async def test_unknown_car(self, client, inspector):
        body = dict(REPORT_BODY, car=str(uuid4()))

        response = await client.post(INSPECTIONS, json=body, headers=inspector)

        assert response.status_code == 404

    async def test_unknown_body_field(self, client, inspector):
        body = dict(REPORT_BODY, colour="red")

        response = await client.post(INSPECTIONS, json=body, headers=inspector)

        assert response.status_code == 422

    async def test_update_report(self, client, inspector):
        report = await create_report(client, inspector)

        response = await client.put(f"{INSPECTIONS}/{report['id']}", headers=inspector, json={
            "overallRating": 6,
            "checkpoints": [{"section": "engine", "name": "Oil Leak", "condition": "Good"}],
        })

        body = response.json()
        assert response.status_code == 200
        assert body["overallRating"] == 6
        assert body["reportNumber"] == report["reportNumber"]
        assert body["inspectionSummary"]["totalCheckpoints"] == 1
        assert body["inspectionSummary"]["passedCheckpoints"] == 1

    @pytest.mark.parametrize("field, value", [
        ("reportNumber", "INS-2000-00001"),
        ("car", str(uuid4())),
        ("inspector", str(uuid4())),
        ("viewCount", 99),
        ("shareableLink", "f" * 64),
    ])
    async def test_identity_and_system_fields_rejected(self, client, inspector, field, value):
        report = await create_report(client, inspector)

        response = await client.put(f"{INSPECTIONS}/{report['id']}", headers=inspector, json={field: value})

        assert response.status_code == 400
        unchanged = await client.get(f"{INSPECTIONS}/{report['id']}", headers=inspector)
        assert unchanged.json()["reportNumber"] == report["reportNumber"]
        assert unchanged.json()["viewCount"] == 0

    async def test_other_inspector_cannot_update(self, client, inspector, second_inspector):
        report = await create_report(client, inspector)

        response = await client.put(f"{INSPECTIONS}/{report['id']}", headers=second_inspector,
                                    json={"overallRating": 1})

        assert response.status_code == 403

    async def test_publish_and_share(self, client, inspector):
        report = await create_report(client, inspector)

        published = await publish(client, inspector, report["id"])
        link = published["shareableLink"]

        assert len(link) == 64
        assert published["report"]["isPublished"] is True
        assert published["publicUrl"].endswith(link)

        first = await client.get(f"{INSPECTIONS}/public/{link}")
        second = await client.get(f"{INSPECTIONS}/public/{link}")
        assert first.status_code == 200
        assert first.json()["viewCount"] == 1
        assert second.json()["viewCount"] == 2
        assert first.json()["reportNumber"] == report["reportNumber"]

    async def test_publish_twice_keeps_link(self, client, inspector):
        report = await create_report(client, inspector)

        first = await publish(client, inspector, report["id"])
        second = await publish(client, inspector, report["id"])

        assert second["shareableLink"] == first["shareableLink"]

    async def test_unpublish_hides_report(self, client, inspector):
        report = await create_report(client, inspector)
        link = (await publish(client, inspector, report["id"]))["shareableLink"]
        await client.get(f"{INSPECTIONS}/public/{link}")

        response = await client.put(f"{INSPECTIONS}/{report['id']}/unpublish", headers=inspector)
        assert response.status_code == 200
        assert response.json()["shareableLink"] == link

        assert (await client.get(f"{INSPECTIONS}/public/{link}")).status_code == 404
        assert (await client.get(f"{INSPECTIONS}/download/{link}")).status_code == 404

        stored = await client.get(f"{INSPECTIONS}/{report['id']}", headers=inspector)
        assert stored.json()["viewCount"] == 1

        republished = await publish(client, inspector, report["id"])
        assert republished["shareableLink"] == link

    async def test_unknown_link(self, client):
        response = await client.get(f"{INSPECTIONS}/public/{'0' * 64}")

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    async def test_published_report_locked_for_inspector(self, client, inspector, admin):
        report = await create_report(client, inspector)
        await publish(client, inspector, report["id"])

        response = await client.put(f"{INSPECTIONS}/{report['id']}", headers=inspector, json={"overallRating": 3})
        assert response.status_code == 400

        response = await client.put(f"{INSPECTIONS}/{report['id']}", headers=admin, json={"overallRating": 3})
        assert response.status_code == 200


class TestDownloads:
    """PDF and QR code of published reports."""

    async def test_pdf_download(self, client, inspector):
        report = await create_report(client, inspector)
        link = (await publish(client, inspector, report["id"]))["shareableLink"]

        response = await client.get(f"{INSPECTIONS}/download/{link}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert report["reportNumber"] in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

        # Downloads are not views
        stored = await client.get(f"{INSPECTIONS}/{report['id']}", headers=inspector)
        assert stored.json()["viewCount"] == 0

    async def test_pdf_of_draft(self, client, inspector):
        report = await create_report(client, inspector)
        link = (await publish(client, inspector, report["id"]))["shareableLink"]
        await client.put(f"{INSPECTIONS}/{report['id']}/unpublish", headers=inspector)

        response = await client.get(f"{INSPECTIONS}/download/{link}")

        assert response.status_code == 404

    async def test_qr_code(self, client, inspector):
        report = await create_report(client, inspector)
        link = (await publish(client, inspector, report["id"]))["shareableLink"]

        response = await client.get(f"{INSPECTIONS}/public/{link}/qr")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "<svg" in response.text


class TestVisibility:
    """Who can read and list which reports."""

    async def test_car_owner_reads_report(self, client, inspector, owner):
        report = await create_report(client, inspector)

        response = await client.get(f"{INSPECTIONS}/{report['id']}", headers=owner)

        assert response.status_code == 200

    async def test_other_inspector_cannot_read(self, client, inspector, second_inspector):
        report = await create_report(client, inspector)

        response = await client.get(f"{INSPECTIONS}/{report['id']}", headers=second_inspector)

        assert response.status_code == 403

    async def test_list_scoped_and_filtered(self, client, inspector, second_inspector, admin):
        first = await create_report(client, inspector)
        await create_report(client, inspector)
        await publish(client, inspector, first["id"])

        mine = (await client.get(INSPECTIONS, headers=inspector)).json()
        published = (await client.get(INSPECTIONS, params={"status": "published"}, headers=inspector)).json()
        theirs = (await client.get(INSPECTIONS, headers=second_inspector)).json()
        everything = (await client.get(INSPECTIONS, headers=admin)).json()

        assert mine["total"] == 2
        assert [item["id"] for item in published["items"]] == [first["id"]]
        assert theirs["total"] == 0
        assert everything["total"] == 2

    async def test_bad_status_filter(self, client, admin):
        response = await client.get(INSPECTIONS, params={"status": "archived"}, headers=admin)

        assert response.status_code == 400


class TestCarParts:
    """Car part endpoints."""

    async def add_part(self, client, headers, report_id, **overrides):
        body = {
            "inspectionReport": report_id,
            "category": "engine",
            "partName": "Radiator",
            "condition": "Good",
            "conditionScore": 8,
        }
        body.update(overrides)
        return await client.post(CAR_PARTS, json=body, headers=headers)

    async def test_add_and_list_grouped(self, client, inspector):
        report = await create_report(client, inspector)
        await self.add_part(client, inspector, report["id"], category="wheels", partName="Tyre")
        response = await self.add_part(client, inspector, report["id"])

        assert response.status_code == 201
        assert response.json()["healthScore"] == 90

        listing = await client.get(f"{CAR_PARTS}/inspection/{report['id']}", headers=inspector)
        body = listing.json()
        assert body["total"] == 2
        assert list(body["parts"]) == ["engine", "wheels"]

    @pytest.mark.parametrize("overrides", [{"conditionScore": 11}, {"category": "bogus"}])
    async def test_invalid_part(self, client, inspector, overrides):
        report = await create_report(client, inspector)

        response = await self.add_part(client, inspector, report["id"], **overrides)

        assert response.status_code == 400
        listing = await client.get(f"{CAR_PARTS}/inspection/{report['id']}", headers=inspector)
        assert listing.json()["total"] == 0

    async def test_other_inspector_cannot_add(self, client, inspector, second_inspector):
        report = await create_report(client, inspector)

        response = await self.add_part(client, second_inspector, report["id"])

        assert response.status_code == 403

    async def test_update_and_remove(self, client, inspector):
        report = await create_report(client, inspector)
        part = (await self.add_part(client, inspector, report["id"])).json()

        response = await client.put(f"{CAR_PARTS}/{part['id']}", headers=inspector,
                                    json={"condition": "Poor", "recommendation": "repair-soon"})
        assert response.status_code == 200
        assert response.json()["repairUrgency"] == "high"

        moved = await client.put(f"{CAR_PARTS}/{part['id']}", headers=inspector,
                                 json={"inspectionReport": str(uuid4())})
        assert moved.status_code == 400

        response = await client.delete(f"{CAR_PARTS}/{part['id']}", headers=inspector)
        assert response.status_code == 204
        assert (await client.get(f"{CAR_PARTS}/{part['id']}", headers=inspector)).status_code == 404

    async def test_public_report_includes_parts(self, client, inspector):
        report = await create_report(client, inspector)
        await self.add_part(client, inspector, report["id"], category="brakes", partName="Pads")
        link = (await publish(client, inspector, report["id"]))["shareableLink"]

        body = (await client.get(f"{INSPECTIONS}/public/{link}")).json()

        assert [part["partName"] for part in body["carParts"]["brakes"]] == ["Pads"]

    async def test_delete_report_removes_parts(self, client, inspector):
        report = await create_report(client, inspector)
        part = (await self.add_part(client, inspector, report["id"])).json()

        response = await client.delete(f"{INSPECTIONS}/{report['id']}", headers=inspector)

        assert response.status_code == 200
        assert response.json()["deletedParts"] == 1
        assert (await client.get(f"{CAR_PARTS}/{part['id']}", headers=inspector)).status_code == 404
        assert (await client.get(f"{INSPECTIONS}/{report['id']}", headers=inspector)).status_code == 404


class TestHealth:
    """Health endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_root(self, client):
        response = await client.get("/")

        assert response.json()["message"] == "Car Inspection Reports API"
