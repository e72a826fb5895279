"""
HTTP-level tests: authentication, permission checks, request validation and response envelopes
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import make_user
from services.base_service import ServiceResult, failure


def ok(*rows) -> ServiceResult:
    return ServiceResult(success=True, data=list(rows), count=len(rows))


class TestHealth:

    @pytest.mark.asyncio
    async def test_unhealthy_without_database(self, client):
        response = await client.get("/")
        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Health check failed")
        assert "X-Trace-ID" in response.headers


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/members")
        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_malformed_header(self, client):
        response = await client.get("/api/members", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_permission_denied(self, client, login_as, member_user):
        login_as(member_user)
        response = await client.post("/api/members", json={"first_name": "Ada"})
        assert response.status_code == 403
        assert response.json()["message"] == "Insufficient permissions"

    @pytest.mark.asyncio
    async def test_web_login_sets_cookie(self, client):
        service = MagicMock()
        service.web_login = AsyncMock(return_value=ok({
            "token": "signed.jwt.value",
            "user": {"user_id": "u1", "email": "ada@example.com", "role": "admin"},
        }))
        with patch("api.routes.auth.get_auth_service", return_value=service):
            response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "pw"})

        assert response.status_code == 200
        assert response.json()["token"] == "signed.jwt.value"
        assert "signed.jwt.value" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

    @pytest.mark.asyncio
    async def test_web_login_bad_credentials(self, client):
        service = MagicMock()
        service.web_login = AsyncMock(return_value=failure("Invalid email or password", "UNAUTHORIZED"))
        with patch("api.routes.auth.get_auth_service", return_value=service):
            response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "no"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"


class TestMembers:

    @pytest.mark.asyncio
    async def test_create_requires_names_and_email(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post("/api/members", json={"first_name": "Ada", "last_name": ""})
        assert response.status_code == 400
        assert response.json()["error"] == "First name, last name, and email are required"

    @pytest.mark.asyncio
    async def test_create_rejects_bad_email(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post(
            "/api/members", json={"first_name": "Ada", "last_name": "Obi", "email": "ada-at-example"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_returns_record(self, client, login_as, admin_user):
        login_as(admin_user)
        service = MagicMock()
        service.create_member = AsyncMock(return_value=ok({"member_id": "m1", "first_name": "Ada"}))
        with patch("api.routes.members.get_members_service", return_value=service):
            response = await client.post(
                "/api/members", json={"first_name": "Ada", "last_name": "Obi", "email": "ada@example.com"}
            )

        assert response.status_code == 201
        assert response.json()["data"]["member_id"] == "m1"
        assert service.create_member.await_args.args[0]["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, client, login_as, admin_user):
        login_as(admin_user)
        service = MagicMock()
        service.create_member = AsyncMock(return_value=failure("A member with this email already exists", "CONFLICT"))
        with patch("api.routes.members.get_members_service", return_value=service):
            response = await client.post(
                "/api/members", json={"first_name": "Ada", "last_name": "Obi", "email": "ada@example.com"}
            )
        assert response.status_code == 409


class TestEvents:

    @pytest.mark.asyncio
    async def test_name_and_date_required(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post("/api/events", json={"name": "Picnic"})
        assert response.status_code == 400
        assert response.json()["error"] == "Name and date are required"

    @pytest.mark.asyncio
    async def test_recurring_needs_type(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post(
            "/api/events", json={"name": "Service", "date": "2026-03-01T09:00:00Z", "is_recurring": True}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post("/api/events", json={
            "name": "Service", "date": "2026-03-01T09:00:00Z", "end_date": "2026-03-01T08:00:00Z",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "End date must be after the start date"

    @pytest.mark.asyncio
    async def test_unknown_recurrence_is_validation_error(self, client, login_as, admin_user):
        login_as(admin_user)
        response = await client.post("/api/events", json={
            "name": "Service", "date": "2026-03-01T09:00:00Z", "is_recurring": True, "recurring_type": "daily",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"


class TestFormsExport:

    @pytest.mark.asyncio
    async def test_csv_download(self, client, login_as, admin_user):
        login_as(admin_user)
        forms = MagicMock()
        forms.get_form = AsyncMock(return_value=ok({"form_id": "f1", "title": "Prayer Request", "fields": []}))
        submissions = MagicMock()
        submissions.export_form = AsyncMock(return_value=ServiceResult(
            success=True, data=[{"csv": "Submission Date,Submitter Name,Submitter Email\n"}], count=0
        ))
        with patch("api.routes.forms.get_forms_service", return_value=forms), \
                patch("api.routes.forms.get_form_submissions_service", return_value=submissions):
            response = await client.get("/api/forms/f1/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="Prayer Request-submissions.csv"'
        assert response.text.startswith("Submission Date")

    @pytest.mark.asyncio
    async def test_missing_form(self, client, login_as, admin_user):
        login_as(admin_user)
        forms = MagicMock()
        forms.get_form = AsyncMock(return_value=failure("Form not found", "RESOURCE_NOT_FOUND"))
        with patch("api.routes.forms.get_forms_service", return_value=forms):
            response = await client.get("/api/forms/f1/export")
        assert response.status_code == 404
        assert response.json()["error"] == "Form not found"

    @pytest.mark.asyncio
    async def test_members_cannot_export(self, client, login_as, member_user):
        login_as(member_user)
        response = await client.get("/api/forms/f1/export")
        assert response.status_code == 403


class TestMobile:

    @pytest.mark.asyncio
    async def test_donation_amount_must_be_positive(self, client, login_as, member_user):
        login_as(member_user)
        response = await client.post("/api/mobile/donations", json={"amount": 0})
        assert response.status_code == 400
        assert response.json()["error"] == "Amount must be greater than 0"

    @pytest.mark.asyncio
    async def test_donation_needs_member_profile(self, client, login_as):
        login_as(make_user(role="member", member_id=""))
        response = await client.post("/api/mobile/donations", json={"amount": 100})
        assert response.status_code == 404
        assert response.json()["error"] == "Member profile not found"

    @pytest.mark.asyncio
    async def test_pending_donation_message(self, client, login_as, member_user):
        login_as(member_user)
        service = MagicMock()
        service.create_donation = AsyncMock(return_value=ok({"giving_id": "g1", "payment_status": "pending"}))
        with patch("api.routes.mobile_donations.get_giving_service", return_value=service):
            response = await client.post("/api/mobile/donations", json={"amount": 100, "category": "tithe"})

        assert response.status_code == 201
        assert response.json()["message"] == "Donation recorded and awaiting payment confirmation"
        member_id, payload = service.create_donation.await_args.args
        assert member_id == member_user.member_id
        assert payload["category"] == "tithe"

    @pytest.mark.asyncio
    async def test_member_cannot_view_someone_else(self, client, login_as, member_user):
        login_as(member_user)
        response = await client.get("/api/mobile/members/another-member")
        assert response.status_code == 403
        assert response.json()["error"] == "You can only view your own profile"

    @pytest.mark.asyncio
    async def test_staff_can_view_any_member(self, client, login_as, admin_user):
        login_as(admin_user)
        service = MagicMock()
        service.get_by_id = AsyncMock(return_value=ok({"member_id": "another-member"}))
        with patch("api.routes.mobile_members.get_members_service", return_value=service):
            response = await client.get("/api/mobile/members/another-member")
        assert response.status_code == 200
        assert response.json()["data"]["member_id"] == "another-member"

    @pytest.mark.asyncio
    async def test_media_like_toggle(self, client, login_as, member_user):
        login_as(member_user)
        service = MagicMock()
        service.toggle_like = AsyncMock(return_value=ok({"file_id": "f1", "liked": True, "like_count": 3}))
        with patch("api.routes.mobile_media.get_media_service", return_value=service):
            response = await client.post("/api/mobile/media/f1/like")

        assert response.status_code == 200
        assert response.json()["message"] == "Media liked"
        assert response.json()["data"] == {"file_id": "f1", "liked": True, "like_count": 3}
        service.toggle_like.assert_awaited_once_with("f1", member_user.member_id)

    @pytest.mark.asyncio
    async def test_media_like_missing_item(self, client, login_as, member_user):
        login_as(member_user)
        service = MagicMock()
        service.toggle_like = AsyncMock(return_value=failure("Media not found", "RESOURCE_NOT_FOUND"))
        with patch("api.routes.mobile_media.get_media_service", return_value=service):
            response = await client.post("/api/mobile/media/f1/like")
        assert response.status_code == 404
        assert response.json()["error"] == "Media not found"

    @pytest.mark.asyncio
    async def test_media_listing_reports_likes(self, client, login_as, member_user):
        login_as(member_user)
        service = MagicMock()
        service.list_media = AsyncMock(return_value=ServiceResult(
            success=True, data=[{"file_id": "f1", "likes": [member_user.member_id, "other"]}], count=1,
            page_info={"limit": 20, "offset": 0, "total": 1}
        ))
        with patch("api.routes.mobile_media.get_media_service", return_value=service):
            response = await client.get("/api/mobile/media")

        item = response.json()["data"][0]
        assert item["like_count"] == 2
        assert item["liked"] is True
