"""
Tests for login, lockout, registration and password reset flows
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from services.auth_service import AuthService, INVALID_CREDENTIALS, FORGOT_PASSWORD_MESSAGE, mobile_profile
from services.base_service import ServiceResult, failure
from services.email_service import EmailDeliveryError
from services.jwt_service import get_token_service
from utils.helpers import utc_now
from utils.security import hash_password

PASSWORD = "church123"
PASSWORD_HASH = hash_password(PASSWORD, rounds=4)


def ok(*rows) -> ServiceResult:
    return ServiceResult(success=True, data=list(rows), count=len(rows))


def user_row(**overrides):
    row = {
        "user_id": str(uuid.uuid4()),
        "email": "ada@example.com",
        "first_name": "Ada",
        "last_name": "Obi",
        "role": "member",
        "permissions": [],
        "member_id": None,
        "password_hash": PASSWORD_HASH,
        "login_attempts": 0,
        "lockout_until": None,
        "is_active": True,
    }
    row.update(overrides)
    return row


@pytest.fixture
def users():
    service = MagicMock()
    service.get_user_by_email = AsyncMock(return_value=failure("User not found", "RESOURCE_NOT_FOUND"))
    service.record_failed_login = AsyncMock(return_value=ok())
    service.record_successful_login = AsyncMock(side_effect=lambda user_id: ok(user_row(user_id=user_id)))
    service.set_reset_token = AsyncMock(return_value=ok(user_row()))
    service.create_user = AsyncMock()
    return service


@pytest.fixture
def members():
    service = MagicMock()
    service.update = AsyncMock(return_value=ok())
    service.get_by_id = AsyncMock(return_value=ok())
    service.email_exists = AsyncMock(return_value=False)
    service.create_member = AsyncMock()
    service.delete = AsyncMock(return_value=ok())
    return service


@pytest.fixture
def auth(users, members):
    activity = MagicMock()
    activity.record = AsyncMock(return_value=ok())
    with patch("services.auth_service.get_users_service", return_value=users), \
            patch("services.auth_service.get_members_service", return_value=members), \
            patch("services.auth_service.get_activity_service", return_value=activity):
        yield AuthService()


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_missing_credentials(self, auth):
        result = await auth.authenticate("", PASSWORD)
        assert result.error_type == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth):
        result = await auth.authenticate("nobody@example.com", PASSWORD)
        assert result.error_type == "UNAUTHORIZED"
        assert result.error == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_wrong_password_records_failure(self, auth, users):
        users.get_user_by_email.return_value = ok(user_row())
        result = await auth.authenticate("ada@example.com", "wrong-password")
        assert result.error == INVALID_CREDENTIALS
        users.record_failed_login.assert_awaited_once()
        users.record_successful_login.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_locked_account(self, auth, users):
        users.get_user_by_email.return_value = ok(user_row(lockout_until=utc_now() + timedelta(minutes=10)))
        result = await auth.authenticate("ada@example.com", PASSWORD)
        assert result.error_type == "UNAUTHORIZED"
        assert result.error.startswith("Account locked. Try again in")

    @pytest.mark.asyncio
    async def test_deactivated_account(self, auth, users):
        users.get_user_by_email.return_value = ok(user_row(is_active=False))
        result = await auth.authenticate("ada@example.com", PASSWORD)
        assert result.error_type == "UNAUTHORIZED"
        assert "deactivated" in result.error

    @pytest.mark.asyncio
    async def test_success_resets_lockout(self, auth, users):
        row = user_row(login_attempts=3)
        users.get_user_by_email.return_value = ok(row)
        result = await auth.authenticate("ada@example.com", PASSWORD)
        assert result.success
        users.record_successful_login.assert_awaited_once_with(row["user_id"])


class TestLogins:

    @pytest.mark.asyncio
    async def test_web_login_hides_credentials(self, auth, users):
        users.get_user_by_email.return_value = ok(user_row())
        result = await auth.web_login("ada@example.com", PASSWORD)
        payload = result.data[0]
        assert "password_hash" not in payload["user"]
        assert get_token_service().decode_token(payload["token"])["client"] == "web"

    @pytest.mark.asyncio
    async def test_mobile_login_includes_member_profile(self, auth, users, members):
        member_id = str(uuid.uuid4())
        users.get_user_by_email.return_value = ok(user_row(member_id=member_id))
        users.record_successful_login.side_effect = lambda user_id: ok(user_row(user_id=user_id, member_id=member_id))
        members.get_by_id.return_value = ok({
            "member_id": member_id, "avatar": "a.png", "community_ids": ["c1"], "total_attendance": 4,
        })

        result = await auth.mobile_login("ada@example.com", PASSWORD)
        profile = result.data[0]["user"]
        assert profile["avatar"] == "a.png"
        assert profile["stats"]["communities_count"] == 1
        assert profile["stats"]["total_attendance"] == 4
        members.update.assert_awaited()

    def test_mobile_profile_without_member(self):
        profile = mobile_profile(user_row(), None)
        assert profile["community_ids"] == []
        assert profile["stats"]["total_giving"] == 0


class TestRegistration:

    def payload(self, **overrides):
        data = {"first_name": "Ada", "last_name": "Obi", "email": "Ada@Example.com", "phone": "0800",
                "password": PASSWORD}
        data.update(overrides)
        return data

    @pytest.mark.asyncio
    async def test_all_fields_required(self, auth):
        result = await auth.register_mobile(self.payload(phone=" "))
        assert result.error == "All fields are required"

    @pytest.mark.asyncio
    async def test_short_password(self, auth):
        result = await auth.register_mobile(self.payload(password="123"))
        assert result.error_type == "INVALID_REQUEST"
        assert "at least 6 characters" in result.error

    @pytest.mark.asyncio
    async def test_existing_email(self, auth, members):
        members.email_exists.return_value = True
        result = await auth.register_mobile(self.payload())
        assert result.error == "Email already registered"

    @pytest.mark.asyncio
    async def test_failed_user_creation_removes_member(self, auth, users, members):
        member_id = str(uuid.uuid4())
        members.create_member.return_value = ok({"member_id": member_id})
        users.create_user.return_value = failure("Record already exists", "CONFLICT")

        result = await auth.register_mobile(self.payload())
        assert result.error == "Email already registered"
        members.delete.assert_awaited_once_with(member_id)

    @pytest.mark.asyncio
    async def test_success_links_records_and_survives_email_failure(self, auth, users, members):
        member_id = str(uuid.uuid4())
        created_user = user_row(member_id=member_id)
        members.create_member.return_value = ok({"member_id": member_id, "is_first_timer": True})
        users.create_user.return_value = ok(created_user)

        with patch("services.auth_service.send_welcome_email", side_effect=EmailDeliveryError("down")):
            result = await auth.register_mobile(self.payload())

        assert result.success
        assert members.create_member.await_args.args[0]["email"] == "ada@example.com"
        members.update.assert_awaited_with(member_id, {"user_id": created_user["user_id"]})
        assert result.data[0]["user"]["is_first_timer"] is True


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_unknown_email_gets_same_message(self, auth):
        result = await auth.forgot_password("nobody@example.com")
        assert result.success
        assert result.data[0]["message"] == FORGOT_PASSWORD_MESSAGE

    @pytest.mark.asyncio
    async def test_email_failure_clears_token(self, auth, users):
        row = user_row()
        users.get_user_by_email.return_value = ok(row)
        with patch("services.auth_service.send_password_reset_email", side_effect=EmailDeliveryError("down")):
            result = await auth.forgot_password("ada@example.com")

        assert result.error_type == "EMAIL_ERROR"
        assert users.set_reset_token.await_args_list[-1].args == (row["user_id"], None)

    @pytest.mark.asyncio
    async def test_reset_requires_long_password(self, auth):
        result = await auth.reset_password("token", "123")
        assert result.error_type == "INVALID_REQUEST"


class TestStaffAccounts:

    @pytest.mark.asyncio
    async def test_invalid_role(self, auth):
        result = await auth.create_staff_user({
            "email": "staff@example.com", "password": PASSWORD, "role": "pastor",
            "first_name": "S", "last_name": "T",
        })
        assert result.error == "Invalid role: pastor"

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, auth):
        result = await auth.delete_user("u1", "u1")
        assert result.error == "You cannot delete your own account"
