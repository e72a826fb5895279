"""
Tests for helpers, CSV import/export, permissions, passwords and session tokens
"""

import csv
import time
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

import jwt
import pytest

from config.permissions import has_permission, is_staff, get_role_permissions, is_valid_role
from services.jwt_service import TokenService
from utils.csv_tools import (
    parse_member_import, build_submissions_csv, export_filename, rows_to_csv, CSVFormatError, read_csv_rows
)
from utils.helpers import slugify, is_valid_email, paginate, serialize_value, parse_date, format_time_12h
from utils.security import hash_password, verify_password, generate_reset_token


class TestHelpers:

    @pytest.mark.parametrize("title,expected", [
        ("Hello World", "hello-world"),
        ("  Easter -- Sunday!! 2026 ", "easter-sunday-2026"),
        ("***", ""),
    ])
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    @pytest.mark.parametrize("email,valid", [
        ("jane@example.com", True),
        ("jane@example", False),
        ("jane example@x.com", False),
        ("", False),
        (None, False),
    ])
    def test_is_valid_email(self, email, valid):
        assert is_valid_email(email) is valid

    def test_paginate(self):
        assert paginate(45, 2, 20) == {
            "page": 2,
            "limit": 20,
            "total": 45,
            "total_pages": 3,
            "has_next_page": True,
            "has_previous_page": True,
        }
        assert paginate(0, 1, 20)["total_pages"] == 0

    def test_serialize_value(self):
        row_id = uuid.uuid4()
        assert serialize_value(row_id) == str(row_id)
        assert serialize_value(Decimal("12.50")) == 12.5
        assert serialize_value(date(2026, 1, 2)) == "2026-01-02"
        assert serialize_value({"ids": [row_id]}) == {"ids": [str(row_id)]}

    def test_parse_date_accepts_timestamps(self):
        assert parse_date("2026-05-04") == date(2026, 5, 4)
        assert parse_date("2026-05-04T22:00:00Z") == date(2026, 5, 4)
        assert parse_date("") is None

    def test_format_time_12h(self):
        assert format_time_12h(datetime(2026, 1, 1, 19, 30)) == "7:30 PM"
        assert format_time_12h(datetime(2026, 1, 1, 0, 5)) == "12:05 AM"


class TestMemberImport:

    def test_headers_are_normalised(self):
        content = "First Name,Last Name,Email Address,Is First Timer\nAda,Obi,ADA@Example.com,yes\n"
        valid, errors = parse_member_import(content)
        assert errors == []
        row_number, record = valid[0]
        assert row_number == 2
        assert record["first_name"] == "Ada"
        assert record["email"] == "ada@example.com"
        assert record["is_first_timer"] is True
        assert record["marital_status"] == "single"

    def test_row_errors_are_reported_with_spreadsheet_numbers(self):
        content = (
            "first_name,last_name,email,date_of_birth\n"
            "Ada,Obi,ada@example.com,1990-02-01\n"
            ",Obi,missing@example.com,\n"
            "Tunde,Bello,not-an-email,\n"
            "Kemi,Ade,kemi@example.com,yesterday\n"
        )
        valid, errors = parse_member_import(content)
        assert len(valid) == 1
        assert valid[0][1]["date_of_birth"] == date(1990, 2, 1)
        assert errors[0].startswith("Row 3:")
        assert errors[1].startswith("Row 4:")
        assert errors[2].startswith("Row 5:")

    def test_emergency_contact_is_nested(self):
        content = (
            "first_name,last_name,email,emergency contact name,emergency contact phone\n"
            "Ada,Obi,ada@example.com,Chidi,0800\n"
        )
        record = parse_member_import(content)[0][0][1]
        assert record["emergency_contact"] == {"name": "Chidi", "phone": "0800", "relationship": ""}

    def test_blank_lines_and_bom_are_ignored(self):
        rows = read_csv_rows("\ufefffirst_name,email\n\n,\nAda,ada@example.com\n")
        assert rows == [{"first_name": "Ada", "email": "ada@example.com"}]

    def test_malformed_csv(self):
        with pytest.raises(CSVFormatError):
            read_csv_rows("first_name\n" + "x" * (csv.field_size_limit() + 1) + "\n")


class TestSubmissionsExport:

    def form(self):
        return {
            "form_id": "f1",
            "title": "Prayer Request",
            "fields": [
                {"id": "name", "label": "Name"},
                {"id": "topics", "label": "Topics"},
            ],
        }

    def test_quotes_and_list_answers(self):
        submissions = [{
            "form_id": "f1",
            "submitted_at": "2026-02-01T10:30:00Z",
            "submitter_name": "Ada",
            "submitter_email": "ada@example.com",
            "responses": {"name": 'Ada "A", Obi', "topics": ["health", "family"]},
        }]
        lines = build_submissions_csv([self.form()], submissions).splitlines()
        assert lines[0] == "Submission Date,Submitter Name,Submitter Email,Name,Topics"
        assert lines[1] == '2026-02-01 10:30:00,Ada,ada@example.com,"Ada ""A"", Obi",health; family'

    def test_empty_form_exports_header_only(self):
        assert build_submissions_csv([self.form()], []) == (
            "Submission Date,Submitter Name,Submitter Email,Name,Topics\n"
        )

    def test_all_forms_export_has_form_column(self):
        other = {"form_id": "f2", "title": "Baby Dedication", "fields": [{"id": "child", "label": "Child"}]}
        submissions = [{"form_id": "f2", "submitted_at": None, "responses": {"child": "Tobi"}}]
        lines = build_submissions_csv([self.form(), other], submissions, include_form_column=True).splitlines()
        assert lines[0] == "Form,Submission Date,Submitter Name,Submitter Email,Name,Topics,Child"
        assert lines[1] == "Baby Dedication,,,,,,Tobi"

    def test_export_filename(self):
        assert export_filename("Prayer Request") == "Prayer Request-submissions.csv"
        assert export_filename("a/b") == "a_b-submissions.csv"
        assert export_filename("") == "form-submissions.csv"

    def test_booleans_render_as_yes_no(self):
        assert rows_to_csv(["Agreed", "Note"], [[True, None], [False, "ok"]]) == "Agreed,Note\nYes,\nNo,ok\n"


class TestPermissions:

    def test_super_admin_holds_everything(self):
        assert has_permission("super_admin", "anything.at.all")

    def test_admin_permissions(self):
        assert has_permission("admin", "members.delete")
        assert has_permission("admin", "maintenance.run")

    def test_broader_grant_covers_narrower(self):
        assert has_permission("admin", "members.view.team")

    def test_narrower_grant_does_not_cover_broader(self):
        assert has_permission("team_leader", "members.view.team")
        assert not has_permission("team_leader", "members.view")

    def test_member_is_limited(self):
        assert has_permission("member", "profile.view")
        assert not has_permission("member", "giving.view")

    def test_extra_permissions(self):
        assert has_permission("member", "blog.view", ["blog.view"])

    def test_unknown_role(self):
        assert not is_valid_role("pastor")
        assert get_role_permissions("pastor") == []
        assert not has_permission("pastor", "members.view")

    def test_is_staff(self):
        assert is_staff("admin")
        assert is_staff("super_admin")
        assert not is_staff("team_leader")


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!", rounds=4)
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_rejects_non_bcrypt_values(self):
        assert not verify_password("s3cret!", "plain-text")
        assert not verify_password("", "anything")

    def test_reset_token_shape(self):
        token = generate_reset_token()
        assert len(token) == 64
        int(token, 16)


class TestTokenService:

    def user(self):
        return {
            "user_id": uuid.uuid4(),
            "email": "ada@example.com",
            "role": "admin",
            "permissions": [],
            "member_id": uuid.uuid4(),
        }

    def test_round_trip(self):
        service = TokenService(secret_key="k", issuer="test-issuer")
        user = self.user()
        payload = service.decode_token(service.create_mobile_token(user))
        assert payload["sub"] == str(user["user_id"])
        assert payload["member_id"] == str(user["member_id"])
        assert payload["client"] == "mobile"

    def test_expired_token(self):
        service = TokenService(secret_key="k")
        token = service.issue_token(self.user(), timedelta(seconds=-10), "web")
        with pytest.raises(jwt.ExpiredSignatureError):
            service.decode_token(token)

    def test_wrong_secret(self):
        token = TokenService(secret_key="k1").create_web_token(self.user())
        with pytest.raises(jwt.InvalidTokenError):
            TokenService(secret_key="k2").decode_token(token)

    def test_other_environment_is_rejected(self):
        now = int(time.time())
        token = jwt.encode(
            {"iss": "sycamore-church-api", "sub": "u1", "iat": now, "exp": now + 60, "environment": "OTHER"},
            "k",
            algorithm="HS256"
        )
        service = TokenService(secret_key="k", issuer="sycamore-church-api")
        with pytest.raises(jwt.InvalidTokenError):
            service.decode_token(token)
