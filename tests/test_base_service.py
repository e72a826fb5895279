"""
Tests for contract-driven query building in BaseService
"""

import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from services.base_service import BaseService, ServiceResult, failure, is_uuid


@pytest.fixture
def members():
    return BaseService("members")


@pytest.fixture
def givings():
    return BaseService("givings")


class TestHelpers:

    def test_is_uuid(self):
        assert is_uuid(uuid.uuid4())
        assert is_uuid(str(uuid.uuid4()))
        assert not is_uuid("my-first-post")
        assert not is_uuid(None)

    def test_first(self):
        assert ServiceResult(success=True, data=[{"a": 1}, {"a": 2}]).first == {"a": 1}
        assert ServiceResult(success=True, data=[]).first is None
        assert failure("nope", "CONFLICT").first is None


class TestWhereClause:

    def test_simple_equality(self, members):
        member_id = str(uuid.uuid4())
        where_sql, params = members._build_where({"member_id": member_id}, None)
        assert where_sql == " WHERE member_id = $1"
        assert params == [uuid.UUID(member_id)]

    def test_array_membership(self, members):
        community_id = uuid.uuid4()
        where_sql, params = members._build_where({"community_ids": {"op": "ANY", "value": str(community_id)}}, None)
        assert where_sql == " WHERE $1 = ANY(community_ids)"
        assert params == [community_id]

    def test_in_list(self, members):
        ids = [uuid.uuid4(), uuid.uuid4()]
        where_sql, params = members._build_where({"member_id": {"op": "IN", "value": ids}}, None)
        assert where_sql == " WHERE member_id IN ($1, $2)"
        assert params == ids

    def test_empty_in_list_matches_nothing(self, members):
        where_sql, params = members._build_where({"member_id": {"op": "IN", "value": []}}, None)
        assert where_sql == " WHERE FALSE"
        assert params == []

    def test_is_null(self, members):
        where_sql, _ = members._build_where({"team_id": {"op": "IS NULL", "value": True}}, None)
        assert where_sql == " WHERE team_id IS NULL"
        where_sql, _ = members._build_where({"team_id": {"op": "IS NULL", "value": False}}, None)
        assert where_sql == " WHERE team_id IS NOT NULL"

    def test_placeholders_continue_after_between(self, givings):
        where_sql, params = givings._build_where(
            {
                "date": {"op": "BETWEEN", "value": ["2026-01-01", "2026-01-31T23:59:59Z"]},
                "category": "tithe",
            },
            None
        )
        assert where_sql == " WHERE date BETWEEN $1 AND $2 AND category = $3"
        assert params[0] == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert params[2] == "tithe"

    def test_search_uses_contract_fields(self, members):
        where_sql, params = members._build_where({"is_first_timer": True}, "  ada ")
        assert where_sql == (
            " WHERE is_first_timer = $1 AND "
            "(first_name ILIKE $2 OR last_name ILIKE $2 OR email ILIKE $2)"
        )
        assert params == [True, "%ada%"]

    def test_unknown_field_rejected(self, members):
        with pytest.raises(ValueError, match="Unknown field"):
            members._build_where({"password": "x"}, None)

    def test_disallowed_operator_rejected(self, members):
        with pytest.raises(ValueError, match="not allowed"):
            members._build_where({"is_first_timer": {"op": ">", "value": True}}, None)

    def test_enum_values_are_checked(self, givings):
        with pytest.raises(ValueError, match="Invalid value 'lottery'"):
            givings._build_where({"category": "lottery"}, None)


class TestOrderingAndPaging:

    def test_order_by(self, members):
        assert members._build_order_by([{"field": "first_name"}, {"field": "created_at", "dir": "desc"}]) == (
            " ORDER BY first_name ASC, created_at DESC"
        )

    def test_order_by_rejects_unlisted_field(self, members):
        with pytest.raises(ValueError):
            members._build_order_by([{"field": "email"}])

    def test_read_query_appends_limit_and_offset(self, members):
        query, params = members._build_read_query(" WHERE team_id = $1", ["t"], "", 20, 40)
        assert query.endswith("FROM members WHERE team_id = $1 LIMIT $2 OFFSET $3")
        assert params == ["t", 20, 40]

    @pytest.mark.asyncio
    async def test_read_caps_limit_at_contract_maximum(self, members):
        with patch.object(members, "_fetch", new=AsyncMock(return_value=ServiceResult(success=True, data=[]))) as fetch:
            result = await members.read(limit=10_000)
        _, params = fetch.await_args.args
        assert params[-1] == 100
        assert result.page_info == {"limit": 100, "offset": 0}

    @pytest.mark.asyncio
    async def test_read_reports_total(self, members):
        with patch.object(members, "_fetch", new=AsyncMock(return_value=ServiceResult(success=True, data=[{}]))), \
                patch.object(members, "_count", new=AsyncMock(return_value=ServiceResult(success=True, count=57))):
            result = await members.read(limit=20, offset=20, with_total=True)
        assert result.page_info == {"limit": 20, "offset": 20, "total": 57}

    @pytest.mark.asyncio
    async def test_invalid_filter_is_invalid_request(self, members):
        result = await members.read(filters={"nope": 1})
        assert result.success is False
        assert result.error_type == "INVALID_REQUEST"


class TestValuePreparation:

    def test_coercion(self, givings):
        values = givings._prepare_values({
            "member_id": str(uuid.uuid4()),
            "amount": 10.1,
            "date": "2026-03-01T10:00:00Z",
            "is_recurring": 0,
        })
        assert values["amount"] == Decimal("10.1")
        assert values["date"] == datetime(2026, 3, 1, 10, tzinfo=timezone.utc)
        assert values["is_recurring"] is False

    def test_date_columns(self, members):
        assert members._prepare_values({"date_of_birth": "1990-05-04"})["date_of_birth"] == date(1990, 5, 4)

    def test_read_only_field_rejected(self, members):
        with pytest.raises(ValueError, match="not writable"):
            members._prepare_values({"created_at": "2026-01-01"})

    def test_not_nullable(self, members):
        with pytest.raises(ValueError, match="cannot be null"):
            members._prepare_values({"first_name": None})

    def test_bad_uuid(self, members):
        with pytest.raises(ValueError, match="Invalid value for 'team_id'"):
            members._prepare_values({"team_id": "not-a-uuid"})


class TestMissingRecords:

    @pytest.mark.asyncio
    async def test_non_uuid_ids_are_not_found_without_a_query(self, members):
        with patch.object(members, "_fetch", new=AsyncMock()) as fetch:
            for result in (
                await members.get_by_id("abc"),
                await members.update("abc", {"first_name": "Ada"}),
                await members.delete("abc"),
            ):
                assert result.error_type == "RESOURCE_NOT_FOUND"
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_update_result_is_not_found(self, members):
        with patch.object(members, "_fetch", new=AsyncMock(return_value=ServiceResult(success=True, data=[]))):
            result = await members.update(str(uuid.uuid4()), {"first_name": "Ada"})
        assert result.error_type == "RESOURCE_NOT_FOUND"
