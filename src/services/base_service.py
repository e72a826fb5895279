"""
Base service layer for unified database operations driven by resource contracts
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import asyncpg

from contracts.base import ContractField, FieldType, FilterOperator, ResourceContract
from contracts.registry import get_contract
from database.connection import get_db_pool
from utils.helpers import parse_timestamp, parse_date, serialize_row

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    page_info: Optional[Dict[str, Any]] = None

    @property
    def first(self) -> Optional[Dict[str, Any]]:
        return self.data[0] if self.data else None


def failure(error: str, error_type: str) -> ServiceResult:
    return ServiceResult(success=False, error=error, error_type=error_type)


def is_uuid(value: Any) -> bool:
    try:
        UUID(str(value))
        return True
    except (ValueError, TypeError, AttributeError):
        return False


class BaseService:
    """Base service that validates operations against a resource contract and executes SQL"""

    def __init__(self, resource_name: str):
        self.resource_name = resource_name
        self.contract: ResourceContract = get_contract(resource_name)
        self.table = self.contract.table
        self.pk_field = self.contract.primary_key
        logger.info(f"BaseService initialized for resource: {resource_name}")

    async def create(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Create a new record using INSERT operation

        Args:
            data: Dictionary of field values to insert

        Returns:
            ServiceResult with created record data
        """
        try:
            values = self._prepare_values(data)
        except ValueError as e:
            return failure(str(e), "INVALID_REQUEST")

        if not values:
            return failure("No fields provided", "INVALID_REQUEST")

        query, params = self._build_insert_query(values)
        return await self._fetch(query, params, single=True)

    async def read(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Dict[str, str]]] = None,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None,
        with_total: bool = False
    ) -> ServiceResult:
        """
        Read records using READ operation

        Args:
            filters: Dictionary of field filters {field_name: value} or {field_name: {"op": "=", "value": value}}
            order_by: List of ordering specs [{"field": "created_at", "dir": "desc"}]
            limit: Maximum number of records to return (capped by the contract)
            offset: Number of records to skip
            search: Free text matched case-insensitively against the contract's search fields
            with_total: Also count every matching row and report it in page_info

        Returns:
            ServiceResult with matched records
        """
        limit = max(1, min(limit, self.contract.limits.max_rows))
        try:
            where_sql, params = self._build_where(filters, search)
            order_sql = self._build_order_by(order_by)
        except ValueError as e:
            return failure(str(e), "INVALID_REQUEST")

        query, query_params = self._build_read_query(where_sql, params, order_sql, limit, offset)
        result = await self._fetch(query, query_params)
        if not result.success:
            return result

        page_info = {"limit": limit, "offset": offset}
        if with_total:
            total = await self._count(where_sql, params)
            if not total.success:
                return total
            page_info["total"] = total.count
        result.page_info = page_info
        return result

    async def count(self, filters: Optional[Dict[str, Any]] = None, search: Optional[str] = None) -> ServiceResult:
        """Count matching records; the total is reported in ServiceResult.count"""
        try:
            where_sql, params = self._build_where(filters, search)
        except ValueError as e:
            return failure(str(e), "INVALID_REQUEST")
        return await self._count(where_sql, params)

    async def update(self, record_id: str, data: Dict[str, Any]) -> ServiceResult:
        """
        Update a record using UPDATE operation

        Args:
            record_id: Primary key value of record to update
            data: Dictionary of field values to update

        Returns:
            ServiceResult with updated record data
        """
        if not is_uuid(record_id):
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        try:
            values = self._prepare_values(data)
        except ValueError as e:
            return failure(str(e), "INVALID_REQUEST")

        if not values:
            return failure("No fields provided for update", "INVALID_REQUEST")

        query, params = self._build_update_query(values, UUID(str(record_id)))
        result = await self._fetch(query, params, single=True)
        if result.success and not result.data:
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        return result

    async def get_by_id(self, record_id: str) -> ServiceResult:
        """
        Get a single record by primary key

        Returns:
            ServiceResult with single record, RESOURCE_NOT_FOUND when missing
        """
        if not is_uuid(record_id):
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")

        result = await self.read(filters={self.pk_field: record_id}, limit=1)
        if result.success and not result.data:
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        return result

    async def delete(self, record_id: str) -> ServiceResult:
        """
        Delete a record by primary key

        Returns:
            ServiceResult carrying the deleted record
        """
        if not is_uuid(record_id):
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")

        query = f"DELETE FROM {self.table} WHERE {self.pk_field} = $1 RETURNING *"
        result = await self._fetch(query, [UUID(str(record_id))], single=True)
        if result.success and not result.data:
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        return result

    async def add_to_array(self, record_id: str, field_name: str, value: Any) -> ServiceResult:
        """Append a value to an array column unless it is already present"""
        return await self._modify_array(record_id, field_name, value, add=True)

    async def remove_from_array(self, record_id: str, field_name: str, value: Any) -> ServiceResult:
        """Remove every occurrence of a value from an array column"""
        return await self._modify_array(record_id, field_name, value, add=False)

    async def fetch(self, query: str, *params) -> ServiceResult:
        """Run a custom SELECT and return serialized rows"""
        return await self._fetch(query, list(params))

    async def fetchval(self, query: str, *params) -> Any:
        db_pool = get_db_pool()
        if not db_pool:
            raise RuntimeError("Database pool not initialized")
        async with db_pool.acquire() as conn:
            return await conn.fetchval(query, *params)

    async def execute(self, query: str, *params) -> ServiceResult:
        """Run a custom statement and report the affected row count"""
        db_pool = get_db_pool()
        if not db_pool:
            return failure("Database pool not initialized", "DATABASE_ERROR")

        logger.info(f"Executing statement on {self.resource_name}: {query}")
        try:
            async with db_pool.acquire() as conn:
                status = await conn.execute(query, *params)
        except asyncpg.PostgresError as e:
            return self._database_failure(e, "EXECUTE")

        # asyncpg returns "UPDATE N" / "DELETE N"
        affected = int(status.split()[-1]) if status and status.split()[-1].isdigit() else 0
        return ServiceResult(success=True, data=[], count=affected)

    # Value preparation

    def _prepare_values(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for field_name, value in data.items():
            field = self.contract.get_field(field_name)
            if field is None:
                raise ValueError(f"Unknown field '{field_name}' for {self.resource_name}")
            if not field.writable:
                raise ValueError(f"Field '{field_name}' is not writable")
            if value is None and not field.nullable:
                raise ValueError(f"Field '{field_name}' cannot be null")
            values[field_name] = self._coerce_value(field, value)
        return values

    def _coerce_value(self, field: ContractField, value: Any) -> Any:
        """Convert an incoming value to the Python type asyncpg expects for the column"""
        if value is None:
            return None
        if isinstance(value, Enum):
            value = value.value

        if field.enum_values and field.type == FieldType.STRING and value not in field.enum_values:
            raise ValueError(
                f"Invalid value '{value}' for '{field.name}'. Allowed: {', '.join(field.enum_values)}"
            )

        try:
            if field.type == FieldType.UUID:
                return value if isinstance(value, UUID) else UUID(str(value))
            if field.type == FieldType.UUID_ARRAY:
                return [item if isinstance(item, UUID) else UUID(str(item)) for item in value]
            if field.type == FieldType.STRING_ARRAY:
                return [str(item) for item in value]
            if field.type == FieldType.TIMESTAMP:
                return parse_timestamp(value)
            if field.type == FieldType.DATE:
                return parse_date(value)
            if field.type == FieldType.NUMBER:
                return value if isinstance(value, Decimal) else Decimal(str(value))
            if field.type == FieldType.INTEGER:
                return int(value)
            if field.type == FieldType.BOOLEAN:
                return bool(value)
        except (ValueError, TypeError, InvalidOperation) as e:
            raise ValueError(f"Invalid value for '{field.name}': {e}")
        return value

    def _coerce_element(self, field: ContractField, value: Any) -> Any:
        """Coerce a single element of an array column"""
        if field.type == FieldType.UUID_ARRAY:
            try:
                return value if isinstance(value, UUID) else UUID(str(value))
            except ValueError:
                raise ValueError(f"Invalid value for '{field.name}': {value}")
        return str(value)

    # Query building

    def _build_where(self, filters: Optional[Dict[str, Any]], search: Optional[str],
                     param_counter: int = 1) -> Tuple[str, List[Any]]:
        where_parts = []
        params: List[Any] = []

        for field_name, filter_spec in (filters or {}).items():
            if isinstance(filter_spec, dict):
                # Advanced filter: {"op": ">=", "value": "2024-01-01"}
                op = filter_spec.get("op", "=")
                value = filter_spec.get("value")
            else:
                # Simple filter: field_name: value (defaults to equality)
                op = "="
                value = filter_spec

            field = self.contract.get_field(field_name)
            if field is None or not field.readable:
                raise ValueError(f"Unknown field '{field_name}' for {self.resource_name}")
            allowed = [o.value for o in self.contract.get_allowed_operators(field_name)]
            if op not in allowed:
                raise ValueError(f"Operator '{op}' not allowed on {self.resource_name}.{field_name}")

            sql, clause_params, param_counter = self._build_where_clause(field, op, value, param_counter)
            where_parts.append(sql)
            params.extend(clause_params)

        if len(where_parts) > self.contract.limits.max_predicates:
            raise ValueError(f"Too many filters for {self.resource_name}")

        if search and self.contract.search_fields:
            pattern = f"%{search.strip()}%"
            search_parts = [f"{name} ILIKE ${param_counter}" for name in self.contract.search_fields]
            where_parts.append(f"({' OR '.join(search_parts)})")
            params.append(pattern)
            param_counter += 1

        where_sql = f" WHERE {' AND '.join(where_parts)}" if where_parts else ""
        return where_sql, params

    def _build_where_clause(self, field: ContractField, op: str, value: Any,
                            param_counter: int) -> Tuple[str, List[Any], int]:
        """Build WHERE clause SQL for a single predicate"""
        name = field.name
        params = []

        if op == FilterOperator.IS_NULL.value:
            return (f"{name} IS NULL" if value in (True, None) else f"{name} IS NOT NULL"), params, param_counter

        if op == FilterOperator.ANY.value:
            sql = f"${param_counter} = ANY({name})"
            params.append(self._coerce_element(field, value))
            return sql, params, param_counter + 1

        if op == FilterOperator.IN.value:
            items = value if isinstance(value, (list, tuple, set)) else [value]
            if not items:
                return "FALSE", params, param_counter
            placeholders = []
            for item in items:
                placeholders.append(f"${param_counter}")
                params.append(self._coerce_value(field, item))
                param_counter += 1
            return f"{name} IN ({', '.join(placeholders)})", params, param_counter

        if op == FilterOperator.BETWEEN.value:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ValueError(f"BETWEEN operator requires array of 2 values, got: {value}")
            sql = f"{name} BETWEEN ${param_counter} AND ${param_counter + 1}"
            params.extend([self._coerce_value(field, value[0]), self._coerce_value(field, value[1])])
            return sql, params, param_counter + 2

        if op in (FilterOperator.LIKE.value, FilterOperator.ILIKE.value):
            params.append(str(value))
        else:
            params.append(self._coerce_value(field, value))
        return f"{name} {op} ${param_counter}", params, param_counter + 1

    def _build_order_by(self, order_by: Optional[List[Dict[str, str]]]) -> str:
        if not order_by:
            return ""
        order_parts = []
        for order_spec in order_by:
            field_name = order_spec["field"]
            if field_name not in self.contract.order_allowed:
                raise ValueError(f"Ordering by '{field_name}' not allowed on {self.resource_name}")
            direction = order_spec.get("dir", "asc").upper()
            if direction not in ("ASC", "DESC"):
                raise ValueError(f"Invalid order direction: {direction}")
            order_parts.append(f"{field_name} {direction}")
        return f" ORDER BY {', '.join(order_parts)}"

    def _build_read_query(self, where_sql: str, params: List[Any], order_sql: str,
                          limit: int, offset: int) -> Tuple[str, List[Any]]:
        """Build SQL SELECT from prepared clauses"""
        select_fields = ", ".join(self.contract.readable_fields())
        query_params = list(params)
        query = f"SELECT {select_fields} FROM {self.table}{where_sql}{order_sql}"

        query_params.append(limit)
        query += f" LIMIT ${len(query_params)}"
        if offset > 0:
            query_params.append(offset)
            query += f" OFFSET ${len(query_params)}"
        return query, query_params

    def _build_insert_query(self, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """Build SQL INSERT query"""
        field_names = list(values.keys())
        placeholders = [f"${i}" for i in range(1, len(field_names) + 1)]
        query = f"""
            INSERT INTO {self.table} ({', '.join(field_names)})
            VALUES ({', '.join(placeholders)})
            RETURNING *
        """
        return query, list(values.values())

    def _build_update_query(self, values: Dict[str, Any], record_id: UUID) -> Tuple[str, List[Any]]:
        """Build SQL UPDATE query; updated_at is always bumped"""
        params = []
        set_parts = []
        for field_name, value in values.items():
            params.append(value)
            set_parts.append(f"{field_name} = ${len(params)}")
        set_parts.append("updated_at = NOW()")

        params.append(record_id)
        query = (
            f"UPDATE {self.table} SET {', '.join(set_parts)} "
            f"WHERE {self.pk_field} = ${len(params)} RETURNING *"
        )
        return query, params

    # Execution

    async def _modify_array(self, record_id: str, field_name: str, value: Any, add: bool) -> ServiceResult:
        field = self.contract.get_field(field_name)
        if field is None or field.type not in (FieldType.UUID_ARRAY, FieldType.STRING_ARRAY):
            return failure(f"'{field_name}' is not an array field", "INVALID_REQUEST")
        if not is_uuid(record_id):
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        try:
            element = self._coerce_element(field, value)
        except ValueError as e:
            return failure(str(e), "INVALID_REQUEST")

        if add:
            expression = f"array_append(array_remove({field_name}, $1), $1)"
        else:
            expression = f"array_remove({field_name}, $1)"
        query = (
            f"UPDATE {self.table} SET {field_name} = {expression}, updated_at = NOW() "
            f"WHERE {self.pk_field} = $2 RETURNING *"
        )
        result = await self._fetch(query, [element, UUID(str(record_id))], single=True)
        if result.success and not result.data:
            return failure(f"Record not found with ID: {record_id}", "RESOURCE_NOT_FOUND")
        return result

    async def _count(self, where_sql: str, params: List[Any]) -> ServiceResult:
        query = f"SELECT COUNT(*) AS total FROM {self.table}{where_sql}"
        result = await self._fetch(query, params)
        if not result.success:
            return result
        total = result.data[0]["total"] if result.data else 0
        return ServiceResult(success=True, data=[], count=total)

    async def _fetch(self, query: str, params: List[Any], single: bool = False) -> ServiceResult:
        db_pool = get_db_pool()
        if not db_pool:
            return failure("Database pool not initialized", "DATABASE_ERROR")

        logger.info(f"Executing query on {self.resource_name}: {' '.join(query.split())}")
        try:
            async with db_pool.acquire() as conn:
                if single:
                    row = await conn.fetchrow(query, *params)
                    rows = [row] if row else []
                else:
                    rows = await conn.fetch(query, *params)
        except asyncpg.PostgresError as e:
            return self._database_failure(e, "QUERY")

        data = [serialize_row(row) for row in rows]
        return ServiceResult(success=True, data=data, count=len(data))

    def _database_failure(self, error: Exception, operation: str) -> ServiceResult:
        if isinstance(error, asyncpg.UniqueViolationError):
            logger.warning(f"Unique constraint violation on {self.resource_name}: {error}")
            return failure("Record already exists", "CONFLICT")
        if isinstance(error, asyncpg.ForeignKeyViolationError):
            logger.warning(f"Foreign key violation on {self.resource_name}: {error}")
            return failure("Referenced record not found", "FOREIGN_KEY_ERROR")
        if isinstance(error, (asyncpg.CheckViolationError, asyncpg.NotNullViolationError,
                              asyncpg.InvalidTextRepresentationError)):
            logger.warning(f"Constraint violation on {self.resource_name}: {error}")
            return failure(f"Invalid data: {error}", "INVALID_REQUEST")
        logger.error(f"Database error during {operation} on {self.resource_name}: {error}")
        return failure(f"Database operation failed: {error}", "DATABASE_ERROR")
