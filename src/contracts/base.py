"""
Resource contracts: which columns of a table the API may read, write, filter and sort on
"""

from typing import List, Dict, Optional
from pydantic import BaseModel
from enum import Enum


class FieldType(str, Enum):
    """Column types; decide how incoming values are coerced before they reach asyncpg"""
    UUID = "uuid"
    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    JSON = "json"
    UUID_ARRAY = "uuid_array"
    STRING_ARRAY = "string_array"


class FilterOperator(str, Enum):
    EQ = "="
    NEQ = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "IN"
    BETWEEN = "BETWEEN"
    LIKE = "LIKE"
    ILIKE = "ILIKE"
    ANY = "ANY"  # value is an element of an array column
    IS_NULL = "IS NULL"


class ContractField(BaseModel):
    name: str
    type: FieldType
    nullable: bool = True
    readable: bool = True
    writable: bool = True
    enum_values: Optional[List[str]] = None


class ContractLimits(BaseModel):
    """Page size cap and the most filters a single read may combine"""
    max_rows: int = 100
    max_predicates: int = 10


class ResourceContract(BaseModel):
    """Columns and query rules for one table"""
    resource: str
    table: str
    primary_key: str
    fields: List[ContractField]
    filters_allowed: Dict[str, List[FilterOperator]]
    order_allowed: List[str]
    search_fields: List[str] = []
    limits: ContractLimits = ContractLimits()

    def get_field(self, field_name: str) -> Optional[ContractField]:
        return next((f for f in self.fields if f.name == field_name), None)

    def get_allowed_operators(self, field_name: str) -> List[FilterOperator]:
        """Operators a filter on this column may use; unlisted columns allow none"""
        return self.filters_allowed.get(field_name, [])

    def readable_fields(self) -> List[str]:
        return [f.name for f in self.fields if f.readable]

    def writable_fields(self) -> List[str]:
        return [f.name for f in self.fields if f.writable]
