"""
CSV import and export helpers for members and form submissions
"""

import csv
import io
import logging
from typing import Dict, Any, List, Iterable, Optional, Tuple

from models.enums import MaritalStatus
from utils.helpers import parse_date, parse_timestamp, is_valid_email

logger = logging.getLogger(__name__)

# Spreadsheet headers (lowercased) -> member columns
MEMBER_HEADER_MAP = {
    "first name": "first_name",
    "firstname": "first_name",
    "first_name": "first_name",
    "last name": "last_name",
    "lastname": "last_name",
    "last_name": "last_name",
    "email": "email",
    "email address": "email",
    "phone": "phone",
    "phone number": "phone",
    "address": "address",
    "date of birth": "date_of_birth",
    "dateofbirth": "date_of_birth",
    "date_of_birth": "date_of_birth",
    "wedding anniversary": "wedding_anniversary",
    "weddinganniversary": "wedding_anniversary",
    "wedding_anniversary": "wedding_anniversary",
    "marital status": "marital_status",
    "maritalstatus": "marital_status",
    "marital_status": "marital_status",
    "is first timer": "is_first_timer",
    "isfirsttimer": "is_first_timer",
    "first timer": "is_first_timer",
    "is_first_timer": "is_first_timer",
    "is team lead": "is_team_lead",
    "isteamlead": "is_team_lead",
    "team lead": "is_team_lead",
    "is_team_lead": "is_team_lead",
    "is admin": "is_admin",
    "isadmin": "is_admin",
    "is_admin": "is_admin",
    "emergency contact name": "emergency_contact_name",
    "emergencycontactname": "emergency_contact_name",
    "emergency contact phone": "emergency_contact_phone",
    "emergencycontactphone": "emergency_contact_phone",
    "emergency contact relationship": "emergency_contact_relationship",
    "emergencycontactrelationship": "emergency_contact_relationship",
}

TRUTHY_VALUES = {"true", "1", "yes"}
SUBMISSION_BASE_HEADERS = ["Submission Date", "Submitter Name", "Submitter Email"]


class CSVFormatError(ValueError):
    """Raised when an uploaded file cannot be parsed as CSV"""


def normalize_header(header: str) -> str:
    key = (header or "").strip().lower()
    return MEMBER_HEADER_MAP.get(key, key)


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in TRUTHY_VALUES


def read_csv_rows(content: str) -> List[Dict[str, str]]:
    """Parse CSV text into dicts keyed by normalised headers, skipping blank lines"""
    content = content.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(content))
    try:
        rows = [row for row in reader if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise CSVFormatError(f"CSV parsing error: {e}")

    if not rows:
        return []
    headers = [normalize_header(h) for h in rows[0]]
    return [
        {headers[i]: (row[i].strip() if i < len(row) else "") for i in range(len(headers))}
        for row in rows[1:]
    ]


def build_member_record(row: Dict[str, str]) -> Dict[str, Any]:
    """
    Turn one normalised CSV row into member column values.

    Raises:
        ValueError: on missing required fields or unparseable values
    """
    first_name = row.get("first_name", "").strip()
    last_name = row.get("last_name", "").strip()
    email = row.get("email", "").strip().lower()
    if not first_name or not last_name or not email:
        raise ValueError("Missing required fields (first_name, last_name, email)")
    if not is_valid_email(email):
        raise ValueError(f"Invalid email address {email}")

    marital_status = row.get("marital_status", "").strip().lower()
    if marital_status not in [status.value for status in MaritalStatus]:
        marital_status = MaritalStatus.SINGLE.value

    record: Dict[str, Any] = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": row.get("phone", ""),
        "address": row.get("address") or None,
        "marital_status": marital_status,
        "is_first_timer": parse_bool(row.get("is_first_timer")),
        "is_team_lead": parse_bool(row.get("is_team_lead")),
        "is_admin": parse_bool(row.get("is_admin")),
    }

    for column in ("date_of_birth", "wedding_anniversary"):
        if row.get(column):
            try:
                record[column] = parse_date(row[column])
            except ValueError:
                raise ValueError(f"Invalid date '{row[column]}' for {column}")

    if row.get("emergency_contact_name"):
        record["emergency_contact"] = {
            "name": row["emergency_contact_name"],
            "phone": row.get("emergency_contact_phone", ""),
            "relationship": row.get("emergency_contact_relationship", ""),
        }
    return record


def parse_member_import(content: str) -> Tuple[List[Tuple[int, Dict[str, Any]]], List[str]]:
    """
    Parse a member import file.

    Returns:
        (valid rows as (row number, record), error messages). Row numbers are
        spreadsheet rows, so the first data row is row 2.
    """
    valid = []
    errors = []
    for index, row in enumerate(read_csv_rows(content)):
        row_number = index + 2
        try:
            valid.append((row_number, build_member_record(row)))
        except ValueError as e:
            errors.append(f"Row {row_number}: {e}")
    return valid, errors


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(format_cell(item) for item in value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def rows_to_csv(headers: List[str], rows: Iterable[List[Any]]) -> str:
    """Render rows as CSV; fields with commas, quotes or newlines are quoted"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([format_cell(value) for value in row])
    return buffer.getvalue()


def _submission_date(submission: Dict[str, Any]) -> str:
    moment = parse_timestamp(submission.get("submitted_at"))
    return moment.strftime("%Y-%m-%d %H:%M:%S") if moment else ""


def build_submissions_csv(
    forms: List[Dict[str, Any]],
    submissions: List[Dict[str, Any]],
    include_form_column: bool = False
) -> str:
    """
    Export submissions with one column per form field label.

    With several forms the field columns are the union of their labels in
    form order, and a leading "Form" column names each row's form.
    """
    forms_by_id = {str(form["form_id"]): form for form in forms}

    field_columns: List[Tuple[str, str]] = []
    seen_labels = set()
    for form in forms:
        for field in form.get("fields") or []:
            label = field.get("label") or field.get("id")
            if label not in seen_labels:
                seen_labels.add(label)
                field_columns.append((label, field.get("id")))

    headers = (["Form"] if include_form_column else []) + SUBMISSION_BASE_HEADERS + [label for label, _ in field_columns]

    rows = []
    for submission in submissions:
        form = forms_by_id.get(str(submission.get("form_id")), {})
        field_ids_by_label = {
            (field.get("label") or field.get("id")): field.get("id") for field in form.get("fields") or []
        }
        responses = submission.get("responses") or {}
        row = [form.get("title", "")] if include_form_column else []
        row += [
            _submission_date(submission),
            submission.get("submitter_name") or "",
            submission.get("submitter_email") or "",
        ]
        for label, _ in field_columns:
            field_id = field_ids_by_label.get(label)
            row.append(responses.get(field_id) if field_id else "")
        rows.append(row)

    return rows_to_csv(headers, rows)


def export_filename(title: str, suffix: str = "submissions") -> str:
    safe_title = "".join(ch if ch.isalnum() or ch in "-_ " else "_" for ch in title).strip() or "form"
    return f"{safe_title}-{suffix}.csv"
