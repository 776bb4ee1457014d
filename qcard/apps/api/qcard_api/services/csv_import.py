"""CSV parsing for external actor bulk upload.

The studio UI posts the raw file text; headers vary with whatever spreadsheet
produced the file, so column names are matched loosely:

    "First Name", "firstName", "first_name"  -> first_name
    "Phone", "Phone Number", "phoneNumber"   -> phone_number

Matching ignores case, surrounding whitespace, spaces, underscores and dashes.
When two columns map to the same field the left-most one wins.
"""

import csv
import io
import re
from dataclasses import dataclass
from typing import Optional

from qcard_api.errors import DomainValidationError

HEADER_ALIASES = {
    "firstname": "first_name",
    "first": "first_name",
    "givenname": "first_name",
    "lastname": "last_name",
    "last": "last_name",
    "surname": "last_name",
    "familyname": "last_name",
    "email": "email",
    "emailaddress": "email",
    "phone": "phone_number",
    "phonenumber": "phone_number",
    "mobile": "phone_number",
    "notes": "notes",
    "note": "notes",
}

_HEADER_NOISE = re.compile(r"[\s_\-]+")


@dataclass
class ExternalActorRow:
    """One non-empty data row; ``row`` is 1-based over data rows."""

    row: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notes: Optional[str] = None

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.first_name:
            missing.append("First Name")
        if not self.last_name:
            missing.append("Last Name")
        if not self.email and not self.phone_number:
            missing.append("Email or Phone Number")
        return missing


def canonical_header(header: str) -> Optional[str]:
    """Map a raw header cell to an ExternalActorRow attribute (None if unknown)."""
    key = _HEADER_NOISE.sub("", header.strip().lower())
    return HEADER_ALIASES.get(key)


def parse_external_actor_csv(csv_text: str) -> list[ExternalActorRow]:
    """Parse CSV text into rows.

    Empty lines are skipped, cells are trimmed and ragged rows are tolerated
    (missing trailing cells are treated as empty, extra cells are ignored).

    Raises:
        DomainValidationError: Text is not parseable CSV or has no header
    """
    if not csv_text or not csv_text.strip():
        raise DomainValidationError("Failed to parse CSV data: file is empty")

    try:
        records = list(csv.reader(io.StringIO(csv_text.lstrip("\ufeff"), newline=""), strict=True))
    except csv.Error as e:
        raise DomainValidationError(f"Failed to parse CSV data: {e}") from e

    records = [record for record in records if any(cell.strip() for cell in record)]
    if not records:
        raise DomainValidationError("Failed to parse CSV data: file is empty")

    header, data = records[0], records[1:]
    columns: dict[str, int] = {}
    for index, cell in enumerate(header):
        field = canonical_header(cell)
        if field and field not in columns:
            columns[field] = index

    if not columns:
        raise DomainValidationError("Failed to parse CSV data: no recognised column headers")

    rows = []
    for number, record in enumerate(data, start=1):
        values = {}
        for field, index in columns.items():
            cell = record[index].strip() if index < len(record) else ""
            values[field] = cell or None
        rows.append(ExternalActorRow(row=number, **values))
    return rows
