"""
Export Service
CSV renderings of the RSVP list for download
"""

import csv
import io
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from rsvpdesk.services.admin_service import decode_record, donation_amount

RSVP_HEADERS = [
    "ID",
    "Full Name",
    "Email",
    "Phone Number",
    "Number of Guests",
    "RSVP Status",
    "Message",
    "Referral ID",
    "Profession/Organization",
    "Interest Types",
    "Referral Source",
    "Receive Updates",
    "Created At",
]

DONATION_HEADERS = [
    "ID",
    "Full Name",
    "Email",
    "Phone Number",
    "RSVP Status",
    "Donation Intent",
    "Donation Value",
    "Custom Amount",
    "Total Donation Amount",
    "Created At",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(headers: List[str], rows: Iterable[List[Any]]) -> str:
    # QUOTE_MINIMAL quotes a field only when it holds a comma, quote or newline,
    # doubling any quotes inside it.
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def rsvps_to_csv(records: Iterable[dict]) -> str:
    """Render every RSVP as CSV text"""
    rows = []
    for record in map(decode_record, records):
        rows.append([
            record["id"],
            record["full_name"],
            record["email"],
            record.get("phone_number"),
            record["number_of_guests"],
            record["rsvp_status"],
            record.get("message"),
            record.get("referral_id"),
            record.get("profession_organization"),
            ", ".join(record["interest_types"]),
            record.get("referral_source"),
            "Yes" if record["receive_updates"] else "No",
            record.get("created_at"),
        ])
    return _render(RSVP_HEADERS, rows)


def donations_to_csv(records: Iterable[dict]) -> str:
    """Render only the RSVPs that expressed a donation intent"""
    rows = []
    for record in map(decode_record, records):
        if not record["donation_intent"]:
            continue

        total = donation_amount(record)
        rows.append([
            record["id"],
            record["full_name"],
            record["email"],
            record.get("phone_number"),
            record["rsvp_status"],
            ", ".join(record["donation_intent"]),
            record.get("donation_value"),
            record.get("donation_custom"),
            f"${_cell(total)}" if total else "",
            record.get("created_at"),
        ])
    return _render(DONATION_HEADERS, rows)


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.csv"
