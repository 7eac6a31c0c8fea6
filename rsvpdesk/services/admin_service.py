"""
Admin Service
Read-side shaping of stored RSVPs for the admin dashboard
"""

import json
from typing import Any, List, Optional

from rsvpdesk.store import RecordStore

# (stored value, dashboard label), in dashboard order
DONATION_INTENT_LABELS = (
    ("individual", "Individual"),
    ("company", "Corporate"),
    ("awareness", "Awareness"),
    ("volunteer", "Volunteer"),
    ("learn_more", "Learn More"),
)


def decode_json_list(value: Any) -> List[str]:
    """Parse a JSON-array text column; anything unparseable reads as empty"""
    if isinstance(value, list):
        return [str(v) for v in value]
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return [str(v) for v in parsed]


def decode_record(row: dict) -> dict:
    """Turn a stored row into its API shape: arrays decoded, flag as bool"""
    return {
        **row,
        "interest_types": decode_json_list(row.get("interest_types")),
        "donation_intent": decode_json_list(row.get("donation_intent")),
        "receive_updates": row.get("receive_updates") == 1 or row.get("receive_updates") is True,
    }


def donation_amount(record: dict) -> float:
    """The one donation amount a record carries, or 0"""
    return record.get("donation_value") or record.get("donation_custom") or 0


class AdminService:
    """Queries behind the admin endpoints"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def list_rsvps(self, sort_by: Optional[str] = None, order: Optional[str] = None) -> List[dict]:
        rows = await self.store.list(sort_by, order)
        return [decode_record(row) for row in rows]

    async def get_stats(self) -> dict:
        stats = await self.store.aggregate_stats()
        return {
            "total_rsvps": stats.total,
            "by_status": stats.by_status,
            "by_referral_source": stats.by_referral_source,
            "wants_updates": stats.wants_updates,
        }

    async def get_donation_stats(self) -> dict:
        """
        Donation intent breakdown

        A record's donation amount is split evenly across the intents it
        selected, so per-intent values add up to the overall total.
        """
        records = await self.list_rsvps("created_at", "desc")

        counts = {key: 0 for key, _ in DONATION_INTENT_LABELS}
        values = {key: 0.0 for key, _ in DONATION_INTENT_LABELS}
        guests_with_intent = 0
        total_value = 0.0

        for record in records:
            intents = record["donation_intent"]
            if not intents:
                continue

            guests_with_intent += 1
            amount = donation_amount(record)
            total_value += amount

            for intent in intents:
                if intent in counts:
                    counts[intent] += 1
                    values[intent] += amount / len(intents)

        all_stats = [
            {"intent_type": label, "count": counts[key], "estimated_value": round(values[key])}
            for key, label in DONATION_INTENT_LABELS
        ]

        return {
            "total_guests_with_intent": guests_with_intent,
            "total_estimated_value": round(total_value),
            "intent_stats": [stat for stat in all_stats if stat["count"] > 0],
            "all_intent_stats": all_stats,
        }
