"""
Database Models
Import all models here so metadata.create_all sees them
"""

from rsvpdesk.models.rsvp import RSVP, rsvps_table, BASE_COLUMNS, REFERRAL_ID_INDEX

__all__ = [
    "RSVP",
    "rsvps_table",
    "BASE_COLUMNS",
    "REFERRAL_ID_INDEX",
]
