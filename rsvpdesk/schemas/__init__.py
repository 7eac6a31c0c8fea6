"""
Pydantic schemas for request/response validation
"""

from rsvpdesk.schemas.rsvp import (
    RSVPCreateRequest,
    RSVPCreateResponse,
    RSVPRecordResponse,
    RSVPListResponse,
)
from rsvpdesk.schemas.admin import (
    RSVPStatsResponse,
    DonationStatsResponse,
    DeleteRSVPsRequest,
    DeleteRSVPsResponse,
    SendTestEmailRequest,
    SendTestEmailResponse,
)

__all__ = [
    "RSVPCreateRequest",
    "RSVPCreateResponse",
    "RSVPRecordResponse",
    "RSVPListResponse",
    "RSVPStatsResponse",
    "DonationStatsResponse",
    "DeleteRSVPsRequest",
    "DeleteRSVPsResponse",
    "SendTestEmailRequest",
    "SendTestEmailResponse",
]
