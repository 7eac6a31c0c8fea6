"""
Admin Request/Response Models
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rsvpdesk.schemas.rsvp import EMAIL_PATTERN


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RSVPStatsData(_CamelModel):
    total_rsvps: int = Field(..., alias="totalRSVPs")
    by_status: Dict[str, int] = Field(..., alias="byStatus")
    by_referral_source: Dict[str, int] = Field(..., alias="byReferralSource")
    wants_updates: int = Field(..., alias="wantsUpdates")


class RSVPStatsResponse(BaseModel):
    success: bool = True
    data: RSVPStatsData


class DonationIntentStat(_CamelModel):
    intent_type: str = Field(..., alias="intentType")
    count: int
    estimated_value: int = Field(..., alias="estimatedValue")


class DonationStatsData(_CamelModel):
    total_guests_with_intent: int = Field(..., alias="totalGuestsWithIntent")
    total_estimated_value: int = Field(..., alias="totalEstimatedValue")
    intent_stats: List[DonationIntentStat] = Field(..., alias="intentStats")
    all_intent_stats: List[DonationIntentStat] = Field(..., alias="allIntentStats")


class DonationStatsResponse(BaseModel):
    success: bool = True
    data: DonationStatsData


class DeleteRSVPsRequest(BaseModel):
    """Ids of the RSVPs to remove"""
    ids: List[int] = Field(default_factory=list)


class DeleteRSVPsResponse(_CamelModel):
    success: bool = True
    deleted_count: int = Field(..., alias="deletedCount")
    message: str


class SendTestEmailRequest(BaseModel):
    to: str = Field(default="", description="Recipient; defaults to EMAIL_FROM")

    @field_validator("to")
    @classmethod
    def recipient_is_valid(cls, value: str) -> str:
        value = value.strip()
        if value and not EMAIL_PATTERN.match(value):
            raise ValueError("Valid email is required")
        return value


class SendTestEmailResponse(BaseModel):
    success: bool
    message: str
