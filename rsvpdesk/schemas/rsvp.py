"""
RSVP Request/Response Models
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

RSVP_STATUSES = ("Yes", "No", "Maybe")
REFERRAL_SOURCES = ("Friend", "Social", "Invite")
INTEREST_TYPES = ("Volunteer", "Donate", "Outreach", "Awareness")
DONATION_INTENTS = ("individual", "company", "awareness", "volunteer", "learn_more")

# Upper bound of the INTEGER column on both engines
MAX_GUESTS = 2_147_483_647


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    return [v for v in values if not (v in seen or seen.add(v))]


class RSVPCreateRequest(BaseModel):
    """Public RSVP submission"""
    full_name: str = Field(..., max_length=200, description="Attendee full name")
    email: str = Field(..., max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    number_of_guests: int = Field(..., strict=True, description="Party size including the attendee")
    rsvp_status: str = Field(..., description="Yes, No or Maybe")
    message: Optional[str] = None
    profession_organization: Optional[str] = Field(default=None, max_length=200)
    interest_types: List[str] = Field(default_factory=list)
    referral_source: str = Field(..., description="Friend, Social or Invite")
    receive_updates: bool = False
    donation_intent: List[str] = Field(default_factory=list)
    donation_value: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    donation_custom: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "full_name": "Jane Doe",
            "email": "jane@example.com",
            "number_of_guests": 2,
            "rsvp_status": "Yes",
            "referral_source": "Friend",
            "receive_updates": True,
        }
    })

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Valid email is required")
        return value

    @field_validator("phone_number", "message", "profession_organization")
    @classmethod
    def strip_optional_text(cls, value: Optional[str]) -> Optional[str]:
        return _optional_text(value)

    @field_validator("number_of_guests")
    @classmethod
    def guest_count_in_range(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Number of guests must be at least 1")
        if value > MAX_GUESTS:
            raise ValueError(f"Number of guests must be at most {MAX_GUESTS}")
        return value

    @field_validator("rsvp_status")
    @classmethod
    def status_is_known(cls, value: str) -> str:
        if value not in RSVP_STATUSES:
            raise ValueError("Valid RSVP status is required (Yes, No, or Maybe)")
        return value

    @field_validator("referral_source")
    @classmethod
    def referral_source_is_known(cls, value: str) -> str:
        if value not in REFERRAL_SOURCES:
            raise ValueError(
                f"Referral source is required and must be one of: {', '.join(REFERRAL_SOURCES)}"
            )
        return value

    @field_validator("interest_types")
    @classmethod
    def interest_types_are_known(cls, value: List[str]) -> List[str]:
        invalid = [v for v in value if v not in INTEREST_TYPES]
        if invalid:
            raise ValueError(
                f"Invalid interest type(s): {', '.join(invalid)}. "
                f"Must be one of: {', '.join(INTEREST_TYPES)}"
            )
        return _dedupe(value)

    @field_validator("donation_intent")
    @classmethod
    def donation_intent_is_known(cls, value: List[str]) -> List[str]:
        invalid = [v for v in value if v not in DONATION_INTENTS]
        if invalid:
            raise ValueError(
                f"Invalid donation intent(s): {', '.join(invalid)}. "
                f"Must be one of: {', '.join(DONATION_INTENTS)}"
            )
        return _dedupe(value)

    @model_validator(mode="after")
    def one_donation_amount(self):
        if self.donation_value is not None and self.donation_custom is not None:
            raise ValueError("Provide either donation_value or donation_custom, not both")
        return self


class RSVPCreateResponse(BaseModel):
    """Result of a successful submission"""
    success: bool = True
    message: str = "RSVP submitted successfully!"
    id: int
    referral_id: str
    full_name: str
    rsvp_status: str


class RSVPRecordResponse(BaseModel):
    """Stored RSVP as returned to admins"""
    id: int
    full_name: str
    email: str
    phone_number: Optional[str] = None
    number_of_guests: int
    rsvp_status: str
    message: Optional[str] = None
    referral_id: Optional[str] = None
    profession_organization: Optional[str] = None
    interest_types: List[str] = Field(default_factory=list)
    referral_source: Optional[str] = None
    receive_updates: bool = False
    donation_intent: List[str] = Field(default_factory=list)
    donation_value: Optional[float] = None
    donation_custom: Optional[float] = None
    created_at: Optional[datetime] = None


class RSVPListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[RSVPRecordResponse]
