"""
RSVP Model
One row per public RSVP submission
"""

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, func

from rsvpdesk.database import Base


class RSVP(Base):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Attendee data
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(50), nullable=True)
    number_of_guests = Column(Integer, nullable=False)
    rsvp_status = Column(String(10), nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Added by later form versions
    referral_id = Column(String(32), nullable=True, unique=True, index=True)
    profession_organization = Column(String(200), nullable=True)
    interest_types = Column(Text, nullable=True)  # JSON array
    referral_source = Column(String(20), nullable=True)
    receive_updates = Column(Integer, nullable=False, server_default="0")
    donation_intent = Column(Text, nullable=True)  # JSON array
    donation_value = Column(Float, nullable=True)
    donation_custom = Column(Float, nullable=True)


rsvps_table = RSVP.__table__
REFERRAL_ID_INDEX = "ix_rsvps_referral_id"

# Columns present since the first release; everything else may be missing in
# databases created by older builds and is added by the schema manager.
BASE_COLUMNS = (
    "id",
    "full_name",
    "email",
    "phone_number",
    "number_of_guests",
    "rsvp_status",
    "message",
    "created_at",
)
