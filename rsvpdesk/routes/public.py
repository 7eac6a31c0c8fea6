"""
Public Endpoints
RSVP submission and the event calendar invite
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from rsvpdesk.config import Settings
from rsvpdesk.dependencies import get_app_settings, get_notifier, get_store
from rsvpdesk.exceptions import ReferralCodeExhaustedError
from rsvpdesk.schemas.rsvp import RSVPCreateRequest, RSVPCreateResponse
from rsvpdesk.services.calendar_service import EventDetails, build_event_ics, calendar_filename
from rsvpdesk.services.email_service import Notifier
from rsvpdesk.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter()

SUBMIT_FAILED_DETAIL = "Failed to process RSVP. Please try again."


@router.post("/rsvp", response_model=RSVPCreateResponse, status_code=status.HTTP_201_CREATED)
async def submit_rsvp(
    request: RSVPCreateRequest,
    store: RecordStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Submit an RSVP (public)

    The record is written first; the confirmation email is sent in the
    background and its outcome never affects this response.
    """
    record = request.model_dump()

    try:
        result = await store.insert(record)
    except ReferralCodeExhaustedError as e:
        logger.error("RSVP for %s rejected: %s", record["email"], e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SUBMIT_FAILED_DETAIL
        )
    except Exception:
        logger.exception("Error saving RSVP for %s", record["email"])
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SUBMIT_FAILED_DETAIL
        )

    logger.info("RSVP %s saved (%s) with referral code %s", result.id, record["rsvp_status"], result.referral_id)
    notifier.dispatch_confirmation(record, result.referral_id)

    return {
        "id": result.id,
        "referral_id": result.referral_id,
        "full_name": record["full_name"],
        "rsvp_status": record["rsvp_status"],
    }


@router.get("/calendar")
async def download_calendar(settings: Settings = Depends(get_app_settings)):
    """Download the event invite (.ics)"""
    event = EventDetails.from_settings(settings)
    return Response(
        content=build_event_ics(event),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{calendar_filename(event)}"'}
    )
