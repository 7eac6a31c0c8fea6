"""
Admin Routes
Listing, statistics, CSV export and deletion of RSVPs (shared-secret auth)
"""

import json
import logging
from typing import Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError

from rsvpdesk.auth import require_admin
from rsvpdesk.config import Settings
from rsvpdesk.dependencies import get_admin_service, get_app_settings, get_notifier, get_store
from rsvpdesk.schemas.admin import (
    DeleteRSVPsRequest,
    DeleteRSVPsResponse,
    DonationStatsResponse,
    RSVPStatsResponse,
    SendTestEmailRequest,
    SendTestEmailResponse,
)
from rsvpdesk.schemas.rsvp import RSVPListResponse
from rsvpdesk.services.admin_service import AdminService
from rsvpdesk.services.email_service import ConfirmationEmail, Notifier
from rsvpdesk.services.export_service import donations_to_csv, export_filename, rsvps_to_csv
from rsvpdesk.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _csv_download(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


def _server_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


async def _read_body(request: Request, model: Type[BaseModel]) -> Optional[BaseModel]:
    """Parse an optional JSON body into model, after the admin check has run"""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        raise RequestValidationError([{"type": "json_invalid", "loc": ("body",), "msg": "Invalid JSON"}])
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.get("/rsvps", response_model=RSVPListResponse)
async def list_rsvps(
    sort_by: Optional[str] = Query(default="created_at", alias="sortBy", description="Column to sort by"),
    order: Optional[str] = Query(default="desc", description="asc or desc"),
    admin_service: AdminService = Depends(get_admin_service),
):
    """
    List every RSVP (Admin only)

    Unknown sort columns fall back to created_at, unknown orders to desc.
    """
    try:
        rsvps = await admin_service.list_rsvps(sort_by, order)
    except Exception:
        logger.exception("Error fetching RSVPs")
        raise _server_error("Failed to fetch RSVPs. Please try again.")

    return {"count": len(rsvps), "data": rsvps}


@router.get("/stats", response_model=RSVPStatsResponse)
async def get_stats(admin_service: AdminService = Depends(get_admin_service)):
    """Totals by status, by referral source and opt-ins (Admin only)"""
    try:
        stats = await admin_service.get_stats()
    except Exception:
        logger.exception("Error fetching RSVP stats")
        raise _server_error("Failed to fetch statistics. Please try again.")

    return {"data": stats}


@router.get("/donation-stats", response_model=DonationStatsResponse)
async def get_donation_stats(admin_service: AdminService = Depends(get_admin_service)):
    """Donation intent breakdown (Admin only)"""
    try:
        stats = await admin_service.get_donation_stats()
    except Exception:
        logger.exception("Error fetching donation stats")
        raise _server_error("Failed to fetch donation statistics. Please try again.")

    return {"data": stats}


@router.get("/export")
async def export_rsvps(store: RecordStore = Depends(get_store)):
    """Download all RSVPs as CSV (Admin only)"""
    try:
        content = rsvps_to_csv(await store.list("created_at", "desc"))
    except Exception:
        logger.exception("Error exporting RSVPs")
        raise _server_error("Failed to export RSVPs. Please try again.")

    return _csv_download(content, export_filename("kdsp-rsvps"))


@router.get("/export-donations")
async def export_donations(store: RecordStore = Depends(get_store)):
    """Download RSVPs with a donation intent as CSV (Admin only)"""
    try:
        content = donations_to_csv(await store.list("created_at", "desc"))
    except Exception:
        logger.exception("Error exporting donation data")
        raise _server_error("Failed to export donation data. Please try again.")

    return _csv_download(content, export_filename("kdsp-donation-data"))


@router.delete("/delete", response_model=DeleteRSVPsResponse)
async def delete_rsvps(
    request: Request,
    store: RecordStore = Depends(get_store),
):
    """
    Delete RSVPs by id (Admin only)

    Returns how many rows were actually removed; unknown ids are ignored.
    """
    try:
        body = await _read_body(request, DeleteRSVPsRequest)
    except RequestValidationError:
        body = None

    if body is None or not body.ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request. Must provide an array of IDs"
        )

    try:
        deleted_count = await store.delete_by_ids(body.ids)
    except Exception:
        logger.exception("Error deleting RSVPs %s", body.ids)
        raise _server_error("Failed to delete RSVPs")

    plural = "" if deleted_count == 1 else "s"
    return {
        "deleted_count": deleted_count,
        "message": f"Successfully deleted {deleted_count} RSVP{plural}",
    }


@router.post("/test-email", response_model=SendTestEmailResponse)
async def send_test_email(
    request: Request,
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    """Send a test message through the configured transports (Admin only)"""
    body = await _read_body(request, SendTestEmailRequest)
    recipient = (body.to if body else "") or settings.EMAIL_FROM
    email = ConfirmationEmail(
        subject=f"{settings.APP_NAME} Test Email",
        html="<h1>Test Email</h1><p>If you receive this, email is working!</p>",
        text="Test Email - If you receive this, email is working!",
    )

    sent = await notifier.send(recipient, email)
    return {
        "success": sent,
        "message": "Test email sent successfully!" if sent else "Failed to send test email",
    }
