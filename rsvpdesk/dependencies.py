"""
Request Dependencies
Long-lived handles built at startup, handed to routes through app.state
"""

from fastapi import Depends, Request

from rsvpdesk.config import Settings
from rsvpdesk.services.admin_service import AdminService
from rsvpdesk.services.email_service import Notifier
from rsvpdesk.store import RecordStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_admin_service(store: RecordStore = Depends(get_store)) -> AdminService:
    return AdminService(store)
