"""
Authentication Module
Admin shared-secret check
"""

from rsvpdesk.auth.dependencies import UNAUTHORIZED_DETAIL, is_admin_request, require_admin

__all__ = [
    "UNAUTHORIZED_DETAIL",
    "is_admin_request",
    "require_admin",
]
