"""
Application Exceptions
Errors raised by the store, migrations and delivery layers
"""


class RSVPDeskError(Exception):
    """Base class for application errors"""


class ConfigurationError(RSVPDeskError):
    """Settings are missing or invalid; the app must not start"""


class SchemaMigrationError(RSVPDeskError):
    """Schema could not be brought up to date"""


class PersistenceError(RSVPDeskError):
    """A storage operation failed"""


class ReferralCodeExhaustedError(PersistenceError):
    """Every generated referral code collided with an existing one"""

    def __init__(self, attempts: int):
        super().__init__(f"Could not generate a unique referral code after {attempts} attempts")
        self.attempts = attempts


class DeliveryError(RSVPDeskError):
    """An email transport failed to send a message"""
