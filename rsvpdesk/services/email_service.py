"""
Email Service
Render RSVP confirmations and deliver them without blocking the request
"""

import asyncio
import logging
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional, Set

import aiosmtplib
from jinja2 import Environment, PackageLoader, select_autoescape

from rsvpdesk.config import Settings
from rsvpdesk.exceptions import DeliveryError
from rsvpdesk.services.calendar_service import EventDetails

logger = logging.getLogger(__name__)

templates = Environment(
    loader=PackageLoader("rsvpdesk", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

IMPORTANT_INFORMATION = [
    "Dress code: Formal attire",
    "Complimentary valet parking available",
    "Dinner and drinks will be provided",
    "Please arrive 15 minutes early for check-in",
]


@dataclass
class ConfirmationEmail:
    subject: str
    html: str
    text: str


def _clock_time(value) -> str:
    return value.strftime("%I:%M %p").lstrip("0")


def render_confirmation(record: dict, referral_id: str, event: EventDetails) -> ConfirmationEmail:
    """
    Render the confirmation for a submitted RSVP

    Attendees get the full event details, their guest count and referral code.
    Undecided guests get the event details and code without the guest count.
    Guests who declined get a short thank-you with neither block.

    Args:
        record: Submitted RSVP fields (full_name, rsvp_status, number_of_guests)
        referral_id: Code generated for the record
        event: Event shown in the message

    Returns:
        Subject, HTML body and plain-text fallback
    """
    status = record["rsvp_status"]
    full_name = record["full_name"]
    event_day = f"{event.start:%A, %B} {event.start.day}, {event.start.year}"

    if status == "Yes":
        subject = f"RSVP Confirmed: {event.title} - {event.start:%B} {event.start.day}, {event.start.year}"
        greeting = f"Thank You, {full_name}!"
        intro = (
            f"We're thrilled to confirm your attendance at the {event.title}! "
            "This promises to be an unforgettable evening."
        )
        next_steps = [
            "Add the event to your calendar",
            "Share your referral ID with friends and family",
            "Follow us on social media for updates",
        ]
    elif status == "Maybe":
        subject = f"RSVP Received: {event.title} - {event.start:%B} {event.start.day}, {event.start.year}"
        greeting = f"Hello {full_name},"
        intro = (
            "Thank you for your response. We've received your RSVP and hope "
            f"you'll be able to join us for the {event.title}."
        )
        next_steps = [
            f"We'll keep you updated on {event.organizer_name} activities",
            "Follow us on social media",
        ]
    else:
        subject = f"Thank You for Your Response - {event.title}"
        greeting = f"Hello {full_name},"
        intro = "Thank you for letting us know you won't be able to attend. We'll miss you at the event!"
        next_steps = [
            f"We'll keep you updated on {event.organizer_name} activities",
            "Follow us on social media",
        ]

    context = {
        "event": event,
        "organizer_name": event.organizer_name,
        "event_date": event_day,
        "event_time": f"{_clock_time(event.start)} - {_clock_time(event.end)}",
        "greeting": greeting,
        "intro": intro,
        "attending": status == "Yes",
        "show_event_details": status != "No",
        "number_of_guests": record.get("number_of_guests"),
        "referral_id": referral_id,
        "important_information": IMPORTANT_INFORMATION,
        "next_steps": next_steps,
    }

    return ConfirmationEmail(
        subject=subject,
        html=templates.get_template("email/confirmation.html").render(**context),
        text=templates.get_template("email/confirmation.txt").render(**context),
    )


def build_message(sender: str, recipient: str, email: ConfirmationEmail) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = email.subject
    message["From"] = sender
    message["To"] = recipient

    # Plain text first so clients prefer the HTML part
    message.attach(MIMEText(email.text, "plain"))
    message.attach(MIMEText(email.html, "html"))
    return message


class SMTPTransport:
    """Deliver through an SMTP server (STARTTLS, or implicit TLS on 465)"""

    def __init__(self, name: str, hostname: str, port: int, username: Optional[str], password: Optional[str], timeout: float = 10.0):
        self.name = name
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    async def send(self, message: MIMEMultipart):
        try:
            async with aiosmtplib.SMTP(
                hostname=self.hostname,
                port=self.port,
                use_tls=self.port == 465,
                timeout=self.timeout,
            ) as smtp:
                if self.username and self.password:
                    await smtp.login(self.username, self.password)
                await smtp.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"{self.name} SMTP delivery to {message['To']} failed: {e}") from e


class LogTransport:
    """Development transport: write the message to the log instead of sending it"""

    name = "log"

    async def send(self, message: MIMEMultipart):
        logger.info(
            "--- EMAIL (Development Mode) ---\nFrom: %s\nTo: %s\nSubject: %s\n--- END EMAIL ---",
            message["From"], message["To"], message["Subject"]
        )


class Notifier:
    """
    Fire-and-forget delivery of confirmation emails

    Transports are tried in order until one succeeds. A failure of every
    transport is logged and otherwise dropped; nothing is retried later.
    """

    def __init__(self, transports: List, sender: str, event: EventDetails, timeout: float = 10.0, enabled: bool = True):
        self.transports = transports
        self.sender = sender
        self.event = event
        self.timeout = timeout
        self.enabled = enabled
        self._pending: Set[asyncio.Task] = set()

    async def send(self, recipient: str, email: ConfirmationEmail) -> bool:
        """
        Send one message through the first transport that accepts it

        Returns:
            True if some transport delivered the message, False otherwise
        """
        message = build_message(self.sender, recipient, email)

        for transport in self.transports:
            try:
                await asyncio.wait_for(transport.send(message), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning("Email transport %s timed out sending to %s", transport.name, recipient)
                continue
            except DeliveryError as e:
                logger.warning("Email transport %s failed: %s", transport.name, e)
                continue
            except Exception:
                logger.exception("Email transport %s crashed sending to %s", transport.name, recipient)
                continue
            logger.info("Email sent to %s via %s", recipient, transport.name)
            return True

        logger.error("Email to %s not sent: all transports failed", recipient)
        return False

    async def send_confirmation(self, record: dict, referral_id: str) -> bool:
        email = render_confirmation(record, referral_id, self.event)
        return await self.send(record["email"], email)

    def dispatch_confirmation(self, record: dict, referral_id: str) -> Optional[asyncio.Task]:
        """Schedule the confirmation for a new RSVP and return without waiting"""
        if not self.enabled:
            return None

        task = asyncio.create_task(self.send_confirmation(record, referral_id))
        # Keep a reference so the task is not collected mid-send
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Confirmation email task crashed", exc_info=error)

    async def drain(self, timeout: float = 5.0):
        """Give in-flight sends a chance to finish before shutdown"""
        if self._pending:
            await asyncio.wait(set(self._pending), timeout=timeout)


def build_notifier(settings: Settings) -> Notifier:
    """
    Assemble transports from settings

    Primary SMTP when fully configured, then the fallback relay when set.
    With no SMTP configured at all, messages go to the log.
    """
    transports = []
    if settings.primary_smtp_configured:
        transports.append(SMTPTransport(
            "primary",
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.SMTP_USER,
            settings.SMTP_PASSWORD,
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        ))
    if settings.fallback_smtp_configured:
        transports.append(SMTPTransport(
            "fallback",
            settings.FALLBACK_SMTP_HOST,
            settings.FALLBACK_SMTP_PORT,
            settings.FALLBACK_SMTP_USER,
            settings.FALLBACK_SMTP_PASSWORD,
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        ))
    if not transports:
        logger.warning("SMTP not configured; confirmation emails will be logged only")
        transports.append(LogTransport())

    return Notifier(
        transports,
        sender=formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM)),
        event=EventDetails.from_settings(settings),
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
        enabled=settings.SEND_CONFIRMATION_EMAILS,
    )
