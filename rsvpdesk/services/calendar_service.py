"""
Calendar utilities for the event invite.

Generates an RFC 5545 ICS file describing the event with two display
reminders. The invite is static: it does not depend on stored RSVPs.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List

from icalendar import Alarm, Calendar, Event

from rsvpdesk.config import Settings


@dataclass
class EventDetails:
    title: str
    description: str
    start: datetime
    end: datetime
    location: str
    url: str
    organizer_name: str
    organizer_email: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventDetails":
        return cls(
            title=settings.EVENT_TITLE,
            description=settings.EVENT_DESCRIPTION,
            start=settings.EVENT_START,
            end=settings.EVENT_END,
            location=settings.EVENT_LOCATION,
            url=settings.EVENT_URL,
            organizer_name=settings.ORGANIZER_NAME,
            organizer_email=settings.EVENT_CONTACT_EMAIL,
        )


CATEGORIES: List[str] = ["Event", "Gala", "Celebration"]


def build_event_ics(event: EventDetails) -> bytes:
    """
    Generate the ICS invite for the event.

    Args:
        event: Event details; naive datetimes are written as floating local time

    Returns:
        bytes: ICS file content
    """
    cal = Calendar()
    cal.add("prodid", f"-//{event.organizer_name}//RSVP Desk//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    vevent = Event()
    vevent.add("uid", f"{event.start:%Y%m%dT%H%M}-{event.organizer_email}")
    vevent.add("dtstamp", datetime.now(timezone.utc))
    vevent.add("dtstart", event.start)
    vevent.add("dtend", event.end)
    vevent.add("summary", event.title)
    vevent.add("description", event.description)
    vevent.add("location", event.location)
    vevent.add("url", event.url)
    vevent.add("status", "CONFIRMED")
    vevent.add("transp", "OPAQUE")
    vevent.add("categories", CATEGORIES)
    vevent.add(
        "organizer",
        f"mailto:{event.organizer_email}",
        parameters={"cn": event.organizer_name},
    )

    # Day-before reminder
    alarm_day = Alarm()
    alarm_day.add("action", "DISPLAY")
    alarm_day.add("trigger", timedelta(hours=-24))
    alarm_day.add("description", f"{event.title} - Tomorrow!")
    vevent.add_component(alarm_day)

    # Two-hour reminder
    alarm_soon = Alarm()
    alarm_soon.add("action", "DISPLAY")
    alarm_soon.add("trigger", timedelta(hours=-2))
    alarm_soon.add("description", f"{event.title} - In 2 hours")
    vevent.add_component(alarm_soon)

    cal.add_component(vevent)
    return cal.to_ical()


def calendar_filename(event: EventDetails) -> str:
    return f"kdsp-annual-gala-{event.start.year}.ics"
