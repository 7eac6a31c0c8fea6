"""RSVP collection and administration service"""

__version__ = "1.0.0"
