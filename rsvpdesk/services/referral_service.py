"""
Referral Code Generation
Human-shareable confirmation codes, e.g. KDSP-2025-7KQ2XM
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Optional

REFERRAL_PREFIX = "KDSP"
REFERRAL_CODE_LENGTH = 6

# Uppercase letters and digits minus the look-alikes 0/O and 1/I
REFERRAL_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

# Collisions are resolved by the store's unique index; this bounds its retries
MAX_REFERRAL_ATTEMPTS = 10

_REFERRAL_PATTERN = re.compile(
    rf"^{REFERRAL_PREFIX}-\d{{4}}-[{REFERRAL_ALPHABET}]{{{REFERRAL_CODE_LENGTH}}}$"
)


def generate_referral_code(year: Optional[int] = None, rng=secrets) -> str:
    """
    Generate a referral code

    Args:
        year: Year embedded in the code (defaults to the current UTC year)
        rng: Object exposing choice(); secrets unless a test passes a seeded Random

    Returns:
        Code in the form KDSP-<year>-<6 characters>
    """
    if year is None:
        year = datetime.now(timezone.utc).year

    suffix = "".join(rng.choice(REFERRAL_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
    return f"{REFERRAL_PREFIX}-{year:04d}-{suffix}"


def is_valid_referral_code(code: str) -> bool:
    return bool(code) and _REFERRAL_PATTERN.match(code) is not None
