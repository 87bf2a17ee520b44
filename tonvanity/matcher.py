"""Suffix matching for vanity wallet search."""

import re

from tonvanity.errors import ValidationError

# User-friendly url-safe addresses use the base64url alphabet.
ADDRESS_ALPHABET_SIZE = 64

_TARGET_RE = re.compile(r"[A-Za-z0-9_-]+")


def matches(address: str, pattern: str) -> bool:
    """True iff ``address`` ends with ``pattern``. Case-sensitive, no normalization."""
    return address.endswith(pattern)


def validate_target_pattern(pattern) -> str:
    """Return ``pattern`` unchanged if it is a valid address ending.

    Raises ValidationError otherwise.
    """
    if not isinstance(pattern, str) or not _TARGET_RE.fullmatch(pattern):
        raise ValidationError(
            f"Invalid target ending {pattern!r}. Only Latin letters, numbers, "
            "dashes, and underscores are allowed."
        )
    return pattern


def estimate_difficulty(pattern: str, keys_per_sec: float = 20) -> dict:
    """Estimate expected attempts and time to find a match.

    Returns dict with: expected_attempts, estimated_seconds_per_core, difficulty_description
    """
    expected = ADDRESS_ALPHABET_SIZE ** len(pattern)
    secs = expected / keys_per_sec

    if expected < 100:
        desc = "Instant"
    elif expected < 10_000:
        desc = "Minutes"
    elif expected < 1_000_000:
        desc = "Hours"
    elif expected < 100_000_000:
        desc = "Days"
    else:
        desc = "Weeks+ (consider a shorter ending)"

    return {
        "expected_attempts": expected,
        "estimated_seconds_per_core": secs,
        "difficulty_description": desc,
    }
