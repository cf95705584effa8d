"""Encoding and decoding of opaque access-link tokens.

Current format (base64url, no padding) of::

    {registration_number}-{epoch_ms}-{32 hex chars}

Legacy format (base64url) of a JSON object::

    {"regNum": "...", "timestamp": epoch_ms}

Tokens carry no signature. Authority comes from the ledger row, never
from the token text itself.
"""

import base64
import binascii
import json
import math
import secrets
import time

from src.core.logging import get_logger


logger = get_logger(__name__)

DELIMITER = "-"
NONCE_BYTES = 16
LEGACY_MAX_AGE_DAYS = 30
_MS_PER_DAY = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def _b64url_encode(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def _b64url_decode(token: str) -> str:
    """Decode base64url text, tolerating stripped padding.

    Raises:
        binascii.Error: If the token is not base64url
        UnicodeDecodeError: If the payload is not UTF-8
    """
    padded = token + "=" * (-len(token) % 4)
    raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    return raw.decode("utf-8")


def encode(registration_number: str, timestamp_ms: int | None = None) -> str:
    """Build a fresh token for a registration number.

    Each call draws a new random nonce, so two calls never return the
    same token in practice.
    """
    if not registration_number:
        raise ValueError("registration_number must not be empty")
    timestamp_ms = _now_ms() if timestamp_ms is None else timestamp_ms
    nonce = secrets.token_hex(NONCE_BYTES)
    return _b64url_encode(
        f"{registration_number}{DELIMITER}{timestamp_ms}{DELIMITER}{nonce}"
    )


def encode_legacy(registration_number: str, timestamp_ms: int | None = None) -> str:
    """Build a token in the legacy JSON format."""
    timestamp_ms = _now_ms() if timestamp_ms is None else timestamp_ms
    payload = json.dumps(
        {"regNum": registration_number, "timestamp": timestamp_ms},
        separators=(",", ":"),
    )
    return _b64url_encode(payload)


def _decode_delimited(text: str) -> str | None:
    parts = text.rsplit(DELIMITER, 2)
    if len(parts) < 2:  # noqa: PLR2004
        return None
    registration_number, timestamp = parts[0], parts[1]
    if not registration_number or not timestamp.isdigit():
        return None
    return registration_number


def _decode_legacy(
    text: str,
    max_age_days: int,
    now_ms: int | None,
) -> str | None:
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    registration_number = payload.get("regNum")
    timestamp = payload.get("timestamp")
    if not isinstance(registration_number, str) or not registration_number:
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
        return None
    # NaN and Infinity would never age out
    if not math.isfinite(timestamp):
        return None

    now_ms = _now_ms() if now_ms is None else now_ms
    if now_ms - timestamp > max_age_days * _MS_PER_DAY:
        logger.debug("legacy_token_too_old", age_ms=now_ms - timestamp)
        return None
    return registration_number


def decode(
    token: str,
    *,
    max_age_days: int = LEGACY_MAX_AGE_DAYS,
    now_ms: int | None = None,
) -> str | None:
    """Recover the registration number from a token.

    Never raises: anything that is not a well-formed token in one of the
    known formats yields None. Only the legacy JSON format is subject to
    the max_age_days cutoff.
    """
    if not token or not isinstance(token, str):
        return None
    try:
        text = _b64url_decode(token)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    if text.lstrip().startswith("{"):
        return _decode_legacy(text, max_age_days, now_ms)
    if DELIMITER in text:
        return _decode_delimited(text)
    return None


def decode_legacy(
    token: str,
    *,
    max_age_days: int = LEGACY_MAX_AGE_DAYS,
    now_ms: int | None = None,
) -> str | None:
    """Decode only the legacy JSON format; any other format yields None."""
    if not token or not isinstance(token, str):
        return None
    try:
        text = _b64url_decode(token)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not text.lstrip().startswith("{"):
        return None
    return _decode_legacy(text, max_age_days, now_ms)
