"""Token codec — binary envelope <-> base64 text <-> URL query value.

Decoding is lenient by default: malformed input is cleaned up and decoded as far
as possible instead of raising, so a damaged token surfaces later as a cipher
error (usually "ciphertext too short"). Pass ``strict=True`` to get a
TokenFormatError instead.
"""
import base64
import logging
import re
from urllib.parse import quote_plus, unquote_plus

from cryhel.core.errors import TokenFormatError

logger = logging.getLogger(__name__)

_NON_ALPHABET = re.compile(rb"[^A-Za-z0-9+/]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def b64encode(envelope: bytes) -> str:
    """Standard alphabet, ``=`` padded."""
    return base64.b64encode(envelope).decode("ascii")


def b64decode(token: str, strict: bool = False) -> bytes:
    try:
        return base64.b64decode(token.encode("ascii"), validate=True)
    except ValueError as exc:  # binascii.Error and UnicodeEncodeError
        if strict:
            raise TokenFormatError(f"invalid base64 token: {exc}") from exc
        logger.debug("Lenient base64 decode after error: %s", exc)

    cleaned = _NON_ALPHABET.sub(b"", token.encode("ascii", errors="ignore"))
    remainder = len(cleaned) % 4
    if remainder == 1:
        # A lone trailing sextet carries no full byte
        cleaned = cleaned[:-1]
    elif remainder:
        cleaned += b"=" * (4 - remainder)
    return base64.b64decode(cleaned)


def query_escape(token: str) -> str:
    """Percent-encode everything but ``A-Za-z0-9-_.~`` so the token fits one query value."""
    return quote_plus(token, safe="")


def query_unescape(token: str, strict: bool = False) -> str:
    """Inverse of :func:`query_escape`. Malformed ``%`` sequences are kept verbatim unless strict."""
    bad = _BAD_ESCAPE.search(token)
    if bad:
        if strict:
            raise TokenFormatError(f"invalid percent-escape at offset {bad.start()}")
        logger.debug("Keeping malformed percent-escape at offset %d", bad.start())
    return unquote_plus(token)
