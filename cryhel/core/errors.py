"""Exception hierarchy for cryhel.

Every failure is raised to the immediate caller; nothing here is retried or logged.
"""


class CryhelError(Exception):
    """Base class for all cryhel errors."""


class InvalidKeyError(CryhelError, ValueError):
    """Secret key is empty or has a length AES does not accept."""


class EncodingError(CryhelError):
    """Encryption of a message failed."""


class RandomSourceError(EncodingError):
    """The OS random source could not supply an IV."""


class DecodingError(CryhelError):
    """Decryption of a token failed."""


class ShortCiphertextError(DecodingError):
    """Envelope is shorter than one cipher block."""


class BlockAlignmentError(EncodingError, DecodingError):
    """Padded plaintext or envelope length is not a multiple of the block size."""


class TokenFormatError(DecodingError):
    """Malformed base64 or percent-escape in a token (strict decoding only)."""


class JsonDecodeError(DecodingError, ValueError):
    """Decrypted plaintext is not JSON matching the destination's shape."""


class InvalidDestinationError(CryhelError, TypeError):
    """`out()` was given something it cannot fill in place."""


class CallConsumedError(CryhelError, RuntimeError):
    """A terminal method was invoked twice on the same call object."""
