"""Crypto facade — binds a secret key to the encrypt / decrypt call builders."""
from cryhel.core.cipher import CipherCore
from cryhel.core.config import settings
from cryhel.services.calls import DecryptService, EncryptService


class Crypto:
    """
    AES-CBC token helper.

    Args:
        secret_key: 16, 24 or 32 bytes (a ``str`` is UTF-8 encoded).
        strict_decoding: Raise TokenFormatError on malformed base64 / percent-escapes
                         instead of decoding whatever can be recovered.

    Raises:
        InvalidKeyError: empty key or a length AES does not accept.
    """

    def __init__(self, secret_key: str | bytes, *, strict_decoding: bool = False) -> None:
        key = secret_key.encode("utf-8") if isinstance(secret_key, str) else bytes(secret_key or b"")

        self.core = CipherCore(key)
        self.strict_decoding = strict_decoding
        self.encrypt = EncryptService(self)
        self.decrypt = DecryptService(self)

    @property
    def block_size(self) -> int:
        return self.core.block_size

    def __repr__(self) -> str:
        return f"Crypto(aes-{self.core.key_size}-cbc, strict_decoding={self.strict_decoding})"


def new_crypto(
    secret_key: str | bytes | None = None, strict_decoding: bool | None = None
) -> Crypto:
    """Build a Crypto, falling back to CRYHEL_SECRET_KEY / CRYHEL_STRICT_DECODING."""
    if secret_key is None:
        secret_key = settings.CRYHEL_SECRET_KEY
    if strict_decoding is None:
        strict_decoding = settings.CRYHEL_STRICT_DECODING
    return Crypto(secret_key, strict_decoding=strict_decoding)
