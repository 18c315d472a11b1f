"""AES-CBC cipher core with zero-padding and a random IV per message.

Envelope layout: IV (one block) || AES-CBC(zero-padded plaintext).

Decryption runs CBC over the whole envelope with the first block of the raw key
as IV, then throws away the first output block. In CBC every plaintext block is
D(C[i]) XOR C[i-1], so from the second block on the envelope's own IV is what
unchains the data and the key-derived IV only garbles the discarded block.
"""
import os

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cryhel.core.errors import (
    BlockAlignmentError,
    InvalidKeyError,
    RandomSourceError,
    ShortCiphertextError,
)

BLOCK_SIZE = algorithms.AES.block_size // 8  # 16 bytes
# algorithms.AES also takes 64-byte keys, but only for XTS
KEY_SIZES = frozenset({16, 24, 32})


def zero_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append ``block_size - len % block_size`` zero bytes (always at least one)."""
    padding = block_size - (len(data) % block_size)
    return data + b"\x00" * padding


def zero_unpad(data: bytes) -> bytes:
    """Trim every trailing zero byte, padding or not."""
    return data.rstrip(b"\x00")


class CipherCore:
    """One AES key bound for the lifetime of the object. Safe to share between threads."""

    def __init__(self, key: bytes) -> None:
        if not key:
            raise InvalidKeyError("secret key empty")
        if len(key) not in KEY_SIZES:
            raise InvalidKeyError(f"invalid key size ({len(key) * 8}) for AES-CBC")
        self._key = bytes(key)
        self._algorithm = algorithms.AES(self._key)

    @property
    def block_size(self) -> int:
        return BLOCK_SIZE

    @property
    def key_size(self) -> int:
        return len(self._key) * 8

    def _random_iv(self) -> bytes:
        try:
            iv = os.urandom(self.block_size)
        except (OSError, NotImplementedError) as exc:
            raise RandomSourceError(f"could not read IV from random source: {exc}") from exc
        if len(iv) != self.block_size:
            raise RandomSourceError("random source returned a short IV")
        return iv

    def encrypt(self, plaintext: str | bytes) -> bytes:
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        padded = zero_pad(plaintext, self.block_size)

        if len(padded) % self.block_size != 0:
            raise BlockAlignmentError("plaintext is not a multiple of the block size")

        iv = self._random_iv()
        encryptor = Cipher(self._algorithm, modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, envelope: bytes) -> bytes:
        if len(envelope) < self.block_size:
            raise ShortCiphertextError("ciphertext too short")
        if len(envelope) % self.block_size != 0:
            raise BlockAlignmentError("ciphertext is not a multiple of the block size")

        iv = self._key[: self.block_size]
        decryptor = Cipher(self._algorithm, modes.CBC(iv)).decryptor()
        plaintext = decryptor.update(envelope) + decryptor.finalize()

        return zero_unpad(plaintext[self.block_size :])
