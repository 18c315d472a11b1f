"""Encrypt / Decrypt call builders.

Each builder method returns a single-use call object bound to one message.
A terminal method (``do`` or, for decryption, ``out``) runs the operation; calling a
terminal method a second time raises CallConsumedError.

    token = crypto.encrypt.query_escape_msg("hello").do()
    text = crypto.decrypt.query_escape_msg(token).do()
"""
import dataclasses
import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from cryhel.core.errors import (
    CallConsumedError,
    EncodingError,
    InvalidDestinationError,
    JsonDecodeError,
)
from cryhel.services.codec import b64decode, b64encode, query_escape, query_unescape

if TYPE_CHECKING:
    from cryhel.crypto import Crypto


def _to_json(value: Any) -> str:
    """Serialize a value the way it is expected back in ``out()``."""
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"value is not JSON serializable: {exc}") from exc


def _is_destination(dest: Any) -> bool:
    """True when ``dest`` is a mutable object the caller can observe after ``out()``."""
    if isinstance(dest, (dict, list)):
        return True
    if isinstance(dest, BaseModel):
        return not dest.model_config.get("frozen", False)
    if dataclasses.is_dataclass(dest) and not isinstance(dest, type):
        return not dest.__dataclass_params__.frozen
    return False


def _fill(dest: Any, raw: bytes) -> None:
    """Decode JSON ``raw`` into ``dest`` in place.

    Objects are merged: keys missing from the JSON leave the destination's
    existing entries or field values untouched. Arrays replace the list contents.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise JsonDecodeError(f"plaintext is not valid JSON: {exc}") from exc

    if data is None:
        # JSON null leaves the destination as it was
        return

    if isinstance(dest, list):
        if not isinstance(data, list):
            raise JsonDecodeError(f"cannot decode JSON {type(data).__name__} into list")
        dest[:] = data
        return

    if not isinstance(data, dict):
        raise JsonDecodeError(
            f"cannot decode JSON {type(data).__name__} into {type(dest).__name__}"
        )

    if isinstance(dest, dict):
        dest.update(data)
    elif isinstance(dest, BaseModel):
        try:
            model = type(dest).model_validate({**dest.model_dump(), **data})
        except ValidationError as exc:
            raise JsonDecodeError(str(exc)) from exc
        for name in type(dest).model_fields:
            setattr(dest, name, getattr(model, name))
    else:
        names = [f.name for f in dataclasses.fields(dest)]
        known = {key: item for key, item in data.items() if key in names}
        try:
            filled = TypeAdapter(type(dest)).validate_python(
                {**dataclasses.asdict(dest), **known}
            )
        except ValidationError as exc:
            raise JsonDecodeError(str(exc)) from exc
        for name in names:
            setattr(dest, name, getattr(filled, name))


class _Call:
    def __init__(self, crypto: "Crypto", message: str) -> None:
        self._crypto = crypto
        self._message = message
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _consume(self) -> None:
        if self._consumed:
            raise CallConsumedError(f"{type(self).__name__} has already been executed")
        self._consumed = True


# ── Encrypt ───────────────────────────────────────────────────────────────────

class EncryptMsgCall(_Call):
    """Method ``Crypto.encrypt.msg``: plaintext -> base64 token."""

    def _escape(self, token: str) -> str:
        return token

    def do(self) -> str:
        self._consume()
        envelope = self._crypto.core.encrypt(self._message)
        return self._escape(b64encode(envelope))


class EncryptQueryEscapeMsgCall(EncryptMsgCall):
    """Method ``Crypto.encrypt.query_escape_msg``: token safe for a URL query value."""

    def _escape(self, token: str) -> str:
        return query_escape(token)


class EncryptService:
    def __init__(self, crypto: "Crypto") -> None:
        self._crypto = crypto

    def msg(self, text: str) -> EncryptMsgCall:
        return EncryptMsgCall(self._crypto, text)

    def query_escape_msg(self, text: str) -> EncryptQueryEscapeMsgCall:
        return EncryptQueryEscapeMsgCall(self._crypto, text)

    def value(self, value: Any) -> EncryptMsgCall:
        """Encrypt the JSON form of ``value``; read it back with ``decrypt.msg(token).out(dest)``."""
        return EncryptMsgCall(self._crypto, _to_json(value))

    def query_escape_value(self, value: Any) -> EncryptQueryEscapeMsgCall:
        return EncryptQueryEscapeMsgCall(self._crypto, _to_json(value))


# ── Decrypt ───────────────────────────────────────────────────────────────────

class DecryptMsgCall(_Call):
    """Method ``Crypto.decrypt.msg``: base64 token -> plaintext or decoded JSON."""

    def _unescape(self, token: str) -> str:
        return token

    def _plaintext(self) -> bytes:
        strict = self._crypto.strict_decoding
        envelope = b64decode(self._unescape(self._message), strict=strict)
        return self._crypto.core.decrypt(envelope)

    def do(self) -> str:
        self._consume()
        return self._plaintext().decode("utf-8", errors="replace")

    def out(self, dest: Any) -> None:
        """Decrypt and decode JSON into ``dest`` (a dict, list, pydantic model or dataclass instance)."""
        if not _is_destination(dest):
            raise InvalidDestinationError(f"Value {dest!r} is not a mutable destination")
        self._consume()
        _fill(dest, self._plaintext())


class DecryptQueryEscapeMsgCall(DecryptMsgCall):
    """Method ``Crypto.decrypt.query_escape_msg``: URL-unescapes before base64 decoding."""

    def _unescape(self, token: str) -> str:
        return query_unescape(token, strict=self._crypto.strict_decoding)


class DecryptService:
    def __init__(self, crypto: "Crypto") -> None:
        self._crypto = crypto

    def msg(self, token: str) -> DecryptMsgCall:
        return DecryptMsgCall(self._crypto, token)

    def query_escape_msg(self, token: str) -> DecryptQueryEscapeMsgCall:
        return DecryptQueryEscapeMsgCall(self._crypto, token)
