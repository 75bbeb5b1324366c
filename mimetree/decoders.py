from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from typing import TYPE_CHECKING

from .diagnostics import DiagnosticKind, Diagnostics
from .exceptions import DecodeError, TransferEncodingError

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any, Protocol

    from .types import Body

    class SupportsWrite(Protocol):
        def write(self, __b: bytes) -> object: ...


logger = logging.getLogger(__name__)

# Bytes that may appear between base64 quanta in a message body.
BASE64_IGNORED = b" \t\r\n"

IDENTITY_ENCODINGS = frozenset(("7bit", "8bit", "binary"))


class Base64Decoder:
    """This object provides an interface to decode a stream of Base64 data. It
    is instantiated with an "underlying object", and whenever a write()
    operation is performed, it will decode the incoming data as Base64, and
    call write() on the underlying object. This is primarily used for decoding
    message bodies encoded with Base64.

    Line breaks and spaces are dropped before decoding, since encoded bodies
    are wrapped at 76 characters.

    The underlying object needs a ``write`` method; ``close`` and
    ``finalize`` are passed on when present.
    """

    def __init__(self, underlying: SupportsWrite) -> None:
        self.cache = bytearray()
        self.underlying = underlying

    def write(self, data: bytes) -> int:
        """Takes any input data provided, decodes it as base64, and passes it
        on to the underlying object. If the data provided is invalid base64
        data, then this method will raise a :class:`mimetree.exceptions.DecodeError`

        :param data: base64 data to decode
        """
        length = len(data)
        data = self.cache + data.translate(None, BASE64_IGNORED)

        # Slice off a string that's a multiple of 4.
        decode_len = (len(data) // 4) * 4
        val = data[:decode_len]

        # Decode and write, if we have any.
        if len(val) > 0:
            try:
                decoded = base64.b64decode(val)
            except binascii.Error:
                raise DecodeError("There was an error raised while decoding base64-encoded data.")

            self.underlying.write(decoded)

        # Get the remaining bytes and save in our cache.
        self.cache = bytearray(data[decode_len:])

        return length

    def close(self) -> None:
        """Close this decoder. If the underlying object has a `close()`
        method, this function will call it.
        """
        if hasattr(self.underlying, "close"):
            self.underlying.close()

    def finalize(self) -> None:
        """Finalize this object. This should be called when no more data
        should be written to the stream. This function can raise a
        :class:`mimetree.exceptions.DecodeError` if there is some remaining
        data in the cache.

        If the underlying object has a `finalize()` method, this function will
        call it.
        """
        if len(self.cache) > 0:
            raise DecodeError(
                "There are %d bytes remaining in the Base64Decoder cache when finalize() is called" % len(self.cache)
            )

        if hasattr(self.underlying, "finalize"):
            self.underlying.finalize()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(underlying={self.underlying!r})"


class QuotedPrintableDecoder:
    """This object provides an interface to decode a stream of quoted-printable
    data. It is instantiated with an "underlying object", in the same manner
    as the :class:`mimetree.decoders.Base64Decoder` class.
    """

    def __init__(self, underlying: SupportsWrite) -> None:
        self.cache = b""
        self.underlying = underlying

    def write(self, data: bytes) -> int:
        """Takes any input data provided, decodes it as quoted-printable, and
        passes it on to the underlying object.

        :param data: quoted-printable data to decode
        """
        # Prepend any cache info to our data.
        if len(self.cache) > 0:
            data = self.cache + data

        # If the last 2 characters have an '=' sign in it, then we won't be
        # able to decode the encoded value and we'll need to save it for the
        # next decoding step.
        if data[-2:].find(b"=") != -1:
            enc, rest = data[:-2], data[-2:]
        else:
            enc = data
            rest = b""

        # Encode and write, if we have data.
        if len(enc) > 0:
            self.underlying.write(binascii.a2b_qp(enc))

        # Save remaining in cache.
        self.cache = rest
        return len(data)

    def close(self) -> None:
        """Close this decoder. If the underlying object has a `close()`
        method, this function will call it.
        """
        if hasattr(self.underlying, "close"):
            self.underlying.close()

    def finalize(self) -> None:
        """Finalize this object. This should be called when no more data
        should be written to the stream. If the underlying object has a
        `finalize()` method, this function will call it.
        """
        # If we have a cache, write and then remove it.
        if len(self.cache) > 0:
            self.underlying.write(binascii.a2b_qp(self.cache))
            self.cache = b""

        # Finalize our underlying stream.
        if hasattr(self.underlying, "finalize"):
            self.underlying.finalize()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(underlying={self.underlying!r})"


DECODERS = {
    "base64": Base64Decoder,
    "quoted-printable": QuotedPrintableDecoder,
}


def _decode_bytes(decoder_class: type[Base64Decoder] | type[QuotedPrintableDecoder], data: bytes) -> bytes:
    out = BytesIO()
    decoder = decoder_class(out)
    decoder.write(data)
    decoder.finalize()
    return out.getvalue()


def decode_body(
    encoding: str | None,
    body: Body,
    config: dict[str, Any] | None = None,
    diagnostics: Diagnostics | None = None,
) -> Body:
    """Undo a Content-Transfer-Encoding.

    The result has the same type as ``body``. Text bodies are treated as
    latin-1, one code point per octet, so decoding a ``str`` and the
    equivalent ``bytes`` gives equivalent results.

    Unknown encodings and malformed data leave the body untouched and record
    a diagnostic, unless ``ERROR_ON_BAD_CTE`` / ``ERROR_ON_BAD_ENCODING`` are
    set in ``config``.
    """
    config = config or {}
    if encoding is None:
        return body

    name = encoding.strip().lower()
    if not name or name in IDENTITY_ENCODINGS:
        return body

    decoder_class = DECODERS.get(name)
    if decoder_class is None:
        logger.debug("Unknown Content-Transfer-Encoding: %r", encoding)
        if config.get("ERROR_ON_BAD_CTE", False):
            raise TransferEncodingError(f'Unknown Content-Transfer-Encoding "{encoding}"')
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.UNKNOWN_TRANSFER_ENCODING, "Unknown Content-Transfer-Encoding %r" % encoding)
        return body

    try:
        if isinstance(body, str):
            try:
                raw = body.encode("latin-1")
            except UnicodeEncodeError as e:
                raise DecodeError("Body has characters outside latin-1 and cannot be %s-decoded" % name) from e
            return _decode_bytes(decoder_class, raw).decode("latin-1")
        return _decode_bytes(decoder_class, bytes(body))
    except DecodeError as e:
        if config.get("ERROR_ON_BAD_ENCODING", False):
            raise
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.BAD_TRANSFER_ENCODING, str(e))
        return body
