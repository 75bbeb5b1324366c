from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, AnyStr, Generic, cast

from .decoders import decode_body
from .diagnostics import DiagnosticKind, Diagnostics
from .exceptions import MessageTooLargeError
from .grammar import parse_content_disposition, parse_content_type
from .types import DEFAULT_MEDIA_TYPE, HSPACE, HeaderList, LineMode, MediaType, MimeNode

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable
    from typing import Any, TypedDict, Union

    from .types import Body

    class ParserConfig(TypedDict):
        MAX_MESSAGE_SIZE: float
        MAX_DEPTH: int
        ERROR_ON_BAD_CTE: bool
        ERROR_ON_BAD_ENCODING: bool
        CONSISTENCY_LOG_PATH: str | None

    HeaderInput = Union[HeaderList, Mapping[str, str], Iterable[tuple[str, str]]]


class Syntax(Generic[AnyStr]):
    """The literal tokens the header scanner and the splitter search for,
    expressed in the representation of the input being parsed.

    Both scanning functions are written once against this object, so a
    message given as ``str`` and the same message given as ``bytes`` go
    through exactly the same steps. Header text found in ``bytes`` input is
    decoded as latin-1.
    """

    def __init__(self, representation: type[AnyStr], mode: LineMode) -> None:
        self.mode = mode
        self.is_bytes = not issubclass(representation, str)
        self.terminator: AnyStr = self.encode(mode.terminator)
        self.dashes: AnyStr = self.encode("--")
        self.colon: AnyStr = self.encode(":")
        self.space: AnyStr = self.encode(" ")
        self.hspace: AnyStr = self.encode(HSPACE)

    @classmethod
    def for_data(cls, data: AnyStr, mode: LineMode) -> Syntax[AnyStr]:
        return cls(type(data), mode)

    def encode(self, text: str) -> AnyStr:
        if self.is_bytes:
            return cast("AnyStr", text.encode("latin-1"))
        return cast("AnyStr", text)

    def decode(self, data: AnyStr) -> str:
        if isinstance(data, str):
            return data
        return data.decode("latin-1")

    def is_hspace(self, data: AnyStr, pos: int) -> bool:
        return pos < len(data) and data[pos : pos + 1] in self.hspace

    def skip_hspace(self, data: AnyStr, pos: int) -> int:
        while self.is_hspace(data, pos):
            pos += 1
        return pos

    def skip_folding_whitespace(self, data: AnyStr, pos: int) -> int:
        term = self.terminator
        while pos < len(data):
            if self.is_hspace(data, pos):
                pos += 1
            elif data.startswith(term, pos) and self.is_hspace(data, pos + len(term)):
                pos += len(term) + 1
            else:
                break
        return pos

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(bytes={self.is_bytes!r}, mode={self.mode!r})"


def _take_field_value(data: AnyStr, pos: int, syntax: Syntax[AnyStr]) -> tuple[AnyStr, int]:
    """Read one header value starting just after its colon.

    Returns the unfolded value and the position of the next line.
    """
    term = syntax.terminator
    pos = syntax.skip_folding_whitespace(data, pos)
    chunks = []

    while True:
        eol = data.find(term, pos)
        if eol == -1:
            chunks.append(data[pos:])
            pos = len(data)
            break
        chunks.append(data[pos:eol])
        pos = eol + len(term)
        if not syntax.is_hspace(data, pos):
            break
        # Continuation line: the line break and its indentation become one space.
        pos = syntax.skip_hspace(data, pos)

    return syntax.space.join(chunks).rstrip(syntax.hspace), pos


def parse_headers(
    data: AnyStr, mode: LineMode = LineMode.CRLF, diagnostics: Diagnostics | None = None
) -> tuple[HeaderList, AnyStr]:
    """Split a message into its header fields and its body.

    The header block ends at the first empty line, which is consumed. A line
    without a colon also ends it; that line and everything after it become
    the body, and a MALFORMED_HEADER diagnostic is recorded.
    """
    syntax = Syntax.for_data(data, mode)
    term = syntax.terminator
    length = len(data)
    headers: list[tuple[str, str]] = []
    pos = 0

    while pos < length:
        eol = data.find(term, pos)
        if eol == pos:
            pos += len(term)
            break

        line_end = length if eol == -1 else eol
        colon_pos = data.find(syntax.colon, pos, line_end)
        if colon_pos == -1:
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticKind.MALFORMED_HEADER,
                    "Header line without a colon at %d, treating the rest of the input as body" % pos,
                    pos,
                )
            break

        name = data[pos:colon_pos].rstrip(syntax.hspace)
        value, pos = _take_field_value(data, colon_pos + 1, syntax)
        headers.append((syntax.decode(name), syntax.decode(value)))

    return HeaderList(headers), data[pos:]


def split_multipart(
    boundary: str, body: AnyStr, mode: LineMode = LineMode.CRLF, diagnostics: Diagnostics | None = None
) -> list[AnyStr]:
    """Split a multipart body into the raw parts between its delimiters.

    The preamble before the first delimiter and the epilogue after the close
    delimiter are dropped. A body that ends without a close delimiter still
    yields its last part.

    Every pass of the loop consumes at least one whole delimiter, so this
    always terminates.
    """
    syntax = Syntax.for_data(body, mode)
    # Offsets in diagnostics refer to the body as given.
    given_length = len(body)
    try:
        delimiter = syntax.terminator + syntax.dashes + syntax.encode(boundary)
    except UnicodeEncodeError:
        # A latin-1 byte body can never contain this boundary.
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.NO_DELIMITER, "Boundary %r cannot occur in a byte body" % boundary)
        return []
    delimiter_len = len(delimiter)

    # Some producers put the first delimiter on the very first line.
    if body.startswith(syntax.dashes):
        body = syntax.terminator + body
    length = len(body)

    found = body.find(delimiter)
    if found == -1:
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.NO_DELIMITER, "No delimiter for boundary %r found" % boundary)
        return []
    pos = found + delimiter_len
    if body.startswith(syntax.dashes, pos):
        return []

    parts: list[AnyStr] = []
    while True:
        # Transport padding, then the line break ending the delimiter line.
        pos = syntax.skip_hspace(body, pos)
        if body.startswith(syntax.terminator, pos):
            pos += len(syntax.terminator)

        found = body.find(delimiter, pos)
        if found == -1:
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticKind.UNTERMINATED_MULTIPART,
                    "Multipart body for boundary %r ended without a close delimiter" % boundary,
                    given_length,
                )
            if pos < length:
                parts.append(body[pos:])
            break

        parts.append(body[pos:found])
        pos = found + delimiter_len
        if body.startswith(syntax.dashes, pos):
            break

    return parts


def as_header_list(headers: HeaderInput) -> HeaderList:
    if isinstance(headers, HeaderList):
        return headers
    if isinstance(headers, Mapping):
        return HeaderList(headers.items())
    return HeaderList(headers)


class MessageParser:
    """Builds a :class:`mimetree.types.MimeNode` tree from a complete message.

    The parser walks the message recursively: multipart bodies are split on
    their boundary and every part is parsed as a message of its own,
    ``message/*`` bodies are parsed as one nested message, and everything
    else becomes a leaf whose body is transfer-decoded.

    The line mode, configuration and diagnostics collector are shared by the
    whole recursion. Parsing never raises on malformed input; problems are
    recorded in :attr:`diagnostics` instead. The only errors come from the
    size limit and the strict decoding options.

    :param mode: CRLF for standard messages, LF for messages with bare
                 newline line endings.
    :param config: Overrides for :attr:`DEFAULT_CONFIG`.
    :param diagnostics: A collector to record repairs in. A fresh one is
                        created if not given.
    """

    #: This is the default configuration for our message parser.
    DEFAULT_CONFIG: ParserConfig = {
        "MAX_MESSAGE_SIZE": float("inf"),
        "MAX_DEPTH": 64,
        "ERROR_ON_BAD_CTE": False,
        "ERROR_ON_BAD_ENCODING": False,
        "CONSISTENCY_LOG_PATH": "/tmp/mime-exception.log",
    }

    def __init__(
        self,
        mode: LineMode = LineMode.CRLF,
        config: dict[Any, Any] = {},
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.mode = mode

        self.config: ParserConfig = self.DEFAULT_CONFIG.copy()
        self.config.update(config)  # type: ignore[typeddict-item]

        if diagnostics is None:
            diagnostics = Diagnostics()
        self.diagnostics = diagnostics

    def parse_message(self, data: Body) -> MimeNode:
        """Parse a complete message: a header block followed by a body."""
        data = self._check_input(data)
        return self._parse_message(data, 0)

    def parse_body(self, headers: HeaderInput, body: Body) -> MimeNode:
        """Parse a body whose headers were already split off."""
        body = self._check_input(body)
        return self._parse_body(as_header_list(headers), body, 0)

    def _check_input(self, data: Body) -> Body:
        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        elif not isinstance(data, (str, bytes)):
            raise TypeError("Expected str or bytes, not %r" % type(data).__name__)

        if len(data) > self.config["MAX_MESSAGE_SIZE"]:
            msg = "Message size is %d, more than the maximum of %r" % (len(data), self.config["MAX_MESSAGE_SIZE"])
            self.logger.warning(msg)
            raise MessageTooLargeError(msg)
        return data

    def _parse_message(self, data: Body, depth: int) -> MimeNode:
        headers, body = parse_headers(data, self.mode, self.diagnostics)
        return self._parse_body(headers, body, depth)

    def _media_type(self, headers: HeaderList) -> MediaType:
        value = headers.get("content-type")
        if value is None:
            return DEFAULT_MEDIA_TYPE

        media_type = parse_content_type(value, self.diagnostics)
        if media_type is None:
            self.diagnostics.add(
                DiagnosticKind.UNPARSABLE_CONTENT_TYPE, "Unable to parse content-type %r, using text/plain" % value
            )
            return DEFAULT_MEDIA_TYPE
        return media_type

    def _too_deep(self, media_type: MediaType, depth: int) -> bool:
        if depth < self.config["MAX_DEPTH"]:
            return False
        self.diagnostics.add(
            DiagnosticKind.DEPTH_EXCEEDED,
            "Not descending into %s at nesting depth %d" % (media_type.mime_type, depth),
        )
        return True

    def _parse_body(self, headers: HeaderList, body: Body, depth: int) -> MimeNode:
        media_type = self._media_type(headers)

        if media_type.is_multipart:
            return self._parse_multipart(headers, media_type, body, depth)

        if media_type.is_message:
            if self._too_deep(media_type, depth):
                return MimeNode(media_type, body=body, headers=headers)
            child = self._parse_message(body, depth + 1)
            return MimeNode(media_type, children=(child,), headers=headers)

        disposition = None
        disposition_value = headers.get("content-disposition")
        if disposition_value is not None:
            disposition = parse_content_disposition(disposition_value, self.diagnostics)

        content = decode_body(
            headers.get("content-transfer-encoding"),
            body,
            cast("dict[str, Any]", self.config),
            self.diagnostics,
        )
        return MimeNode(media_type, disposition, body=content, headers=headers)

    def _parse_multipart(self, headers: HeaderList, media_type: MediaType, body: Body, depth: int) -> MimeNode:
        boundary = media_type.boundary
        if boundary is None:
            self.diagnostics.add(
                DiagnosticKind.MISSING_BOUNDARY,
                "Multipart type %s has no boundary parameter, defaulting to text/plain" % media_type,
            )
            return MimeNode(DEFAULT_MEDIA_TYPE, body=body, headers=headers)

        if self._too_deep(media_type, depth):
            return MimeNode(media_type, body=body, headers=headers)

        segments = split_multipart(boundary, body, self.mode, self.diagnostics)
        self.logger.debug("Split %s into %d parts", media_type.mime_type, len(segments))
        children = tuple(self._parse_message(segment, depth + 1) for segment in segments)
        return MimeNode(media_type, children=children, headers=headers)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode={self.mode!r})"


def parse_message(
    data: Body,
    mode: LineMode = LineMode.CRLF,
    config: dict[Any, Any] | None = None,
    diagnostics: Diagnostics | None = None,
) -> MimeNode:
    """Parse a complete message into a tree.

    .. code-block:: python

        tree = parse_message(raw_bytes)
        for node in tree.attachments():
            save(node.filename, node.body)

    :param data: The whole message, as ``str`` or ``bytes``. Leaf bodies in
                 the result have the same type.
    :param mode: The line terminator used by the message.
    :param config: Overrides for :attr:`MessageParser.DEFAULT_CONFIG`.
    :param diagnostics: Optional collector for the repairs made on the way.
    """
    return MessageParser(mode, config or {}, diagnostics).parse_message(data)


def parse_body(
    headers: HeaderInput,
    body: Body,
    mode: LineMode = LineMode.CRLF,
    config: dict[Any, Any] | None = None,
    diagnostics: Diagnostics | None = None,
) -> MimeNode:
    """Parse a body using headers that were split off already, e.g. by an
    HTTP server. ``headers`` may be a :class:`HeaderList`, a mapping or any
    iterable of ``(name, value)`` pairs.
    """
    return MessageParser(mode, config or {}, diagnostics).parse_body(headers, body)
