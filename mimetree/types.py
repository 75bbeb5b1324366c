"""Value types produced by the parser.

Everything here is immutable: a parsed tree can be shared between threads and
compared with ``==``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterator

Body = Union[str, bytes]

# RFC 2045 tspecials.
TSPECIALS = frozenset('()<>@,;:\\"/[]?=')
HSPACE = " \t"


class LineMode(Enum):
    """Line terminator a message is parsed with.

    CRLF is strict RFC 5322 framing. LF accepts messages whose lines were
    converted to bare newlines, e.g. after being stored on a Unix system.
    """

    CRLF = "\r\n"
    LF = "\n"

    @property
    def terminator(self) -> str:
        return self.value


class _FieldList(tuple):
    """Ordered ``(name, value)`` pairs with case-insensitive lookup.

    Duplicates are kept; lookups return the first match.
    """

    __slots__ = ()

    def __new__(cls, items: Iterable[tuple[str, str]] = ()) -> _FieldList:
        return super().__new__(cls, ((k, v) for k, v in items))

    def get(self, name: str, default: str | None = None) -> str | None:
        name = name.lower()
        for key, value in self:
            if key.lower() == name:
                return value
        return default

    def get_all(self, name: str) -> list[str]:
        name = name.lower()
        return [value for key, value in self if key.lower() == name]

    def names(self) -> list[str]:
        return [key for key, _ in self]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self)!r})"


class HeaderList(_FieldList):
    """Header fields in the order they appeared. Names keep their case."""

    __slots__ = ()


class Params(_FieldList):
    """Header value parameters. Names are stored lower-cased."""

    __slots__ = ()


def _quote(value: str) -> str:
    if value and not any(c in TSPECIALS or c in HSPACE for c in value):
        return value
    return '"%s"' % value


def _render_params(pairs: Iterable[tuple[str, str]]) -> str:
    return "".join(f"; {name}={_quote(value)}" for name, value in pairs)


class MediaKind(Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    APPLICATION = "application"
    MODEL = "model"
    MESSAGE = "message"
    MULTIPART = "multipart"
    OTHER = "other"


class MultipartKind(Enum):
    ALTERNATIVE = "alternative"
    BYTERANGES = "byteranges"
    DIGEST = "digest"
    ENCRYPTED = "encrypted"
    FORM_DATA = "form-data"
    MIXED = "mixed"
    PARALLEL = "parallel"
    RELATED = "related"
    SIGNED = "signed"
    #: A private ``x-`` subtype.
    EXTENSION = "extension"
    OTHER = "other"


@dataclass(frozen=True)
class MediaType:
    """A parsed Content-Type value.

    ``subtype`` keeps the case it was written in. ``multipart`` is only set for
    multipart types and ``raw_major`` only for unrecognised major types.
    """

    kind: MediaKind
    subtype: str
    params: Params = field(default_factory=Params)
    multipart: MultipartKind | None = None
    raw_major: str | None = None

    @property
    def major(self) -> str:
        if self.kind is MediaKind.OTHER and self.raw_major is not None:
            return self.raw_major
        return self.kind.value

    @property
    def mime_type(self) -> str:
        """The lower-cased ``type/subtype`` pair, e.g. ``"text/plain"``."""
        return f"{self.major}/{self.subtype}".lower()

    @property
    def is_multipart(self) -> bool:
        return self.kind is MediaKind.MULTIPART

    @property
    def is_message(self) -> bool:
        return self.kind is MediaKind.MESSAGE

    @property
    def boundary(self) -> str | None:
        return self.params.get("boundary")

    @property
    def charset(self) -> str | None:
        return self.params.get("charset")

    def param(self, name: str, default: str | None = None) -> str | None:
        return self.params.get(name, default)

    def __str__(self) -> str:
        return f"{self.major}/{self.subtype}" + _render_params(self.params)


#: Used when a part has no Content-Type, or one that cannot be parsed.
DEFAULT_MEDIA_TYPE = MediaType(MediaKind.TEXT, "plain", Params([("charset", "us-ascii")]))


class DispositionKind(Enum):
    INLINE = "inline"
    ATTACHMENT = "attachment"
    FORM_DATA = "form-data"
    OTHER = "other"


class DispositionParamKind(Enum):
    NAME = "name"
    FILENAME = "filename"
    CREATION_DATE = "creation-date"
    MODIFICATION_DATE = "modification-date"
    READ_DATE = "read-date"
    SIZE = "size"
    OTHER = "other"


@dataclass(frozen=True)
class DispositionParam:
    kind: DispositionParamKind
    value: str
    #: The lower-cased parameter name as written.
    name: str


@dataclass(frozen=True)
class Disposition:
    """A parsed Content-Disposition value."""

    kind: DispositionKind
    params: tuple[DispositionParam, ...] = ()
    #: The lower-cased disposition token when ``kind`` is OTHER.
    raw_kind: str | None = None

    @property
    def type_name(self) -> str:
        if self.kind is DispositionKind.OTHER and self.raw_kind is not None:
            return self.raw_kind
        return self.kind.value

    def get(self, kind: DispositionParamKind, default: str | None = None) -> str | None:
        for param in self.params:
            if param.kind is kind:
                return param.value
        return default

    @property
    def filename(self) -> str | None:
        return self.get(DispositionParamKind.FILENAME)

    @property
    def name(self) -> str | None:
        return self.get(DispositionParamKind.NAME)

    @property
    def size(self) -> str | None:
        return self.get(DispositionParamKind.SIZE)

    def __str__(self) -> str:
        return self.type_name + _render_params((p.name, p.value) for p in self.params)


@dataclass(frozen=True)
class MimeNode:
    """One node of a parsed message.

    A node is either a leaf, holding a (transfer-decoded) ``body`` of the same
    type as the parsed input, or a container holding ``children``. Exactly
    one of the two is set.
    """

    media_type: MediaType
    disposition: Disposition | None = None
    body: Body | None = None
    children: tuple[MimeNode, ...] | None = None
    headers: HeaderList = field(default_factory=HeaderList)

    def __post_init__(self) -> None:
        if (self.body is None) == (self.children is None):
            raise ValueError("A MimeNode needs exactly one of body or children")
        if self.children is not None and not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if not isinstance(self.headers, HeaderList):
            object.__setattr__(self, "headers", HeaderList(self.headers))

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def content(self) -> Body | tuple[MimeNode, ...]:
        if self.children is None:
            assert self.body is not None
            return self.body
        return self.children

    @property
    def filename(self) -> str | None:
        if self.disposition is not None and self.disposition.filename is not None:
            return self.disposition.filename
        return self.media_type.param("name")

    def walk(self) -> Iterator[MimeNode]:
        """Yield this node and all of its descendants, depth first."""
        yield self
        for child in self.children or ():
            yield from child.walk()

    def leaves(self) -> list[MimeNode]:
        return [node for node in self.walk() if node.is_leaf]

    def attachments(self) -> list[MimeNode]:
        """Leaves marked as attachments, or carrying a file name."""
        found = []
        for node in self.leaves():
            disposition = node.disposition
            if disposition is not None and disposition.kind is DispositionKind.ATTACHMENT:
                found.append(node)
            elif node.filename is not None:
                found.append(node)
        return found

    def map_bodies(self, func: Callable[[Body], Body]) -> MimeNode:
        """Return a copy of the tree with ``func`` applied to every leaf body."""
        if self.children is None:
            assert self.body is not None
            return replace(self, body=func(self.body))
        return replace(self, children=tuple(child.map_bodies(func) for child in self.children))
