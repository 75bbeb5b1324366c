"""Parsers for structured header values: Content-Type, Content-Disposition
and the ``; name=value`` parameter lists they share.

These work on ``str`` only. Header values are always text, whichever
representation the message itself was parsed from.
"""

from __future__ import annotations

import logging

from .diagnostics import DiagnosticKind, Diagnostics
from .types import (
    HSPACE,
    TSPECIALS,
    Disposition,
    DispositionKind,
    DispositionParam,
    DispositionParamKind,
    MediaKind,
    MediaType,
    MultipartKind,
    Params,
)

logger = logging.getLogger(__name__)

MEDIA_KINDS = {
    "multipart": MediaKind.MULTIPART,
    "application": MediaKind.APPLICATION,
    "audio": MediaKind.AUDIO,
    "image": MediaKind.IMAGE,
    "message": MediaKind.MESSAGE,
    "model": MediaKind.MODEL,
    "text": MediaKind.TEXT,
    "video": MediaKind.VIDEO,
}

MULTIPART_KINDS = {
    "alternative": MultipartKind.ALTERNATIVE,
    "byteranges": MultipartKind.BYTERANGES,
    "digest": MultipartKind.DIGEST,
    "encrypted": MultipartKind.ENCRYPTED,
    "form-data": MultipartKind.FORM_DATA,
    "mixed": MultipartKind.MIXED,
    "parallel": MultipartKind.PARALLEL,
    "related": MultipartKind.RELATED,
    "signed": MultipartKind.SIGNED,
}

DISPOSITION_KINDS = {
    "inline": DispositionKind.INLINE,
    "attachment": DispositionKind.ATTACHMENT,
    "form-data": DispositionKind.FORM_DATA,
}

DISPOSITION_PARAM_KINDS = {
    "name": DispositionParamKind.NAME,
    "filename": DispositionParamKind.FILENAME,
    "creation-date": DispositionParamKind.CREATION_DATE,
    "modification-date": DispositionParamKind.MODIFICATION_DATE,
    "read-date": DispositionParamKind.READ_DATE,
    "size": DispositionParamKind.SIZE,
}


def skip_folding_whitespace(value: str, pos: int = 0) -> int:
    """Return the index of the first character at or after ``pos`` that is
    not horizontal whitespace or a line break followed by indentation.
    """
    length = len(value)
    while pos < length:
        c = value[pos]
        if c in HSPACE:
            pos += 1
        elif value.startswith("\r\n", pos) and pos + 2 < length and value[pos + 2] in HSPACE:
            pos += 3
        elif c == "\n" and pos + 1 < length and value[pos + 1] in HSPACE:
            pos += 2
        else:
            break
    return pos


def _skip_whitespace(value: str, pos: int) -> int:
    while pos < len(value) and value[pos].isspace():
        pos += 1
    return pos


def _scan_token(value: str, pos: int) -> int:
    # A token runs until whitespace or a tspecial.
    while pos < len(value) and value[pos] not in HSPACE and value[pos] not in TSPECIALS:
        pos += 1
    return pos


def parse_params(rest: str, diagnostics: Diagnostics | None = None) -> list[tuple[str, str]]:
    """Parse a ``; name=value; name="quoted value"`` list.

    Names are lower-cased, values are kept as written. Quoted values are
    taken verbatim up to the next double quote. Parsing stops quietly at the
    first fragment that does not look like a parameter; whatever was parsed
    before it is returned.
    """
    params: list[tuple[str, str]] = []
    length = len(rest)
    pos = 0

    while True:
        pos = _skip_whitespace(rest, pos)
        if pos >= length:
            break
        if rest[pos] != ";":
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticKind.MALFORMED_PARAMS, "Unexpected text in parameter list: %r" % rest[pos:], pos
                )
            break

        pos = skip_folding_whitespace(rest, pos + 1)
        equals_pos = rest.find("=", pos)
        if equals_pos == -1:
            break
        name = rest[pos:equals_pos].rstrip()
        if not name:
            break

        # The value starts right after the equals sign.
        pos = equals_pos + 1

        if rest.startswith('"', pos):
            close_pos = rest.find('"', pos + 1)
            if close_pos == -1:
                value = rest[pos + 1 :]
                pos = length
            else:
                value = rest[pos + 1 : close_pos]
                pos = close_pos + 1
        else:
            end = _scan_token(rest, pos)
            value = rest[pos:end]
            pos = end

        params.append((name.lower(), value))

    return params


def _multipart_kind(subtype: str) -> MultipartKind:
    kind = MULTIPART_KINDS.get(subtype.lower())
    if kind is not None:
        return kind
    if subtype.startswith("x-"):
        return MultipartKind.EXTENSION
    return MultipartKind.OTHER


def parse_content_type(value: str, diagnostics: Diagnostics | None = None) -> MediaType | None:
    """Parse a Content-Type header value.

    Returns ``None`` when the value has no ``/``; callers then fall back to
    ``DEFAULT_MEDIA_TYPE``. Unknown major types and multipart subtypes are
    kept verbatim as OTHER (or EXTENSION for ``x-`` multipart subtypes).

    >>> parse_content_type('text/plain; charset="utf-8"').params
    Params([('charset', 'utf-8')])
    """
    value = value[skip_folding_whitespace(value) :]
    slash_pos = value.find("/")
    if slash_pos == -1:
        logger.debug("Unable to parse content-type: %r", value)
        return None

    major = value[:slash_pos]
    end = _scan_token(value, slash_pos + 1)
    subtype = value[slash_pos + 1 : end]
    params = Params(parse_params(value[end:], diagnostics))

    kind = MEDIA_KINDS.get(major.lower())
    if kind is None:
        return MediaType(MediaKind.OTHER, subtype, params, raw_major=major)
    if kind is MediaKind.MULTIPART:
        return MediaType(kind, subtype, params, multipart=_multipart_kind(subtype))
    return MediaType(kind, subtype, params)


parse_mime_type = parse_content_type


def parse_content_disposition(value: str, diagnostics: Diagnostics | None = None) -> Disposition | None:
    """Parse a Content-Disposition header value, or return ``None`` if it is
    blank.
    """
    value = value[skip_folding_whitespace(value) :]
    if not value:
        return None

    end = 0
    while end < len(value) and not value[end].isspace() and value[end] != ";":
        end += 1
    type_name = value[:end].lower()

    params = []
    for name, param_value in parse_params(value[end:], diagnostics):
        param_kind = DISPOSITION_PARAM_KINDS.get(name, DispositionParamKind.OTHER)
        params.append(DispositionParam(param_kind, param_value, name))

    kind = DISPOSITION_KINDS.get(type_name)
    if kind is None:
        return Disposition(DispositionKind.OTHER, tuple(params), raw_kind=type_name)
    return Disposition(kind, tuple(params))
