"""Cross-check of the two input representations.

The parser runs the same code over ``str`` and ``bytes`` input. Parsing a
message as bytes and as its latin-1 text rendering must therefore give the
same tree, with byte leaves read as latin-1. A difference can only come from
a bug in the parser, so :func:`parse_message_checked` treats it as fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import ConsistencyError
from .multipart import MessageParser, as_header_list
from .types import HeaderList, LineMode

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .multipart import HeaderInput
    from .types import Body, MimeNode

logger = logging.getLogger(__name__)


def _as_text(body: Body) -> str:
    if isinstance(body, bytes):
        return body.decode("latin-1")
    return body


def _leaf_contents(tree: MimeNode) -> str:
    return "".join(_as_text(node.body) for node in tree.leaves() if node.body is not None)


@dataclass(frozen=True)
class ConsistencyReport:
    """The outcome of :func:`check_consistency`."""

    data: bytes
    #: The headers given for a body-only check, or None for a whole message.
    headers: HeaderList | None
    byte_tree: MimeNode
    text_tree: MimeNode
    ok: bool

    def dump(self) -> str:
        """Render everything needed to reproduce a mismatch."""
        return (
            f"{list(self.headers or ())!r}\n"
            f"BODY:\n{_as_text(self.data)}\n"
            f"TEXT PATH CONTENTS:\n{_leaf_contents(self.text_tree)}\n"
            f"BYTE PATH CONTENTS:\n{_leaf_contents(self.byte_tree)}\n"
        )


def check_consistency(
    data: bytes,
    mode: LineMode = LineMode.CRLF,
    headers: HeaderInput | None = None,
    config: dict[Any, Any] | None = None,
) -> ConsistencyReport:
    """Parse ``data`` both as bytes and as latin-1 text and compare the trees.

    With ``headers``, ``data`` is treated as a body and parsed with those
    headers; otherwise it is a whole message.
    """
    raw = bytes(data)
    text = raw.decode("latin-1")
    header_list = as_header_list(headers) if headers is not None else None

    trees = []
    for representation in (raw, text):
        parser = MessageParser(mode, config or {})
        if header_list is None:
            trees.append(parser.parse_message(representation))
        else:
            trees.append(parser.parse_body(header_list, representation))
    byte_tree, text_tree = trees

    ok = byte_tree.map_bodies(_as_text) == text_tree
    return ConsistencyReport(raw, header_list, byte_tree, text_tree, ok)


def write_report(report: ConsistencyReport, path: str) -> bool:
    """Append ``report`` to ``path``. Failures are logged, never raised."""
    try:
        with open(path, "ab") as fh:
            fh.write(report.dump().encode("latin-1", errors="replace"))
    except OSError:
        logger.exception("Error writing consistency report to %r", path)
        return False
    return True


def parse_message_checked(
    data: bytes,
    mode: LineMode = LineMode.CRLF,
    headers: HeaderInput | None = None,
    config: dict[Any, Any] | None = None,
) -> MimeNode:
    """Parse ``data`` as bytes, verifying the result against the text path.

    Returns the byte tree. On a mismatch the report is appended to
    ``CONSISTENCY_LOG_PATH`` (when set) and :class:`ConsistencyError` is
    raised.
    """
    report = check_consistency(data, mode, headers, config)
    if report.ok:
        return report.byte_tree

    logger.error("Text and byte parses of a %d byte message differ", len(report.data))
    settings = MessageParser.DEFAULT_CONFIG.copy()
    settings.update(config or {})  # type: ignore[typeddict-item]
    path = settings["CONSISTENCY_LOG_PATH"]
    if path is not None:
        write_report(report, path)
    raise ConsistencyError("Text and byte parses of the same message differ", report)
