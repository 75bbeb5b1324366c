from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator


class DiagnosticKind(Enum):
    """Recoverable problems the parser works around instead of failing."""

    MALFORMED_HEADER = "malformed-header"
    MALFORMED_PARAMS = "malformed-params"
    UNPARSABLE_CONTENT_TYPE = "unparsable-content-type"
    MISSING_BOUNDARY = "missing-boundary"
    NO_DELIMITER = "no-delimiter"
    UNTERMINATED_MULTIPART = "unterminated-multipart"
    UNKNOWN_TRANSFER_ENCODING = "unknown-transfer-encoding"
    BAD_TRANSFER_ENCODING = "bad-transfer-encoding"
    DEPTH_EXCEEDED = "depth-exceeded"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    #: Offset into the input the diagnostic refers to, or -1 if unknown.
    offset: int = -1


class Diagnostics:
    """Collects the diagnostics recorded while parsing one message.

    Pass an instance into the parse functions to find out what was repaired
    along the way. Every record is also logged at DEBUG level, so nothing is
    printed unless the application configures logging for ``mimetree``.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self._records: list[Diagnostic] = []

    def add(self, kind: DiagnosticKind, message: str, offset: int = -1) -> Diagnostic:
        record = Diagnostic(kind, message, offset)
        self.logger.debug("%s: %s (offset %d)", kind.value, message, offset)
        self._records.append(record)
        return record

    def kinds(self) -> list[DiagnosticKind]:
        return [r.kind for r in self._records]

    def __contains__(self, kind: object) -> bool:
        return any(r.kind is kind for r in self._records)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._records!r})"
