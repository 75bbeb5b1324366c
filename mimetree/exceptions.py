from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .consistency import ConsistencyReport


class MimeError(ValueError):
    """Base error class for the MIME parser."""


class ParseError(MimeError):
    """This exception (or a subclass) is raised when there is an error while
    parsing something.
    """

    #: This is the offset in the input data in which the parse error occurred.
    #: It will be -1 if not specified.
    offset = -1


class MessageTooLargeError(ParseError):
    """Raised when a message is larger than the configured
    ``MAX_MESSAGE_SIZE``.
    """


class DecodeError(ParseError):
    """This exception is raised when there is a decoding error - for example
    with the Base64Decoder or QuotedPrintableDecoder.
    """


class TransferEncodingError(MimeError):
    """Raised for an unknown Content-Transfer-Encoding when the parser is
    configured with ``ERROR_ON_BAD_CTE``.
    """


class ConsistencyError(MimeError):
    """Raised when parsing the text and byte forms of one message gives two
    different trees. This always indicates a bug in the parser.
    """

    def __init__(self, message: str, report: ConsistencyReport) -> None:
        super().__init__(message)
        self.report = report
