__version__ = "0.1.0"

from .consistency import ConsistencyReport, check_consistency, parse_message_checked
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .grammar import parse_content_disposition, parse_content_type, parse_mime_type, parse_params
from .multipart import MessageParser, parse_body, parse_headers, parse_message, split_multipart
from .types import (
    DEFAULT_MEDIA_TYPE,
    Disposition,
    DispositionKind,
    DispositionParam,
    DispositionParamKind,
    HeaderList,
    LineMode,
    MediaKind,
    MediaType,
    MimeNode,
    MultipartKind,
    Params,
)

__all__ = (
    "DEFAULT_MEDIA_TYPE",
    "ConsistencyReport",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "Disposition",
    "DispositionKind",
    "DispositionParam",
    "DispositionParamKind",
    "HeaderList",
    "LineMode",
    "MediaKind",
    "MediaType",
    "MessageParser",
    "MimeNode",
    "MultipartKind",
    "Params",
    "check_consistency",
    "parse_body",
    "parse_content_disposition",
    "parse_content_type",
    "parse_headers",
    "parse_message",
    "parse_message_checked",
    "parse_mime_type",
    "parse_params",
    "split_multipart",
)
