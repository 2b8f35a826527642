"""
HTTP protocol pieces: request-line parsing, response framing, status
codes, and content-type classification.
"""

from .status_codes import HTTPStatus
from .request import Request, parse_request, parse_path, decode_path
from .response import (
    HTTPResponse, ResponseBuilder,
    ok_html, ok_file, forbidden, not_found,
    payload_too_large, internal_error, service_unavailable,
)
from .content_type import classify, sniff, mime_type_for_extension

__all__ = [
    "HTTPStatus",
    "Request", "parse_request", "parse_path", "decode_path",
    "HTTPResponse", "ResponseBuilder",
    "ok_html", "ok_file", "forbidden", "not_found",
    "payload_too_large", "internal_error", "service_unavailable",
    "classify", "sniff", "mime_type_for_extension",
]
