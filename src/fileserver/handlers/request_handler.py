"""
=============================================================================
REQUEST HANDLER
=============================================================================

Turns one accepted connection into exactly one response (or none, when
the client sent nothing) and closes it.

=============================================================================
PIPELINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  READ        recv(buffer_size) once          b"" → close, no reply  │
    │    │                                                                 │
    │  PARSE       second token of first line      missing → "/"          │
    │    │                                                                 │
    │  DECODE      percent-decode as UTF-8         malformed → U+FFFD     │
    │    │                                                                 │
    │  FAVICON     "/favicon.ico"               → 404, empty body         │
    │    │                                                                 │
    │  RESOLVE     canonicalize + containment                             │
    │    │           not found                  → 404 "File not found."   │
    │    │           outside root               → 403 "Backtracking not   │
    │    │                                              allowed."         │
    │  DISPATCH    directory                    → 200 HTML listing        │
    │    │         regular file                 → 200 classified type     │
    │    │         anything else                → 404                     │
    │    │                                                                 │
    │  WRITE       status line + headers + body, sendall                  │
    │    │                                                                 │
    │  CLOSE                                                               │
    └─────────────────────────────────────────────────────────────────────┘

respond() is the pure part (request in, response out) and never touches
the socket. handle_connection() wraps it with the transport steps.

=============================================================================
"""

import logging
import os
import time

from ..access_log import RequestLog, access_timestamp, log_request
from ..config import ServerConfig
from ..core.connection import Connection, ConnectionState
from ..http.content_type import classify
from ..http.request import Request, parse_request
from ..http.response import (
    HTTPResponse,
    ok_html, ok_file, forbidden, not_found,
    payload_too_large, internal_error,
)
from .listing import render_listing
from .resolver import (
    PathResolver, ResolvedResource, ResourceKind,
    ResourceNotFound, PathTraversalError,
)


logger = logging.getLogger(__name__)


FAVICON_PATH = "/favicon.ico"

NOT_FOUND_MESSAGE = "File not found."
TRAVERSAL_MESSAGE = "Backtracking not allowed."


class RequestHandler:
    """
    Serves requests against one Server Root.

    Holds no per-request state, so one instance can be shared by every
    worker thread.

    Usage:
        handler = RequestHandler(config)
        handler.handle_connection(conn)      # full transport cycle
        response = handler.respond(request)  # pipeline only
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.resolver = PathResolver(config.root_path)

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def respond(self, request: Request) -> HTTPResponse:
        """
        Build the response for a parsed request.

        Never raises: anything unexpected becomes a 500.
        """
        try:
            return self._dispatch(request)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.path!r}: {e}")
            return internal_error()

    def _dispatch(self, request: Request) -> HTTPResponse:
        logger.debug(f"Request path raw={request.raw_path!r} decoded={request.path!r}")

        if request.path == FAVICON_PATH:
            logger.debug("Favicon request, answering 404")
            return not_found()

        try:
            resource = self.resolver.resolve(request.path)
        except PathTraversalError:
            logger.warning(
                f"Path traversal attempt from {request.client_ip}: {request.path!r}"
            )
            return forbidden(TRAVERSAL_MESSAGE)
        except ResourceNotFound as e:
            logger.debug(str(e))
            return not_found(NOT_FOUND_MESSAGE)

        if resource.kind is ResourceKind.DIRECTORY:
            html = render_listing(resource, request.path, sort=self.config.sort_listing)
            return ok_html(html)

        if resource.kind is ResourceKind.FILE:
            return self._serve_file(resource)

        logger.debug(f"Not a regular file or directory: {resource.display_path}")
        return not_found(NOT_FOUND_MESSAGE)

    def _serve_file(self, resource: ResolvedResource) -> HTTPResponse:
        """Read a regular file fully and answer with its classified type."""
        limit = self.config.max_file_size

        try:
            if limit is not None and os.stat(resource.path).st_size > limit:
                logger.info(f"Refusing {resource.display_path}: larger than {limit} bytes")
                return payload_too_large()

            content_type = classify(resource.path)
            content = resource.path.read_bytes()
        except PermissionError:
            logger.warning(f"Permission denied reading {resource.display_path}")
            return forbidden("Permission denied.")
        except OSError as e:
            logger.error(f"Error reading file {resource.display_path}: {e}")
            return internal_error("Failed to read file.")

        return ok_file(content, content_type)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def handle_connection(self, conn: Connection):
        """
        Serve one connection from first read to close.

        Transport failures (timeout, reset, failed write) abort this
        connection only. The socket is closed on every path.
        """
        with conn:
            start_time = time.time()

            try:
                raw = conn.read_request()
            except TimeoutError:
                logger.info(f"[{conn.id}] Read timed out, closing")
                return
            except OSError as e:
                logger.warning(f"[{conn.id}] Read failed: {e}")
                return

            if not raw:
                logger.debug(f"[{conn.id}] Client sent nothing, closing")
                return

            conn.state = ConnectionState.PROCESSING
            request = parse_request(raw, conn.address)
            response = self.respond(request)

            if not conn.send_response(response.to_bytes(self.config.server_name)):
                return

            log_request(
                RequestLog(
                    request_id=conn.id,
                    method=request.method,
                    path=request.path,
                    client_ip=conn.client_ip,
                    status_code=int(response.status),
                    content_length=len(response.body),
                    duration_ms=(time.time() - start_time) * 1000,
                    timestamp=access_timestamp(),
                ),
                log_format=self.config.log_format,
            )
