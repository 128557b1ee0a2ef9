"""Serve and fetch per-host queue counts over HTTP."""

from __future__ import annotations

import logging
from http.server import BaseHTTPRequestHandler
from typing import Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlsplit, urlunsplit
from urllib.request import urlopen

from .counts import Counts

log = logging.getLogger(__name__)

COUNTS_PATH = "/queue"

_JSON_TYPE = "application/json"
_TEXT_TYPE = "text/plain; charset=utf-8"


class _CountReader(Protocol):
    def current(self) -> Counts: ...


def counts_response(reader: _CountReader) -> tuple[int, bytes]:
    """Build the status code and body answering a queue counts request."""
    try:
        counts = reader.current()
    except Exception:
        log.exception("getting queue size")
        return 500, b"error getting queue size"
    try:
        body = counts.to_json()
    except (TypeError, ValueError):
        log.exception("encoding QueueCounts")
        return 500, b"error encoding queue counts"
    return 200, (body + "\n").encode("utf-8")


def make_counts_handler(reader: _CountReader) -> type[BaseHTTPRequestHandler]:
    """Return a request handler class that serves ``reader``'s counts at /queue."""

    class CountsHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if urlsplit(self.path).path != COUNTS_PATH:
                status, body, content_type = 404, b"404 page not found\n", _TEXT_TYPE
            else:
                status, body = counts_response(reader)
                content_type = _JSON_TYPE if status == 200 else _TEXT_TYPE
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        do_POST = do_GET

        def log_message(self, fmt: str, *args: object) -> None:
            log.debug(fmt, *args)

    return CountsHandler


def get_counts(interceptor_url: str, timeout: Optional[float] = None) -> Counts:
    """Fetch the queue counts from the interceptor at ``interceptor_url``.

    Any path in the URL is replaced by the counts path. Raises ConnectionError
    when the request fails and ValueError when the response cannot be decoded.
    """
    parts = urlsplit(interceptor_url)
    url = urlunsplit((parts.scheme, parts.netloc, COUNTS_PATH, parts.query, ""))
    try:
        with urlopen(url, timeout=timeout) as response:
            body = response.read()
    except HTTPError as exc:
        body = exc.read()
        exc.close()
    except (URLError, OSError) as exc:
        raise ConnectionError(f"requesting the queue counts from {url}: {exc}") from exc
    try:
        return Counts.from_json(body)
    except ValueError as exc:
        raise ValueError(
            f"decoding response from the interceptor at {url}: {exc}"
        ) from exc