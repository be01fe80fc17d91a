"""Minimal blocking HTTP GET used to fetch remote IR.

One plaintext connection, one request, default headers, no retries, no
redirects and no timeout configuration.
"""

from __future__ import annotations

import http.client
import logging

from irjit.errors import FetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


def fetch(host: str, path: str, chunk_size: int = CHUNK_SIZE) -> bytes:
    """GET *path* from *host* (``name`` or ``name:port``) and return the body."""
    if not host:
        raise FetchError("empty host")
    if not path.startswith("/"):
        path = "/" + path

    try:
        conn = http.client.HTTPConnection(host)
    except (ValueError, http.client.HTTPException) as exc:
        raise FetchError(f"invalid host {host!r}: {exc}") from exc
    try:
        try:
            conn.request("GET", path)
        except (OSError, http.client.HTTPException) as exc:
            raise FetchError(f"request to http://{host}{path} failed: {exc}") from exc

        try:
            response = conn.getresponse()
        except (OSError, http.client.HTTPException) as exc:
            raise FetchError(f"no response from http://{host}{path}: {exc}") from exc

        chunks: list[bytes] = []
        try:
            while True:
                chunk = response.read(chunk_size)
                if not chunk:
                    break
                chunks.append(chunk)
        except (OSError, http.client.HTTPException) as exc:
            raise FetchError(f"reading response from http://{host}{path} failed: {exc}") from exc

        if not 200 <= response.status < 300:
            raise FetchError(
                f"http://{host}{path} returned {response.status} {response.reason}"
            )
        body = b"".join(chunks)
        if not body:
            raise FetchError(f"http://{host}{path} returned an empty body")
        logger.info("Fetched %d bytes from http://%s%s", len(body), host, path)
        return body
    finally:
        conn.close()
