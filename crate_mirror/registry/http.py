"""HTTP client abstraction for registry access.

This module provides:
- HttpClient: Protocol for the two GETs the mirror needs (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, cast, runtime_checkable

from crate_mirror import __version__
from crate_mirror.core.result import Err, Ok, Result
from crate_mirror.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets tests inject a mock client and avoid real network calls.
    """

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch URL and parse the body as a JSON object."""
        ...

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        """Stream URL to dest and return dest."""
        ...


def _to_http_error(url: str, exc: Exception) -> HttpError:
    """Map a urllib/socket failure to an HttpError (status 0 when no response arrived)."""
    match exc:
        case urllib.error.HTTPError(code=code, reason=reason):
            return HttpError(url=url, status=code, message=str(reason))
        case urllib.error.URLError(reason=reason):
            return HttpError(url=url, status=0, message=str(reason))
        case TimeoutError():
            return HttpError(url=url, status=0, message="Request timed out")
        case _:
            return HttpError(url=url, status=0, message=str(exc))


class RealHttpClient:
    """HTTP client using urllib with system certificates.

    No timeout is applied unless one is passed; the job relies on the
    transport defaults.
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str = f"crate-mirror/{__version__}",
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds (None for socket default)
            user_agent: User-Agent header value (crates.io rejects requests without one)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _open(self, url: str) -> Any:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        if self.timeout is None:
            return urllib.request.urlopen(req, context=self._ssl_context)
        return urllib.request.urlopen(req, timeout=self.timeout, context=self._ssl_context)

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch URL and parse the body as a JSON object."""
        try:
            with self._open(url) as response:
                body: bytes = response.read()
        except (ValueError, OSError) as e:
            # urllib.error.URLError and TimeoutError are OSError subclasses
            return Err(_to_http_error(url, e))

        try:
            data_obj: object = json.loads(body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(dict[str, Any], data))

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        """Stream URL to dest in fixed-size chunks.

        A body shorter than the advertised Content-Length is an error.
        """
        written = 0
        expected: str | None = None
        try:
            with self._open(url) as response:
                expected = response.headers.get("Content-Length")
                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    while chunk := response.read(_CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)
        except (ValueError, OSError, http.client.HTTPException) as e:
            return Err(_to_http_error(url, e))

        if expected is not None and expected.strip().isdigit() and int(expected) != written:
            return Err(
                HttpError(
                    url=url,
                    status=0,
                    message=f"incomplete download: got {written} of {int(expected)} bytes",
                )
            )
        return Ok(dest)


class MockHttpClient:
    """Mock HTTP client for testing.

    Unregistered URLs answer 404. Every request is appended to `calls` as
    `(method, url)`.

    Usage:
        client = MockHttpClient()
        client.set_json("https://crates.io/api/v1/crates/serde", {"crate": {...}})
        client.set_download("https://static.crates.io/...", archive_bytes)
    """

    def __init__(self) -> None:
        self._json: dict[str, dict[str, Any] | HttpError] = {}
        self._downloads: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._json[url] = response

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        self._downloads[url] = response

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("get_json", url))
        match self._json.get(url):
            case None:
                return Err(HttpError(url=url, status=404, message="Not found (mock)"))
            case HttpError() as error:
                return Err(error)
            case payload:
                return Ok(payload)

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        self.calls.append(("download", url))
        match self._downloads.get(url):
            case None:
                return Err(HttpError(url=url, status=404, message="Not found (mock)"))
            case HttpError() as error:
                return Err(error)
            case content:
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_bytes(content)
                return Ok(dest)
