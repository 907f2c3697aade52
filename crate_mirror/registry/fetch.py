"""Release archive download.

The download location is a pure function of the package identity, and the
archive is written to exactly one file in the scratch directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from crate_mirror.core.config import DEFAULT_DOWNLOAD_BASE
from crate_mirror.core.mirror_errors import FetchError
from crate_mirror.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from crate_mirror.registry.http import HttpClient
    from crate_mirror.registry.resolver import PackageIdentity

__all__ = ["ArchiveFetcher", "FetchedArchive", "archive_filename", "archive_url"]


@dataclass(frozen=True, slots=True)
class FetchedArchive:
    """A downloaded archive.

    Attributes:
        path: Local file holding the archive bytes
        url: Where it was downloaded from
        size: File size in bytes
    """

    path: Path
    url: str
    size: int


def archive_filename(identity: PackageIdentity) -> str:
    return f"{identity.name}-{identity.version}.crate"


def archive_url(identity: PackageIdentity, download_base: str = DEFAULT_DOWNLOAD_BASE) -> str:
    """Download URL for a release, e.g. .../serde/serde-1.0.0.crate"""
    name = quote(identity.name, safe="")
    return f"{download_base.rstrip('/')}/{name}/{quote(archive_filename(identity), safe='')}"


class ArchiveFetcher:
    """Download a release archive into a scratch directory."""

    def __init__(
        self,
        http: HttpClient,
        scratch_dir: Path,
        download_base: str = DEFAULT_DOWNLOAD_BASE,
    ) -> None:
        self._http = http
        self._scratch_dir = scratch_dir
        self._download_base = download_base

    def fetch(self, identity: PackageIdentity) -> Result[FetchedArchive, FetchError]:
        url = archive_url(identity, self._download_base)
        dest = self._scratch_dir / archive_filename(identity)

        try:
            self._scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(FetchError(url=url, message=f"cannot create {self._scratch_dir}: {e}"))

        result = self._http.download(url, dest)
        if isinstance(result, Err):
            # Clean up partial download
            dest.unlink(missing_ok=True)
            e = result.error
            return Err(FetchError(url=url, message=str(e), status=e.status))

        return Ok(FetchedArchive(path=dest, url=url, size=dest.stat().st_size))
