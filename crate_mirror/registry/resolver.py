"""Latest-version lookup against the crates.io API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

from crate_mirror.core.config import DEFAULT_API_BASE
from crate_mirror.core.mirror_errors import ResolutionError
from crate_mirror.core.result import Err, Ok, Result
from crate_mirror.core.structured import as_str_dict, get_str

if TYPE_CHECKING:
    from crate_mirror.registry.http import HttpClient

__all__ = ["PackageIdentity", "VersionResolver", "pick_version"]


@dataclass(frozen=True, slots=True)
class PackageIdentity:
    """A package name paired with the version resolved for this run."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


def pick_version(payload: dict[str, object]) -> str | None:
    """Pick the version to mirror from a crates.io crate response.

    Prefers `crate.max_stable_version`; falls back to `crate.max_version`
    when the crate has no stable release.
    """
    crate = as_str_dict(payload.get("crate"))
    if crate is None:
        return None
    return get_str(crate, "max_stable_version") or get_str(crate, "max_version")


class VersionResolver:
    """Resolve the latest published version of a crate.

    Usage:
        resolver = VersionResolver(RealHttpClient())
        match resolver.resolve("serde"):
            case Ok(identity):
                print(identity.version)
            case Err(e):
                print(e.message)
    """

    def __init__(self, http: HttpClient, api_base: str = DEFAULT_API_BASE) -> None:
        self._http = http
        self._api_base = api_base.rstrip("/")

    def metadata_url(self, name: str) -> str:
        return f"{self._api_base}/{quote(name, safe='')}"

    def resolve(self, name: str) -> Result[PackageIdentity, ResolutionError]:
        url = self.metadata_url(name)
        result = self._http.get_json(url)
        if isinstance(result, Err):
            e = result.error
            return Err(ResolutionError(package=name, message=str(e), status=e.status))

        version = pick_version(result.value)
        if version is None:
            return Err(
                ResolutionError(
                    package=name,
                    message=f"no max_stable_version or max_version in response from {url}",
                )
            )
        return Ok(PackageIdentity(name=name, version=version))
