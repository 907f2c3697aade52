"""crates.io access: version lookup, archive download and extraction.

Usage:
    from crate_mirror.registry import ArchiveFetcher, RealHttpClient, VersionResolver

    http = RealHttpClient()
    identity = VersionResolver(http).resolve("serde").unwrap()
    archive = ArchiveFetcher(http, Path("work/scratch")).fetch(identity).unwrap()
"""

from crate_mirror.registry.extract import ArchiveMaterializer, MaterializedTree
from crate_mirror.registry.fetch import ArchiveFetcher, FetchedArchive, archive_url
from crate_mirror.registry.http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from crate_mirror.registry.resolver import PackageIdentity, VersionResolver, pick_version

__all__ = [
    "ArchiveFetcher",
    "ArchiveMaterializer",
    "FetchedArchive",
    "HttpClient",
    "HttpError",
    "MaterializedTree",
    "MockHttpClient",
    "PackageIdentity",
    "RealHttpClient",
    "VersionResolver",
    "archive_url",
    "pick_version",
]
