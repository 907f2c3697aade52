from __future__ import annotations

import io
import shutil
import subprocess
import tarfile
from pathlib import Path

import pytest

from crate_mirror.core.config import MirrorConfig, MirrorMode
from crate_mirror.core.mirror_errors import (
    ConfigurationError,
    ExtractionError,
    FetchError,
    ResolutionError,
)
from crate_mirror.core.result import Err, Ok
from crate_mirror.output.console import MockConsole
from crate_mirror.registry.http import HttpError, MockHttpClient
from crate_mirror.services.mirror import MirrorService
from crate_mirror.services.synchronizer import SyncStatus

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not available")

API = "https://registry.test/api/v1/crates"
DL = "https://dl.test/crates"
ARCHIVE_URL = f"{DL}/pkg/pkg-0.5.0.crate"


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"git {' '.join(args)} failed (code {result.returncode}): {result.stderr.strip()}"
        )
    return result.stdout.strip()


def _init_remote_repo(tmp_path: Path) -> Path:
    """Create a bare repo with one README commit on main."""
    remote = tmp_path / "mirror.git"
    seed = tmp_path / "seed"

    _git(tmp_path, "init", "--bare", str(remote))

    seed.mkdir()
    _git(seed, "init", "-b", "main")
    _git(seed, "config", "user.email", "test@example.com")
    _git(seed, "config", "user.name", "Test")
    (seed / "README.md").write_text("mirror\n", encoding="utf-8")
    _git(seed, "add", "README.md")
    _git(seed, "commit", "-m", "init")
    _git(seed, "push", remote.as_uri(), "main")

    return remote


def _crate_bytes(files: dict[str, bytes], prefix: str = "pkg-0.5.0") -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name=f"{prefix}/{name}")
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def _http() -> MockHttpClient:
    http = MockHttpClient()
    payload = {"crate": {"max_stable_version": "0.5.0", "max_version": "0.6.0-rc.1"}}
    http.set_json(f"{API}/pkg", payload)
    http.set_download(ARCHIVE_URL, _crate_bytes({"a.txt": b"A\n", "sub/b.txt": b"B\n"}))
    return http


def _config(tmp_path: Path, remote: Path | None = None, **kwargs: object) -> MirrorConfig:
    values: dict[str, object] = {
        "package": "pkg",
        "owner": "owner",
        "repo_name": "pkg",
        "token": "tok",
        "work_dir": tmp_path / "work",
        "api_base": API,
        "download_base": DL,
    }
    if remote is not None:
        values["remote_url"] = remote.as_uri()
    values.update(kwargs)
    return MirrorConfig(**values)  # type: ignore[arg-type]


@needs_git
def test_run_mirrors_latest_stable_release(tmp_path: Path) -> None:
    remote = _init_remote_repo(tmp_path)
    config = _config(tmp_path, remote)
    http = _http()
    console = MockConsole()

    result = MirrorService(config=config, http=http, console=console).run()

    assert isinstance(result, Ok)
    outcome = result.value
    assert outcome.status == SyncStatus.committed
    assert str(outcome.identity) == "pkg 0.5.0"
    assert outcome.tag == "v0.5.0"

    worktree = config.repo_dir
    assert (worktree / "a.txt").read_text(encoding="utf-8") == "A\n"
    assert (worktree / "sub" / "b.txt").read_text(encoding="utf-8") == "B\n"
    assert not (worktree / "README.md").exists()

    assert "0.5.0" in _git(remote, "log", "-1", "--format=%s", "main")
    assert _git(remote, "tag", "--list") == "v0.5.0"
    assert http.calls == [("get_json", f"{API}/pkg"), ("download", ARCHIVE_URL)]
    assert console.find("latest version: 0.5.0")
    assert console.find("extracted 2 files")
    assert not console.has_warning()


@needs_git
def test_second_run_is_up_to_date(tmp_path: Path) -> None:
    remote = _init_remote_repo(tmp_path)
    config = _config(tmp_path, remote)

    MirrorService(config=config, http=_http(), console=MockConsole()).run()
    head = _git(remote, "rev-parse", "main")
    result = MirrorService(config=config, http=_http(), console=MockConsole()).run()

    assert isinstance(result, Ok)
    assert result.value.status == SyncStatus.up_to_date
    assert _git(remote, "rev-parse", "main") == head
    assert _git(remote, "rev-list", "--count", "main") == "2"


@needs_git
def test_fresh_mode_end_to_end(tmp_path: Path) -> None:
    remote = _init_remote_repo(tmp_path)
    config = _config(tmp_path, remote, mode=MirrorMode.fresh)
    console = MockConsole()

    result = MirrorService(config=config, http=_http(), console=console).run()

    assert isinstance(result, Ok)
    assert _git(remote, "rev-list", "--count", "main") == "1"
    assert console.find("history will be replaced")


@needs_git
def test_existing_tag_is_reported_as_warning(tmp_path: Path) -> None:
    remote = _init_remote_repo(tmp_path)
    _git(remote, "tag", "v0.5.0", "main")
    console = MockConsole()

    result = MirrorService(config=_config(tmp_path, remote), http=_http(), console=console).run()

    assert isinstance(result, Ok)
    assert result.value.tag_warning is not None
    assert console.has_warning()
    assert console.find("could not create tag v0.5.0")


def test_clone_mode_checks_credentials_before_network(tmp_path: Path) -> None:
    config = _config(tmp_path, token=None)
    http = _http()

    result = MirrorService(config=config, http=http, console=MockConsole()).run()

    assert isinstance(result, Err)
    assert isinstance(result.error, ConfigurationError)
    assert result.error.missing == ("GH_PAT",)
    assert http.calls == []
    assert not (tmp_path / "work").exists()


def test_resolution_error_stops_the_run(tmp_path: Path) -> None:
    http = MockHttpClient()
    http.set_json(f"{API}/pkg", HttpError(url=f"{API}/pkg", status=404, message="Not Found"))

    result = MirrorService(config=_config(tmp_path), http=http, console=MockConsole()).run()

    assert isinstance(result, Err)
    assert isinstance(result.error, ResolutionError)
    assert result.error.status == 404
    assert http.calls == [("get_json", f"{API}/pkg")]


def test_fetch_error_stops_the_run(tmp_path: Path) -> None:
    http = _http()
    http.set_download(ARCHIVE_URL, HttpError(url=ARCHIVE_URL, status=500, message="boom"))

    result = MirrorService(config=_config(tmp_path), http=http, console=MockConsole()).run()

    assert isinstance(result, Err)
    assert isinstance(result.error, FetchError)
    assert result.error.url == ARCHIVE_URL
    assert not (tmp_path / "work" / "repo").exists()


def test_extraction_error_stops_the_run(tmp_path: Path) -> None:
    http = _http()
    http.set_download(ARCHIVE_URL, b"definitely not a gzip tarball" * 10)

    result = MirrorService(config=_config(tmp_path), http=http, console=MockConsole()).run()

    assert isinstance(result, Err)
    assert isinstance(result.error, ExtractionError)
    assert not (tmp_path / "work" / "repo").exists()
