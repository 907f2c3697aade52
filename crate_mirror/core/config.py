"""Typed configuration for a mirror run.

`MirrorConfig` is built once at process start by `load_config` and handed to
every component. Nothing else in the package reads the environment.

Precedence, lowest first: defaults, optional TOML file, environment, CLI
overrides. The access token is only ever read from the environment.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .mirror_errors import ConfigurationError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "DEFAULT_API_BASE",
    "DEFAULT_DOWNLOAD_BASE",
    "ENV_VARS",
    "MirrorConfig",
    "MirrorMode",
    "PushTarget",
    "load_config",
]

DEFAULT_API_BASE = "https://crates.io/api/v1/crates"
DEFAULT_DOWNLOAD_BASE = "https://static.crates.io/crates"
DEFAULT_GIT_HOST = "github.com"
DEFAULT_BRANCH = "main"
DEFAULT_TAG_PREFIX = "v"
DEFAULT_COMMITTER_NAME = "GitHub Action"
DEFAULT_COMMITTER_EMAIL = "action@github.com"

# field name -> environment variable
ENV_VARS: dict[str, str] = {
    "package": "CRATE_NAME",
    "owner": "GH_USER",
    "repo_name": "REPO_NAME",
    "token": "GH_PAT",
    "mode": "MIRROR_MODE",
    "work_dir": "MIRROR_WORK_DIR",
    "branch": "MIRROR_BRANCH",
    "tag_prefix": "MIRROR_TAG_PREFIX",
    "git_host": "MIRROR_GIT_HOST",
    "remote_url": "MIRROR_REMOTE_URL",
    "committer_name": "MIRROR_COMMITTER_NAME",
    "committer_email": "MIRROR_COMMITTER_EMAIL",
    "api_base": "CRATES_API_BASE",
    "download_base": "CRATES_DOWNLOAD_BASE",
}

# field name -> (TOML table, key)
_FILE_KEYS: dict[str, tuple[str, str]] = {
    "package": ("package", "name"),
    "owner": ("target", "owner"),
    "repo_name": ("target", "repo"),
    "git_host": ("target", "host"),
    "remote_url": ("target", "remote_url"),
    "branch": ("target", "branch"),
    "mode": ("mirror", "mode"),
    "work_dir": ("mirror", "work_dir"),
    "tag_prefix": ("mirror", "tag_prefix"),
    "committer_name": ("mirror", "committer_name"),
    "committer_email": ("mirror", "committer_email"),
    "api_base": ("registry", "api_base"),
    "download_base": ("registry", "download_base"),
}

# Variables that must all be present before anything is pushed
_PUSH_FIELDS = ("owner", "repo_name", "token")


class MirrorMode(str, Enum):
    fresh = "fresh"
    clone = "clone"


@dataclass(frozen=True, slots=True)
class PushTarget:
    """Where the mirror is published.

    Attributes:
        public_url: Credential-free URL, safe to persist and print
        auth_url: URL carrying the token; only ever passed as a git argument
    """

    public_url: str
    auth_url: str = field(repr=False)
    token: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class MirrorConfig:
    """Settings for one mirror run."""

    package: str
    owner: str | None = None
    repo_name: str | None = None
    token: str | None = field(default=None, repr=False)
    mode: MirrorMode = MirrorMode.clone
    work_dir: Path = Path("work")
    branch: str = DEFAULT_BRANCH
    tag_prefix: str = DEFAULT_TAG_PREFIX
    git_host: str = DEFAULT_GIT_HOST
    remote_url: str | None = None
    committer_name: str = DEFAULT_COMMITTER_NAME
    committer_email: str = DEFAULT_COMMITTER_EMAIL
    api_base: str = DEFAULT_API_BASE
    download_base: str = DEFAULT_DOWNLOAD_BASE

    @property
    def scratch_dir(self) -> Path:
        """Where the downloaded archive lands."""
        return self.work_dir / "scratch"

    @property
    def source_dir(self) -> Path:
        """Where the archive is materialized."""
        return self.work_dir / "source"

    @property
    def repo_dir(self) -> Path:
        """The git working tree."""
        return self.work_dir / "repo"

    def push_target(self) -> Result[PushTarget, ConfigurationError]:
        """Build the push target, or report every missing variable."""
        missing = tuple(ENV_VARS[name] for name in _PUSH_FIELDS if not getattr(self, name))
        if missing:
            return Err(
                ConfigurationError(
                    message=f"missing required environment variables: {', '.join(missing)}",
                    missing=missing,
                )
            )

        assert self.owner and self.repo_name and self.token
        if self.remote_url:
            return Ok(PushTarget(public_url=self.remote_url, auth_url=self.remote_url))

        path = f"{self.owner}/{self.repo_name}.git"
        return Ok(
            PushTarget(
                public_url=f"https://{self.git_host}/{path}",
                auth_url=f"https://x-access-token:{self.token}@{self.git_host}/{path}",
                token=self.token,
            )
        )

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> Result[MirrorConfig, ConfigurationError]:
        """Build a config from merged string values keyed by field name."""
        package = values.get("package")
        if not package:
            return Err(
                ConfigurationError(
                    message=f"missing required environment variable: {ENV_VARS['package']}",
                    missing=(ENV_VARS["package"],),
                )
            )

        mode_raw = values.get("mode", MirrorMode.clone.value).lower()
        try:
            mode = MirrorMode(mode_raw)
        except ValueError:
            choices = ", ".join(m.value for m in MirrorMode)
            return Err(ConfigurationError(message=f"invalid mode '{mode_raw}' (expected {choices})"))

        return Ok(
            cls(
                package=package,
                owner=values.get("owner"),
                repo_name=values.get("repo_name"),
                token=values.get("token"),
                mode=mode,
                work_dir=Path(values.get("work_dir", "work")).expanduser(),
                branch=values.get("branch", DEFAULT_BRANCH),
                tag_prefix=values.get("tag_prefix", DEFAULT_TAG_PREFIX),
                git_host=values.get("git_host", DEFAULT_GIT_HOST),
                remote_url=values.get("remote_url"),
                committer_name=values.get("committer_name", DEFAULT_COMMITTER_NAME),
                committer_email=values.get("committer_email", DEFAULT_COMMITTER_EMAIL),
                api_base=values.get("api_base", DEFAULT_API_BASE).rstrip("/"),
                download_base=values.get("download_base", DEFAULT_DOWNLOAD_BASE).rstrip("/"),
            )
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigurationError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigurationError(f"config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigurationError(f"permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigurationError(f"invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigurationError(f"error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigurationError("config root must be a TOML table", path=path))
    return Ok(data)


def _file_values(data: StrDict) -> dict[str, str]:
    values: dict[str, str] = {}
    for name, (table_name, key) in _FILE_KEYS.items():
        table = get_table(data, table_name)
        if table is None:
            continue
        value = get_str(table, key)
        if value is not None:
            values[name] = value
    return values


def load_config(
    environ: Mapping[str, str],
    path: Path | None = None,
    overrides: Mapping[str, str | None] | None = None,
) -> Result[MirrorConfig, ConfigurationError]:
    """Load the run configuration.

    Args:
        environ: Environment mapping (usually os.environ)
        path: Optional TOML config file
        overrides: Values from CLI options keyed by field name; None entries are ignored

    Returns:
        Ok(MirrorConfig) on success, Err(ConfigurationError) on failure
    """
    values: dict[str, str] = {}

    if path is not None:
        parsed = _parse_toml(path)
        if isinstance(parsed, Err):
            return parsed
        values.update(_file_values(parsed.value))

    for name, var in ENV_VARS.items():
        value = environ.get(var, "").strip()
        if value:
            values[name] = value

    for name, value in (overrides or {}).items():
        if value:
            values[name] = value

    return MirrorConfig.from_values(values)
