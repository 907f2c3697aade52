"""Core types: configuration, errors, results."""

from .config import MirrorConfig, MirrorMode, PushTarget, load_config
from .errors import ErrorCode
from .mirror_errors import (
    ConfigurationError,
    ExtractionError,
    FetchError,
    MirrorError,
    RepositoryError,
    ResolutionError,
    TagConflictWarning,
)
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "MirrorConfig",
    "MirrorMode",
    "PushTarget",
    "load_config",
    # errors
    "ErrorCode",
    "ConfigurationError",
    "ExtractionError",
    "FetchError",
    "MirrorError",
    "RepositoryError",
    "ResolutionError",
    "TagConflictWarning",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
