from ._version import __version__
from .artifacts import DEFAULT_ARTIFACTS, ArtifactSet, Selection
from .blocks import add_or_update_block, block_exists, remove_old_block
from .client import SourceClient
from .errors import ConfigError, PreconditionError, TitoolsError, TitoolsHTTPError, UnreadableFileError
from .paths import Platform, Scope, ScopeKind, resolve
from .reconcile import LinkOutcome, LinkResult, OperationResult

__all__ = [
    "__version__",
    "ArtifactSet",
    "ConfigError",
    "DEFAULT_ARTIFACTS",
    "LinkOutcome",
    "LinkResult",
    "OperationResult",
    "Platform",
    "PreconditionError",
    "Scope",
    "ScopeKind",
    "Selection",
    "SourceClient",
    "TitoolsError",
    "TitoolsHTTPError",
    "UnreadableFileError",
    "add_or_update_block",
    "block_exists",
    "remove_old_block",
    "resolve",
]
