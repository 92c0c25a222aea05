from __future__ import annotations

from dataclasses import dataclass


class TitoolsError(RuntimeError):
    pass


class PreconditionError(TitoolsError):
    """The command cannot run here (not a project, nothing installed, ...)."""


class ConfigError(TitoolsError):
    pass


class UnreadableFileError(TitoolsError):
    """An instruction file exists but is not valid UTF-8 text."""


@dataclass(frozen=True)
class TitoolsHTTPError(TitoolsError):
    status_code: int
    body: str

    def __str__(self) -> str:  # pragma: no cover
        return f"HTTP {self.status_code}: {self.body}"
