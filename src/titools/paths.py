from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

AGENTS_HOME_DIRNAME = ".agents"
SKILLS_DIRNAME = "skills"
AGENTS_DIRNAME = "agents"

# (name, display name, config dir name). Order is the display order.
PLATFORM_SPECS: tuple[tuple[str, str, str], ...] = (
    ("claude", "Claude Code", ".claude"),
    ("gemini", "Gemini CLI", ".gemini"),
    ("codex", "Codex CLI", ".codex"),
)


class ScopeKind(enum.Enum):
    GLOBAL = "global"
    LOCAL = "local"


@dataclass(frozen=True)
class Scope:
    """Where artifacts live: the user's home directory or an explicit project directory."""

    kind: ScopeKind
    root: Path

    @classmethod
    def global_(cls, home: Path) -> "Scope":
        return cls(kind=ScopeKind.GLOBAL, root=Path(home))

    @classmethod
    def local(cls, base_dir: Path) -> "Scope":
        return cls(kind=ScopeKind.LOCAL, root=Path(base_dir))

    @property
    def is_local(self) -> bool:
        return self.kind is ScopeKind.LOCAL

    @property
    def label(self) -> str:
        return "Local" if self.is_local else "Global"


@dataclass(frozen=True)
class Platform:
    name: str
    display_name: str
    skills_link_dir: Path
    config_dir: Path


@dataclass(frozen=True)
class ScopePaths:
    scope: Scope
    skills_dir: Path
    agents_dir: Path
    platforms: tuple[Platform, ...]

    def platform(self, name: str) -> Platform:
        for p in self.platforms:
            if p.name == name:
                return p
        raise KeyError(name)

    def platform_skills_link_dir(self, name: str) -> Path:
        return self.platform(name).skills_link_dir

    def platform_config_dir(self, name: str) -> Path:
        return self.platform(name).config_dir


def resolve(scope: Scope) -> ScopePaths:
    root = scope.root
    platforms = tuple(
        Platform(
            name=name,
            display_name=display_name,
            skills_link_dir=root / dirname / SKILLS_DIRNAME,
            config_dir=root / dirname,
        )
        for name, display_name, dirname in PLATFORM_SPECS
    )
    return ScopePaths(
        scope=scope,
        skills_dir=root / AGENTS_HOME_DIRNAME / SKILLS_DIRNAME,
        agents_dir=root / ".claude" / AGENTS_DIRNAME,
        platforms=platforms,
    )


def same_location(a: Scope, b: Scope) -> bool:
    return a.root.expanduser().resolve() == b.root.expanduser().resolve()
