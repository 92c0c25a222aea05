from __future__ import annotations

import enum
from dataclasses import dataclass


class Selection(enum.Enum):
    """Which part of an artifact list a caller operates on."""

    ALL = "all"
    CURRENT_ONLY = "current"
    LEGACY_ONLY = "legacy"

    @classmethod
    def from_flags(cls, *, include_legacy: bool = True, legacy_only: bool = False) -> "Selection":
        if legacy_only:
            return cls.LEGACY_ONLY
        return cls.ALL if include_legacy else cls.CURRENT_ONLY


@dataclass(frozen=True)
class ArtifactSet:
    current_skill_names: tuple[str, ...]
    legacy_skill_names: tuple[str, ...] = ()
    current_agent_names: tuple[str, ...] = ()
    legacy_agent_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.current_skill_names) & set(self.legacy_skill_names)
        overlap |= set(self.current_agent_names) & set(self.legacy_agent_names)
        if overlap:
            raise ValueError(f"Names cannot be both current and legacy: {', '.join(sorted(overlap))}")

    def current_skills(self) -> tuple[str, ...]:
        return self.current_skill_names

    def legacy_skills(self) -> tuple[str, ...]:
        return self.legacy_skill_names

    def all_skills(self) -> tuple[str, ...]:
        return self.current_skill_names + self.legacy_skill_names

    def current_agents(self) -> tuple[str, ...]:
        return self.current_agent_names

    def legacy_agents(self) -> tuple[str, ...]:
        return self.legacy_agent_names

    def all_agents(self) -> tuple[str, ...]:
        return self.current_agent_names + self.legacy_agent_names

    def skills(self, selection: Selection = Selection.ALL) -> tuple[str, ...]:
        if selection is Selection.LEGACY_ONLY:
            return self.legacy_skills()
        if selection is Selection.CURRENT_ONLY:
            return self.current_skills()
        return self.all_skills()

    def agents(self, selection: Selection = Selection.ALL) -> tuple[str, ...]:
        if selection is Selection.LEGACY_ONLY:
            return self.legacy_agents()
        if selection is Selection.CURRENT_ONLY:
            return self.current_agents()
        return self.all_agents()


SKILLS = (
    "ti-expert",
    "purgetss",
    "ti-ui",
    "ti-howtos",
    "ti-guides",
    "alloy-guides",
    "alloy-howtos",
)
LEGACY_SKILLS = ("alloy-expert",)

AGENTS = ("ti-pro",)
LEGACY_AGENTS = ("ti-researcher",)

DEFAULT_ARTIFACTS = ArtifactSet(
    current_skill_names=SKILLS,
    legacy_skill_names=LEGACY_SKILLS,
    current_agent_names=AGENTS,
    legacy_agent_names=LEGACY_AGENTS,
)

SKILL_DESCRIPTIONS: dict[str, str] = {
    "ti-expert": "Architecture, controllers, models and memory-safe patterns for Titanium/Alloy apps",
    "purgetss": "PurgeTSS utility classes, icon fonts, grid layouts and animations",
    "ti-ui": "Layouts, ListView/TableView, gestures and platform-specific UI components",
    "ti-howtos": "Native integrations: location, push notifications, media, storage, networking",
    "ti-guides": "SDK fundamentals, Hyperloop, CLI, tiapp.xml and app distribution",
    "alloy-guides": "Alloy MVC reference: views, styles, controllers, models and widgets",
    "alloy-howtos": "Alloy CLI, configuration files, debugging and common errors",
}
