from __future__ import annotations

import enum
import errno
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .artifacts import DEFAULT_ARTIFACTS, ArtifactSet, Selection
from .paths import Platform, Scope, resolve, same_location

logger = logging.getLogger(__name__)

AGENT_SUFFIX = ".md"

# Errors for which a directory copy stands in for the symlink.
_LINK_FALLBACK_ERRNOS = {errno.EPERM, errno.EACCES, errno.EXDEV}


@dataclass(frozen=True)
class OperationResult:
    installed: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    copied: tuple[str, ...] = ()  # subset of installed that is a copy, not a link

    def __add__(self, other: "OperationResult") -> "OperationResult":
        if not isinstance(other, OperationResult):
            return NotImplemented
        return OperationResult(
            installed=self.installed + other.installed,
            removed=self.removed + other.removed,
            failed=self.failed + other.failed,
            copied=self.copied + other.copied,
        )

    @property
    def ok(self) -> bool:
        return not self.failed


class LinkOutcome(enum.Enum):
    LINKED = "linked"
    COPIED_FALLBACK = "copied"
    FAILED = "failed"


@dataclass(frozen=True)
class LinkResult:
    outcome: LinkOutcome
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not LinkOutcome.FAILED


def _lexists(path: Path) -> bool:
    try:
        os.lstat(path)
    except FileNotFoundError:
        return False
    return True


def _remove_path(path: Path, *, recursive: bool = True) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    elif recursive:
        shutil.rmtree(path)
    else:
        path.rmdir()


def remove_entries(
    directory: Path,
    names: Iterable[str],
    *,
    suffix: str = "",
    recursive: bool = True,
) -> OperationResult:
    if not directory.is_dir():
        return OperationResult()

    removed: list[str] = []
    failed: list[str] = []
    for name in names:
        target = directory / f"{name}{suffix}"
        try:
            os.lstat(target)
            _remove_path(target, recursive=recursive)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not remove %s: %s", target, e)
            failed.append(name)
            continue
        logger.debug("Removed %s", target)
        removed.append(name)
    return OperationResult(removed=tuple(removed), failed=tuple(failed))


def has_any_entry(directory: Path, names: Iterable[str], *, suffix: str = "") -> bool:
    if not directory.is_dir():
        return False
    return any(_lexists(directory / f"{name}{suffix}") for name in names)


def has_installed_skills(
    scope: Scope,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
    selection: Selection = Selection.CURRENT_ONLY,
) -> bool:
    return has_any_entry(resolve(scope).skills_dir, artifacts.skills(selection))


def detect_platforms(scope: Scope) -> list[Platform]:
    return [p for p in resolve(scope).platforms if p.config_dir.is_dir()]


def remove_skills(
    scope: Scope,
    selection: Selection = Selection.ALL,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    return remove_entries(resolve(scope).skills_dir, artifacts.skills(selection), recursive=True)


def remove_agents(
    scope: Scope,
    selection: Selection = Selection.ALL,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    return remove_entries(
        resolve(scope).agents_dir,
        artifacts.agents(selection),
        suffix=AGENT_SUFFIX,
        recursive=False,
    )


def remove_skill_links(
    link_dir: Path,
    selection: Selection = Selection.ALL,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    return remove_entries(link_dir, artifacts.skills(selection), recursive=True)


def install_skill(source_root: Path, name: str, scope: Scope) -> bool:
    skills_dir = resolve(scope).skills_dir
    src = source_root / "skills" / name
    dest = skills_dir / name

    if not src.is_dir():
        logger.debug("Skill %s is not shipped in %s", name, source_root)
        return False
    skills_dir.mkdir(parents=True, exist_ok=True)
    if _lexists(dest):
        _remove_path(dest)
    shutil.copytree(src, dest, symlinks=True)
    logger.debug("Installed skill %s into %s", name, dest)
    return True


def install_agent(source_root: Path, name: str, scope: Scope) -> bool:
    agents_dir = resolve(scope).agents_dir
    src = source_root / "agents" / f"{name}{AGENT_SUFFIX}"
    dest = agents_dir / f"{name}{AGENT_SUFFIX}"

    if not src.is_file():
        logger.debug("Agent %s is not shipped in %s", name, source_root)
        return False
    agents_dir.mkdir(parents=True, exist_ok=True)
    if _lexists(dest):
        _remove_path(dest)
    shutil.copyfile(src, dest)
    logger.debug("Installed agent %s into %s", name, dest)
    return True


def _install_each(names: Iterable[str], install_one) -> OperationResult:
    installed: list[str] = []
    failed: list[str] = []
    for name in names:
        try:
            ok = install_one(name)
        except OSError as e:
            logger.warning("Could not install %s: %s", name, e)
            ok = False
        if ok:
            installed.append(name)
        else:
            failed.append(name)
    return OperationResult(installed=tuple(installed), failed=tuple(failed))


def install_skills(
    source_root: Path,
    scope: Scope,
    *,
    global_scope: Scope,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    result = remove_skills(scope, Selection.LEGACY_ONLY, artifacts)
    if not same_location(scope, global_scope):
        # Legacy skills left in the home directory would shadow the project ones.
        result += remove_skills(global_scope, Selection.LEGACY_ONLY, artifacts)
    return result + _install_each(
        artifacts.current_skills(),
        lambda name: install_skill(source_root, name, scope),
    )


def install_agents(
    source_root: Path,
    scope: Scope,
    *,
    global_scope: Scope,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    result = remove_agents(scope, Selection.LEGACY_ONLY, artifacts)
    if not same_location(scope, global_scope):
        result += remove_agents(global_scope, Selection.LEGACY_ONLY, artifacts)
    return result + _install_each(
        artifacts.current_agents(),
        lambda name: install_agent(source_root, name, scope),
    )


def install_all(
    source_root: Path,
    scope: Scope,
    *,
    global_scope: Scope,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    skills = install_skills(source_root, scope, global_scope=global_scope, artifacts=artifacts)
    agents = install_agents(source_root, scope, global_scope=global_scope, artifacts=artifacts)
    return skills + agents


def _can_fall_back_to_copy(err: OSError) -> bool:
    if os.name == "nt":
        return True
    return isinstance(err, PermissionError) or err.errno in _LINK_FALLBACK_ERRNOS


def link_skill(target: Path, link_path: Path, *, relative: bool = False) -> LinkResult:
    """
    Point link_path at target. When the host refuses symlinks the target tree is
    copied instead; the copy does not follow later updates until it is relinked.
    """
    try:
        link_path.parent.mkdir(parents=True, exist_ok=True)
        if _lexists(link_path):
            _remove_path(link_path)
    except OSError as e:
        return LinkResult(LinkOutcome.FAILED, f"could not clear {link_path}: {e}")

    link_target = os.path.relpath(target, link_path.parent) if relative else str(target)
    try:
        os.symlink(link_target, link_path, target_is_directory=True)
        return LinkResult(LinkOutcome.LINKED)
    except OSError as e:
        if not _can_fall_back_to_copy(e):
            return LinkResult(LinkOutcome.FAILED, f"could not create symlink: {e}")
        logger.debug("Symlink %s -> %s refused (%s); copying instead", link_path, link_target, e)

    try:
        shutil.copytree(target, link_path, symlinks=True, dirs_exist_ok=True)
    except OSError as e:
        return LinkResult(LinkOutcome.FAILED, f"could not copy: {e}")
    return LinkResult(LinkOutcome.COPIED_FALLBACK)


def create_symlinks(link_dir: Path, skill_names: Iterable[str], scope: Scope) -> OperationResult:
    skills_dir = resolve(scope).skills_dir
    installed: list[str] = []
    failed: list[str] = []
    copied: list[str] = []

    try:
        link_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Could not create %s: %s", link_dir, e)
        return OperationResult(failed=tuple(skill_names))

    for name in skill_names:
        res = link_skill(skills_dir / name, link_dir / name, relative=scope.is_local)
        if res.outcome is LinkOutcome.FAILED:
            logger.warning("%s: %s", link_dir / name, res.reason)
            failed.append(name)
            continue
        installed.append(name)
        if res.outcome is LinkOutcome.COPIED_FALLBACK:
            copied.append(name)
    return OperationResult(installed=tuple(installed), failed=tuple(failed), copied=tuple(copied))


def cleanup_legacy_artifacts(
    scope: Scope,
    *,
    global_scope: Scope,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
) -> OperationResult:
    scopes = [scope]
    if not same_location(scope, global_scope):
        scopes.append(global_scope)

    result = OperationResult()
    for s in scopes:
        result += remove_skills(s, Selection.LEGACY_ONLY, artifacts)
        result += remove_agents(s, Selection.LEGACY_ONLY, artifacts)
        for platform in detect_platforms(s):
            result += remove_skill_links(platform.skills_link_dir, Selection.LEGACY_ONLY, artifacts)
    return result
