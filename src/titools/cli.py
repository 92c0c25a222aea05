from __future__ import annotations

import argparse
import json
import logging
import sys
import tempfile
import textwrap
from contextlib import contextmanager
from dataclasses import asdict, replace
from pathlib import Path
from typing import Iterator

from ._version import __version__
from .artifacts import DEFAULT_ARTIFACTS, Selection
from .blocks import add_or_update_block, block_exists, remove_old_block, render_knowledge_block
from .client import SourceClient
from .config import PACKAGE_VERSION, REPO_URL, Config, apply_env_overrides, config_path, load_config, save_config
from .errors import PreconditionError, TitoolsError, TitoolsHTTPError, UnreadableFileError
from .paths import Platform, Scope, resolve, same_location
from .project import (
    DEFAULT_INSTRUCTION_FILE,
    INSTRUCTION_FILES,
    detect_titanium_version,
    is_titanium_project,
    local_skills_dir_for,
    skills_root_for,
)
from .prompts import Cancelled, Choice, select_many, select_one
from .reconcile import (
    AGENT_SUFFIX,
    OperationResult,
    cleanup_legacy_artifacts,
    create_symlinks,
    detect_platforms,
    has_any_entry,
    has_installed_skills,
    install_agents,
    install_skills,
    remove_agents,
    remove_skill_links,
    remove_skills,
)


def _home_dir() -> Path:
    return Path.home()


def _runtime_config(args: argparse.Namespace) -> Config:
    cfg = apply_env_overrides(load_config())
    source_dir = getattr(args, "source_dir", None)
    if source_dir:
        cfg = replace(cfg, source_dir=source_dir)
    return cfg


def _format_list(names: tuple[str, ...] | list[str]) -> str:
    return ", ".join(names) if names else "none"


def _print_failures(label: str, result: OperationResult) -> None:
    for name in result.failed:
        print(f"warning: {label}: could not process {name}")


@contextmanager
def _source_tree(cfg: Config) -> Iterator[Path]:
    """Yield a directory holding skills/ and agents/, downloading it when no local source is set."""
    if cfg.source_dir:
        root = Path(cfg.source_dir).expanduser().resolve()
        if not (root / "skills").is_dir():
            raise PreconditionError(f"Source directory has no skills/ folder: {root}")
        print(f"Using local source: {root}")
        yield root
        return

    with tempfile.TemporaryDirectory(prefix="titools-") as td:
        print("Downloading from GitHub...")
        with SourceClient(api_url=cfg.api_url, timeout_s=cfg.timeout_s) as client:
            client.download_archive(Path(td))
        print("Downloaded from GitHub")
        yield Path(td)


def _platforms_to_offer(scope: Scope, global_scope: Scope) -> list[Platform]:
    detected = detect_platforms(scope)
    if not scope.is_local:
        return detected
    # A project inherits the assistants installed for the user.
    local_names = {p.name for p in detected}
    global_names = {p.name for p in detect_platforms(global_scope)}
    merged = list(detected)
    for platform in resolve(scope).platforms:
        if platform.name in global_names and platform.name not in local_names:
            merged.append(platform)
    return merged


def _report_links(platform: Platform, result: OperationResult, total: int) -> None:
    if len(result.installed) == total:
        print(f"linked: {platform.display_name} ({total} skills)")
    else:
        print(f"warning: {platform.display_name}: {len(result.installed)}/{total} skills linked")
    if result.copied:
        print(
            f"warning: {platform.display_name}: symlinks are not permitted here, copied "
            f"{_format_list(result.copied)} instead (run the command again after each update)"
        )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="titools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Titanium SDK Knowledge CLI - manage skills and knowledge for AI coding assistants.",
        epilog=textwrap.dedent(
            """\
            Environment variables:
              TITOOLS_CONFIG_PATH, TITOOLS_API_URL, TITOOLS_SOURCE_DIR, TITOOLS_TIMEOUT_S
            """
        ),
    )
    p.add_argument("--version", action="version", version=f"titools {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Show detailed diagnostics")

    def _add_common(parser: argparse.ArgumentParser) -> None:
        # Accept -v after the subcommand too, e.g. `titools sync -v`.
        parser.add_argument(
            "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Show detailed diagnostics"
        )

    sub = p.add_subparsers(dest="cmd", required=True)

    install = sub.add_parser("install", help="Install Titanium knowledge packages and platform links")
    _add_common(install)
    install.add_argument("-l", "--local", action="store_true", help="Install skills locally in the current project")
    install.add_argument("-a", "--all", action="store_true", help="Install to all detected platforms without prompting")
    install.add_argument("--path", help="Install into a custom project path (no prompts)")
    install.add_argument("--source-dir", help="Use a local checkout instead of downloading from GitHub")

    sync = sub.add_parser(
        "sync",
        help="Sync the knowledge index in AGENTS.md/CLAUDE.md/GEMINI.md of a Titanium project",
    )
    _add_common(sync)
    sync.add_argument("path", nargs="?", default=".", help="Project path (default: current directory)")
    sync.add_argument("-f", "--force", action="store_true", help="Update files without prompting")

    update = sub.add_parser("update", help="Update installed knowledge packages and agent (not the CLI)")
    _add_common(update)
    update.add_argument("-l", "--local", action="store_true", help="Update local skills in the current project")
    update.add_argument("--source-dir", help="Use a local checkout instead of downloading from GitHub")

    remove = sub.add_parser("remove", aliases=["uninstall"], help="Remove Titanium knowledge packages and agent")
    _add_common(remove)
    remove.add_argument("-l", "--local", action="store_true", help="Only remove what is installed in the current project")
    remove.add_argument("-f", "--force", action="store_true", help="Remove everything found without prompting")

    cfg = sub.add_parser("config", help="Manage local config")
    cfg_sub = cfg.add_subparsers(dest="subcmd", required=True)
    cfg_sub.add_parser("path", help="Print config path")
    cfg_sub.add_parser("show", help="Show effective config")
    cfg_set = cfg_sub.add_parser("set", help="Set config fields")
    cfg_set.add_argument("--api-url", help="GitHub API URL of the source repository")
    cfg_set.add_argument("--timeout-s", type=float, help="HTTP timeout in seconds")
    cfg_set.add_argument("--source-dir", help="Local checkout to install from (empty string clears it)")

    return p


def cmd_install(args: argparse.Namespace) -> int:
    print("Titanium SDK Skills Manager")
    print("")

    global_scope = Scope.global_(_home_dir())
    cwd = Path.cwd()
    is_local = bool(args.local)

    if not is_local and not args.path and not args.all and is_titanium_project(cwd):
        mode = select_one(
            "Titanium project detected. Where do you want to install the skills:",
            [
                Choice("Global (user home) - Recommended for personal use", "global"),
                Choice("Local (current project) - Best for shared repositories", "local"),
            ],
        )
        if isinstance(mode, Cancelled):
            print("Cancelled.")
            return 0
        is_local = mode == "local"

    if is_local:
        scope = Scope.local(cwd)
        print("Mode: Local installation (current project)")
    elif args.path:
        scope = Scope.local(Path(args.path).expanduser().resolve())
        print(f"Mode: Custom path ({scope.root})")
    else:
        scope = global_scope
        print("Mode: Global installation (user home)")
    print("")

    detected = _platforms_to_offer(scope, global_scope)
    if not detected and not scope.is_local:
        raise PreconditionError(
            "No AI coding assistants detected globally. "
            "Install one of: Claude Code, Gemini CLI, or Codex CLI. Or use: titools install --local"
        )
    for platform in detected:
        print(f"detected: {platform.display_name}")
    if not detected:
        detected = list(resolve(scope).platforms)

    if args.path or args.all:
        selected = list(detected)
    else:
        all_skills = DEFAULT_ARTIFACTS.all_skills()
        picked = select_many(
            "Select platforms to sync:",
            [Choice(p.display_name, p.name, checked=has_any_entry(p.skills_link_dir, all_skills)) for p in detected],
        )
        if isinstance(picked, Cancelled):
            print("Cancelled.")
            return 0
        selected = [p for p in detected if p.name in picked]

    selected_names = {p.name for p in selected}
    current_skills = DEFAULT_ARTIFACTS.current_skills()

    if not selected:
        print("No platforms selected. Removing all platform symlinks and agents.")
        agents_res = remove_agents(scope)
        skills_res = remove_skills(scope)
        print(f"skills removed: {_format_list(skills_res.removed)}")
        print(f"agents removed: {_format_list(agents_res.removed)}")
        _print_failures("skills", skills_res)
        _print_failures("agents", agents_res)
        for platform in detected:
            link_res = remove_skill_links(platform.skills_link_dir)
            state = "skills unlinked" if link_res.removed else "no symlinks found"
            print(f"{platform.display_name}: {state}")
            _print_failures(platform.display_name, link_res)
        print("")
        print("Skills sync complete!")
        return 0

    cfg = _runtime_config(args)
    with _source_tree(cfg) as source_root:
        skills_res = install_skills(source_root, scope, global_scope=global_scope)
        print(f"{len(skills_res.installed)} skills installed")
        for name in skills_res.removed:
            print(f"removed legacy skill: {name}")
        _print_failures("skills", skills_res)

        if "claude" in selected_names:
            agents_res = install_agents(source_root, scope, global_scope=global_scope)
            if agents_res.installed:
                print(f"agents installed: {_format_list(agents_res.installed)}")
            else:
                print("No agents to install")
        else:
            agents_res = remove_agents(scope)
            print("Platform agents removed" if agents_res.removed else "No agents to remove")
        _print_failures("agents", agents_res)

        # A skill that failed to install would only leave a dangling link.
        linkable = [name for name in current_skills if name not in skills_res.failed]
        for platform in selected:
            remove_skill_links(platform.skills_link_dir, Selection.LEGACY_ONLY)
            link_res = create_symlinks(platform.skills_link_dir, linkable, scope)
            _report_links(platform, link_res, len(linkable))

    for platform in detected:
        if platform.name in selected_names:
            continue
        link_res = remove_skill_links(platform.skills_link_dir)
        state = "skills unlinked" if link_res.removed else "no symlinks found"
        print(f"{platform.display_name}: {state}")

    print("")
    print("Skills sync complete!")
    print("Next: add the knowledge index to the project with: titools sync")
    return 0


def sync_instruction_files(
    project_dir: Path,
    *,
    home: Path,
    force: bool = False,
    only_existing: bool = False,
    verbose: bool = False,
) -> int:
    print("Titanium AI Knowledge Manager")
    print("")

    if not is_titanium_project(project_dir):
        raise PreconditionError(
            f"Not a Titanium project (no tiapp.xml): {project_dir}. Run this command from the project root."
        )

    current = DEFAULT_ARTIFACTS.current_skills()
    global_skills_dir = resolve(Scope.global_(home)).skills_dir
    local_dirs = [local_skills_dir_for(name, project_dir) for name in INSTRUCTION_FILES]
    if not has_any_entry(global_skills_dir, current) and not any(has_any_entry(d, current) for d in local_dirs):
        msg = "Skills not installed. Run: titools install"
        if verbose:
            msg += f" (searched: {global_skills_dir} | {', '.join(str(d) for d in local_dirs)})"
        raise PreconditionError(msg)

    print(f"Titanium project (SDK {detect_titanium_version(project_dir)})")
    print("")

    states = []
    for name in INSTRUCTION_FILES:
        path = project_dir / name
        try:
            has_block = block_exists(path)
        except (OSError, UnreadableFileError) as e:
            print(f"error: Failed to sync {name}: {e}", file=sys.stderr)
            continue
        states.append((name, path, path.exists(), has_block))

    if only_existing:
        selected = [name for name, _, exists, _ in states if exists]
    elif force:
        selected = [name for name, _, _, has_block in states if has_block]
        if not selected:
            selected = [DEFAULT_INSTRUCTION_FILE]
    else:
        picked = select_many(
            "Select instruction files to sync:",
            [Choice(name, name, checked=has_block) for name, _, _, has_block in states],
        )
        if isinstance(picked, Cancelled):
            print("Cancelled.")
            return 0
        selected = picked

    if not selected:
        print("No selection. Removing knowledge index from all files.")

    updated: list[str] = []
    removed: list[str] = []
    for name, path, _, has_block in states:
        if name in selected:
            try:
                add_or_update_block(path, render_knowledge_block(skills_root_for(name, project_dir)))
            except (OSError, UnreadableFileError) as e:
                print(f"error: Failed to sync {name}: {e}", file=sys.stderr)
                continue
            print(f"{'updated' if has_block else 'added'}: {name}")
            updated.append(name)
        elif has_block:
            try:
                remove_old_block(path)
            except (OSError, UnreadableFileError) as e:
                print(f"error: Failed to clean {name}: {e}", file=sys.stderr)
                continue
            print(f"cleaned: {name}")
            removed.append(name)

    print("")
    if updated or removed:
        summary = "Sync complete!"
        if updated:
            summary += f" Updated: {', '.join(updated)}"
        if removed:
            summary += f" Cleaned: {', '.join(removed)}"
        print(summary)
    else:
        print("No changes made.")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    return sync_instruction_files(
        Path(args.path).expanduser().resolve(),
        home=_home_dir(),
        force=args.force,
        verbose=getattr(args, "verbose", False),
    )


def _refresh_instruction_files(project_dir: Path, home: Path) -> None:
    if is_titanium_project(project_dir) and any((project_dir / name).exists() for name in INSTRUCTION_FILES):
        print("")
        try:
            sync_instruction_files(project_dir, home=home, force=True, only_existing=True)
        except PreconditionError as e:
            print(f"warning: {e}")
        return
    print("Next: run in the Titanium project: titools sync")


def cmd_update(args: argparse.Namespace) -> int:
    print("Titanium SDK Skills Updater")
    print("")

    home = _home_dir()
    global_scope = Scope.global_(home)
    cwd = Path.cwd()
    local_scope = Scope.local(cwd)
    scope = local_scope if args.local else global_scope

    if not args.local:
        is_project = is_titanium_project(cwd)
        has_local = is_project and has_installed_skills(local_scope, selection=Selection.ALL)
        has_global = has_installed_skills(global_scope, selection=Selection.ALL)
        if has_local and not has_global:
            scope = local_scope
        elif is_project and detect_platforms(local_scope) and not same_location(local_scope, global_scope):
            answer = select_one(
                "Local installation detected. What do you want to update:",
                [
                    Choice("Global skills (user home)", "global"),
                    Choice("Local skills (current project)", "local"),
                ],
            )
            if isinstance(answer, Cancelled):
                print("Cancelled.")
                return 0
            if answer == "local":
                scope = local_scope

    print("Mode: Local update (current project)" if scope.is_local else "Mode: Global update (user home)")
    print("")

    paths = resolve(scope)
    if not has_installed_skills(scope, selection=Selection.ALL):
        raise PreconditionError(
            f"No skills installed at this location ({scope.label}: {paths.skills_dir}). "
            "Install them first with: titools install"
        )

    cfg = _runtime_config(args)
    current = DEFAULT_ARTIFACTS.current_skills()
    missing = [name for name in current if not (paths.skills_dir / name).exists()]

    has_update = False
    if not cfg.source_dir:
        print("Checking for updates...")
        with SourceClient(api_url=cfg.api_url, timeout_s=cfg.timeout_s) as client:
            has_update = client.check_for_update(PACKAGE_VERSION)

    if not cfg.source_dir and not has_update and not missing:
        print(f"Already up to date (v{PACKAGE_VERSION})")
        cleanup = cleanup_legacy_artifacts(scope, global_scope=global_scope)
        for name in cleanup.removed:
            print(f"removed legacy: {name}")
        print("Skills and agents are already at the latest version")
        _refresh_instruction_files(cwd, home)
        return 0

    if has_update:
        print(f"Update available! Current: {PACKAGE_VERSION}")

    detected = detect_platforms(scope)
    if detected:
        for platform in detected:
            print(f"detected: {platform.display_name}")
    else:
        print("No AI coding assistants detected.")
        print(f"Update will install skills to {paths.skills_dir}")
    print("")

    try:
        with _source_tree(cfg) as source_root:
            skills_res = install_skills(source_root, scope, global_scope=global_scope)
            print(f"Skills: {_format_list(skills_res.installed)}")
            _print_failures("skills", skills_res)

            agents_res = install_agents(source_root, scope, global_scope=global_scope)
            if agents_res.installed:
                print(f"Agents: {_format_list(agents_res.installed)}")
            else:
                print("No agents to update")
            _print_failures("agents", agents_res)

            cleanup = cleanup_legacy_artifacts(scope, global_scope=global_scope)
            for name in dict.fromkeys(skills_res.removed + agents_res.removed + cleanup.removed):
                print(f"removed legacy: {name}")

            linkable = [name for name in current if name not in skills_res.failed]
            for platform in detected:
                link_res = create_symlinks(platform.skills_link_dir, linkable, scope)
                _report_links(platform, link_res, len(linkable))
    except TitoolsError as e:
        print("Update failed", file=sys.stderr)
        print(f"error: {_describe_error(e)}", file=sys.stderr)
        print(f"You can try manually installing from: {REPO_URL}")
        return 1

    print("")
    print("Update complete!")
    _refresh_instruction_files(cwd, home)
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    print("Titanium SDK Skills Uninstaller")
    print("")

    global_scope = Scope.global_(_home_dir())
    project_dir = Path.cwd().resolve()
    is_project = is_titanium_project(project_dir)
    project_scope = Scope.local(project_dir)
    local_only = bool(args.local)
    if local_only:
        print("Mode: Local uninstallation (current project)")
        print("")

    skills = DEFAULT_ARTIFACTS.all_skills()
    agents = DEFAULT_ARTIFACTS.all_agents()
    home_paths = resolve(global_scope)
    project_paths = resolve(project_scope)

    block_files: list[tuple[str, Path]] = []
    if is_project:
        for name in INSTRUCTION_FILES:
            path = project_dir / name
            try:
                if block_exists(path):
                    block_files.append((name, path))
            except (OSError, UnreadableFileError) as e:
                print(f"warning: skipping {name}: {e}")
    has_blocks = bool(block_files)

    home_platforms = [] if local_only else detect_platforms(global_scope)
    project_platforms = detect_platforms(project_scope) if is_project else []

    has_home_skills = not local_only and has_any_entry(home_paths.skills_dir, skills)
    has_project_skills = is_project and has_any_entry(project_paths.skills_dir, skills)
    has_home_agents = not local_only and has_any_entry(home_paths.agents_dir, agents, suffix=AGENT_SUFFIX)
    has_project_agents = is_project and has_any_entry(project_paths.agents_dir, agents, suffix=AGENT_SUFFIX)
    has_home_links = any(has_any_entry(p.skills_link_dir, skills) for p in home_platforms)
    has_project_links = any(has_any_entry(p.skills_link_dir, skills) for p in project_platforms)

    choices: list[Choice] = []
    if has_home_agents or has_project_agents:
        choices.append(Choice(f"{_format_list(DEFAULT_ARTIFACTS.current_agents())} agent for Claude Code", "agents", True))
    if has_blocks:
        choices.append(Choice("Knowledge index from context files", "knowledge", True))
    if has_home_skills:
        choices.append(Choice("Skills from the home directory", "skills-home"))
    if has_project_skills:
        choices.append(Choice("Skills from the project directory", "skills-project"))
    if has_home_links:
        choices.append(Choice("Skill symlinks from the home directory", "symlinks-home"))
    if has_project_links:
        choices.append(Choice("Skill symlinks from the project directory", "symlinks-project"))

    if not choices:
        print("No skills, agents, symlinks, or knowledge index blocks found.")
        return 0

    if args.force:
        targets = [c.value for c in choices]
    else:
        picked = select_many("What do you want to uninstall:", choices)
        if isinstance(picked, Cancelled):
            print("Cancelled.")
            return 0
        targets = picked
    if not targets:
        print("Nothing to uninstall. Cancelled.")
        return 0

    changed = False

    def _unlink(platforms: list[Platform]) -> None:
        nonlocal changed
        for platform in platforms:
            res = remove_skill_links(platform.skills_link_dir)
            print(f"{platform.display_name}: {'skills unlinked' if res.removed else 'no symlinks found'}")
            _print_failures(platform.display_name, res)
            changed = changed or bool(res.removed)

    if "symlinks-home" in targets:
        _unlink(home_platforms)
    if "symlinks-project" in targets:
        _unlink(project_platforms)

    for value, scope in (("skills-home", global_scope), ("skills-project", project_scope)):
        if value not in targets:
            continue
        res = remove_skills(scope)
        print(f"skills removed ({scope.label.lower()}): {_format_list(res.removed)}")
        _print_failures("skills", res)
        changed = changed or bool(res.removed)

    if "agents" in targets:
        res = OperationResult()
        if not local_only:
            res += remove_agents(global_scope)
        if is_project:
            res += remove_agents(project_scope)
        print("Platform agents removed" if res.removed else "No agents to remove")
        _print_failures("agents", res)
        changed = changed or bool(res.removed)

    if "knowledge" in targets:
        cleaned: list[str] = []
        for name, path in block_files:
            try:
                if remove_old_block(path):
                    cleaned.append(name)
            except (OSError, UnreadableFileError) as e:
                print(f"error: Failed to clean {name}: {e}", file=sys.stderr)
        if cleaned:
            print(f"Knowledge index removed from: {', '.join(cleaned)}")
            changed = True
        else:
            print("No knowledge index blocks to remove")

    print("")
    if changed:
        print("Uninstallation complete!")
        if is_project and "knowledge" not in targets and has_blocks:
            print("Note: Knowledge index blocks were not removed.")
    else:
        print("No changes were necessary.")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    if args.subcmd == "path":
        print(str(config_path()))
        return 0

    if args.subcmd == "show":
        cfg = apply_env_overrides(load_config())
        print(json.dumps(asdict(cfg), indent=2, sort_keys=True))
        return 0

    if args.subcmd == "set":
        cfg = load_config()
        if args.api_url is not None:
            cfg = replace(cfg, api_url=args.api_url)
        if args.timeout_s is not None:
            cfg = replace(cfg, timeout_s=args.timeout_s)
        if args.source_dir is not None:
            cfg = replace(cfg, source_dir=args.source_dir or None)
        path = save_config(cfg)
        print(f"Saved: {path}")
        return 0

    raise AssertionError("unreachable")


def _http_error_detail(body: str) -> str | None:
    text = body.strip()
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(obj, dict):
        value = obj.get("message")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return text


def _format_http_error(err: TitoolsHTTPError) -> str:
    detail = _http_error_detail(err.body)
    if err.status_code == 403:
        base = "HTTP 403 Forbidden. GitHub may be rate limiting unauthenticated requests; try again later."
    elif err.status_code == 404:
        base = "HTTP 404 Not Found. The source repository or release does not exist."
    else:
        base = f"HTTP {err.status_code}"
    if detail:
        return f"{base} {detail}"
    return base


def _describe_error(err: BaseException) -> str:
    if isinstance(err, TitoolsHTTPError):
        return _format_http_error(err)
    return str(err)


def _print_cause_chain(err: BaseException) -> None:
    print("error_details:", file=sys.stderr)
    cause = err.__cause__
    depth = 1
    while cause is not None:
        print(f"  cause[{depth}]: {type(cause).__name__}: {_describe_error(cause)}", file=sys.stderr)
        cause = cause.__cause__
        depth += 1


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    verbose = bool(getattr(args, "verbose", False))
    _configure_logging(verbose)
    try:
        if args.cmd == "install":
            return cmd_install(args)
        if args.cmd == "sync":
            return cmd_sync(args)
        if args.cmd == "update":
            return cmd_update(args)
        if args.cmd in ("remove", "uninstall"):
            return cmd_remove(args)
        if args.cmd == "config":
            return cmd_config(args)
        raise AssertionError("unreachable")
    except TitoolsError as e:
        print(f"error: {_describe_error(e)}", file=sys.stderr)
        if verbose and e.__cause__ is not None:
            _print_cause_chain(e)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.")
        return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
