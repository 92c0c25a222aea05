"""
Maintain the generated knowledge block inside user-owned instruction files.

A file holds at most one block, delimited by BLOCK_START and BLOCK_END lines.
Everything outside the block belongs to the user and is written back exactly as
it was read, line endings included.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .artifacts import DEFAULT_ARTIFACTS, SKILL_DESCRIPTIONS, ArtifactSet
from .config import BLOCK_END, BLOCK_START, TITANIUM_KNOWLEDGE_VERSION
from .errors import UnreadableFileError

logger = logging.getLogger(__name__)


def _read(path: Path) -> str:
    try:
        with path.open("r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise UnreadableFileError(f"{path.name} is not UTF-8 text ({e.reason} at byte {e.start})") from e


def _write(path: Path, content: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)


def _newline_of(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def _marker_line(marker: str) -> re.Pattern[str]:
    # Whole line only; trailing blanks and a CR before the LF are tolerated.
    return re.compile(rf"^{re.escape(marker)}[ \t]*(?=\r?$)", re.MULTILINE)


_START_LINE = _marker_line(BLOCK_START)
_END_LINE = _marker_line(BLOCK_END)


def _find_block(content: str) -> tuple[int, int] | None:
    """
    Return (start, end) offsets of the block, end exclusive and just past the END marker.

    Each END line pairs with the closest START line above it, so a stray START left
    without an END never swallows the user text that follows it.
    """
    starts = [m.start() for m in _START_LINE.finditer(content)]
    if not starts:
        return None
    for end in _END_LINE.finditer(content):
        opening = [s for s in starts if s < end.start()]
        if opening:
            return opening[-1], end.end()
    return None


def _format_block(content: str, newline: str) -> str:
    body = content.replace("\r\n", "\n").strip("\n")
    lines = [BLOCK_START, *body.split("\n"), BLOCK_END] if body else [BLOCK_START, BLOCK_END]
    return newline.join(lines)


def block_exists(path: Path) -> bool:
    if not path.is_file():
        return False
    return _find_block(_read(path)) is not None


def add_or_update_block(path: Path, content: str, *, placeholder: str | None = None) -> bool:
    """
    Insert the block, or replace the existing one in place.

    Returns True when the file changed. A missing file is created first with a
    small heading (``placeholder``, default ``# <file name>``).
    """
    if not path.exists():
        text = placeholder if placeholder is not None else f"# {path.name}\n\n"
        _write(path, text)
        logger.debug("Created %s", path)

    original = _read(path)
    newline = _newline_of(original)
    block = _format_block(content, newline)

    span = _find_block(original)
    if span is not None:
        start, end = span
        updated = original[:start] + block + original[end:]
    else:
        prefix = original
        if prefix and not prefix.endswith("\n"):
            prefix += newline
        if prefix.strip() and not prefix.endswith(newline * 2):
            prefix += newline
        updated = prefix + block + newline

    if updated == original:
        return False
    _write(path, updated)
    return True


def _strip_leading_newline(text: str) -> str:
    if text.startswith("\r\n"):
        return text[2:]
    if text.startswith("\n"):
        return text[1:]
    return text


def remove_old_block(path: Path) -> bool:
    if not path.is_file():
        return False
    original = _read(path)
    span = _find_block(original)
    if span is None:
        return False

    newline = _newline_of(original)
    start, end = span
    before = original[:start]
    after = _strip_leading_newline(original[end:])

    if not before.strip():
        updated = after.lstrip("\r\n")
    elif not after.strip():
        updated = before.rstrip("\r\n") + newline
    else:
        updated = before.rstrip("\r\n") + newline * 2 + after.lstrip("\r\n")

    _write(path, updated)
    return True


def render_knowledge_block(
    skills_root: str,
    *,
    artifacts: ArtifactSet = DEFAULT_ARTIFACTS,
    version: str = TITANIUM_KNOWLEDGE_VERSION,
) -> str:
    root = skills_root.rstrip("/")
    lines = [
        f"## Titanium SDK Knowledge ({version})",
        "",
        "This project is a Titanium SDK app. Before writing or reviewing code, load the skill",
        f"that matches the task. Skills are installed in `{root}`:",
        "",
    ]
    for name in artifacts.current_skills():
        desc = SKILL_DESCRIPTIONS.get(name)
        entry = f"- `{name}`: `{root}/{name}/SKILL.md`"
        if desc:
            entry += f" - {desc}"
        lines.append(entry)
    agents = artifacts.current_agents()
    if agents:
        lines.append("")
        names = ", ".join(f"`{a}`" for a in agents)
        lines.append(f"For broad research across the skills, delegate to the {names} agent (Claude Code).")
    lines.append("")
    lines.append("This block is generated by `titools sync`; edits inside it are overwritten.")
    return "\n".join(lines)
