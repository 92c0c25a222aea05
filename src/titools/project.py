from __future__ import annotations

import re
from pathlib import Path

from .config import TITANIUM_PROJECT_FILE

INSTRUCTION_FILES = ("AGENTS.md", "CLAUDE.md", "GEMINI.md")

# Higher wins when only one file should carry the knowledge index.
AI_FILE_PRIORITIES = {
    "CLAUDE.md": 3,
    "GEMINI.md": 2,
    "AGENTS.md": 1,
}

DEFAULT_INSTRUCTION_FILE = max(AI_FILE_PRIORITIES, key=AI_FILE_PRIORITIES.__getitem__)

# Instruction file -> the skills directory its assistant reads (relative to project or home).
_SKILL_DIRS = {
    "CLAUDE.md": ".claude/skills",
    "GEMINI.md": ".gemini/skills",
    "AGENTS.md": ".agents/skills",
}

_SDK_VERSION_RE = re.compile(r"<sdk-version>\s*([^<\s]+)\s*</sdk-version>")


def is_titanium_project(directory: Path) -> bool:
    return (directory / TITANIUM_PROJECT_FILE).is_file()


def detect_titanium_version(directory: Path) -> str:
    tiapp = directory / TITANIUM_PROJECT_FILE
    try:
        text = tiapp.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return "unknown"
    m = _SDK_VERSION_RE.search(text)
    return m.group(1) if m else "unknown"


def local_skills_dir_for(filename: str, project_dir: Path) -> Path:
    return project_dir / _SKILL_DIRS[filename]


def skills_root_for(filename: str, project_dir: Path) -> str:
    """Skills path written into the knowledge block of the given instruction file."""
    rel = _SKILL_DIRS[filename]
    if local_skills_dir_for(filename, project_dir).exists():
        return f"./{rel}"
    return f"~/{rel}"
