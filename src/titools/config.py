from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

from platformdirs import user_config_path

from ._version import __version__
from .errors import ConfigError

PACKAGE_VERSION = __version__
TITANIUM_KNOWLEDGE_VERSION = f"v{PACKAGE_VERSION}"

BLOCK_START = "<!-- TITANIUM-KNOWLEDGE-START -->"
BLOCK_END = "<!-- TITANIUM-KNOWLEDGE-END -->"

REPO_URL = "https://github.com/macCesar/titools"
DEFAULT_API_URL = "https://api.github.com/repos/macCesar/titools"
DEFAULT_REF = "main"
DEFAULT_TIMEOUT_S = 30.0

GITHUB_API_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": f"titools/{PACKAGE_VERSION}",
}

TITANIUM_PROJECT_FILE = "tiapp.xml"


@dataclass(frozen=True)
class Config:
    api_url: str = DEFAULT_API_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    source_dir: str | None = None  # local checkout with skills/ and agents/ (skips the download)


def config_path(path_override: str | Path | None = None) -> Path:
    if path_override is not None:
        return Path(path_override).expanduser()
    if env := os.getenv("TITOOLS_CONFIG_PATH"):
        return Path(env).expanduser()
    return user_config_path("titools") / "config.json"


def _coerce(raw: dict[str, Any], path: Path) -> Config:
    cfg = Config()
    api_url = raw.get("api_url")
    if isinstance(api_url, str) and api_url.strip():
        cfg = replace(cfg, api_url=api_url.strip())
    if "timeout_s" in raw:
        try:
            cfg = replace(cfg, timeout_s=float(raw["timeout_s"]))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{path}: timeout_s must be a number, got {raw['timeout_s']!r}") from e
    source_dir = raw.get("source_dir")
    if isinstance(source_dir, str) and source_dir.strip():
        cfg = replace(cfg, source_dir=source_dir.strip())
    return cfg


def load_config(path_override: str | Path | None = None) -> Config:
    """Read the config file; a missing file or a non-object document yields the defaults."""
    path = config_path(path_override)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Config()

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON (line {e.lineno}): fix or delete it") from e
    if not isinstance(raw, dict):
        return Config()
    return _coerce(raw, path)


def save_config(cfg: Config, path_override: str | Path | None = None) -> Path:
    path = config_path(path_override)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {k: v for k, v in asdict(cfg).items() if v is not None}
    tmp = path.parent / f".{path.name}.tmp"
    tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(tmp, path)
    return path


def apply_env_overrides(cfg: Config) -> Config:
    # Env overrides the config file; CLI flags override both (see cli._runtime_config).
    api_url = os.getenv("TITOOLS_API_URL") or cfg.api_url
    source_dir = os.getenv("TITOOLS_SOURCE_DIR") or cfg.source_dir
    timeout_s = os.getenv("TITOOLS_TIMEOUT_S") or cfg.timeout_s
    try:
        timeout_s_f = float(timeout_s)
    except (TypeError, ValueError):
        timeout_s_f = cfg.timeout_s
    return replace(cfg, api_url=api_url, source_dir=source_dir, timeout_s=timeout_s_f)
