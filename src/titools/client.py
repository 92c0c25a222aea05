from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any

import httpx

from .config import DEFAULT_API_URL, DEFAULT_REF, DEFAULT_TIMEOUT_S, GITHUB_API_HEADERS
from .errors import PreconditionError, TitoolsError, TitoolsHTTPError

logger = logging.getLogger(__name__)


def _split_version(version: str) -> list[int]:
    raw = version.strip()
    if raw[:1] in ("v", "V"):
        raw = raw[1:]
    nums: list[int] = []
    for part in raw.split("."):
        digits = ""
        for ch in part.strip():
            if not ch.isdigit():
                break
            digits += ch
        nums.append(int(digits) if digits else 0)
    return nums


def compare_versions(a: str, b: str) -> int:
    pa = _split_version(a)
    pb = _split_version(b)
    for i in range(max(len(pa), len(pb))):
        x = pa[i] if i < len(pa) else 0
        y = pb[i] if i < len(pb) else 0
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


def _strip_top_level(name: str) -> PurePosixPath | None:
    parts = PurePosixPath(name).parts
    if len(parts) < 2:
        return None
    return PurePosixPath(*parts[1:])


def _safe_extract_tar(archive: Path, dest: Path) -> int:
    """Extract a tarball into dest, dropping its single top-level directory."""
    dest.mkdir(parents=True, exist_ok=True)
    base = dest.resolve()
    count = 0
    with tarfile.open(archive, "r:*") as tf:
        for member in tf.getmembers():
            rel = _strip_top_level(member.name)
            if rel is None:
                continue
            if rel.is_absolute() or ".." in rel.parts:
                raise TitoolsError(f"Archive contains an invalid path entry: {member.name!r}")
            target = (dest / rel).resolve()
            if not str(target).startswith(str(base) + os.sep) and target != base:
                raise TitoolsError(f"Archive contains an invalid path entry: {member.name!r}")

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if not member.isfile():
                logger.debug("Skipping non-regular archive entry %s", member.name)
                continue

            src = tf.extractfile(member)
            if src is None:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with src, target.open("wb") as out:
                shutil.copyfileobj(src, out)
            if member.mode & 0o111:
                target.chmod(0o755)
            count += 1
    return count


class SourceClient:
    """
    Fetches release metadata and the source tarball that carries skills/ and agents/.
    """

    def __init__(
        self,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers=dict(headers if headers is not None else GITHUB_API_HEADERS),
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SourceClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get(self, path: str) -> httpx.Response:
        url = f"{self.api_url}/{path.lstrip('/')}"
        try:
            resp = self._http.get(url)
        except httpx.HTTPError as e:
            raise TitoolsError(f"Request failed: {e}") from e
        if resp.status_code >= 400:
            raise TitoolsHTTPError(resp.status_code, resp.text)
        return resp

    def fetch_latest_release(self) -> dict[str, Any]:
        data = self._get("/releases/latest").json()
        if not isinstance(data, dict):
            raise TitoolsError("Unexpected release payload from GitHub.")
        return data

    def fetch_latest_version(self) -> str:
        tag = self.fetch_latest_release().get("tag_name")
        if not isinstance(tag, str) or not tag.strip():
            raise TitoolsError("Latest release has no tag_name.")
        return tag.strip()

    def check_for_update(self, current_version: str) -> bool:
        try:
            latest = self.fetch_latest_version()
        except TitoolsError as e:
            # An unreachable API is treated as "no update", the caller keeps going.
            logger.debug("Update check failed: %s", e)
            return False
        logger.debug("Latest release %s, current %s", latest, current_version)
        return compare_versions(latest, current_version) > 0

    def download_archive(self, dest_dir: Path) -> Path:
        url = f"{self.api_url}/tarball/{DEFAULT_REF}"
        dest_dir = Path(dest_dir)
        fd, tmp_name = tempfile.mkstemp(prefix="titools-", suffix=".tar.gz")
        tmp_path = Path(tmp_name)
        try:
            status, body = 0, ""
            with os.fdopen(fd, "wb") as out:
                try:
                    with self._http.stream("GET", url) as resp:
                        status = resp.status_code
                        if status >= 400:
                            resp.read()
                            body = resp.text
                        else:
                            for chunk in resp.iter_bytes():
                                out.write(chunk)
                except httpx.HTTPError as e:
                    raise TitoolsError(f"Download failed: {e}") from e
            # Raised outside the stream context: the error type is a frozen dataclass.
            if status >= 400:
                raise TitoolsHTTPError(status, body)
            try:
                count = _safe_extract_tar(tmp_path, dest_dir)
            except tarfile.TarError as e:
                raise TitoolsError(f"Downloaded archive is not a valid tarball: {e}") from e
            logger.debug("Extracted %d files from %s into %s", count, url, dest_dir)
            return dest_dir
        finally:
            tmp_path.unlink(missing_ok=True)
