"""Filesystem handling of timestamped workbook artifacts."""
from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from openpyxl.workbook.workbook import Workbook

from pax_consolidator.domain.errors import WriteFailure

logger = logging.getLogger(__name__)

_LOCKS: dict[Path, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _now_millis() -> int:
    return int(time.time() * 1000)


class ArtifactLocator:
    """Finds and names `<prefix>_<unix-millis>.xlsx` files in one directory."""

    def __init__(self, directory: Path, prefix: str = "consolidated_pax") -> None:
        self._directory = Path(directory)
        self._prefix = prefix
        self._pattern = re.compile(rf"^{re.escape(prefix)}_(\d+)\.xlsx$")

    @property
    def directory(self) -> Path:
        return self._directory

    def timestamp_of(self, path: Path) -> int | None:
        match = self._pattern.match(Path(path).name)
        return int(match.group(1)) if match else None

    def list_artifacts(self) -> list[Path]:
        """Matching artifacts, newest first."""
        if not self._directory.is_dir():
            return []
        found = []
        for entry in self._directory.iterdir():
            stamp = self.timestamp_of(entry)
            if stamp is not None and entry.is_file():
                found.append((stamp, entry))
        found.sort(key=lambda item: item[0], reverse=True)
        return [path for _, path in found]

    def locate(self) -> Path | None:
        artifacts = self.list_artifacts()
        return artifacts[0] if artifacts else None

    def next_path(self) -> Path:
        stamp = _now_millis()
        latest = self.locate()
        if latest is not None:
            stamp = max(stamp, (self.timestamp_of(latest) or 0) + 1)
        return self._directory / f"{self._prefix}_{stamp}.xlsx"

    @staticmethod
    def is_usable(path: Path) -> bool:
        try:
            return path.stat().st_size > 0
        except OSError:
            return False


@contextmanager
def artifact_lock(directory: Path) -> Iterator[None]:
    """Serialize locate/render/write against one output directory.

    Only callers inside this process are serialized.
    """
    key = Path(directory).resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.setdefault(key, threading.Lock())
    with lock:
        yield


def save_workbook_atomic(workbook: Workbook, path: Path) -> Path:
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}_", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as handle:
            workbook.save(handle)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("Could not write workbook %s: %s", path, exc)
        raise WriteFailure(path, exc) from exc
    logger.info("Saved workbook %s", path)
    return path
