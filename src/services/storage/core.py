"""
CampfireBot - Storage Core
==========================

JSON file store with atomic writes and corrupted-file backups.
"""

import json
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional

from src.core.config import config
from src.core.logger import log


class StorageCore:
    """Base store: one JSON object per file, cached after first read."""

    def __init__(
        self,
        levels_path: Optional[str] = None,
        scoreboard_path: Optional[str] = None,
    ) -> None:
        self.levels_path = Path(levels_path or config.LEVELS_FILE)
        self.scoreboard_path = Path(scoreboard_path or config.SCOREBOARD_FILE)
        self._cache: Dict[Path, Dict[str, Any]] = {}

    def _backup_corrupted(self, path: Path) -> Optional[Path]:
        """Copy an unreadable file aside so a fresh one can replace it."""
        backup_path = path.with_name(f"{path.name}.corrupted.{int(time.time())}")
        try:
            shutil.copy2(path, backup_path)
            log.tree("Corrupted Data Backed Up", [
                ("File", str(path)),
                ("Backup", str(backup_path)),
            ], emoji="💾")
            return backup_path
        except OSError as e:
            log.error_tree("Data Backup Failed", e, [("File", str(path))])
            return None

    def _read(self, path: Path) -> Dict[str, Any]:
        """
        Load a JSON object from disk (cached).

        Missing files are empty. Unreadable files are backed up and treated
        as empty so startup never fails on bad data.
        """
        if path in self._cache:
            return self._cache[path]

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    raise ValueError(f"Expected a JSON object, got {type(loaded).__name__}")
            except (ValueError, UnicodeDecodeError) as e:
                log.tree("Data File Unreadable", [
                    ("File", str(path)),
                    ("Error", str(e)[:80]),
                    ("Action", "Starting empty"),
                ], emoji="🚨")
                self._backup_corrupted(path)
            except OSError as e:
                log.error_tree("Data File Read Failed", e, [("File", str(path))])

        self._cache[path] = data
        return data

    def _write(self, path: Path, data: Dict[str, Any]) -> bool:
        """Replace a JSON file atomically. Returns False on failure."""
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", delete=False
            ) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2)
            os.replace(tmp_name, path)
            self._cache[path] = data
            return True
        except (OSError, TypeError, ValueError) as e:
            log.error_tree("Data File Save Failed", e, [("File", str(path))])
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.remove(tmp_name)
                except OSError:
                    pass
            return False
