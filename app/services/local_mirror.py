"""
Local Mirror
Per-checklist key-value blob store on the inspector's device, used as an
offline / startup cache of {checked, history}.
"""
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from app.schemas.progress import ProgressSnapshot

logger = logging.getLogger(__name__)


def mirror_key(checklist_id) -> str:
    """Storage key for one checklist's snapshot"""
    return f"checklistState_{checklist_id}"


class LocalMirror:
    """
    String-keyed blob store holding one JSON snapshot per checklist.
    Subclasses implement _read/_write/_delete on raw strings.
    """

    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write(self, key: str, blob: str):
        raise NotImplementedError

    def _delete(self, key: str):
        raise NotImplementedError

    def load(self, checklist_id) -> Optional[ProgressSnapshot]:
        """Stored snapshot, or None when absent or unreadable."""
        key = mirror_key(checklist_id)
        try:
            blob = self._read(key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable local progress for {key}: {e}")
            return None
        if blob is None:
            return None
        try:
            return ProgressSnapshot.model_validate_json(blob)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed local progress for {key}: {e}")
            return None

    def save(self, checklist_id, snapshot: ProgressSnapshot):
        self._write(mirror_key(checklist_id), snapshot.model_dump_json())

    def remove(self, checklist_id):
        self._delete(mirror_key(checklist_id))


class InMemoryMirror(LocalMirror):
    """Mirror kept in a dict, for tests and short-lived sessions"""

    def __init__(self, blobs: Optional[Dict[str, str]] = None):
        self.blobs: Dict[str, str] = blobs if blobs is not None else {}

    def _read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def _write(self, key: str, blob: str):
        self.blobs[key] = blob

    def _delete(self, key: str):
        self.blobs.pop(key, None)


class JsonFileMirror(LocalMirror):
    """Mirror stored as one <key>.json file per checklist in a directory"""

    def __init__(self, directory):
        self.directory = Path(directory)
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, blob: str):
        # Atomic replace
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(blob, encoding="utf-8")
        os.replace(tmp_path, path)

    def _delete(self, key: str):
        path = self._path(key)
        if path.exists():
            path.unlink()
