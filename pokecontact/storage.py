# pokecontact/storage.py
# String-keyed blob stores: one JSON file on disk with safe writes, or a plain dict.

import os
import json
import tempfile
import threading
from datetime import datetime
from glob import glob

from pokecontact.logger import log_action


def _atomic_write(path: str, obj: dict):
    """Atomically write JSON (utf-8) to avoid corrupt files on Windows."""
    d = os.path.dirname(path) or "."
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile("w", dir=d, prefix="tmp", delete=False,
                                         encoding="utf-8", newline="\n") as tmp:
            tmp_path = tmp.name
            json.dump(obj, tmp, separators=(",", ":"), ensure_ascii=False)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError as cleanup_error:
                log_action(f"ERROR removing temp file {tmp_path}: {cleanup_error}")
        raise


class MemoryBlobStore:
    """Dict-backed store; handy for tests and throwaway sessions."""

    def __init__(self, initial: dict | None = None):
        self._data = dict(initial or {})

    def get(self, key: str):
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            raise TypeError("blob store values must be strings")
        self._data[key] = value
        return True


class JsonFileBlobStore:
    """
    All keys live in a single JSON object on disk. A file that fails to parse
    is moved aside as <file>.corrupt.<timestamp> and the store starts empty.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._remove_stale_tmp()

    def _remove_stale_tmp(self):
        # leftovers of interrupted writes
        for p in glob(os.path.join(os.path.dirname(self.path) or ".", "tmp*")):
            try:
                os.remove(p)
                log_action(f"removed stale temp file: {p}")
            except OSError as e:
                log_action(f"ERROR removing stale temp file {p}: {e}")

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("store root is not an object")
            return data
        except ValueError as e:
            log_action(f"ERROR loading store {self.path}: {e}")
            bad = f"{self.path}.corrupt.{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            os.replace(self.path, bad)
            log_action(f"backed up corrupt store to {bad}")
            return {}

    def get(self, key: str):
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            raise TypeError("blob store values must be strings")
        with self._lock:
            data = self._load()
            data[key] = value
            _atomic_write(self.path, data)
        return True
