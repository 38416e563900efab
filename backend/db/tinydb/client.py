# @role: TinyDB client accessor with atomic file storage
# @used_by: main.py, user_store.py
# @filter_type: utility
# @tags: tinydb, db, client
import json
import os
import tempfile
from pathlib import Path
from tinydb import TinyDB
from tinydb.storages import Storage

# Logger setup
from config.logging_config import get_loggers
logger, trade_logger = get_loggers()

# Cache for open database instances
_table_cache = {}


class AtomicJSONStorage(Storage):
    """
    JSON storage that never rewrites the live file in place: each write goes
    to a temp file in the same directory, is fsynced, then renamed over the
    original. A crash mid-write leaves the previous document untouched.
    """

    def __init__(self, path, create_dirs: bool = True, encoding: str = "utf-8", **kwargs):
        self._path = Path(path)
        self._encoding = encoding
        self.kwargs = kwargs
        if create_dirs:
            self._path.parent.mkdir(parents=True, exist_ok=True)

    def read(self):
        if not self._path.exists():
            return None
        with open(self._path, "r", encoding=self._encoding) as f:
            raw = f.read()
        if not raw.strip():
            return None
        return json.loads(raw)

    def write(self, data):
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self._encoding) as f:
                json.dump(data, f, **self.kwargs)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def close(self):
        pass


def get_database(path) -> TinyDB:
    """
    Returns a TinyDB instance backed by AtomicJSONStorage at ``path``.
    Instances are cached per resolved path so every caller shares one handle.
    """
    key = str(Path(path).resolve())

    if key in _table_cache:
        logger.debug(f"Using cached TinyDB database for: {key}")
        return _table_cache[key]

    try:
        db = TinyDB(key, storage=AtomicJSONStorage, indent=2, ensure_ascii=False)
        _table_cache[key] = db
        logger.info(f"✅ Loaded TinyDB database: {key}")
        return db
    except Exception:
        logger.exception(f"❌ Failed to load TinyDB database: {key}")
        raise


def close_database(path) -> None:
    key = str(Path(path).resolve())
    db = _table_cache.pop(key, None)
    if db is not None:
        db.close()
        logger.info(f"🛑 Closed TinyDB database: {key}")
