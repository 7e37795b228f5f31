import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Protocol

from ..logging_config import get_logger


logger = get_logger("tools.storage")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None:
        ...

    def put_many(self, values: Mapping[str, Any]) -> None:
        """Write every key in ``values`` as a single all-or-nothing commit."""
        ...


class JsonFileStore:
    """Key/value store persisted as one JSON object on disk.

    Writes go to a temporary file in the same directory and are then moved
    over the original with ``os.replace``, so readers only ever see the old
    document or the new one.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("storage_read_failed", path=str(self.path), error=str(exc))
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def put_many(self, values: Mapping[str, Any]) -> None:
        with self._lock:
            data = self._read()
            data.update(values)
            payload = json.dumps(data, ensure_ascii=False)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(temp_name, self.path)
            finally:
                Path(temp_name).unlink(missing_ok=True)
