"""
JSON File Blob Store

Each key is kept in its own `<key>.json` file under a data directory, so
the files can be inspected or backed up by hand.

Writes go to a temporary file in the same directory and are moved into
place with os.replace, so a reader never sees a half-written file.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from moneyflow.services.storage.interface import BackendError, BlobStoreInterface


class JsonFileBlobStore(BlobStoreInterface):
    """Filesystem implementation of the blob store."""

    SUFFIX = ".json"

    def __init__(self, data_dir: Union[str, Path]):
        self._dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise BackendError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}{self.SUFFIX}"

    async def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise BackendError(f"{path} is not valid UTF-8: {e}")
        except OSError as e:
            raise BackendError(f"Failed to read {path}: {e}")

    async def write(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise BackendError(f"Failed to write {path}: {e}")

    async def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise BackendError(f"Failed to remove {path}: {e}")

    async def keys(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(
            p.name[: -len(self.SUFFIX)]
            for p in self._dir.glob(f"*{self.SUFFIX}")
            if not p.name.startswith(".")
        )
