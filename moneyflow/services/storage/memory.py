"""In-memory blob store. Default backend and the one tests run against."""

from typing import Optional

from moneyflow.services.storage.interface import BlobStoreInterface


class InMemoryBlobStore(BlobStoreInterface):
    """Dict-backed store; contents live as long as the instance."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def write(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data)
