"""
Vault Storage — persistent key-value byte stores used by the VaultStore.

Backends:
- ``MemoryStorage``: process-local dict, lost on exit.
- ``FileStorage``: one file per key inside a data directory.
- ``RedisStorage``: any async redis-compatible client.

Only single-key writes are atomic; there is no multi-key transaction.
"""
import os
import re
import asyncio
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class BaseStorage(ABC):
    """Async key-value store of raw bytes."""

    @staticmethod
    def is_valid_key(key: str) -> bool:
        """Return whether ``key`` is non-empty and path-safe."""
        return bool(key) and key not in (".", "..") and bool(_KEY_PATTERN.match(key))

    def _validate_key(self, key: str) -> None:
        """Validate a storage key.

        Raises:
            ValueError: If key is empty or holds path-unsafe characters.
        """
        if not self.is_valid_key(key):
            raise ValueError(f"Invalid storage key: {key!r}")

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None if the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store bytes under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. No-op if absent."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with prefix."""

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


class MemoryStorage(BaseStorage):
    """Dict-backed storage."""

    def __init__(self, data: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(data or {})

    def __repr__(self) -> str:
        return f"<MemoryStorage keys={sorted(self._data)}>"

    async def get(self, key: str) -> Optional[bytes]:
        self._validate_key(key)
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._validate_key(key)
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._validate_key(key)
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]


class FileStorage(BaseStorage):
    """Directory-backed storage, one file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a crash never leaves a half-written value.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def __repr__(self) -> str:
        return f"<FileStorage path={str(self.path)!r}>"

    def _file(self, key: str) -> Path:
        self._validate_key(key)
        return self.path / key

    def _read(self, key: str) -> Optional[bytes]:
        try:
            return self._file(key).read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: bytes) -> None:
        target = self._file(key)
        self.path.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp, 0o600)
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._file(key).unlink(missing_ok=True)

    def _list(self, prefix: str) -> list[str]:
        if not self.path.is_dir():
            return []
        return sorted(
            p.name for p in self.path.iterdir()
            if p.is_file() and not p.name.startswith(".") and p.name.startswith(prefix)
        )

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    async def keys(self, prefix: str = "") -> list[str]:
        return await asyncio.to_thread(self._list, prefix)


class RedisStorage(BaseStorage):
    """Storage over an async redis-compatible client.

    The client must provide ``get``, ``set``, ``delete`` and ``scan_iter``
    coroutines (``redis.asyncio.Redis`` does).
    """

    def __init__(self, client: Any, namespace: str = ""):
        self._redis = client
        self._namespace = namespace

    def _redis_key(self, key: str) -> str:
        """Build namespaced Redis key."""
        self._validate_key(key)
        return f"{self._namespace}:{key}" if self._namespace else key

    def _strip(self, raw: Union[str, bytes]) -> str:
        name = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        if self._namespace:
            return name[len(self._namespace) + 1:]
        return name

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._redis.get(self._redis_key(key))
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes) -> None:
        await self._redis.set(self._redis_key(key), value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._redis_key(key))

    async def keys(self, prefix: str = "") -> list[str]:
        pattern = self._redis_key(prefix) + "*" if prefix else (
            f"{self._namespace}:*" if self._namespace else "*"
        )
        return [self._strip(raw) async for raw in self._redis.scan_iter(match=pattern)]
