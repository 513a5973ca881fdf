from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Iterator, MutableMapping, Protocol, runtime_checkable

from pdfmerge.domain.errors import FileIOError
from pdfmerge.domain.models import LocationRef
from pdfmerge.infrastructure import codec

logger = logging.getLogger(__name__)

ShareCallback = Callable[[LocationRef], Awaitable[None]]


class StorageAdapter(Protocol):
    async def read_all(self, location: LocationRef) -> bytes: ...

    async def write_all(self, data: bytes, suggested_name: str) -> LocationRef: ...


@runtime_checkable
class DiscardableStorage(Protocol):
    def discard(self, location: LocationRef) -> None: ...


def safe_file_name(name: str, fallback: str = "document.pdf") -> str:
    clean = name.replace("\\", "/").split("/")[-1]
    clean = re.sub(r"[^A-Za-z0-9._() -]", "_", clean).strip()
    return clean or fallback


class InMemoryStorage:
    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._blobs)

    async def read_all(self, location: LocationRef) -> bytes:
        try:
            return self._blobs[location.token]
        except KeyError:
            raise FileIOError(f"No stored data for location {location.token!r}") from None

    async def write_all(self, data: bytes, suggested_name: str) -> LocationRef:
        token = uuid.uuid4().hex
        self._blobs[token] = bytes(data)
        return LocationRef(token)

    def discard(self, location: LocationRef) -> None:
        self._blobs.pop(location.token, None)


class FileSystemStorage:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, location: LocationRef) -> Path:
        path = Path(location.token)
        if not path.is_absolute():
            path = self.directory / path
        return path

    def _candidates(self, suggested_name: str) -> Iterator[Path]:
        safe_name = safe_file_name(suggested_name)
        stem, dot, extension = safe_name.rpartition(".")
        if not stem:
            stem, dot, extension = safe_name, "", ""
        yield self.directory / safe_name
        sequence = 1
        while True:
            sequence += 1
            yield self.directory / f"{stem} ({sequence}){dot}{extension}"

    def _claim(self, temp_name: str, suggested_name: str) -> Path:
        # os.link refuses an existing target.
        candidates = self._candidates(suggested_name)
        while True:
            candidate = next(candidates)
            try:
                os.link(temp_name, candidate)
            except FileExistsError:
                continue
            return candidate

    def _read(self, location: LocationRef) -> bytes:
        path = self._path_for(location)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileIOError(f"Unable to read {path}: {exc}") from exc

    def _write(self, data: bytes, suggested_name: str) -> LocationRef:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=self.directory, prefix=".partial-", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                    handle.flush()
                    os.fsync(handle.fileno())
                target = self._claim(temp_name, suggested_name)
            finally:
                Path(temp_name).unlink(missing_ok=True)
        except OSError as exc:
            raise FileIOError(f"Unable to write {suggested_name!r}: {exc}") from exc
        logger.info("Wrote %d bytes to %s", len(data), target)
        return LocationRef(str(target))

    async def read_all(self, location: LocationRef) -> bytes:
        return await asyncio.to_thread(self._read, location)

    async def write_all(self, data: bytes, suggested_name: str) -> LocationRef:
        return await asyncio.to_thread(self._write, data, suggested_name)


class TextBackedStorage:
    def __init__(self, backend: MutableMapping[str, str]) -> None:
        self.backend = backend

    async def read_all(self, location: LocationRef) -> bytes:
        try:
            text = self.backend[location.token]
        except KeyError:
            raise FileIOError(f"No stored data for location {location.token!r}") from None
        return codec.decode(text)

    async def write_all(self, data: bytes, suggested_name: str) -> LocationRef:
        key = f"{uuid.uuid4().hex}/{safe_file_name(suggested_name)}"
        self.backend[key] = codec.encode(data)
        return LocationRef(key)
