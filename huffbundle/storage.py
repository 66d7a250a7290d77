"""
storage.py -- named byte streams used by the pipeline for all I/O.

``open(name, mode)`` with mode ``'r'``, ``'w'`` or ``'a'`` returns a
:class:`NamedStream` offering ``read_line()``, ``read_all()``,
``write_bytes()`` and ``close()``.  Two backends: a directory on disk
and an in-memory dict (tests, ``compress_bytes``).
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO, Dict, Iterator, Optional

_MODES = {"r": "rb", "w": "wb", "a": "ab"}


class NamedStream:
    """One open stream.  Lines are ASCII; terminators are stripped."""

    def __init__(self, name: str, mode: str, fh: BinaryIO) -> None:
        self.name = name
        self.mode = mode
        self._fh = fh
        self.closed = False

    def read_line(self) -> Optional[str]:
        """Next line without its CR/LF, or ``None`` at end of stream."""
        raw = self._fh.readline()
        if not raw:
            return None
        return raw.rstrip(b"\r\n").decode("ascii", errors="replace")

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

    def read_all(self) -> bytes:
        return self._fh.read()

    def write_bytes(self, data: bytes) -> int:
        if self.mode == "r":
            raise io.UnsupportedOperation(f"{self.name} is open for reading")
        return self._fh.write(data)

    def close(self) -> None:
        if not self.closed:
            self._fh.close()
            self.closed = True

    def __enter__(self) -> "NamedStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Storage:
    """Interface plus whole-stream helpers built on it."""

    def open(self, name: str, mode: str = "r") -> NamedStream:
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        raise NotImplementedError

    def remove(self, name: str) -> None:
        raise NotImplementedError

    def read(self, name: str) -> bytes:
        with self.open(name, "r") as s:
            return s.read_all()

    def write(self, name: str, data: bytes) -> None:
        with self.open(name, "w") as s:
            s.write_bytes(data)

    def resolve(self, name: str) -> str:
        """Identity of the stream behind ``name``; equal identities share bytes."""
        return name

    def discard(self, *names: str) -> int:
        """Remove whichever of ``names`` exist; returns how many were removed."""
        n = 0
        for name in names:
            if self.exists(name):
                self.remove(name)
                n += 1
        return n


def _check_mode(mode: str) -> None:
    if mode not in _MODES:
        raise ValueError(f"mode must be one of 'r', 'w', 'a', got {mode!r}")


class DirectoryStorage(Storage):
    def __init__(self, root: str = ".") -> None:
        self.root = root

    def path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def resolve(self, name: str) -> str:
        return os.path.realpath(self.path(name))

    def open(self, name: str, mode: str = "r") -> NamedStream:
        _check_mode(mode)
        if mode != "r":
            os.makedirs(self.root, exist_ok=True)
        return NamedStream(name, mode, open(self.path(name), _MODES[mode]))

    def exists(self, name: str) -> bool:
        return os.path.isfile(self.path(name))

    def remove(self, name: str) -> None:
        os.remove(self.path(name))

    def __repr__(self) -> str:
        return f"DirectoryStorage({self.root!r})"


class _MemoryFile(io.BytesIO):
    """BytesIO that stores its contents back into the owning dict on close."""

    def __init__(self, store: Dict[str, bytes], name: str, initial: bytes = b"") -> None:
        super().__init__(initial)
        self._store = store
        self._name = name
        self.seek(0, io.SEEK_END)

    def close(self) -> None:
        if not self.closed:
            self._store[self._name] = self.getvalue()
        super().close()


class MemoryStorage(Storage):
    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = dict(files or {})

    def open(self, name: str, mode: str = "r") -> NamedStream:
        _check_mode(mode)
        if mode == "r":
            if name not in self.files:
                raise FileNotFoundError(name)
            return NamedStream(name, mode, io.BytesIO(self.files[name]))
        initial = self.files.get(name, b"") if mode == "a" else b""
        return NamedStream(name, mode, _MemoryFile(self.files, name, initial))

    def exists(self, name: str) -> bool:
        return name in self.files

    def remove(self, name: str) -> None:
        try:
            del self.files[name]
        except KeyError:
            raise FileNotFoundError(name) from None

    def __repr__(self) -> str:
        return f"MemoryStorage({sorted(self.files)})"
