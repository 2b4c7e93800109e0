"""Local filesystem backend implementing IFileStore."""

from __future__ import annotations

import os
from pathlib import Path

from hrdocs.core.exceptions import FilesystemError


class LocalFileStore:
    """Production IFileStore rooted at a directory on a single volume.

    ``move`` is an ``os.rename``: atomic within the volume, and it refuses to
    replace an existing target.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise FilesystemError("resolve", path, "outside storage root")
        return target

    def exists(self, path: str) -> bool:
        try:
            return self._path(path).is_file()
        except OSError:
            return False

    def ensure_dir(self, path: str) -> None:
        try:
            self._path(path).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError("mkdir", path, exc.strerror or str(exc)) from exc

    def move(self, src: str, dst: str) -> None:
        target = self._path(dst)
        if target.exists():
            raise FilesystemError("rename", dst, "target already exists")
        try:
            os.rename(self._path(src), target)
        except OSError as exc:
            raise FilesystemError("rename", src, exc.strerror or str(exc)) from exc

    def write(self, path: str, data: bytes) -> str:
        target = self._path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise FilesystemError("write", path, exc.strerror or str(exc)) from exc
        return path

    def read(self, path: str) -> bytes:
        try:
            return self._path(path).read_bytes()
        except OSError as exc:
            raise FilesystemError("read", path, exc.strerror or str(exc)) from exc

    def delete(self, path: str) -> None:
        try:
            self._path(path).unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError("delete", path, exc.strerror or str(exc)) from exc

    def absolute(self, path: str) -> str:
        return str(self._path(path))
