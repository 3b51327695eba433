"""
Source Filesystems for bundlefs

This module defines the read-only source filesystem interface consumed by the
extractors, the adapters that expose common bundle formats through it, and the
pre-order walk used for tree extraction.

Adapters:
- MemorySource: an in-memory tree built from a mapping of paths to contents
- DirectorySource: a view of a real on-disk directory
- ZipSource: a view of a zip bundle
- PackageSource: package data shipped inside an importable Python package
- SubSource: a view of a subdirectory of another source
"""

import os
import stat as stat_module
import threading
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterator, List, Mapping, Tuple, Union

from bundlefs.constants import CURRENT_DIR, SOURCE_PATH_SEPARATOR
from bundlefs.exceptions import (
    InvalidSourcePathError,
    SourceError,
    SourceIsADirectoryError,
    SourceNotADirectoryError,
    SourceNotFoundError,
    SourcePermissionError,
)
from bundlefs.log_utils import logger
from bundlefs.paths import (
    is_valid_entry_name,
    join_source_path,
    source_base_name,
    source_parent,
    validate_source_path,
)

Pathish = Union[str, Path]


@dataclass(frozen=True)
class SourceEntry:
    """A node in a source filesystem."""

    name: str
    """The entry's base name ("." for a source's root)"""

    is_dir: bool
    """Whether the entry is a directory"""


class SourceFS(ABC):
    """
    Read-only hierarchical source of files.

    Paths are "/"-separated, relative to the source's root, and "." names the
    root itself.
    """

    @abstractmethod
    def stat(self, path: str) -> SourceEntry:
        """
        Describe the node at `path`.

        Raises:
            SourceNotFoundError: If nothing exists at `path`.
        """

    @abstractmethod
    def list_dir(self, path: str) -> List[SourceEntry]:
        """
        List the immediate entries of the directory at `path`, sorted by name.

        Raises:
            SourceNotFoundError: If nothing exists at `path`.
            SourceNotADirectoryError: If `path` is a file.
        """

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """
        Read the whole file at `path`.

        Raises:
            SourceNotFoundError: If nothing exists at `path`.
            SourceIsADirectoryError: If `path` is a directory.
        """

    def is_dir(self, path: str) -> bool:
        """Return whether `path` is a directory."""
        return self.stat(path).is_dir


def source_error_from_os_error(exc: OSError, path: str, action: str) -> SourceError:
    """
    Translate an OSError raised by a backing store into a SourceError.

    Parameters:
        exc (OSError): The original error.
        path (str): The source path being accessed.
        action (str): A verb phrase such as "read" or "list" for the message.

    Returns:
        SourceError: The matching SourceError subclass carrying `path`.
    """
    if isinstance(exc, FileNotFoundError):
        error_cls = SourceNotFoundError
    elif isinstance(exc, PermissionError):
        error_cls = SourcePermissionError
    elif isinstance(exc, NotADirectoryError):
        error_cls = SourceNotADirectoryError
    elif isinstance(exc, IsADirectoryError):
        error_cls = SourceIsADirectoryError
    else:
        error_cls = SourceError
    return error_cls(f"Could not {action} {path}", path=path, details=str(exc))


# =============================================================================
# Indexed sources
# =============================================================================


class _IndexedSource(SourceFS):
    """
    Source whose directory structure is known up front.

    Subclasses register files with `_add_file` and explicit directories with
    `_add_dir`; parent directories are implied.
    """

    def __init__(self) -> None:
        self._children: Dict[str, Dict[str, bool]] = {CURRENT_DIR: {}}

    def _add_dir(self, path: str) -> None:
        while path != CURRENT_DIR:
            parent = source_parent(path)
            self._children.setdefault(path, {})
            self._link(parent, source_base_name(path), True)
            path = parent

    def _add_file(self, path: str) -> None:
        if path in self._children:
            raise InvalidSourcePathError(
                "Source path is both a file and a directory", path=path
            )
        parent = source_parent(path)
        self._add_dir(parent)
        self._link(parent, source_base_name(path), False)

    def _link(self, parent: str, name: str, is_dir: bool) -> None:
        siblings = self._children.setdefault(parent, {})
        existing = siblings.get(name)
        if existing is not None and existing != is_dir:
            raise InvalidSourcePathError(
                "Source path is both a file and a directory",
                path=join_source_path(parent, name),
            )
        siblings[name] = is_dir

    def _is_file(self, path: str) -> bool:
        if path == CURRENT_DIR:
            return False
        siblings = self._children.get(source_parent(path), {})
        return siblings.get(source_base_name(path)) is False

    def stat(self, path: str) -> SourceEntry:
        validate_source_path(path)
        if path in self._children:
            return SourceEntry(source_base_name(path), True)
        if self._is_file(path):
            return SourceEntry(source_base_name(path), False)
        raise SourceNotFoundError(f"No such file or directory: {path}", path=path)

    def list_dir(self, path: str) -> List[SourceEntry]:
        entry = self.stat(path)
        if not entry.is_dir:
            raise SourceNotADirectoryError(f"Not a directory: {path}", path=path)
        children = self._children[path]
        return [SourceEntry(name, children[name]) for name in sorted(children)]

    def read_bytes(self, path: str) -> bytes:
        entry = self.stat(path)
        if entry.is_dir:
            raise SourceIsADirectoryError(f"Is a directory: {path}", path=path)
        return self._read(path)

    @abstractmethod
    def _read(self, path: str) -> bytes:
        """Read a file already known to exist."""


class MemorySource(_IndexedSource):
    """
    In-memory source built from a mapping of paths to contents.

    Keys are source paths; a key ending in "/" declares an (empty) directory.
    Text values are encoded as UTF-8.

        source = MemorySource({"web/index.html": "<html></html>", "web/img/": b""})
    """

    def __init__(self, files: Mapping[str, Union[bytes, str]]) -> None:
        super().__init__()
        self._files: Dict[str, bytes] = {}
        for key, content in files.items():
            if key.endswith(SOURCE_PATH_SEPARATOR):
                path = validate_source_path(
                    key.rstrip(SOURCE_PATH_SEPARATOR) or CURRENT_DIR
                )
                self._add_dir(path)
                continue
            path = validate_source_path(key)
            if path == CURRENT_DIR:
                raise InvalidSourcePathError(
                    "The source root cannot be a file", path=key
                )
            self._add_file(path)
            if isinstance(content, str):
                content = content.encode("utf-8")
            self._files[path] = bytes(content)

    def _read(self, path: str) -> bytes:
        return self._files[path]


class ZipSource(_IndexedSource):
    """
    Read-only view of a zip bundle.

    Accepts a path to the archive or an open ZipFile. Archives opened from a
    path are owned by the source and closed by `close()`. Members with unsafe
    names (absolute, parent references, null bytes) are skipped.
    """

    def __init__(self, archive: Union[Pathish, zipfile.ZipFile]) -> None:
        super().__init__()
        self._lock = threading.Lock()
        if isinstance(archive, zipfile.ZipFile):
            self._zip = archive
            self._owns_zip = False
        else:
            try:
                self._zip = zipfile.ZipFile(archive, "r")
            except OSError as e:
                raise source_error_from_os_error(e, str(archive), "open archive") from e
            except zipfile.BadZipFile as e:
                raise SourceError(
                    f"Could not open archive {archive}",
                    path=str(archive),
                    details=str(e),
                ) from e
            self._owns_zip = True

        self._members: Dict[str, str] = {}
        for info in self._zip.infolist():
            name = info.filename.replace("\\", SOURCE_PATH_SEPARATOR)
            stripped = name.rstrip(SOURCE_PATH_SEPARATOR)
            if not stripped:
                continue
            try:
                path = validate_source_path(stripped)
            except InvalidSourcePathError:
                logger.warning(
                    "Skipping unsafe archive member %s (possible traversal)",
                    info.filename,
                )
                continue
            if info.is_dir():
                self._add_dir(path)
            else:
                self._add_file(path)
                self._members[path] = info.filename

    def _read(self, path: str) -> bytes:
        try:
            with self._lock:
                return self._zip.read(self._members[path])
        except (zipfile.BadZipFile, OSError, RuntimeError) as e:
            raise SourceError(
                f"Could not read {path}", path=path, details=str(e)
            ) from e

    def close(self) -> None:
        """Close the archive if this source opened it."""
        if self._owns_zip:
            self._zip.close()

    def __enter__(self) -> "ZipSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# =============================================================================
# Live sources
# =============================================================================


class DirectorySource(SourceFS):
    """
    View of a real on-disk directory.

    Symlinks are reported as files and followed when read, so a link to a
    directory cannot be read as a file.
    """

    def __init__(self, root: Pathish) -> None:
        self.root = os.fspath(root)

    def _os_path(self, path: str) -> str:
        validate_source_path(path)
        if path == CURRENT_DIR:
            return self.root
        return os.path.join(self.root, *path.split(SOURCE_PATH_SEPARATOR))

    def stat(self, path: str) -> SourceEntry:
        os_path = self._os_path(path)
        try:
            # The root itself may be reached through a link.
            st = os.stat(os_path) if path == CURRENT_DIR else os.lstat(os_path)
        except OSError as e:
            raise source_error_from_os_error(e, path, "stat") from e
        return SourceEntry(source_base_name(path), stat_module.S_ISDIR(st.st_mode))

    def list_dir(self, path: str) -> List[SourceEntry]:
        os_path = self._os_path(path)
        try:
            with os.scandir(os_path) as iterator:
                entries = [
                    SourceEntry(entry.name, entry.is_dir(follow_symlinks=False))
                    for entry in iterator
                ]
        except OSError as e:
            raise source_error_from_os_error(e, path, "list") from e
        return sorted(entries, key=lambda entry: entry.name)

    def read_bytes(self, path: str) -> bytes:
        os_path = self._os_path(path)
        if os.path.isdir(os_path):
            raise SourceIsADirectoryError(f"Is a directory: {path}", path=path)
        try:
            with open(os_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise source_error_from_os_error(e, path, "read") from e


class PackageSource(SourceFS):
    """
    Package data shipped inside an importable Python package.

        source = PackageSource("myapp.assets")
    """

    def __init__(self, package: Union[str, ModuleType]) -> None:
        try:
            self._root = resources.files(package)
        except (ImportError, TypeError) as e:
            raise SourceNotFoundError(
                f"Could not locate package {package}", path=str(package), details=str(e)
            ) from e

    def _node(self, path: str):
        validate_source_path(path)
        node = self._root
        if path != CURRENT_DIR:
            for element in path.split(SOURCE_PATH_SEPARATOR):
                node = node.joinpath(element)
        return node

    def stat(self, path: str) -> SourceEntry:
        node = self._node(path)
        try:
            if node.is_dir():
                return SourceEntry(source_base_name(path), True)
            if node.is_file():
                return SourceEntry(source_base_name(path), False)
        except OSError as e:
            raise source_error_from_os_error(e, path, "stat") from e
        raise SourceNotFoundError(f"No such file or directory: {path}", path=path)

    def list_dir(self, path: str) -> List[SourceEntry]:
        if not self.stat(path).is_dir:
            raise SourceNotADirectoryError(f"Not a directory: {path}", path=path)
        try:
            entries = [
                SourceEntry(child.name, child.is_dir())
                for child in self._node(path).iterdir()
            ]
        except OSError as e:
            raise source_error_from_os_error(e, path, "list") from e
        return sorted(entries, key=lambda entry: entry.name)

    def read_bytes(self, path: str) -> bytes:
        if self.stat(path).is_dir:
            raise SourceIsADirectoryError(f"Is a directory: {path}", path=path)
        try:
            return self._node(path).read_bytes()
        except OSError as e:
            raise source_error_from_os_error(e, path, "read") from e


class SubSource(SourceFS):
    """View of the subtree of `source` rooted at `directory`."""

    def __init__(self, source: SourceFS, directory: str) -> None:
        self.source = source
        self.directory = validate_source_path(directory)

    def _full(self, path: str) -> str:
        validate_source_path(path)
        if path == CURRENT_DIR:
            return self.directory
        return join_source_path(self.directory, path)

    def stat(self, path: str) -> SourceEntry:
        entry = self.source.stat(self._full(path))
        return SourceEntry(source_base_name(path), entry.is_dir)

    def list_dir(self, path: str) -> List[SourceEntry]:
        return self.source.list_dir(self._full(path))

    def read_bytes(self, path: str) -> bytes:
        return self.source.read_bytes(self._full(path))


# =============================================================================
# Walking
# =============================================================================


def walk(
    source: SourceFS, root: str = CURRENT_DIR
) -> Iterator[Tuple[str, SourceEntry]]:
    """
    Walk `source` in pre-order starting at `root`.

    Yields `(path, entry)` for the root itself first, then for every
    descendant, visiting each directory's entries in name order. Errors from
    the source propagate immediately.

    Raises:
        InvalidSourcePathError: If `root` or an entry name is malformed.
        SourceError: If the source cannot be listed.
    """
    validate_source_path(root)
    entry = source.stat(root)
    yield root, entry
    if entry.is_dir:
        yield from _walk_children(source, root)


def _walk_children(source: SourceFS, path: str) -> Iterator[Tuple[str, SourceEntry]]:
    for child in source.list_dir(path):
        if not is_valid_entry_name(child.name):
            raise InvalidSourcePathError(
                f"Invalid entry name in {path}", path=path, details=repr(child.name)
            )
        child_path = join_source_path(path, child.name)
        yield child_path, child
        if child.is_dir:
            yield from _walk_children(source, child_path)
