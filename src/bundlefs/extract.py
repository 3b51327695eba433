"""
Extraction of source trees and files into temporary on-disk destinations.

Both extractors create a uniquely named destination with the platform's
atomic temp-path primitive and hand back its absolute path together with a
CleanupGuard. A failed extraction removes whatever it created before the
error propagates, so an exception always means there is nothing to clean up.
"""

import os
import tempfile
from contextlib import contextmanager
from typing import Iterator, NamedTuple, Optional, Tuple

from bundlefs.cleanup import CleanupGuard, remove_path
from bundlefs.config import get_settings
from bundlefs.constants import (
    CURRENT_DIR,
    DIR_PERMISSIONS,
    FILE_PERMISSIONS,
    NAME_PREFIX_SEPARATOR,
)
from bundlefs.exceptions import DestinationError, SourceNotADirectoryError
from bundlefs.log_utils import logger
from bundlefs.paths import (
    absolute_or_relative,
    destination_path,
    file_suffix,
    relative_path,
    resolve_base_dir,
    validate_name_prefix,
    validate_source_path,
)
from bundlefs.sources import SourceFS, walk


class Extraction(NamedTuple):
    """Result of an extraction; unpacks as `path, cleanup`."""

    path: str
    """Absolute path of the temporary destination"""

    cleanup: CleanupGuard
    """Armed guard that removes the destination"""


def _resolve_options(
    prefix: Optional[str], base_dir: Optional[str]
) -> Tuple[str, str]:
    """Fill unset options from settings and validate them."""
    if prefix is None or base_dir is None:
        settings = get_settings()
        if prefix is None:
            prefix = settings.name_prefix
        if base_dir is None:
            base_dir = settings.base_dir
    return validate_name_prefix(prefix), resolve_base_dir(base_dir)


def _make_dirs(directory: str) -> None:
    try:
        os.makedirs(directory, mode=DIR_PERMISSIONS, exist_ok=True)
    except OSError as e:
        raise DestinationError(
            f"Could not create directory {directory}", path=directory, details=str(e)
        ) from e


def _file_opener(path: str, flags: int) -> int:
    return os.open(path, flags, FILE_PERMISSIONS)


def _write_file(target: str, data: bytes) -> None:
    try:
        with open(target, "wb", opener=_file_opener) as f:
            f.write(data)
    except OSError as e:
        raise DestinationError(
            f"Could not write {target}", path=target, details=str(e)
        ) from e


def _populate(source: SourceFS, root: str, destination: str) -> Tuple[int, int]:
    """
    Copy the tree under `root` into `destination`.

    The root's own directory is not materialized. Parent directories are
    created before every file write, so correctness does not depend on the
    order in which the walk reports entries.

    Returns:
        Tuple[int, int]: The number of files and directories created.
    """
    files = dirs = 0
    for path, entry in walk(source, root):
        if path == root:
            if not entry.is_dir:
                raise SourceNotADirectoryError(
                    f"Extraction root is not a directory: {root}", path=root
                )
            continue

        target = destination_path(destination, relative_path(root, path))
        if entry.is_dir:
            _make_dirs(target)
            dirs += 1
            continue

        _make_dirs(os.path.dirname(target))
        data = source.read_bytes(path)
        _write_file(target, data)
        files += 1
        logger.debug("Extracted %s to %s", path, target)
    return files, dirs


def extract_tree(
    source: SourceFS,
    root: str = "",
    prefix: Optional[str] = None,
    base_dir: Optional[str] = None,
) -> Extraction:
    """
    Extract the subtree of `source` under `root` into a new temporary directory.

    The destination holds the CONTENTS of `root`; no directory named after the
    root itself is created. Directories are created with mode 0o755 and files
    with mode 0o644 (subject to the umask).

    Parameters:
        source (SourceFS): The filesystem to extract from.
        root (str): Subtree to extract; empty means the whole source (".").
        prefix (Optional[str]): Name prefix for the destination, which is named
            `<prefix>-<random>`. Defaults to the configured prefix.
        base_dir (Optional[str]): Directory to create the destination in; empty
            means the current working directory. Defaults to the configured
            base directory.

    Returns:
        Extraction: The absolute destination path and an armed CleanupGuard.

    Raises:
        SourceError: If the root or any entry cannot be stat'ed, listed or
            read, or the root is not a directory.
        DestinationError: If the destination cannot be created or written.
        InvalidNamePrefixError: If `prefix` contains a path separator.
    """
    if not root:
        root = CURRENT_DIR
    validate_source_path(root)
    prefix, base = _resolve_options(prefix, base_dir)

    try:
        temp = tempfile.mkdtemp(prefix=prefix + NAME_PREFIX_SEPARATOR, dir=base)
    except OSError as e:
        raise DestinationError(
            f"Could not create temporary directory in {base}",
            path=base,
            details=str(e),
        ) from e
    temp_dir = absolute_or_relative(temp)

    cleanup = CleanupGuard(temp_dir)
    try:
        files, dirs = _populate(source, root, temp_dir)
    except BaseException as e:
        logger.debug("Extraction of %s failed, removing %s: %s", root, temp_dir, e)
        cleanup()
        raise

    logger.info(
        "Extracted %d files and %d directories from %s to %s",
        files,
        dirs,
        root,
        temp_dir,
    )
    return Extraction(temp_dir, cleanup)


def extract_file(
    source: SourceFS,
    file_path: str,
    prefix: Optional[str] = None,
    base_dir: Optional[str] = None,
) -> Extraction:
    """
    Extract a single file of `source` into a new temporary file.

    The destination is named `<prefix>-<random><ext>`, where `<ext>` is the
    source file's extension (from the last "." of its base name; empty when it
    has none). The source is read fully before anything is created, so a read
    failure has no side effects.

    Returns:
        Extraction: The absolute destination path and an armed CleanupGuard.

    Raises:
        SourceError: If the file cannot be read.
        DestinationError: If the temporary file cannot be created or written;
            a partially written file is removed first.
        InvalidNamePrefixError: If `prefix` contains a path separator.
    """
    prefix, base = _resolve_options(prefix, base_dir)
    data = source.read_bytes(file_path)

    try:
        fd, temp = tempfile.mkstemp(
            prefix=prefix + NAME_PREFIX_SEPARATOR,
            suffix=file_suffix(file_path),
            dir=base,
        )
    except OSError as e:
        raise DestinationError(
            f"Could not create temporary file in {base}", path=base, details=str(e)
        ) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        remove_path(temp)
        raise DestinationError(
            f"Could not write {temp}", path=temp, details=str(e)
        ) from e
    except BaseException:
        remove_path(temp)
        raise

    temp_path = absolute_or_relative(temp)
    logger.info("Extracted %s to %s (%d bytes)", file_path, temp_path, len(data))
    return Extraction(temp_path, CleanupGuard(temp_path))


@contextmanager
def extracted_tree(
    source: SourceFS,
    root: str = "",
    prefix: Optional[str] = None,
    base_dir: Optional[str] = None,
) -> Iterator[str]:
    """Context manager form of extract_tree(); removes the directory on exit."""
    path, cleanup = extract_tree(source, root, prefix, base_dir)
    with cleanup:
        yield path


@contextmanager
def extracted_file(
    source: SourceFS,
    file_path: str,
    prefix: Optional[str] = None,
    base_dir: Optional[str] = None,
) -> Iterator[str]:
    """Context manager form of extract_file(); removes the file on exit."""
    path, cleanup = extract_file(source, file_path, prefix, base_dir)
    with cleanup:
        yield path
