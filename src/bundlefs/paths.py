"""
Path handling for bundlefs.

Source paths are always "/"-separated and relative to the source's root, with
"." naming the root itself. Destination paths use the platform's separator.
"""

import os
from typing import Optional

from bundlefs.constants import CURRENT_DIR, SOURCE_PATH_SEPARATOR
from bundlefs.exceptions import InvalidNamePrefixError, InvalidSourcePathError


def validate_source_path(path: str) -> str:
    """
    Check that `path` is a valid source path and return it.

    A valid source path is "." or a sequence of non-empty "/"-separated
    elements, none of which is "." or "..", with no leading or trailing slash
    and no null byte.

    Raises:
        InvalidSourcePathError: If the path is malformed.
    """
    if path == CURRENT_DIR:
        return path
    if not isinstance(path, str) or not path:
        raise InvalidSourcePathError("Invalid source path", path=path)
    if "\x00" in path:
        raise InvalidSourcePathError(
            "Invalid source path", path=path, details="contains a null byte"
        )
    for element in path.split(SOURCE_PATH_SEPARATOR):
        if element in ("", ".", ".."):
            raise InvalidSourcePathError(
                "Invalid source path",
                path=path,
                details=f"bad element {element!r}",
            )
    return path


def is_valid_entry_name(name: str) -> bool:
    """
    Determine whether a directory entry name is a single safe path element.

    Returns:
        `True` if the name is non-empty, not "." or "..", and contains neither
        "/" nor a null byte.
    """
    if not name or name in (".", ".."):
        return False
    if SOURCE_PATH_SEPARATOR in name or "\x00" in name:
        return False
    return True


def join_source_path(directory: str, name: str) -> str:
    """Join a source directory path and an entry name."""
    if directory == CURRENT_DIR:
        return name
    return f"{directory}{SOURCE_PATH_SEPARATOR}{name}"


def source_base_name(path: str) -> str:
    """Return the last element of a source path."""
    return path.rsplit(SOURCE_PATH_SEPARATOR, 1)[-1]


def source_parent(path: str) -> str:
    """Return the parent of a source path; the parent of a top-level entry is "."."""
    if SOURCE_PATH_SEPARATOR not in path:
        return CURRENT_DIR
    return path.rsplit(SOURCE_PATH_SEPARATOR, 1)[0]


def relative_path(root: str, walked: str) -> str:
    """
    Compute where a walked source path lands relative to the destination.

    The root's own segment is stripped so that only its contents appear at the
    destination's top level. No other normalization is applied.

    Parameters:
        root (str): The declared extraction root ("." for the whole source).
        walked (str): A path produced while walking from `root`.

    Returns:
        str: The destination-relative source path, or "." for the root itself.
    """
    if root == CURRENT_DIR:
        return walked
    prefix = root + SOURCE_PATH_SEPARATOR
    if walked.startswith(prefix):
        return walked[len(prefix):]
    if walked == root:
        return CURRENT_DIR
    return walked


def destination_path(destination: str, rel: str) -> str:
    """Join a destination directory and a "/"-separated relative path."""
    if rel == CURRENT_DIR:
        return destination
    return os.path.join(destination, *rel.split(SOURCE_PATH_SEPARATOR))


def file_suffix(path: str) -> str:
    """
    Return the extension of a source path's base name.

    The extension starts at the last "." of the base name, so "archive.tar.gz"
    yields ".gz" and ".env" yields ".env". Names without a dot yield "".
    """
    base = source_base_name(path)
    index = base.rfind(".")
    if index < 0:
        return ""
    return base[index:]


def validate_name_prefix(prefix: Optional[str]) -> str:
    """
    Check a temporary-name prefix and return it.

    Raises:
        InvalidNamePrefixError: If the prefix contains a path separator or a
            null byte.
    """
    if prefix is None:
        prefix = ""
    for separator in (os.sep, os.altsep, SOURCE_PATH_SEPARATOR):
        if separator and separator in prefix:
            raise InvalidNamePrefixError(
                "Name prefix must not contain a path separator",
                field="prefix",
                value=prefix,
            )
    if "\x00" in prefix:
        raise InvalidNamePrefixError(
            "Name prefix must not contain a null byte", field="prefix", value=prefix
        )
    return prefix


def resolve_base_dir(base_dir: Optional[str]) -> str:
    """Return the directory temporary destinations are created in ("" means cwd)."""
    if not base_dir:
        return CURRENT_DIR
    return os.fspath(base_dir)


def absolute_or_relative(path: str) -> str:
    """Resolve `path` to an absolute path, keeping it unchanged if that fails."""
    try:
        return os.path.abspath(path)
    except (OSError, ValueError):
        return path
