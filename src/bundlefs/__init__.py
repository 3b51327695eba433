"""
bundlefs - extract bundled asset trees into real temporary files.

Programs that ship assets as package data, zip bundles or in-memory trees can
materialize them on disk for tools that need real paths:

    from bundlefs import PackageSource, extract_tree, start_listener

    path, cleanup = extract_tree(PackageSource("myapp"), "assets", prefix="myapp")
    listener = start_listener(path)
    try:
        run_tool(path)
    finally:
        listener.stop()
        cleanup()
"""

from .cleanup import CleanupGuard
from .exceptions import (
    BundleFSError,
    ConfigFileError,
    ConfigurationError,
    DestinationError,
    InvalidNamePrefixError,
    InvalidSourcePathError,
    ListenerError,
    SourceError,
    SourceIsADirectoryError,
    SourceNotADirectoryError,
    SourceNotFoundError,
    SourcePermissionError,
    ValidationError,
)
from .extract import (
    Extraction,
    extract_file,
    extract_tree,
    extracted_file,
    extracted_tree,
)
from .listener import CleanupListener, ListenerState, start_listener
from .sources import (
    DirectorySource,
    MemorySource,
    PackageSource,
    SourceEntry,
    SourceFS,
    SubSource,
    ZipSource,
    walk,
)

__all__ = [
    "BundleFSError",
    "CleanupGuard",
    "CleanupListener",
    "ConfigFileError",
    "ConfigurationError",
    "DestinationError",
    "DirectorySource",
    "Extraction",
    "InvalidNamePrefixError",
    "InvalidSourcePathError",
    "ListenerError",
    "ListenerState",
    "MemorySource",
    "PackageSource",
    "SourceEntry",
    "SourceError",
    "SourceFS",
    "SourceIsADirectoryError",
    "SourceNotADirectoryError",
    "SourceNotFoundError",
    "SourcePermissionError",
    "SubSource",
    "ValidationError",
    "ZipSource",
    "extract_file",
    "extract_tree",
    "extracted_file",
    "extracted_tree",
    "start_listener",
    "walk",
]
