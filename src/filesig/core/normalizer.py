"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/normalizer.py
Turns a file path and its search root into a stable relative identity.
"""

import os
import re
from functools import lru_cache
from typing import NamedTuple

# "Microsoft.PowerShell.Core\FileSystem::C:\data" or "FileSystem::/data"
_PATTERN_PROVIDER = re.compile(r'^(?:[\w.]+\\)?[\w.]+::')
_EXTENDED_UNC_PREFIX = "\\\\?\\UNC\\"
_EXTENDED_PREFIX = "\\\\?\\"


class PathIdentity(NamedTuple):
    relative_path: str
    root: str


def strip_provider_prefix(path: str) -> str:
    """
    Remove a filesystem-provider qualifier or Windows extended-length prefix.

    Examples:
        "Microsoft.PowerShell.Core\\FileSystem::C:\\data" → "C:\\data"
        "\\\\?\\C:\\data" → "C:\\data"
        "\\\\?\\UNC\\server\\share" → "\\\\server\\share"
    """
    path = _PATTERN_PROVIDER.sub('', path, count=1)
    if path.upper().startswith(_EXTENDED_UNC_PREFIX):
        return "\\\\" + path[len(_EXTENDED_UNC_PREFIX):]
    if path.startswith(_EXTENDED_PREFIX):
        return path[len(_EXTENDED_PREFIX):]
    return path


def normalize_root(root_path: str, root_is_directory: bool = True, sep: str = os.sep) -> str:
    """Strip provider prefixes and, for directories, end the root with exactly one separator."""
    root = strip_provider_prefix(root_path)
    if root_is_directory:
        trailing = sep + "/" if sep == "\\" else sep
        root = root.rstrip(trailing) + sep
    return root


@lru_cache(maxsize=8192)
def normalize_path(
        file_path: str,
        root_path: str,
        root_is_directory: bool = True,
        sep: str = os.sep
) -> PathIdentity:
    """
    Compute the path of `file_path` relative to its search root.

    The normalized root is removed as a case-insensitive character prefix of the
    full path. When the prefix does not literally match, the full path is returned
    unmodified: a degraded but usable identity, never an error.

    Examples (POSIX):
        ("/data/sub/file.txt", "/data")   → PathIdentity("sub/file.txt", "/data/")
        ("/data/sub/file.txt", "/data//") → PathIdentity("sub/file.txt", "/data/")
        ("/other/file.txt", "/data")      → PathIdentity("/other/file.txt", "/data/")
    """
    root = normalize_root(root_path, root_is_directory, sep)
    if root and file_path.lower().startswith(root.lower()):
        return PathIdentity(file_path[len(root):], root)
    return PathIdentity(file_path, root)
