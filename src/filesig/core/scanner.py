"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Default file enumeration collaborator, built on os.walk and pathlib.
Features:
- A file root yields itself, a directory root yields its files
- Optional recursion into subdirectories
- Hidden and system entries skipped unless requested
- Inaccessible entries reported with is_readable=False instead of raising
"""

import os
import stat
import time
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional

from filesig.core.interfaces import FileEnumerator
from filesig.core.models import FileEntry
from filesig.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)
_HIDDEN_OR_SYSTEM = stat.FILE_ATTRIBUTE_HIDDEN | stat.FILE_ATTRIBUTE_SYSTEM


class FileScannerImpl(FileEnumerator):
    """
    Enumerates files under a search root.

    Attributes:
        root_dir: File or directory to enumerate
        recurse: Descend into subdirectories
        include_hidden_and_system: Also yield dot-files and entries flagged hidden/system
    """

    def __init__(self, root_dir: str, recurse: bool = False, include_hidden_and_system: bool = False):
        self.root_dir = root_dir
        self.recurse = recurse
        self.include_hidden_and_system = include_hidden_and_system

    def scan(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[FileEntry]:
        """
        Yield one FileEntry per file, in sorted order within each directory.
        """
        root_path = Path(self.root_dir)
        logger.debug(f"Scanning {self.root_dir} (recurse={self.recurse}, hidden={self.include_hidden_and_system})")

        if stopped_flag and stopped_flag():
            logger.debug("Scan cancelled before start")
            return

        if not root_path.exists():
            error_msg = f"Path does not exist: {self.root_dir}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        # An explicitly named file is always reported, hidden or not
        if not root_path.is_dir():
            yield self._to_entry(root_path)
            return

        start_time = time.time()
        found = 0

        for root, dirs, files in os.walk(str(root_path)):
            if stopped_flag and stopped_flag():
                logger.debug("Scan interrupted by user")
                return

            if self.recurse:
                dirs[:] = sorted(d for d in dirs if self._prefilter_dirs(Path(root) / d))
            else:
                dirs[:] = []

            for filename in sorted(files):
                if stopped_flag and stopped_flag():
                    return
                path = Path(root) / filename
                entry = self._process_file(path)
                if entry is not None:
                    found += 1
                    yield entry

        logger.debug(f"Scan of {self.root_dir} yielded {found} files in {time.time() - start_time:.2f}s")

    @staticmethod
    def _is_hidden_or_system(path: Path, stat_result: Optional[os.stat_result] = None) -> bool:
        """Dot-prefixed names everywhere, plus HIDDEN/SYSTEM attributes on Windows."""
        if path.name.startswith('.'):
            return True
        attributes = getattr(stat_result, "st_file_attributes", 0) if stat_result else 0
        return bool(attributes & _HIDDEN_OR_SYSTEM)

    def _prefilter_dirs(self, path: Path) -> bool:
        """Skip hidden and inaccessible directories before os.walk enters them."""
        try:
            stat_result = path.stat()
        except OSError:
            logger.debug(f"Skipping inaccessible directory: {path}")
            return False

        if not self.include_hidden_and_system and self._is_hidden_or_system(path, stat_result):
            logger.debug(f"Skipping hidden directory: {path}")
            return False

        return os.access(path, os.R_OK | os.X_OK)

    def _process_file(self, path: Path) -> Optional[FileEntry]:
        if not self.include_hidden_and_system:
            try:
                stat_result = path.stat()
            except OSError:
                stat_result = None
            if self._is_hidden_or_system(path, stat_result):
                logger.debug(f"Skipping hidden file: {path}")
                return None
        return self._to_entry(path)

    @staticmethod
    def _to_entry(path: Path) -> FileEntry:
        """Build a FileEntry; stat failures yield an unreadable, zero-size entry."""
        try:
            stat_result = path.stat()
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return FileEntry(
                full_path=str(path),
                size_bytes=0,
                created_utc=_EPOCH,
                modified_utc=_EPOCH,
                is_directory=False,
                is_readable=False
            )

        created = getattr(stat_result, "st_birthtime", None)
        if created is None:
            created = stat_result.st_ctime

        return FileEntry(
            full_path=str(path),
            size_bytes=stat_result.st_size,
            created_utc=ConvertUtils.timestamp_to_utc(created),
            modified_utc=ConvertUtils.timestamp_to_utc(stat_result.st_mtime),
            is_directory=stat.S_ISDIR(stat_result.st_mode),
            is_readable=os.access(path, os.R_OK)
        )
