# src/readers/local_reader.py — v1
"""Local checkout reader — walk a directory into SourceFile entries.

Ignored paths (media, lockfiles, build output, VCS metadata) are dropped.
Directories, binary, undecodable and oversize files are kept as entries
without content so the listing mirrors the tree.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from repodoc.chunking.classifier import should_ignore
from repodoc.core.models import SourceFile
from repodoc.readers.base_reader import BaseRepositoryReader

if TYPE_CHECKING:
    from repodoc.config.settings import Settings

logger = logging.getLogger(__name__)

_BINARY_SNIFF_BYTES = 8192


class LocalRepositoryReader(BaseRepositoryReader):
    """Read a repository from the local filesystem."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._max_bytes = 1_000_000 if settings is None else settings.reader_max_file_bytes
        self._follow_symlinks = False if settings is None else settings.reader_follow_symlinks

    @property
    def source_name(self) -> str:
        return "local"

    def list_files(self, repo_id: str) -> list[SourceFile]:
        """List a directory tree.

        Args:
            repo_id: Path of the repository root.

        Returns:
            Entries sorted by path, with POSIX paths relative to the root.

        Raises:
            ValueError: If ``repo_id`` is not a directory.
        """
        root = Path(repo_id).expanduser()
        if not root.is_dir():
            raise ValueError(f"Repository root is not a directory: {root}")

        entries: list[SourceFile] = []
        skipped = 0
        for dirpath, dirnames, filenames in os.walk(root, followlinks=self._follow_symlinks):
            base = Path(dirpath)
            # Prune in place so ignored trees are never descended into.
            kept: list[str] = []
            for name in sorted(dirnames):
                path = base / name
                rel = path.relative_to(root).as_posix()
                if self._skip(path, rel):
                    skipped += 1
                    continue
                kept.append(name)
                entries.append(SourceFile(path=rel, entry_type="dir"))
            dirnames[:] = kept

            for name in sorted(filenames):
                path = base / name
                rel = path.relative_to(root).as_posix()
                if self._skip(path, rel):
                    skipped += 1
                    continue
                if not path.is_file():
                    continue
                size = path.stat().st_size
                entry = SourceFile.from_path_content(rel, self._read_text(path, size))
                entries.append(entry.model_copy(update={"size_bytes": size}))

        entries.sort(key=lambda e: e.path.split("/"))

        logger.info(
            "Read %s: %d entries (%d with content), %d ignored",
            root, len(entries), sum(1 for e in entries if e.has_content), skipped,
        )
        return entries

    def _skip(self, path: Path, rel: str) -> bool:
        return should_ignore(rel) or (path.is_symlink() and not self._follow_symlinks)

    def _read_text(self, path: Path, size: int) -> str | None:
        if size > self._max_bytes:
            logger.debug("Skipping content of %s: %d bytes over limit", path, size)
            return None
        data = path.read_bytes()
        if b"\x00" in data[:_BINARY_SNIFF_BYTES]:
            logger.debug("Skipping content of binary file %s", path)
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping content of non-UTF-8 file %s", path)
            return None
