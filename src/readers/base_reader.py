# src/readers/base_reader.py — v1
"""Abstract repository reader interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from repodoc.core.models import SourceFile


class BaseRepositoryReader(ABC):
    """Produces the flat file listing the pipeline consumes."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Reader identifier (e.g., 'local')."""

    @abstractmethod
    def list_files(self, repo_id: str) -> list[SourceFile]:
        """Return every entry of the repository in a stable order.

        Directories and filtered files are returned with ``content=None``.
        """
