# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

FileKind = Literal["code", "documentation", "config"]


# === SOURCE MODELS ===


class SourceFile(BaseModel):
    """One entry from the repository listing (file or directory)."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    content: str | None = None
    size_bytes: int = 0
    language: str | None = None
    kind: FileKind = "code"
    entry_type: Literal["file", "dir"] = "file"

    @model_validator(mode="after")
    def _directories_have_no_content(self) -> SourceFile:
        if self.entry_type == "dir" and self.content is not None:
            raise ValueError(f"Directory entry {self.path!r} cannot carry content")
        return self

    @property
    def has_content(self) -> bool:
        return self.content is not None

    @classmethod
    def from_path_content(cls, path: str, content: str | None) -> SourceFile:
        """Build a file entry, inferring size, kind and language from the path."""
        from repodoc.chunking.classifier import determine_kind, determine_language

        return cls(
            path=path,
            content=content,
            size_bytes=len(content.encode("utf-8")) if content is not None else 0,
            language=determine_language(path),
            kind=determine_kind(path),
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> SourceFile:
        """Build an entry from a ``{path, content, type}`` listing record.

        ``type`` maps to ``entry_type``. Kind, language and size are inferred
        from the path and content unless the record supplies them.
        """
        from repodoc.chunking.classifier import determine_kind, determine_language

        data = dict(record)
        if "type" in data and "entry_type" not in data:
            data["entry_type"] = data.pop("type")
        path = data.get("path")
        if isinstance(path, str) and path:
            data.setdefault("kind", determine_kind(path))
            data.setdefault("language", determine_language(path))
        content = data.get("content")
        if isinstance(content, str):
            data.setdefault("size_bytes", len(content.encode("utf-8")))
        return cls.model_validate(data)


# === CHUNK MODELS ===


class FileChunk(BaseModel):
    """A whole file or one split part of a large file; the atomic packing unit."""

    model_config = ConfigDict(frozen=True)

    path: str
    original_path: str
    content: str
    size_bytes: int = 0
    language: str | None = None
    kind: FileKind = "code"
    estimated_tokens: int = 0

    # --- Split metadata (only set when the file was divided) ---
    part_index: int | None = None
    part_count: int | None = None

    @property
    def is_partial(self) -> bool:
        return self.part_count is not None and self.part_count > 1

    @property
    def directory(self) -> str:
        return directory_of(self.original_path)


class AnalysisBatch(BaseModel):
    """Bounded group of chunks submitted together to the generation backend."""

    model_config = ConfigDict(frozen=True)

    files: list[FileChunk]
    total_estimated_tokens: int
    max_tokens: int
    context_note: str = ""

    @property
    def kinds(self) -> list[str]:
        """Distinct file kinds in first-seen order."""
        seen: list[str] = []
        for f in self.files:
            if f.kind not in seen:
                seen.append(f.kind)
        return seen

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def is_overflow(self) -> bool:
        """A lone chunk larger than the budget."""
        return len(self.files) == 1 and self.total_estimated_tokens > self.max_tokens


class BatchResult(BaseModel):
    """Outcome of analyzing one AnalysisBatch."""

    raw_text: str = ""
    batch_index: int
    total_batches: int
    degraded: bool = False
    error: str | None = None
    paths: list[str] = Field(default_factory=list)


def directory_of(path: str) -> str:
    """Return the parent directory of a slash-separated path ('' at the root)."""
    if "/" not in path:
        return ""
    return path.rsplit("/", 1)[0]
