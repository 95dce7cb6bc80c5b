"""Commit and file record models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from pathlib import PurePosixPath
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class CommitType(str, Enum):
    """Origin of a commit."""

    INITIAL = "initial"
    MANUAL = "manual"
    AUTO = "auto"
    AI_EDIT = "ai_edit"


class ChangeType(str, Enum):
    """How a commit touched one file."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class FileType(str, Enum):
    """Coarse role of a file inside a generated project."""

    PAGE = "page"
    COMPONENT = "component"
    CONFIG = "config"
    STYLES = "styles"
    DATA = "data"


_LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "css": "css",
    "scss": "scss",
    "sass": "sass",
    "json": "json",
    "md": "markdown",
    "html": "html",
    "py": "python",
    "yaml": "yaml",
    "yml": "yaml",
}


def infer_file_type(filename: str) -> FileType:
    """Classify a file from its extension."""
    extension = PurePosixPath(filename).suffix.lstrip(".").lower()
    if extension in {"tsx", "jsx"}:
        return FileType.COMPONENT
    if extension in {"ts", "js"}:
        return FileType.PAGE if "page" in filename else FileType.COMPONENT
    if extension in {"css", "scss", "sass"}:
        return FileType.STYLES
    if extension == "json":
        return FileType.CONFIG
    if extension in {"md", "html"}:
        return FileType.PAGE
    return FileType.DATA


def infer_language(filename: str) -> str:
    extension = PurePosixPath(filename).suffix.lstrip(".").lower()
    return _LANGUAGES.get(extension, extension or "text")


class FileChange(BaseModel):
    """One touched file as submitted by the generator."""

    filename: str
    content: str = ""
    language: str | None = None
    file_type: FileType | None = None
    change_type: ChangeType = ChangeType.ADDED
    previous_filename: str | None = None

    @field_validator("filename")
    @classmethod
    def _filename_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            msg = "filename must not be empty"
            raise ValueError(msg)
        return stripped

    def resolved_language(self) -> str:
        return self.language or infer_language(self.filename)

    def resolved_file_type(self) -> FileType:
        return self.file_type or infer_file_type(self.filename)


class Commit(BaseModel):
    """Immutable batch of file changes applied to a project."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str
    message: str
    type: CommitType = CommitType.MANUAL
    agent: str | None = None
    prompt: str | None = None
    files_added: int = 0
    files_modified: int = 0
    files_deleted: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FileRecord(BaseModel):
    """Full content snapshot of one file as of one commit."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str
    commit_id: str
    filename: str
    content: str
    language: str
    file_type: FileType
    change_type: ChangeType
    seq: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
