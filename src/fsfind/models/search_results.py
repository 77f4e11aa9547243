"""
Search result data models for fsfind.

This module defines the records that flow out of a search: traversal entries,
content hits, file matches, per-entry traversal errors and the collected
result set with its statistics.
"""

import errno
import os
from typing import Dict, List, Optional, Any, Union
from datetime import datetime
from pathlib import Path
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def display_path(path: str) -> str:
    """
    Make an OS path safe to store as text.

    Bytes that are not valid UTF-8, which Python keeps as lone surrogates,
    are rendered as ``\\xNN`` escapes. Valid paths are returned unchanged.
    """
    try:
        path.encode('utf-8')
        return path
    except UnicodeEncodeError:
        pass

    try:
        raw = os.fsencode(path)
    except UnicodeEncodeError:
        return path.encode('utf-8', 'backslashreplace').decode('utf-8')
    return raw.decode('utf-8', 'backslashreplace')


class EntryKind(Enum):
    """Kind of filesystem object visited during traversal."""
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class ErrorKind(Enum):
    """Reasons a single entry could not be processed."""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    BROKEN_LINK = "broken_link"
    UNDECODABLE = "undecodable"
    IO_ERROR = "io_error"


class Entry(BaseModel):
    """
    A filesystem object visited by the walker.

    Entries are created per visited node and discarded once the filter chain
    has evaluated them.

    Attributes:
        path: Absolute path of the entry
        name: Final path component
        root: Root directory the entry was found under
        kind: File, directory or other (fifo, socket, device)
        is_symlink: Whether the entry itself is a symbolic link
        is_hidden: Whether the entry is hidden by platform convention
        depth: Number of directories between the root and the entry
        fs_path: Raw path bytes, set only when the path is not valid UTF-8
            and ``path`` therefore holds an escaped rendering
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Absolute path of the entry")
    name: str = Field(..., min_length=1, description="File name component")
    root: str = Field(..., min_length=1, description="Root the entry belongs to")
    kind: EntryKind = Field(..., description="Kind of filesystem object")
    is_symlink: bool = Field(False, description="Whether the entry is a symlink")
    is_hidden: bool = Field(False, description="Whether the entry is hidden")
    depth: int = Field(0, ge=0, description="Depth below the root")
    fs_path: Optional[bytes] = Field(None, repr=False, description="Raw path for undecodable names")

    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    def get_fs_path(self) -> Union[str, bytes]:
        """Get the path to hand to filesystem calls."""
        return self.fs_path if self.fs_path is not None else self.path


class ContentHit(BaseModel):
    """
    The first line of a file that matched the content pattern.

    Attributes:
        line_number: 1-based line number of the matching line
        byte_offset: Offset of the matching line from the start of the file
        excerpt: The matching line, stripped and truncated
        match_start: Character position where the match starts in the excerpt
        match_end: Character position where the match ends in the excerpt
    """

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(..., ge=1, description="1-based line number of the match")
    byte_offset: int = Field(0, ge=0, description="Byte offset of the matching line")
    excerpt: str = Field("", description="Short excerpt of the matching line")
    match_start: Optional[int] = Field(None, ge=0, description="Match start within the excerpt")
    match_end: Optional[int] = Field(None, ge=0, description="Match end within the excerpt")

    @model_validator(mode='after')
    def validate_span(self):
        """Validate that the match span lies inside the excerpt."""
        if self.match_start is not None and self.match_end is not None:
            if self.match_end < self.match_start:
                raise ValueError("Invalid match position")
            if self.match_end > len(self.excerpt):
                raise ValueError("Match end position exceeds excerpt length")
        return self

    def get_highlighted_excerpt(self, highlight_start: str = "**", highlight_end: str = "**") -> str:
        """Get the excerpt with the match wrapped in the given markers."""
        if self.match_start is None or self.match_end is None:
            return self.excerpt

        before = self.excerpt[:self.match_start]
        match = self.excerpt[self.match_start:self.match_end]
        after = self.excerpt[self.match_end:]

        return f"{before}{highlight_start}{match}{highlight_end}{after}"


class Match(BaseModel):
    """
    A regular file that survived every active filter stage.

    Attributes:
        path: Absolute path to the matched file
        name: File name component
        root: Root directory the file was found under
        content: First content hit, present only for content searches
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Absolute path to the matched file")
    name: str = Field(..., min_length=1, description="File name component")
    root: str = Field(..., min_length=1, description="Root the file was found under")
    content: Optional[ContentHit] = Field(None, description="First content hit")

    @classmethod
    def from_entry(cls, entry: Entry, content: Optional[ContentHit] = None) -> 'Match':
        """Create a match for an entry that passed the filter chain."""
        return cls(path=entry.path, name=entry.name, root=entry.root, content=content)

    def get_directory(self) -> str:
        """Get the directory containing this file."""
        return str(Path(self.path).parent)

    def get_relative_path(self) -> str:
        """Get the path relative to the root it was found under."""
        return str(Path(self.path).relative_to(self.root))

    def has_content_hit(self) -> bool:
        return self.content is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the match to a dictionary representation."""
        data = self.model_dump()
        data['directory'] = self.get_directory()
        if self.content:
            data['content']['highlighted_excerpt'] = self.content.get_highlighted_excerpt()
        return data

    def __str__(self) -> str:
        if self.content:
            return f"{self.path}:{self.content.line_number}: {self.content.excerpt}"
        return self.path


class TraversalError(BaseModel):
    """
    A non-fatal failure tied to one path.

    A traversal error never stops the search; it is reported alongside the
    matches so the caller can decide how loudly to display it.

    Attributes:
        path: Path that could not be processed
        kind: Classified failure reason
        reason: Human-readable description of the failure
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path that could not be processed")
    kind: ErrorKind = Field(ErrorKind.IO_ERROR, description="Classified failure reason")
    reason: str = Field(..., min_length=1, description="Human-readable failure reason")

    @field_validator('path', 'reason', mode='before')
    @classmethod
    def validate_text(cls, v):
        """Escape undecodable file name bytes."""
        if isinstance(v, str):
            return display_path(v)
        return v

    @field_validator('kind', mode='before')
    @classmethod
    def validate_kind(cls, v) -> ErrorKind:
        """Ensure kind is an ErrorKind enum."""
        if isinstance(v, str):
            try:
                return ErrorKind(v)
            except ValueError:
                raise ValueError(f"Invalid error kind: {v}")
        return v

    @classmethod
    def from_exception(cls, path: str, exc: Exception) -> 'TraversalError':
        """
        Classify a low-level failure into a traversal error.

        Args:
            path: Path the failure belongs to
            exc: The exception raised by the filesystem call or decoder

        Returns:
            TraversalError describing the failure
        """
        if isinstance(exc, UnicodeDecodeError):
            return cls(path=path, kind=ErrorKind.UNDECODABLE,
                       reason=f"content is not valid {exc.encoding}: {exc.reason}")

        if isinstance(exc, PermissionError):
            kind = ErrorKind.PERMISSION_DENIED
        elif isinstance(exc, FileNotFoundError):
            kind = ErrorKind.NOT_FOUND
        elif isinstance(exc, OSError) and exc.errno in (errno.EACCES, errno.EPERM):
            kind = ErrorKind.PERMISSION_DENIED
        elif isinstance(exc, OSError) and exc.errno == errno.ELOOP:
            kind = ErrorKind.BROKEN_LINK
        else:
            kind = ErrorKind.IO_ERROR

        reason = getattr(exc, 'strerror', None) or str(exc) or type(exc).__name__
        return cls(path=path, kind=kind, reason=reason)

    def is_permission_denied(self) -> bool:
        return self.kind == ErrorKind.PERMISSION_DENIED

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class SearchStats(BaseModel):
    """Counters collected while a search runs."""

    directories_traversed: int = Field(0, ge=0)
    entries_visited: int = Field(0, ge=0)
    hidden_skipped: int = Field(0, ge=0)
    files_checked: int = Field(0, ge=0)
    files_content_scanned: int = Field(0, ge=0)
    files_matched: int = Field(0, ge=0)
    errors: int = Field(0, ge=0)

    def to_dict(self) -> Dict[str, int]:
        return self.model_dump()


class SearchResults(BaseModel):
    """
    Complete results of a search that was run to completion.

    Attributes:
        request: The request that produced these results
        matches: Matches in traversal order
        errors: Traversal errors in the order they were reported
        stats: Counters collected during the search
        execution_time: Time taken to execute the search in seconds
        timestamp: When the search was executed
    """

    request: 'SearchRequest' = Field(..., description="The request that produced these results")
    matches: List[Match] = Field(default_factory=list, description="Matches in traversal order")
    errors: List[TraversalError] = Field(default_factory=list, description="Traversal errors")
    stats: SearchStats = Field(default_factory=SearchStats, description="Search counters")
    execution_time: float = Field(0.0, ge=0.0, description="Time taken to execute the search")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the search was executed")

    def get_match_count(self) -> int:
        return len(self.matches)

    def get_paths(self) -> List[str]:
        return [match.path for match in self.matches]

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def get_permission_denied(self) -> List[TraversalError]:
        """Get the errors caused by missing permissions."""
        return [error for error in self.errors if error.is_permission_denied()]

    def get_other_errors(self) -> List[TraversalError]:
        """Get the errors not caused by missing permissions."""
        return [error for error in self.errors if not error.is_permission_denied()]

    def sort_by_path(self) -> None:
        """Sort matches alphabetically by file path."""
        self.matches.sort(key=lambda m: m.path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert search results to dictionary representation."""
        return {
            'request': self.request.to_dict(),
            'matches': [match.to_dict() for match in self.matches],
            'errors': [error.model_dump(mode='json') for error in self.errors],
            'stats': self.stats.to_dict(),
            'match_count': self.get_match_count(),
            'execution_time': self.execution_time,
            'timestamp': self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"Found {self.get_match_count()} matches"]
        parts.append(f"Checked {self.stats.files_checked} files")
        parts.append(f"Took {self.execution_time:.2f}s")

        if self.has_errors():
            parts.append(f"Errors: {len(self.errors)}")

        return " | ".join(parts)


# Rebuild models to resolve forward references
from .search_request import SearchRequest
SearchResults.model_rebuild()
