"""
Search request data model for fsfind.

This module defines the immutable description of a search: root directories,
name inclusion/exclusion patterns, hidden-entry policy, the optional content
pattern and the options that control how patterns are applied.
"""

import codecs
import fnmatch
import re
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class RequestError(ValueError):
    """Raised when a search request is invalid and no search can start."""
    pass


def normalize_encoding(encoding: str) -> str:
    """
    Get the canonical codec name for a content encoding.

    File content is split into lines on the ``b'\\n'`` byte, so only
    encodings that write a newline as that single byte are accepted.

    Raises:
        ValueError: If the encoding is unknown or not ASCII-compatible
    """
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        raise ValueError(f"Unknown encoding: {encoding}")

    encoder = codecs.getincrementalencoder(name)()
    try:
        # The first call may emit a byte order mark
        encoder.encode('x')
        newline = encoder.encode('\n')
    except (UnicodeError, TypeError):
        newline = None

    if newline != b'\n':
        raise ValueError(f"Encoding is not ASCII-compatible: {encoding}")

    return name


class MatchMode(Enum):
    """How name patterns are applied to a file name."""
    SEARCH = "search"
    FULLMATCH = "fullmatch"


class PatternSyntax(Enum):
    """Syntax of the name patterns."""
    REGEX = "regex"
    WILDCARD = "wildcard"


class SearchRequest(BaseModel):
    """
    Represents a validated, immutable search request.

    Name patterns are regular expressions searched anywhere in the file's base
    name unless ``match_mode`` is ``fullmatch``. With ``pattern_syntax`` set to
    ``wildcard`` the patterns are shell globs and always cover the whole name.
    The content pattern is a regular expression searched within each line of
    a file; ``fixed_strings`` makes it a literal substring instead.

    Attributes:
        roots: Root directories to search, in order
        include: Inclusion patterns; a name matching any of them is included
        exclude: Optional exclusion pattern; overrides inclusion
        include_hidden: Whether hidden files and directories are visited
        content: Optional pattern that must occur in the file's content
        match_mode: Whether name patterns search or must match the whole name
        pattern_syntax: Regular expressions or shell wildcards
        ignore_case: Case-insensitive name and content matching
        fixed_strings: Treat the content pattern as a literal substring
        follow_symlinks: Descend into symlinked directories (with cycle detection)
        max_bytes_per_file: Maximum number of bytes scanned per file
        max_excerpt_length: Maximum length of a content excerpt
        encoding: Text encoding used to read file content
    """

    model_config = ConfigDict(frozen=True)

    roots: List[str] = Field(..., min_length=1, description="Root directories to search")
    include: List[str] = Field(..., min_length=1, description="Name inclusion patterns")
    exclude: Optional[str] = Field(None, description="Name exclusion pattern")
    include_hidden: bool = Field(False, description="Whether hidden entries are visited")
    content: Optional[str] = Field(None, description="Pattern required in the file content")
    match_mode: MatchMode = Field(MatchMode.SEARCH, description="How name patterns are applied")
    pattern_syntax: PatternSyntax = Field(PatternSyntax.REGEX, description="Syntax of name patterns")
    ignore_case: bool = Field(False, description="Case-insensitive matching")
    fixed_strings: bool = Field(False, description="Content pattern is a literal substring")
    follow_symlinks: bool = Field(False, description="Descend into symlinked directories")
    max_bytes_per_file: int = Field(5000000, gt=0, description="Maximum bytes scanned per file")
    max_excerpt_length: int = Field(200, gt=0, description="Maximum length of a content excerpt")
    encoding: str = Field("utf-8", min_length=1, description="Text encoding of file content")

    @field_validator('roots')
    @classmethod
    def validate_roots(cls, v: List[str]) -> List[str]:
        """Validate that every root exists and is a directory, normalising paths."""
        normalized_roots = []
        for root in v:
            if not root or not root.strip():
                continue

            root_path = Path(root).expanduser().resolve()
            if not root_path.exists():
                raise ValueError(f"Root directory does not exist: {root_path}")
            if not root_path.is_dir():
                raise ValueError(f"Root path is not a directory: {root_path}")

            if str(root_path) not in normalized_roots:
                normalized_roots.append(str(root_path))

        if not normalized_roots:
            raise ValueError("No valid root directories provided")

        return normalized_roots

    @field_validator('include')
    @classmethod
    def validate_include(cls, v: List[str]) -> List[str]:
        """Reject empty inclusion patterns."""
        if any(not pattern for pattern in v):
            raise ValueError("Inclusion patterns cannot be empty")
        return v

    @field_validator('exclude', 'content')
    @classmethod
    def validate_optional_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty optional pattern as absent."""
        return v or None

    @field_validator('match_mode', 'pattern_syntax', mode='before')
    @classmethod
    def validate_enums(cls, v, info):
        """Accept enum values given as strings."""
        enum_type = MatchMode if info.field_name == 'match_mode' else PatternSyntax
        if isinstance(v, str):
            try:
                return enum_type(v.lower())
            except ValueError:
                raise ValueError(f"Invalid {info.field_name.replace('_', ' ')}: {v}")
        return v

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Ensure the content encoding is known and ASCII-compatible."""
        return normalize_encoding(v)

    @model_validator(mode='after')
    def validate_patterns(self):
        """Compile every pattern once so syntax errors surface before the search."""
        for pattern in self.include:
            try:
                self._compile_name_pattern(pattern)
            except re.error as e:
                raise ValueError(f"Invalid inclusion pattern '{pattern}': {e}")

        if self.exclude is not None:
            try:
                self._compile_name_pattern(self.exclude)
            except re.error as e:
                raise ValueError(f"Invalid exclusion pattern '{self.exclude}': {e}")

        if self.content is not None:
            try:
                self._compile_content_pattern(self.content)
            except re.error as e:
                raise ValueError(f"Invalid content pattern '{self.content}': {e}")

        return self

    def _flags(self) -> int:
        return re.IGNORECASE if self.ignore_case else 0

    def _compile_name_pattern(self, pattern: str) -> re.Pattern[str]:
        if self.pattern_syntax == PatternSyntax.WILDCARD:
            pattern = fnmatch.translate(pattern)
        return re.compile(pattern, self._flags())

    def _compile_content_pattern(self, pattern: str) -> re.Pattern[str]:
        if self.fixed_strings:
            pattern = re.escape(pattern)
        return re.compile(pattern, self._flags())

    @cached_property
    def inclusion_patterns(self) -> List[re.Pattern[str]]:
        """Compiled inclusion patterns."""
        return [self._compile_name_pattern(pattern) for pattern in self.include]

    @cached_property
    def exclusion_pattern(self) -> Optional[re.Pattern[str]]:
        """Compiled exclusion pattern, if any."""
        if self.exclude is None:
            return None
        return self._compile_name_pattern(self.exclude)

    @cached_property
    def content_pattern(self) -> Optional[re.Pattern[str]]:
        """Compiled content pattern, if any."""
        if self.content is None:
            return None
        return self._compile_content_pattern(self.content)

    def uses_fullmatch(self) -> bool:
        """Check whether name patterns must cover the whole file name."""
        return (self.match_mode == MatchMode.FULLMATCH
                or self.pattern_syntax == PatternSyntax.WILDCARD)

    def has_content_search(self) -> bool:
        return self.content is not None

    def get_parameter_summary(self) -> Dict[str, Any]:
        """Get the effective search parameters for display."""
        return {
            'Directories searched': list(self.roots),
            'Filter patterns': list(self.include),
            'Exclude pattern': self.exclude or 'None',
            'Include hidden files': self.include_hidden,
            'Content pattern': self.content or 'None',
            'Match mode': self.match_mode.value,
            'Pattern syntax': self.pattern_syntax.value,
            'Ignore case': self.ignore_case,
            'Fixed strings': self.fixed_strings,
            'Follow symlinks': self.follow_symlinks,
            'Max bytes per file': self.max_bytes_per_file,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the request to a dictionary representation."""
        return self.model_dump(mode='json')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchRequest':
        """Create a SearchRequest instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Patterns: {', '.join(self.include)}"]
        parts.append(f"Roots: {len(self.roots)} directories")

        if self.exclude:
            parts.append(f"Exclude: {self.exclude}")

        if self.content:
            parts.append(f"Content: {self.content}")

        if self.include_hidden:
            parts.append("Hidden: included")

        return " | ".join(parts)


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        message = detail.get('msg', '')
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        location = '.'.join(str(part) for part in detail.get('loc', ()))
        messages.append(f"{location}: {message}" if location else message)
    return '; '.join(messages)


def build_request(roots: List[str], include: List[str], config: Optional[Any] = None,
                  **options: Any) -> SearchRequest:
    """
    Build and validate a search request.

    Options left as None fall back to the configuration defaults (when a
    configuration is given) and then to the model defaults.

    Args:
        roots: Root directories to search
        include: Inclusion patterns
        config: Optional FinderConfig providing default option values
        **options: Any other SearchRequest field

    Returns:
        Validated SearchRequest

    Raises:
        RequestError: If a root is missing or not a directory, or a pattern is invalid
    """
    data: Dict[str, Any] = {}
    if config is not None:
        data.update(config.get_request_defaults())

    data.update({key: value for key, value in options.items() if value is not None})
    data['roots'] = list(roots)
    data['include'] = list(include)

    try:
        return SearchRequest(**data)
    except ValidationError as e:
        raise RequestError(_format_validation_error(e)) from e
