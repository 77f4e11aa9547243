"""
Configuration data models for fsfind.

This module defines the persistent settings that provide defaults for search
requests: hidden-entry and symlink policy, pattern handling, content scanning
limits and logging.
"""

import logging
from typing import Dict, Any
from pydantic import BaseModel, Field, field_validator

from .search_request import MatchMode, PatternSyntax, normalize_encoding


class SearchDefaults(BaseModel):
    """
    Default policies applied to every search.

    Attributes:
        include_hidden: Whether hidden files and directories are visited
        follow_symlinks: Whether symlinked directories are descended
        match_mode: Whether name patterns search or must match the whole name
        pattern_syntax: Regular expressions or shell wildcards
        ignore_case: Case-insensitive name and content matching
    """

    include_hidden: bool = Field(False, description="Whether hidden entries are visited")
    follow_symlinks: bool = Field(False, description="Whether symlinked directories are descended")
    match_mode: MatchMode = Field(MatchMode.SEARCH, description="How name patterns are applied")
    pattern_syntax: PatternSyntax = Field(PatternSyntax.REGEX, description="Syntax of name patterns")
    ignore_case: bool = Field(False, description="Case-insensitive matching")

    @field_validator('match_mode', mode='before')
    @classmethod
    def validate_match_mode(cls, v) -> MatchMode:
        if isinstance(v, str):
            try:
                return MatchMode(v.lower())
            except ValueError:
                raise ValueError(f"Invalid match mode: {v}")
        return v

    @field_validator('pattern_syntax', mode='before')
    @classmethod
    def validate_pattern_syntax(cls, v) -> PatternSyntax:
        if isinstance(v, str):
            try:
                return PatternSyntax(v.lower())
            except ValueError:
                raise ValueError(f"Invalid pattern syntax: {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')


class ContentConfig(BaseModel):
    """
    Configuration for the content scan.

    Attributes:
        encoding: Text encoding used to read files
        fixed_strings: Treat content patterns as literal substrings
        max_bytes_per_file: Stop scanning a file after this many bytes
        max_excerpt_length: Maximum length of the excerpt kept for a hit
    """

    encoding: str = Field("utf-8", description="Text encoding used to read files")
    fixed_strings: bool = Field(False, description="Treat content patterns as literals")
    max_bytes_per_file: int = Field(5000000, gt=0, description="Maximum bytes scanned per file")
    max_excerpt_length: int = Field(200, gt=0, description="Maximum length of a content excerpt")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        return normalize_encoding(v)

    def get_max_size_human_readable(self) -> str:
        """Get the scan limit in human-readable format."""
        size = float(self.max_bytes_per_file)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class LoggingConfig(BaseModel):
    """
    Configuration for log output.

    Attributes:
        level: Logging level name used when not running verbose
        format: Log record format string
    """

    level: str = Field("ERROR", description="Logging level name")
    format: str = Field("[%(levelname)s] %(message)s", description="Log record format")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid logging level: {v}")
        return level

    def get_level(self) -> int:
        return logging.getLevelName(self.level)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class FinderConfig(BaseModel):
    """
    Main configuration class for fsfind.

    Attributes:
        search: Default search policies
        content: Content scan settings
        logging: Log output settings
    """

    search: SearchDefaults = Field(default_factory=SearchDefaults, description="Default search policies")
    content: ContentConfig = Field(default_factory=ContentConfig, description="Content scan settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Log output settings")

    def get_request_defaults(self) -> Dict[str, Any]:
        """
        Get the SearchRequest field values this configuration provides.

        Returns:
            Dictionary of SearchRequest keyword arguments
        """
        return {
            'include_hidden': self.search.include_hidden,
            'follow_symlinks': self.search.follow_symlinks,
            'match_mode': self.search.match_mode,
            'pattern_syntax': self.search.pattern_syntax,
            'ignore_case': self.search.ignore_case,
            'fixed_strings': self.content.fixed_strings,
            'max_bytes_per_file': self.content.max_bytes_per_file,
            'max_excerpt_length': self.content.max_excerpt_length,
            'encoding': self.content.encoding,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'search': self.search.to_dict(),
            'content': self.content.to_dict(),
            'logging': self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create configuration from dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Hidden: {'included' if self.search.include_hidden else 'skipped'}"]
        parts.append(f"Symlinks: {'followed' if self.search.follow_symlinks else 'leaf'}")
        parts.append(f"Match mode: {self.search.match_mode.value}")
        parts.append(f"Scan limit: {self.content.get_max_size_human_readable()}")
        return " | ".join(parts)
