"""
Data models for fsfind.

This module contains all the core data structures used throughout the system.
"""

from .search_request import SearchRequest, RequestError, MatchMode, PatternSyntax, build_request
from .config import FinderConfig, SearchDefaults, ContentConfig, LoggingConfig
from .search_results import (
    Entry,
    EntryKind,
    ErrorKind,
    ContentHit,
    Match,
    TraversalError,
    SearchStats,
    SearchResults,
)

__all__ = [
    'SearchRequest',
    'RequestError',
    'MatchMode',
    'PatternSyntax',
    'build_request',
    'Entry',
    'EntryKind',
    'ErrorKind',
    'ContentHit',
    'Match',
    'TraversalError',
    'SearchStats',
    'SearchResults',
    'FinderConfig',
    'SearchDefaults',
    'ContentConfig',
    'LoggingConfig',
]
