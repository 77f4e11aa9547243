"""
Search tools for fsfind.

This module contains the directory walker, the filter chain with its content
scan, and the engine that composes them.
"""

from .fs_walker import FSWalker, is_hidden_name
from .filters import FilterChain, matches_name
from .content import scan_content
from .engine import SearchRun, run, collect

__all__ = [
    'FSWalker',
    'is_hidden_name',
    'FilterChain',
    'matches_name',
    'scan_content',
    'SearchRun',
    'run',
    'collect',
]
