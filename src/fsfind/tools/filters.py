"""
Filter chain for fsfind.

Each entry produced by the walker goes through these stages in order:
regular-file check, name inclusion, name exclusion and, when the request has
a content pattern, the content scan. The content scan only runs for files that
passed every name stage.
"""

import re
import logging
from typing import Iterable, Optional, Union

from ..models.search_request import SearchRequest
from ..models.search_results import Entry, Match, SearchStats, TraversalError
from .content import scan_content
from .fs_walker import ErrorSink


logger = logging.getLogger(__name__)


def _matches(pattern: re.Pattern, name: str, fullmatch: bool) -> bool:
    if fullmatch:
        return pattern.fullmatch(name) is not None
    return pattern.search(name) is not None


def matches_name(entry: Entry, inclusion: Union[re.Pattern, Iterable[re.Pattern]],
                 exclusion: Optional[re.Pattern] = None, fullmatch: bool = False) -> bool:
    """
    Check an entry against the name stages.

    Only regular files are eligible. Patterns are evaluated against the base
    name, never the full path, and an exclusion match always wins.

    Args:
        entry: Entry to check
        inclusion: Compiled pattern, or patterns of which any may match
        exclusion: Optional compiled exclusion pattern
        fullmatch: Require patterns to cover the whole name

    Returns:
        True if the entry passes the name stages
    """
    if not entry.is_file():
        return False

    if isinstance(inclusion, re.Pattern):
        inclusion = [inclusion]

    if not any(_matches(pattern, entry.name, fullmatch) for pattern in inclusion):
        return False

    if exclusion is not None and _matches(exclusion, entry.name, fullmatch):
        return False

    return True


class FilterChain:
    """
    Applies the name and content stages of a request to single entries.
    """

    def __init__(self, request: SearchRequest, on_error: Optional[ErrorSink] = None,
                 stats: Optional[SearchStats] = None):
        self.request = request
        self._on_error = on_error
        self._stats = stats if stats is not None else SearchStats()
        self._fullmatch = request.uses_fullmatch()

    def evaluate(self, entry: Entry) -> Optional[Match]:
        """
        Run an entry through every active stage.

        Args:
            entry: Entry produced by the walker

        Returns:
            Match if the entry survived all stages, otherwise None
        """
        if not entry.is_file():
            return None

        self._stats.files_checked += 1

        if not matches_name(entry, self.request.inclusion_patterns,
                            self.request.exclusion_pattern, self._fullmatch):
            return None

        if not self.request.has_content_search():
            self._stats.files_matched += 1
            return Match.from_entry(entry)

        self._stats.files_content_scanned += 1
        try:
            hit = scan_content(
                entry.get_fs_path(),
                self.request.content_pattern,
                max_bytes=self.request.max_bytes_per_file,
                encoding=self.request.encoding,
                excerpt_length=self.request.max_excerpt_length,
            )
        except (OSError, UnicodeDecodeError) as e:
            error = TraversalError.from_exception(entry.path, e)
            logger.warning(f"Error reading file {entry.path}: {error.reason}")
            self._stats.errors += 1
            if self._on_error is not None:
                self._on_error(error)
            return None

        if hit is None:
            logger.debug(f"Content pattern not found in {entry.path}")
            return None

        self._stats.files_matched += 1
        return Match.from_entry(entry, hit)
