"""
Search engine for fsfind.

Composes the walker and the filter chain into a single pull-based pipeline.
Every entry is fully evaluated before the next one is requested from the
walker, and both matches and traversal errors are produced incrementally.
"""

import time
import logging
from collections import deque
from typing import Deque, Iterator, Optional, Union

from ..models.search_request import SearchRequest
from ..models.search_results import Match, SearchResults, SearchStats, TraversalError
from .filters import FilterChain
from .fs_walker import FSWalker


logger = logging.getLogger(__name__)

SearchEvent = Union[Match, TraversalError]


class SearchRun:
    """
    A running search.

    Iterating a SearchRun yields Match and TraversalError objects in the order
    they are produced. Alternatively ``matches()`` and ``errors()`` give two
    lazy streams over the same pipeline; pulling from one keeps the items of
    the other kind buffered until they are requested.

    Closing the run (or leaving its ``with`` block) stops the walk. Files are
    only ever open inside the content scan, never across a yield.
    """

    def __init__(self, request: SearchRequest):
        self.request = request
        self.stats = SearchStats()
        self._pending: Deque[TraversalError] = deque()
        self._match_buffer: Deque[Match] = deque()
        self._error_buffer: Deque[TraversalError] = deque()
        self._events = self._generate()

    def _generate(self) -> Iterator[SearchEvent]:
        walker = FSWalker(self.request, on_error=self._pending.append, stats=self.stats)
        chain = FilterChain(self.request, on_error=self._pending.append, stats=self.stats)

        for entry in walker.walk_roots():
            while self._pending:
                yield self._pending.popleft()

            match = chain.evaluate(entry)

            while self._pending:
                yield self._pending.popleft()

            if match is not None:
                logger.debug(f"Match: {match.path}")
                yield match

        while self._pending:
            yield self._pending.popleft()

        logger.info(f"Search finished: {self.stats.files_matched} matches, {self.stats.errors} errors")

    def _next_event(self) -> Optional[SearchEvent]:
        return next(self._events, None)

    def __iter__(self) -> Iterator[SearchEvent]:
        while self._match_buffer:
            yield self._match_buffer.popleft()
        while self._error_buffer:
            yield self._error_buffer.popleft()

        while True:
            event = self._next_event()
            if event is None:
                return
            yield event

    def matches(self) -> Iterator[Match]:
        """
        Lazily yield the matches of this search.

        Yields:
            Match objects in traversal order
        """
        while True:
            if self._match_buffer:
                yield self._match_buffer.popleft()
                continue

            event = self._next_event()
            if event is None:
                return
            if isinstance(event, Match):
                yield event
            else:
                self._error_buffer.append(event)

    def errors(self) -> Iterator[TraversalError]:
        """
        Lazily yield the traversal errors of this search.

        Yields:
            TraversalError objects in the order they were reported
        """
        while True:
            if self._error_buffer:
                yield self._error_buffer.popleft()
                continue

            event = self._next_event()
            if event is None:
                return
            if isinstance(event, TraversalError):
                yield event
            else:
                self._match_buffer.append(event)

    def close(self) -> None:
        """Abort the search."""
        self._events.close()

    def __enter__(self) -> 'SearchRun':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def run(request: SearchRequest) -> SearchRun:
    """
    Start a search.

    Nothing is read from the filesystem until the returned run is iterated.

    Args:
        request: Validated search request

    Returns:
        SearchRun producing matches and traversal errors
    """
    logger.info(f"Starting search: {request}")
    return SearchRun(request)


def collect(request: SearchRequest) -> SearchResults:
    """
    Run a search to completion.

    Args:
        request: Validated search request

    Returns:
        SearchResults with every match, every error and the search statistics
    """
    start_time = time.time()
    matches = []
    errors = []

    with run(request) as search:
        for event in search:
            if isinstance(event, Match):
                matches.append(event)
            else:
                errors.append(event)

    return SearchResults(
        request=request,
        matches=matches,
        errors=errors,
        stats=search.stats,
        execution_time=time.time() - start_time,
    )
