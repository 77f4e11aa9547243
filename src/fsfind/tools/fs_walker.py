"""
Filesystem walker for fsfind.

This module traverses the root directories of a search request and yields one
Entry per visited node. It applies the hidden-entry policy while walking,
handles symbolic links and turns per-entry I/O failures into TraversalError
records so that one unreadable directory never stops the rest of the walk.
"""

import os
import stat
import logging
from typing import Callable, FrozenSet, Iterator, List, Optional, Tuple

from ..models.search_request import SearchRequest
from ..models.search_results import Entry, EntryKind, ErrorKind, SearchStats, TraversalError, display_path


logger = logging.getLogger(__name__)

ErrorSink = Callable[[TraversalError], None]

# (st_dev, st_ino) of a directory
DirectoryId = Tuple[int, int]


def is_hidden_name(name: str) -> bool:
    """Check the leading-dot hidden convention."""
    return name.startswith('.')


class FSWalker:
    """
    Depth-first directory walker driven by an explicit stack.

    The entries of each directory are yielded in name order, then its
    subdirectories are walked in name order, so the sequence is deterministic
    for a fixed filesystem snapshot.

    Symbolic links are leaves unless the request asks to follow them: a link
    to a regular file is reported as a file, a link to a directory is not
    descended. When following links, a directory whose (device, inode) is
    already on the current path is not entered again.

    Names that are not valid UTF-8 are escaped in the entries it yields;
    the walk itself keeps using the raw paths.
    """

    def __init__(self, request: SearchRequest, on_error: Optional[ErrorSink] = None,
                 stats: Optional[SearchStats] = None):
        """
        Initialize the filesystem walker.

        Args:
            request: Validated search request providing roots and policies
            on_error: Callable receiving every TraversalError
            stats: Shared counters updated while walking
        """
        self.request = request
        self._on_error = on_error
        self._stats = stats if stats is not None else SearchStats()

    @property
    def stats(self) -> SearchStats:
        return self._stats

    def walk_roots(self) -> Iterator[Entry]:
        """
        Walk every root of the request in the order given.

        Yields:
            Entry objects for every visited file and directory
        """
        for root in self.request.roots:
            logger.info(f"Walking directory tree: {root}")
            yield from self.walk(root)

    def walk(self, root: str) -> Iterator[Entry]:
        """
        Walk a single directory tree.

        Each call starts a fresh traversal; no state is shared between calls.

        Args:
            root: Root directory to walk

        Yields:
            Entry objects for every visited file and directory below root
        """
        root_path = os.path.abspath(root)
        try:
            root_id = self._directory_id(os.stat(root_path))
        except OSError as e:
            self._report(TraversalError.from_exception(root_path, e))
            return

        stack: List[Tuple[str, int, FrozenSet[DirectoryId]]] = [(root_path, 0, frozenset([root_id]))]

        while stack:
            dir_path, depth, ancestors = stack.pop()
            self._stats.directories_traversed += 1
            subdirs = []

            for dir_entry in self._list_directory(dir_path):
                entry = self._make_entry(dir_entry, root_path, depth)
                if entry is None:
                    continue

                yield entry

                if not entry.is_dir():
                    continue

                child = self._descend(dir_entry, entry, depth, ancestors)
                if child is not None:
                    subdirs.append(child)

            stack.extend(reversed(subdirs))

    def _list_directory(self, dir_path: str) -> List[os.DirEntry]:
        """
        List a directory sorted by name.

        Returns:
            Directory entries, or an empty list if the directory cannot be read
        """
        try:
            with os.scandir(dir_path) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            self._report(TraversalError.from_exception(dir_path, e))
            return []

    def _make_entry(self, dir_entry: os.DirEntry, root_path: str, depth: int) -> Optional[Entry]:
        """
        Build an Entry for a directory entry, applying the hidden-entry policy.

        Returns:
            Entry object, or None if the entry is skipped or cannot be inspected
        """
        self._stats.entries_visited += 1
        path = dir_entry.path

        try:
            hidden = self._is_hidden(dir_entry)
            if hidden and not self.request.include_hidden:
                self._stats.hidden_skipped += 1
                logger.debug(f"Skipping hidden entry: {path}")
                return None

            is_symlink = dir_entry.is_symlink()
            if is_symlink:
                try:
                    dir_entry.stat()
                except FileNotFoundError:
                    self._report(TraversalError(path=path, kind=ErrorKind.BROKEN_LINK,
                                                reason="broken symbolic link"))
                    return None

            if dir_entry.is_dir():
                kind = EntryKind.DIRECTORY
            elif dir_entry.is_file():
                kind = EntryKind.FILE
            else:
                kind = EntryKind.OTHER

        except OSError as e:
            self._report(TraversalError.from_exception(path, e))
            return None

        text_path = display_path(path)
        return Entry(
            path=text_path,
            name=display_path(dir_entry.name),
            root=root_path,
            kind=kind,
            is_symlink=is_symlink,
            is_hidden=hidden,
            depth=depth,
            fs_path=os.fsencode(path) if text_path != path else None,
        )

    def _descend(self, dir_entry: os.DirEntry, entry: Entry, depth: int,
                 ancestors: FrozenSet[DirectoryId]) -> Optional[Tuple[str, int, FrozenSet[DirectoryId]]]:
        """
        Decide whether a directory entry is walked.

        Returns:
            Stack item for the subdirectory, or None if it is not descended
        """
        if not self.request.follow_symlinks:
            if entry.is_symlink:
                logger.debug(f"Not following directory symlink: {entry.path}")
                return None
            return (dir_entry.path, depth + 1, ancestors)

        try:
            directory_id = self._directory_id(dir_entry.stat())
        except OSError as e:
            self._report(TraversalError.from_exception(entry.path, e))
            return None

        if directory_id in ancestors:
            logger.debug(f"Symlink cycle detected, not descending: {entry.path}")
            return None

        return (dir_entry.path, depth + 1, ancestors | {directory_id})

    def _is_hidden(self, dir_entry: os.DirEntry) -> bool:
        """
        Check whether an entry is hidden by platform convention.

        A leading dot hides an entry everywhere; on Windows the hidden file
        attribute does too.
        """
        if is_hidden_name(dir_entry.name):
            return True

        if os.name == 'nt':
            attributes = getattr(dir_entry.stat(follow_symlinks=False), 'st_file_attributes', 0)
            return bool(attributes & stat.FILE_ATTRIBUTE_HIDDEN)

        return False

    @staticmethod
    def _directory_id(stat_result: os.stat_result) -> DirectoryId:
        return (stat_result.st_dev, stat_result.st_ino)

    def _report(self, error: TraversalError) -> None:
        logger.warning(f"Cannot access {error.path}: {error.reason}")
        self._stats.errors += 1
        if self._on_error is not None:
            self._on_error(error)
