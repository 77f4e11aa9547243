"""
Unit tests for the filter chain.

Tests the name stage predicate and the FilterChain ordering of name and
content stages, including the guarantee that files rejected by name are
never opened.
"""

import os
import re
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

from fsfind.models.search_request import SearchRequest
from fsfind.models.search_results import Entry, EntryKind, ErrorKind
from fsfind.tools import filters as filters_module
from fsfind.tools.filters import FilterChain, matches_name


def _entry(name, kind=EntryKind.FILE, directory="/data"):
    return Entry(path=f"{directory}/{name}", name=name, root="/data", kind=kind)


class TestMatchesName:
    """Test cases for the matches_name predicate."""

    def test_inclusion_searches_anywhere_in_name(self):
        assert matches_name(_entry("a.txt"), re.compile(r"\.txt"))
        assert matches_name(_entry("a.txt.bak"), re.compile(r"\.txt"))
        assert not matches_name(_entry("c.log"), re.compile(r"\.txt"))

    def test_fullmatch_requires_whole_name(self):
        pattern = re.compile(r".*\.txt")

        assert matches_name(_entry("a.txt"), pattern, fullmatch=True)
        assert not matches_name(_entry("a.txt.bak"), pattern, fullmatch=True)

    def test_inclusion_uses_name_not_path(self):
        entry = _entry("a.log", directory="/data/txt_files")
        assert not matches_name(entry, re.compile("txt"))

    def test_any_inclusion_pattern_matches(self):
        patterns = [re.compile(r"\.txt$"), re.compile(r"\.md$")]

        assert matches_name(_entry("readme.md"), patterns)
        assert matches_name(_entry("a.txt"), patterns)
        assert not matches_name(_entry("c.log"), patterns)

    def test_exclusion_dominates_inclusion(self):
        inclusion = re.compile(r".*\.txt")
        exclusion = re.compile(r"^ignore_.*")

        assert matches_name(_entry("a.txt"), inclusion, exclusion)
        assert not matches_name(_entry("ignore_a.txt"), inclusion, exclusion)

    def test_directories_never_match(self):
        assert not matches_name(_entry("dir.txt", kind=EntryKind.DIRECTORY), re.compile(".*"))

    def test_other_kinds_never_match(self):
        assert not matches_name(_entry("pipe.txt", kind=EntryKind.OTHER), re.compile(".*"))


class TestFilterChain:
    """Test cases for the FilterChain class."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir).resolve()
        (self.root / "note.txt").write_text("an important deadline\n")
        (self.root / "other.txt").write_text("nothing here\n")
        (self.root / "note.log").write_text("important but wrong name\n")
        self.errors = []

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _file_entry(self, name):
        return Entry(path=str(self.root / name), name=name, root=str(self.root), kind=EntryKind.FILE)

    def _chain(self, **options):
        request = SearchRequest(roots=[str(self.root)], include=[r".*\.txt"], **options)
        return FilterChain(request, on_error=self.errors.append)

    def test_name_only_match(self):
        chain = self._chain()

        match = chain.evaluate(self._file_entry("note.txt"))

        assert match is not None
        assert match.path == str(self.root / "note.txt")
        assert match.content is None
        assert chain.evaluate(self._file_entry("note.log")) is None

    def test_content_match(self):
        chain = self._chain(content="important")

        match = chain.evaluate(self._file_entry("note.txt"))

        assert match is not None
        assert match.content.line_number == 1
        assert match.content.excerpt == "an important deadline"
        assert chain.evaluate(self._file_entry("other.txt")) is None

    def test_name_rejected_file_is_never_opened(self):
        """Test that the content scan only runs for files passing the name stages."""
        chain = self._chain(content="important", exclude="^other")

        with patch.object(filters_module, "scan_content", wraps=filters_module.scan_content) as scanner:
            chain.evaluate(self._file_entry("note.log"))
            chain.evaluate(self._file_entry("other.txt"))
            chain.evaluate(self._file_entry("note.txt"))

        scanned = [call.args[0] for call in scanner.call_args_list]
        assert scanned == [str(self.root / "note.txt")]

    def test_directory_entry_is_not_scanned(self):
        chain = self._chain(content="important")
        entry = Entry(path=str(self.root), name="dir.txt", root=str(self.root), kind=EntryKind.DIRECTORY)

        with patch.object(filters_module, "scan_content") as scanner:
            assert chain.evaluate(entry) is None

        scanner.assert_not_called()

    def test_read_failure_becomes_traversal_error(self):
        chain = self._chain(content="important")

        with patch.object(filters_module, "scan_content", side_effect=PermissionError(13, "Permission denied")):
            assert chain.evaluate(self._file_entry("note.txt")) is None

        assert len(self.errors) == 1
        assert self.errors[0].kind == ErrorKind.PERMISSION_DENIED
        assert self.errors[0].path == str(self.root / "note.txt")

    def test_vanished_file_becomes_traversal_error(self):
        chain = self._chain(content="important")
        (self.root / "note.txt").unlink()

        assert chain.evaluate(self._file_entry("note.txt")) is None
        assert self.errors[0].kind == ErrorKind.NOT_FOUND

    def test_binary_file_becomes_traversal_error(self):
        (self.root / "blob.txt").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xff")
        chain = self._chain(content="important")

        assert chain.evaluate(self._file_entry("blob.txt")) is None
        assert self.errors[0].kind == ErrorKind.UNDECODABLE

    def test_stats_are_counted(self):
        chain = self._chain(content="important")

        chain.evaluate(self._file_entry("note.log"))
        chain.evaluate(self._file_entry("other.txt"))
        chain.evaluate(self._file_entry("note.txt"))

        stats = chain._stats
        assert stats.files_checked == 3
        assert stats.files_content_scanned == 2
        assert stats.files_matched == 1
