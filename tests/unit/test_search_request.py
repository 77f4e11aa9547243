"""
Unit tests for the SearchRequest data model.
"""

import os
import re
import shutil
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from fsfind.models.config import FinderConfig
from fsfind.models.search_request import (
    MatchMode,
    PatternSyntax,
    RequestError,
    SearchRequest,
    build_request,
)


class TestSearchRequest:
    """Test cases for SearchRequest model."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir).resolve()

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_basic_request_creation(self):
        """Test creating a basic request with defaults."""
        request = SearchRequest(roots=[str(self.root)], include=[r".*\.txt"])

        assert request.roots == [str(self.root)]
        assert request.include == [r".*\.txt"]
        assert request.exclude is None
        assert request.include_hidden is False
        assert request.content is None
        assert request.match_mode == MatchMode.SEARCH
        assert request.pattern_syntax == PatternSyntax.REGEX
        assert request.max_bytes_per_file == 5000000
        assert not request.has_content_search()

    def test_roots_are_normalized_and_deduplicated(self):
        """Test that roots are resolved to absolute paths and duplicates dropped."""
        sub = self.root / "sub"
        sub.mkdir()

        request = SearchRequest(
            roots=[str(sub), str(self.root / "sub" / ".."), str(sub)],
            include=["x"]
        )

        assert request.roots == [str(sub), str(self.root)]

    def test_missing_root_rejected(self):
        """Test that a non-existent root fails validation."""
        with pytest.raises(ValidationError, match="Root directory does not exist"):
            SearchRequest(roots=[str(self.root / "missing")], include=["x"])

    def test_file_root_rejected(self):
        """Test that a root that is a file fails validation."""
        file_path = self.root / "file.txt"
        file_path.write_text("data")

        with pytest.raises(ValidationError, match="not a directory"):
            SearchRequest(roots=[str(file_path)], include=["x"])

    def test_empty_roots_rejected(self):
        with pytest.raises(ValidationError):
            SearchRequest(roots=[], include=["x"])

        with pytest.raises(ValidationError, match="No valid root directories"):
            SearchRequest(roots=["  "], include=["x"])

    def test_empty_patterns_rejected(self):
        with pytest.raises(ValidationError):
            SearchRequest(roots=[str(self.root)], include=[])

        with pytest.raises(ValidationError, match="cannot be empty"):
            SearchRequest(roots=[str(self.root)], include=[""])

    def test_invalid_inclusion_pattern_rejected(self):
        with pytest.raises(ValidationError, match="Invalid inclusion pattern"):
            SearchRequest(roots=[str(self.root)], include=["[unclosed"])

    def test_invalid_exclusion_pattern_rejected(self):
        with pytest.raises(ValidationError, match="Invalid exclusion pattern"):
            SearchRequest(roots=[str(self.root)], include=["x"], exclude="(")

    def test_invalid_content_pattern_rejected(self):
        with pytest.raises(ValidationError, match="Invalid content pattern"):
            SearchRequest(roots=[str(self.root)], include=["x"], content="*bad")

    def test_fixed_strings_accepts_regex_metacharacters(self):
        """Test that a literal content pattern is escaped before compiling."""
        request = SearchRequest(roots=[str(self.root)], include=["x"], content="*bad", fixed_strings=True)

        assert request.content_pattern.search("a *bad line")
        assert not request.content_pattern.search("a bad line")

    def test_empty_optional_patterns_become_none(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"], exclude="", content="")

        assert request.exclude is None
        assert request.exclusion_pattern is None
        assert request.content is None
        assert request.content_pattern is None

    def test_compiled_patterns(self):
        request = SearchRequest(
            roots=[str(self.root)],
            include=[r"\.txt$", r"\.md$"],
            exclude=r"^ignore_",
            content="deadline"
        )

        assert [p.pattern for p in request.inclusion_patterns] == [r"\.txt$", r"\.md$"]
        assert request.exclusion_pattern.pattern == r"^ignore_"
        assert request.content_pattern.search("important deadline")

    def test_ignore_case_flag(self):
        request = SearchRequest(roots=[str(self.root)], include=["readme"], ignore_case=True)

        assert request.inclusion_patterns[0].flags & re.IGNORECASE
        assert request.inclusion_patterns[0].search("README.md")

    def test_wildcard_patterns_are_translated(self):
        request = SearchRequest(roots=[str(self.root)], include=["*.txt"], pattern_syntax="wildcard")

        assert request.pattern_syntax == PatternSyntax.WILDCARD
        assert request.uses_fullmatch()
        assert request.inclusion_patterns[0].fullmatch("notes.txt")
        assert not request.inclusion_patterns[0].fullmatch("notes.txt.bak")

    def test_match_mode_from_string(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"], match_mode="FULLMATCH")

        assert request.match_mode == MatchMode.FULLMATCH
        assert request.uses_fullmatch()

    def test_invalid_match_mode(self):
        with pytest.raises(ValidationError, match="Invalid match mode"):
            SearchRequest(roots=[str(self.root)], include=["x"], match_mode="prefix")

    def test_unknown_encoding_rejected(self):
        with pytest.raises(ValidationError, match="Unknown encoding"):
            SearchRequest(roots=[str(self.root)], include=["x"], encoding="no-such-codec")

    def test_encoding_is_normalized(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"], encoding="UTF8")
        assert request.encoding == "utf-8"

    def test_non_ascii_compatible_encoding_rejected(self):
        """Test that encodings writing a newline as more than one byte are refused."""
        for encoding in ("utf-16-le", "utf-16", "utf-32", "cp037"):
            with pytest.raises(ValidationError, match="not ASCII-compatible"):
                SearchRequest(roots=[str(self.root)], include=["x"], encoding=encoding)

    def test_ascii_compatible_encodings_accepted(self):
        for encoding, name in (("latin-1", "iso8859-1"), ("utf-8-sig", "utf-8-sig"), ("cp1252", "cp1252")):
            request = SearchRequest(roots=[str(self.root)], include=["x"], encoding=encoding)
            assert request.encoding == name

    def test_non_text_codec_rejected(self):
        with pytest.raises(ValidationError, match="not ASCII-compatible"):
            SearchRequest(roots=[str(self.root)], include=["x"], encoding="base64")

    def test_request_is_immutable(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"])

        with pytest.raises(ValidationError):
            request.include_hidden = True

    def test_parameter_summary(self):
        request = SearchRequest(roots=[str(self.root)], include=["a", "b"], exclude="c")
        summary = request.get_parameter_summary()

        assert summary['Directories searched'] == [str(self.root)]
        assert summary['Filter patterns'] == ["a", "b"]
        assert summary['Exclude pattern'] == "c"
        assert summary['Content pattern'] == "None"
        assert summary['Include hidden files'] is False

    def test_to_dict_round_trip(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"], match_mode="fullmatch")
        data = request.to_dict()

        assert data['match_mode'] == "fullmatch"
        assert SearchRequest.from_dict(data) == request

    def test_str_representation(self):
        request = SearchRequest(roots=[str(self.root)], include=["x"], exclude="y", content="z",
                                include_hidden=True)
        text = str(request)

        assert "Patterns: x" in text
        assert "Roots: 1 directories" in text
        assert "Exclude: y" in text
        assert "Content: z" in text
        assert "Hidden: included" in text


class TestBuildRequest:
    """Test cases for the build_request factory."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir).resolve()

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_build_valid_request(self):
        request = build_request([str(self.root)], ["x"], exclude="y")

        assert isinstance(request, SearchRequest)
        assert request.exclude == "y"

    def test_missing_root_raises_request_error(self):
        with pytest.raises(RequestError, match="Root directory does not exist"):
            build_request([str(self.root / "missing")], ["x"])

    def test_invalid_pattern_raises_request_error(self):
        with pytest.raises(RequestError, match="Invalid inclusion pattern"):
            build_request([str(self.root)], ["("])

    def test_request_error_is_value_error(self):
        assert issubclass(RequestError, ValueError)

    def test_none_options_are_ignored(self):
        request = build_request([str(self.root)], ["x"], exclude=None, include_hidden=None)

        assert request.exclude is None
        assert request.include_hidden is False

    def test_config_defaults_applied(self):
        config = FinderConfig.from_dict({
            'search': {'include_hidden': True, 'match_mode': 'fullmatch'},
            'content': {'max_bytes_per_file': 1024, 'fixed_strings': True}
        })

        request = build_request([str(self.root)], ["x"], config=config)

        assert request.include_hidden is True
        assert request.match_mode == MatchMode.FULLMATCH
        assert request.max_bytes_per_file == 1024
        assert request.fixed_strings is True

    def test_explicit_options_override_config(self):
        config = FinderConfig.from_dict({'search': {'match_mode': 'fullmatch'}})

        request = build_request([str(self.root)], ["x"], config=config, match_mode=MatchMode.SEARCH)

        assert request.match_mode == MatchMode.SEARCH
