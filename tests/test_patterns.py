"""
Tests for the Pattern Engine
============================
Search, extraction, validation and replacement semantics.
"""

import pytest

from textforge import Document, PatternEngine, InvalidPatternError

INVALID_PATTERNS = ["(", "[a-", "*abc", "a{2,1}", "(?P<x>a)(?P<x>b)"]


@pytest.fixture
def engine() -> PatternEngine:
    return PatternEngine()


class TestPatternValidity:
    """Tests for is_valid_pattern and compile."""

    def test_valid_pattern(self, engine):
        assert engine.is_valid_pattern(r"\d+")

    @pytest.mark.parametrize("pattern", INVALID_PATTERNS)
    def test_invalid_pattern_returns_false(self, engine, pattern):
        assert engine.is_valid_pattern(pattern) is False

    def test_non_string_pattern_is_invalid(self, engine):
        assert engine.is_valid_pattern(None) is False

    @pytest.mark.parametrize("pattern", INVALID_PATTERNS)
    def test_every_consumer_raises(self, engine, pattern):
        """Each pattern-consuming operation raises InvalidPatternError."""
        doc = Document("d", "some text")
        calls = [
            lambda: engine.search(doc, pattern),
            lambda: engine.extract_matches(doc, pattern),
            lambda: engine.count_matches(doc, pattern),
            lambda: engine.validate(doc, pattern),
            lambda: engine.replace_first(doc, pattern, "x"),
            lambda: engine.replace_all(doc, pattern, "x"),
            lambda: engine.replace_pattern(doc, pattern, "x"),
            lambda: engine.extract_between(doc, pattern, "t"),
            lambda: engine.extract_between(doc, "s", pattern),
        ]
        for call in calls:
            with pytest.raises(InvalidPatternError):
                call()

    def test_error_carries_pattern(self, engine):
        with pytest.raises(InvalidPatternError) as exc_info:
            engine.compile("(")
        assert exc_info.value.pattern == "("
        assert exc_info.value.reason
        assert exc_info.value.to_dict()['error']['code'] == "INVALID_PATTERN"


class TestSearch:
    """Tests for search and extract_matches."""

    def test_search_returns_matches_in_order(self, engine):
        doc = Document("d", "a1 b22 c333")
        assert engine.search(doc, r"\d+") == ["1", "22", "333"]

    def test_matches_do_not_overlap(self, engine):
        doc = Document("d", "aaaa")
        assert engine.search(doc, "aa") == ["aa", "aa"]

    def test_no_match_returns_empty(self, engine):
        assert engine.search(Document("d", "abc"), r"\d") == []

    @pytest.mark.parametrize("pattern,content", [
        (r"\w+", "The cat sat. The dog sat."),
        (r"a|ab", "abab"),
        (r"x*", "axxb"),
        (r"(?i)the", "The THE the"),
    ])
    def test_extract_matches_equals_search(self, engine, pattern, content):
        doc = Document("d", content)
        assert engine.extract_matches(doc, pattern) == engine.search(doc, pattern)

    def test_count_matches(self, engine):
        assert engine.count_matches(Document("d", "a.b.c"), r"\.") == 2


class TestValidate:
    """Tests for whole-content validation."""

    def test_whole_content_must_match(self, engine):
        assert engine.validate(Document("d", "12345"), r"\d+")

    def test_partial_match_is_not_enough(self, engine):
        assert not engine.validate(Document("d", "12345a"), r"\d+")


class TestExtractBetween:
    """Tests for extract_between."""

    def test_two_regions(self, engine):
        doc = Document("d", "<start>A<end><start>B<end>")
        assert engine.extract_between(doc, "<start>", "<end>") == ["A", "B"]

    def test_start_without_end_contributes_nothing(self, engine):
        doc = Document("d", "<start>A<end><start>B")
        assert engine.extract_between(doc, "<start>", "<end>") == ["A"]

    def test_regions_may_overlap(self, engine):
        """Each start searches its own remainder, so spans can overlap."""
        doc = Document("d", "[a[b]")
        assert engine.extract_between(doc, r"\[", r"\]") == ["a[b", "b"]

    def test_adjacent_markers_give_empty_span(self, engine):
        doc = Document("d", "<s><e>")
        assert engine.extract_between(doc, "<s>", "<e>") == [""]


class TestReplace:
    """Tests for regex and literal replacement."""

    def test_replace_all(self, engine):
        assert engine.replace_all("a1b2", r"\d", "#") == "a#b#"

    def test_replace_first(self, engine):
        assert engine.replace_first("a1b2", r"\d", "#") == "a#b2"

    def test_back_references(self, engine):
        doc = Document("d", "John Smith")
        assert engine.replace_all(doc, r"(\w+) (\w+)", r"\2, \1") == "Smith, John"

    def test_bad_replacement_template(self, engine):
        with pytest.raises(InvalidPatternError):
            engine.replace_all("abc", "a", r"\9")

    def test_replace_pattern_returns_new_document(self, engine):
        doc = Document("d", "cat cat")
        result = engine.replace_pattern(doc, "cat", "dog")
        assert result.content == "dog dog"
        assert result.id != doc.id
        assert doc.content == "cat cat"

    def test_literal_replace_ignores_metacharacters(self, engine):
        assert engine.replace_literal("a.b.c", ".", "-") == "a-b-c"
        assert engine.replace_all("a.b.c", ".", "-") == "-----"

    def test_literal_replace_empty_target(self, engine):
        assert engine.replace_literal("abc", "", "x") == "abc"

    def test_literal_replace_on_document(self, engine):
        doc = Document("d", "(x) and (x)")
        assert engine.replace_literal(doc, "(x)", "y") == "y and y"
