"""
Unit tests for name normalization and similarity scoring
"""

import itertools
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from name_utils import (
    canonicalize,
    reordered_canonical,
    edit_distance,
    similarity,
    name_similarity,
)


SAMPLE_NAMES = [
    "John Smith",
    "  SMITH,   john  ",
    "O'Brien-Walsh, Mary Ann",
    "José García",
    "Иван Петров",
    "محمد علي",
    "李小龍",
    "Agent 007",
    "a_b.c",
    "\tTabs\nand\r\nnewlines ",
    "",
    "!!!",
]


class TestCanonicalize:
    """Tests for canonical name form"""

    def test_lowercases_and_trims(self):
        assert canonicalize("  John SMITH ") == "john smith"

    def test_punctuation_becomes_space(self):
        assert canonicalize("O'Brien-Walsh, Mary") == "o brien walsh mary"

    def test_underscore_is_not_a_letter(self):
        assert canonicalize("a_b") == "a b"

    def test_collapses_whitespace(self):
        assert canonicalize("John \t\n  Smith") == "john smith"

    def test_keeps_digits(self):
        assert canonicalize("Agent 007") == "agent 007"

    def test_keeps_accented_letters(self):
        assert canonicalize("José GARCÍA") == "josé garcía"

    def test_keeps_non_latin_scripts(self):
        assert canonicalize("Иван Петров") == "иван петров"
        assert canonicalize("李小龍") == "李小龍"
        assert canonicalize("محمد، علي") == "محمد علي"

    def test_only_punctuation_is_empty(self):
        assert canonicalize("!!! ... ---") == ""

    @pytest.mark.parametrize("value", [None, 42, 3.5, ["John"], {"name": "John"}])
    def test_non_string_is_empty(self, value):
        assert canonicalize(value) == ""

    @pytest.mark.parametrize("name", SAMPLE_NAMES)
    def test_idempotent(self, name):
        once = canonicalize(name)
        assert canonicalize(once) == once


class TestReorderedCanonical:
    """Tests for token-sorted canonical form"""

    def test_sorts_tokens(self):
        assert reordered_canonical("Smith Alex") == "alex smith"
        assert reordered_canonical("Alex Smith") == "alex smith"

    def test_punctuation_and_order_ignored(self):
        assert reordered_canonical("Smith, John") == reordered_canonical("john smith")

    def test_empty(self):
        assert reordered_canonical("") == ""
        assert reordered_canonical(None) == ""

    def test_permutation_invariant(self):
        tokens = ["Maria", "de", "la", "Cruz", "Lopez"]
        forms = {reordered_canonical(" ".join(p)) for p in itertools.permutations(tokens)}
        assert forms == {"cruz de la lopez maria"}


class TestEditDistance:
    """Tests for Levenshtein distance"""

    @pytest.mark.parametrize("a,b,expected", [
        ("", "", 0),
        ("", "abc", 3),
        ("abc", "abc", 0),
        ("kitten", "sitting", 3),
        ("john", "jon", 1),
        ("smith", "smyth", 1),
    ])
    def test_known_distances(self, a, b, expected):
        assert edit_distance(a, b) == expected


class TestSimilarity:
    """Tests for normalized similarity"""

    def test_both_empty_is_one(self):
        assert similarity("", "") == 1

    def test_one_empty_is_zero(self):
        assert similarity("", "abc") == 0
        assert similarity("abc", "") == 0

    def test_identical_is_one(self):
        assert similarity("abc", "abc") == 1

    def test_completely_different(self):
        assert similarity("abc", "xyz") == 0

    def test_partial(self):
        # one substitution over four characters
        assert similarity("abcd", "abcx") == pytest.approx(0.75)

    def test_bounded(self):
        for a, b in itertools.product(["a", "ab", "abc", "zzzz", ""], repeat=2):
            assert 0.0 <= similarity(a, b) <= 1.0


class TestNameSimilarity:
    """Tests for the name comparison primitive"""

    def test_reordered_names_match_exactly(self):
        assert name_similarity("Smith John", "John Smith") == 1

    def test_spelling_variant(self):
        # "jon smyth" vs "john smith": 2 edits over 10 characters
        assert name_similarity("John Smith", "Jon Smyth") == pytest.approx(0.8)

    def test_empty_against_name(self):
        assert name_similarity("", "John Smith") == 0

    def test_non_string_against_name(self):
        assert name_similarity(None, "John Smith") == 0

    @pytest.mark.parametrize("name", [n for n in SAMPLE_NAMES if n])
    def test_self_similarity(self, name):
        assert name_similarity(name, name) == 1

    @pytest.mark.parametrize("x,y", list(itertools.combinations(SAMPLE_NAMES, 2)))
    def test_symmetric(self, x, y):
        assert name_similarity(x, y) == name_similarity(y, x)
