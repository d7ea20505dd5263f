"""
Tests for metadata filter parsing and matching.
"""

import re

import pytest

from docvec.vector.errors import InvalidArgumentError
from docvec.vector.filters import Eq, In, Regex, matches_all, parse_filter


def test_bare_value_is_equality():
    predicates = parse_filter({"author": "Jane Smith"})
    assert predicates == (Eq("author", "Jane Smith"),)


def test_operator_conditions_compile_to_tagged_predicates():
    predicates = parse_filter({
        "category": {"$eq": "AI"},
        "author": {"$in": ["John Doe", "Jane Smith"]},
        "title": {"$regex": "learning", "$options": "i"},
    })

    assert predicates[0] == Eq("category", "AI")
    assert predicates[1] == In("author", ("John Doe", "Jane Smith"))
    assert isinstance(predicates[2], Regex)
    assert predicates[2].pattern.flags & re.IGNORECASE


def test_none_and_empty_filters_match_everything():
    assert parse_filter(None) == ()
    assert parse_filter({}) == ()
    assert matches_all((), {"anything": 1})


def test_conjunction_of_fields():
    predicates = parse_filter({"category": "AI", "author": {"$regex": "John|Jane"}})

    assert matches_all(predicates, {"category": "AI", "author": "Jane Smith"})
    assert not matches_all(predicates, {"category": "ML", "author": "Jane Smith"})
    assert not matches_all(predicates, {"category": "AI", "author": "Alice Brown"})


def test_combined_operators_on_one_field():
    predicates = parse_filter({"author": {"$in": ["John Doe", "Johnny Cash"], "$regex": "Doe$"}})

    assert matches_all(predicates, {"author": "John Doe"})
    assert not matches_all(predicates, {"author": "Johnny Cash"})


def test_missing_field_never_matches_except_none_equality():
    assert not matches_all(parse_filter({"author": "John Doe"}), {})
    assert not matches_all(parse_filter({"author": {"$in": ["John Doe"]}}), {})
    assert not matches_all(parse_filter({"author": {"$regex": "."}}), {})
    assert matches_all(parse_filter({"author": None}), {})


def test_dotted_paths_reach_nested_metadata():
    predicates = parse_filter({"details.lang": "en"})

    assert matches_all(predicates, {"details": {"lang": "en"}})
    assert not matches_all(predicates, {"details": {"lang": "fr"}})
    assert not matches_all(predicates, {"details": "en"})


def test_literal_dotted_key_takes_precedence():
    assert matches_all(parse_filter({"a.b": 1}), {"a.b": 1, "a": {"b": 2}})


def test_list_values_match_any_element():
    metadata = {"tags": ["support", "technical"]}

    assert matches_all(parse_filter({"tags": "support"}), metadata)
    assert matches_all(parse_filter({"tags": {"$in": ["billing", "technical"]}}), metadata)
    assert matches_all(parse_filter({"tags": {"$regex": "^tech"}}), metadata)
    assert not matches_all(parse_filter({"tags": "billing"}), metadata)
    # A list operand compares against the whole list
    assert matches_all(parse_filter({"tags": ["support", "technical"]}), metadata)


def test_regex_ignores_non_string_values():
    assert not matches_all(parse_filter({"year": {"$regex": "20"}}), {"year": 2020})


def test_mapping_without_operators_is_literal_equality():
    predicates = parse_filter({"settings": {"theme": "dark"}})
    assert matches_all(predicates, {"settings": {"theme": "dark"}})
    assert not matches_all(predicates, {"settings": {"theme": "light"}})


def test_booleans_do_not_match_numbers():
    """True and 1 are different values; 1 and 1.0 are the same number."""
    assert not matches_all(parse_filter({"flag": 1}), {"flag": True})
    assert not matches_all(parse_filter({"flag": True}), {"flag": 1})
    assert not matches_all(parse_filter({"n": {"$in": [1, 2]}}), {"n": True})
    assert not matches_all(parse_filter({"n": {"$in": [False]}}), {"n": 0})
    assert not matches_all(parse_filter({"tags": 1}), {"tags": [True, "x"]})
    assert not matches_all(parse_filter({"pair": [1, 0]}), {"pair": [True, False]})
    assert not matches_all(parse_filter({"settings": {"on": 1}}), {"settings": {"on": True}})

    assert matches_all(parse_filter({"flag": True}), {"flag": True})
    assert matches_all(parse_filter({"n": 1}), {"n": 1.0})
    assert matches_all(parse_filter({"n": {"$in": [2, 1.0]}}), {"n": 1})


@pytest.mark.parametrize("bad_filter", [
    "author",
    ["author"],
    {"author": {"$gt": 1}},
    {"author": {"$in": "John Doe"}},
    {"author": {"$in": 5}},
    {"author": {"$regex": 5}},
    {"author": {"$regex": "("}},
    {"author": {"$regex": "x", "$options": "q"}},
    {"author": {"$options": "i"}},
    {"$or": [{"author": "x"}]},
    {"": 1},
    {1: "x"},
])
def test_malformed_filters_raise(bad_filter):
    with pytest.raises(InvalidArgumentError):
        parse_filter(bad_filter)
