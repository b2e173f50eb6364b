import random

import pytest

from voc.sorting import order, sort_library_files


def test_numeric_then_alphabetical():
    names = ["10-tenth.js", "2-second.js", "1-first.js", "alpha.js", "beta.js"]
    assert order(names, []) == ["1-first.js", "2-second.js", "10-tenth.js", "alpha.js", "beta.js"]


def test_order_is_deterministic():
    names = ["zeta.js", "3-c.js", "Alpha.js", "20-x.js", "beta.js", "4-d.js"]
    first = order(names, [])
    for _ in range(5):
        shuffled = list(names)
        random.shuffle(shuffled)
        assert order(shuffled, []) == first


def test_alphabetical_tier_ignores_case():
    assert sort_library_files(["beta.js", "Alpha.js", "gamma.js"]) == ["Alpha.js", "beta.js", "gamma.js"]


def test_equal_numeric_prefix_keeps_enumeration_order():
    assert sort_library_files(["01-b.js", "1-a.js"]) == ["01-b.js", "1-a.js"]
    assert sort_library_files(["1-a.js", "01-b.js"]) == ["1-a.js", "01-b.js"]


def test_explicit_order_comes_first():
    names = ["alpha.js", "1-first.js", "beta.js", "lineConfig.js"]
    result = order(names, ["lineConfig.js", "beta.js"])
    assert result[:2] == ["lineConfig.js", "beta.js"]
    assert result[2:] == ["1-first.js", "alpha.js"]


@pytest.mark.parametrize("explicit", [
    ["c.js", "a.js"],
    ["b.js"],
    ["a.js", "b.js", "c.js", "d.js"],
])
def test_explicit_names_precede_unlisted_names(explicit):
    names = ["d.js", "c.js", "b.js", "a.js"]
    result = order(names, explicit)
    listed = [n for n in explicit if n in names]
    assert result[:len(listed)] == listed
    assert sorted(result) == sorted(names)


def test_explicit_entries_without_files_are_ignored():
    assert order(["a.js", "b.js"], ["missing.js", "b.js", "b.js"]) == ["b.js", "a.js"]


def test_input_is_not_mutated():
    names = ["b.js", "a.js"]
    order(names, [])
    assert names == ["b.js", "a.js"]


def test_none_explicit_order_uses_fallback():
    assert order(["b.js", "2-a.js"], None) == ["2-a.js", "b.js"]
