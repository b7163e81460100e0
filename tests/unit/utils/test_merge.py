from __future__ import annotations

import pytest

from tinabuild.core.utils import deep_merge, merge_layers, merge_lists


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1, "c": [1, 2]}}
    override = {"a": {"b": 2}}
    merged = deep_merge(base, override)
    assert merged == {"a": {"b": 2, "c": [1, 2]}}
    assert base == {"a": {"b": 1, "c": [1, 2]}}


def test_scalar_replaces_mapping():
    assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}


def test_none_override_is_noop():
    assert deep_merge({"a": 1}, None) == {"a": 1}


@pytest.mark.parametrize(
    ("inherited", "layer", "expected"),
    [
        (["npx", "tinacms"], ["node"], ["node"]),
        (["npx", "tinacms"], ["+", "--verbose"], ["npx", "tinacms", "--verbose"]),
        (["npx", "tinacms"], ["=", "+", "x"], ["+", "x"]),
        (["npx", "tinacms"], [], ["npx", "tinacms"]),
    ],
)
def test_merge_lists(inherited, layer, expected):
    assert merge_lists(inherited, layer) == expected


def test_merge_layers_later_wins_and_skips_empty():
    defaults = {"readiness": {"port": 4001, "host": "localhost"}}
    project = {"readiness": {"port": 4100}}
    merged = merge_layers(defaults, None, project, {})
    assert merged == {"readiness": {"port": 4100, "host": "localhost"}}
