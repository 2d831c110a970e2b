from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pytest
from pydantic import BaseModel

from coalesce import FingerprintError, default_fingerprint, make_fingerprint


class Color(Enum):
    RED = "red"


class Query(BaseModel):
    term: str
    limit: int = 10


@dataclass
class Page:
    number: int
    size: int


def test_fingerprint_is_deterministic_and_opaque():
    first = default_fingerprint(("foo", 1, {"bool": True}), {})
    second = default_fingerprint(("foo", 1, {"bool": True}), {})
    assert first == second
    assert len(first) == 64


def test_positional_order_and_types_matter():
    assert default_fingerprint((1, 2), {}) != default_fingerprint((2, 1), {})
    assert default_fingerprint((1,), {}) != default_fingerprint((True,), {})
    assert default_fingerprint(("1",), {}) != default_fingerprint((1,), {})
    assert default_fingerprint((), {}) != default_fingerprint((None,), {})


def test_tuples_encode_like_lists():
    assert default_fingerprint(((1, 2),), {}) == default_fingerprint(([1, 2],), {})


def test_keyword_names_are_sorted():
    assert default_fingerprint((), {"a": 1, "b": 2}) == default_fingerprint(
        (), {"b": 2, "a": 1}
    )
    assert default_fingerprint((1,), {}) != default_fingerprint((), {"x": 1})


def test_mapping_key_order_is_preserved_by_default():
    left = ({"x": 1, "y": 2},)
    right = ({"y": 2, "x": 1},)
    assert default_fingerprint(left, {}) != default_fingerprint(right, {})
    assert default_fingerprint(left, {}, sort_keys=True) == default_fingerprint(
        right, {}, sort_keys=True
    )

    sorted_fp = make_fingerprint(sort_keys=True)
    assert sorted_fp(left, {}) == sorted_fp(right, {})


def test_structured_argument_types():
    assert default_fingerprint((Query(term="cats"),), {}) == default_fingerprint(
        ({"term": "cats", "limit": 10},), {}
    )
    assert default_fingerprint((Page(1, 20),), {}) == default_fingerprint(
        ({"number": 1, "size": 20},), {}
    )
    assert default_fingerprint((Color.RED,), {}) == default_fingerprint(("red",), {})
    assert default_fingerprint(({3, 1, 2},), {}) == default_fingerprint(
        (frozenset({2, 3, 1}),), {}
    )


def test_unencodable_arguments_raise_fingerprint_error():
    with pytest.raises(FingerprintError):
        default_fingerprint((object(),), {})
    with pytest.raises(FingerprintError):
        default_fingerprint((), {"blob": b"raw"})


def test_cyclic_arguments_raise_fingerprint_error():
    node: dict = {}
    node["self"] = node
    with pytest.raises(FingerprintError) as excinfo:
        default_fingerprint((node,), {})
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_mapping_keys_keep_their_type():
    assert default_fingerprint(({1: "x"},), {}) != default_fingerprint(({"1": "x"},), {})
    assert default_fingerprint(({True: "x"},), {}) != default_fingerprint(
        ({"true": "x"},), {}
    )
    assert default_fingerprint(({None: "x"},), {}) != default_fingerprint(
        ({"null": "x"},), {}
    )
    assert default_fingerprint(({(1, 2): "x"},), {}) == default_fingerprint(
        ({(1, 2): "x"},), {}
    )


def test_colliding_mapping_keys_raise_fingerprint_error():
    with pytest.raises(FingerprintError):
        default_fingerprint(({Color.RED: 1, "red": 2},), {})


def test_cyclic_dataclass_raises_fingerprint_error():
    @dataclass
    class Node:
        parent: object = None

    node = Node()
    node.parent = node
    with pytest.raises(FingerprintError):
        default_fingerprint((node,), {})
