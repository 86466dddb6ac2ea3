"""
Tests for JSON node inspection helpers.
"""

import json
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from fractions import Fraction

import pytest

from jsontimeseries import ValueKind, extract_samples
from jsontimeseries.core.node import (
    NodeKind,
    iter_children,
    measure_depth,
    node_kind,
    to_raw_json,
)
from jsontimeseries.core.sample import NULL_VALUE, coerce_value


class TestNodeKind:
    """Classification of parsed JSON values."""

    @pytest.mark.parametrize("node,kind", [
        ({}, NodeKind.OBJECT),
        (OrderedDict(), NodeKind.OBJECT),
        ([], NodeKind.ARRAY),
        ("", NodeKind.STRING),
        (0, NodeKind.NUMBER),
        (1.5, NodeKind.NUMBER),
        (True, NodeKind.BOOLEAN),
        (None, NodeKind.NULL),
        (object(), NodeKind.UNDEFINED),
        (1j, NodeKind.UNDEFINED),
    ])
    def test_kinds(self, node, kind):
        assert node_kind(node) is kind

    def test_undefined_values_become_null(self):
        assert coerce_value(object()) is NULL_VALUE

    def test_huge_integers_become_infinite(self):
        assert coerce_value(10 ** 400).value == float("inf")
        assert coerce_value(-(10 ** 400)).value == float("-inf")


class TestChildren:
    """Child iteration and measurement."""

    def test_object_children_in_document_order(self):
        doc = {"b": 1, "a": 2}
        assert list(iter_children(doc)) == [("b", 1, False), ("a", 2, False)]

    def test_array_children(self):
        assert list(iter_children(["x", "y"])) == [("0", "x", True), ("1", "y", True)]

    def test_scalar_has_no_children(self):
        assert list(iter_children(5)) == []

    def test_measure_depth(self):
        assert measure_depth(5) == 0
        assert measure_depth({}) == 0
        assert measure_depth({"a": 1}) == 1
        assert measure_depth({"a": [{"b": 1}], "c": 2}) == 3

    def test_measure_depth_beyond_recursion_limit(self):
        doc = None
        for _ in range(5000):
            doc = [doc]
        assert measure_depth(doc) == 5000

    def test_raw_json_is_compact(self):
        assert to_raw_json({"a": [1, "ü"], "b": None}) == '{"a":[1,"ü"],"b":null}'

    def test_raw_json_keeps_decimal_numbers(self):
        doc = json.loads('{"a":1.10,"b":2,"c":[3.5,-0.25],"d":1E+2}', parse_float=Decimal)
        assert to_raw_json(doc) == '{"a":1.1,"b":2,"c":[3.5,-0.25],"d":100}'

    def test_raw_json_other_numbers(self):
        assert to_raw_json([Fraction(1, 4), Decimal("7")]) == "[0.25,7]"
        assert to_raw_json({"when": datetime(2024, 5, 1)}) == '{"when":"2024-05-01 00:00:00"}'


class TestDecimalDocuments:
    """Documents parsed with ``parse_float=Decimal``."""

    def test_sub_object_value_is_numeric_json(self):
        doc = json.loads('{"acc":{"x":-0.876,"y":0.50}}', parse_float=Decimal)
        samples = list(extract_samples(doc))
        assert samples[0].value.value == '{"x":-0.876,"y":0.5}'

    def test_scalar_decimal_is_number(self):
        doc = json.loads('{"v":0.1}', parse_float=Decimal)
        samples = list(extract_samples(doc))
        assert samples[0].value.kind is ValueKind.NUMBER
        assert samples[0].value.value == 0.1
