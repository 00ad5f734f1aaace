#!/usr/bin/env python3
"""
KUBELAYER NAME TRANSFORM SUITE
------------------------------
Prefix/suffix stacks and ending-subsequence matching.

Author: KubeLayer Team
Date: 2026-10-19
"""

import pytest

from kubelayer.core.factory import ResourceFactory
from kubelayer.core.resource import NameTransformStack, same_ending_subsequence


@pytest.mark.parametrize("a, b, expected", [
    ([], [], True),
    ([], ["anything"], True),
    (["x"], ["a", "x"], True),
    (["a", "x"], ["x"], True),
    (["x"], ["a", "y"], False),
    (["p1"], ["p0", "p1"], True),
    (["p1", "p2"], ["p1"], False),
    (["a", "b"], ["c", "b"], False),
    (["a", "b"], ["a", "b"], True),
    (["z", "a", "b"], ["a", "b"], True),
])
def test_ending_subsequence_match(a, b, expected):
    assert same_ending_subsequence(a, b) is expected
    assert same_ending_subsequence(b, a) is expected, "Match must be symmetric"


def test_outermost_is_last_pushed():
    stack = NameTransformStack()
    assert stack.outermost_prefix() == ""
    assert stack.outermost_suffix() == ""

    stack.push_prefix("inner-")
    stack.push_prefix("outer-")
    stack.push_suffix("-s1")

    assert stack.prefixes == ["inner-", "outer-"]
    assert stack.outermost_prefix() == "outer-"
    assert stack.outermost_suffix() == "-s1"


def test_push_keeps_duplicates():
    stack = NameTransformStack()
    stack.push_prefix("p")
    stack.push_prefix("p")
    assert stack.prefixes == ["p", "p"]


def test_partial_equals_needs_both_prefixes_and_suffixes():
    left = NameTransformStack(prefixes=["a", "x"], suffixes=["-1"])
    right = NameTransformStack(prefixes=["x"], suffixes=["-2"])
    assert not left.partial_equals(right)

    right = NameTransformStack(prefixes=["x"], suffixes=["-0", "-1"])
    assert left.partial_equals(right)


def test_outermost_equals():
    left = NameTransformStack(prefixes=["a", "x"], suffixes=["-1"])
    right = NameTransformStack(prefixes=["b", "x"], suffixes=["-0", "-1"])
    assert left.outermost_equals(right)

    right.push_suffix("-2")
    assert not left.outermost_equals(right)


def test_copy_is_independent():
    stack = NameTransformStack(prefixes=["a"])
    copied = stack.copy()
    copied.push_prefix("b")
    assert stack.prefixes == ["a"]


def test_resource_overlay_context_matching():
    factory = ResourceFactory()
    referral = factory.from_map({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cfg"}})
    referrer = factory.from_map({"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web"}})

    referral.add_name_prefix("base-")
    referral.add_name_prefix("prod-")
    referrer.add_name_prefix("prod-")

    assert referral.get_outermost_name_prefix() == "prod-"
    assert referral.outermost_prefix_suffix_equals(referrer)
    assert referral.prefixes_suffixes_equals(referrer)
    assert referrer.in_same_overlay_ctx(referral.prefixes_suffixes_equals)

    referrer.add_name_suffix("-v2")
    assert not referrer.in_same_overlay_ctx(referral.outermost_prefix_suffix_equals)
