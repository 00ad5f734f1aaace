#!/usr/bin/env python3
"""
KUBELAYER SELECTOR - Label Expression Matching
----------------------------------------------
Evaluates Kubernetes label-selector expressions against a string map.
The same grammar is used for annotation selectors.

Supported requirements (comma separated, all must hold):
    key=value, key==value, key!=value
    key in (a, b), key notin (a, b)
    key, !key

Author: KubeLayer Team
Date: 2026-10-19
"""

import re
from dataclasses import dataclass
from typing import List, Mapping, Tuple

from kubelayer.core.errors import SelectorSyntaxError

_KEY = r"[A-Za-z0-9][\w./-]*"
_VALUE = r"[\w./-]*"

SET_PATTERN = re.compile(rf"^({_KEY})\s+(in|notin)\s*\(([^()]*)\)$")
EQUALITY_PATTERN = re.compile(rf"^({_KEY})\s*(==|!=|=)\s*({_VALUE})$")
EXISTS_PATTERN = re.compile(rf"^(!?)\s*({_KEY})$")
VALUE_PATTERN = re.compile(rf"^{_VALUE}$")


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: str          # one of: =, !=, in, notin, exists, !exists
    values: Tuple[str, ...] = ()

    def matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        if self.operator == "exists":
            return present
        if self.operator == "!exists":
            return not present
        if self.operator in ("=", "in"):
            return present and labels[self.key] in self.values
        # != and notin also match when the key is absent
        return not present or labels[self.key] not in self.values


def _split_terms(expression: str) -> List[str]:
    """Splits on commas that are not inside a value set."""
    terms, depth, current = [], 0, []
    for char in expression:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise SelectorSyntaxError(
                    f"unbalanced ')' in selector '{expression}'",
                    context={"selector": expression})
        if char == "," and depth == 0:
            terms.append("".join(current))
            current = []
            continue
        current.append(char)
    if depth != 0:
        raise SelectorSyntaxError(
            f"unbalanced '(' in selector '{expression}'",
            context={"selector": expression})
    terms.append("".join(current))
    return terms


def _parse_term(term: str, expression: str) -> Requirement:
    term = term.strip()
    if not term:
        raise SelectorSyntaxError(
            f"empty requirement in selector '{expression}'",
            context={"selector": expression})

    match = SET_PATTERN.match(term)
    if match:
        key, op, raw_values = match.groups()
        values = tuple(v.strip() for v in raw_values.split(","))
        if not all(VALUE_PATTERN.match(v) for v in values):
            raise SelectorSyntaxError(
                f"invalid value in requirement '{term}'",
                context={"selector": expression})
        return Requirement(key, op, values)

    match = EQUALITY_PATTERN.match(term)
    if match:
        key, op, value = match.groups()
        return Requirement(key, "!=" if op == "!=" else "=", (value,))

    match = EXISTS_PATTERN.match(term)
    if match:
        negated, key = match.groups()
        return Requirement(key, "!exists" if negated else "exists")

    raise SelectorSyntaxError(
        f"cannot parse requirement '{term}'", context={"selector": expression})


def parse_selector(expression: str) -> List[Requirement]:
    """
    Parses a selector expression into requirements.
    An empty or blank expression yields no requirements.
    """
    if not expression or not expression.strip():
        return []
    return [_parse_term(term, expression) for term in _split_terms(expression)]


def matches_selector(expression: str, labels: Mapping[str, str]) -> bool:
    """True when every requirement of the expression holds for labels."""
    return all(req.matches(labels) for req in parse_selector(expression))
