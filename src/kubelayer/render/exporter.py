#!/usr/bin/env python3
"""
KUBELAYER EXPORTER - Composed Output
------------------------------------
Renders a composed ResourceSet as multi-document YAML. Comments carried
by the loaded CommentedMaps survive; top-level keys follow the usual
Kubernetes order.

Author: KubeLayer Team
Date: 2026-10-19
"""

import io
from typing import Any, Iterable, List

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from kubelayer.core.resource import Resource

# Keys outside this list follow it in their loaded order.
KEY_ORDER = ("apiVersion", "kind", "metadata", "spec", "data", "status")


def _rank(key: Any, loaded: List[Any]) -> int:
    if key in KEY_ORDER:
        return KEY_ORDER.index(key)
    return len(KEY_ORDER) + loaded.index(key)


class KubeExporter:
    """
    Writes composed Resources as one YAML stream.
    """

    def __init__(self, width: int = 4096):
        self.yaml = YAML(typ='rt')
        self.yaml.preserve_quotes = True
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = width

    def _ordered(self, node: Any) -> Any:
        """Copy of node with mapping keys in KEY_ORDER; comments ride along."""
        if isinstance(node, list):
            return [self._ordered(item) for item in node]
        if not isinstance(node, CommentedMap):
            if isinstance(node, dict):
                node = CommentedMap(node)
            else:
                return node

        out = CommentedMap()
        if node.ca.comment:
            out.ca.comment = node.ca.comment

        loaded = list(node)
        for key in sorted(loaded, key=lambda k: _rank(k, loaded)):
            out[key] = self._ordered(node[key])
            note = node.ca.items.get(key)
            if note is not None:
                out.ca.items[key] = note
        return out

    def export(self, resources: Iterable[Resource]) -> str:
        stream = io.StringIO()
        for index, resource in enumerate(resources):
            if index:
                stream.write("---\n")
            self.yaml.dump(self._ordered(resource.to_map()), stream)
        return stream.getvalue()
