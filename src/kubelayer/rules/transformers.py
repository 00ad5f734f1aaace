#!/usr/bin/env python3
"""
KUBELAYER TRANSFORMERS - Layer Passes
-------------------------------------
The TransformerChain applies one layer's decorations to every resource
accumulated under that layer: name prefix/suffix, namespace relocation
and common labels/annotations.

Prefix/suffix passes record what they applied on each resource's name
transform stack, so later reference rewriting can tell which overlay
context renamed what.

Author: KubeLayer Team
Date: 2026-10-19
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional

from kubelayer.core.resource import Resource

# Resources that must NOT be given a namespace
CLUSTER_SCOPED_KINDS = [
    "Namespace", "Node", "ClusterRole", "ClusterRoleBinding",
    "StorageClass", "PersistentVolume", "CustomResourceDefinition",
    "APIService", "PriorityClass", "ValidatingWebhookConfiguration",
    "MutatingWebhookConfiguration",
]

# Resources whose names are load-bearing and must not be decorated
NAME_DECORATION_SKIP_KINDS = ["CustomResourceDefinition", "APIService", "Namespace"]

Rule = Callable[[Resource], str]


class TransformerChain:
    """
    Registry of passes for one layer. Only the passes the layer
    configures are active.
    """

    def __init__(self, name_prefix: str = "", name_suffix: str = "",
                 namespace: str = "", labels: Optional[Mapping[str, str]] = None,
                 annotations: Optional[Mapping[str, str]] = None):
        self.name_prefix = name_prefix
        self.name_suffix = name_suffix
        self.namespace = namespace
        self.labels: Dict[str, str] = dict(labels or {})
        self.annotations: Dict[str, str] = dict(annotations or {})

        self.active_rules: List[Rule] = []
        if self.name_prefix or self.name_suffix:
            self.active_rules.append(self._rule_prefix_suffix)
        if self.namespace:
            self.active_rules.append(self._rule_namespace)
        if self.labels:
            self.active_rules.append(self._rule_labels)
        if self.annotations:
            self.active_rules.append(self._rule_annotations)

    def apply(self, resources: Iterable[Resource]) -> List[str]:
        """
        Runs every active rule over every resource, in place.
        Returns human-readable notes of what changed.
        """
        changes = []
        for res in resources:
            for rule in self.active_rules:
                msg = rule(res)
                if msg:
                    changes.append(msg)
        return changes

    def _rule_prefix_suffix(self, res: Resource) -> str:
        if res.get_kind() in NAME_DECORATION_SKIP_KINDS:
            return ""
        old_name = res.get_name()
        if not old_name:
            return ""
        res.set_name(f"{self.name_prefix}{old_name}{self.name_suffix}")
        # Both are pushed so prefix and suffix stacks stay one entry per layer
        res.add_name_prefix(self.name_prefix)
        res.add_name_suffix(self.name_suffix)
        return f"Action: Renamed {res.get_kind()} '{old_name}' to '{res.get_name()}'."

    def _rule_namespace(self, res: Resource) -> str:
        if res.get_kind() in CLUSTER_SCOPED_KINDS:
            return ""
        if res.get_namespace() == self.namespace:
            return ""
        res.set_namespace(self.namespace)
        return f"Action: Moved {res.get_kind()} '{res.get_name()}' to namespace '{self.namespace}'."

    def _rule_labels(self, res: Resource) -> str:
        labels = res.get_labels()
        labels.update(self.labels)
        res.set_labels(labels)
        return ""

    def _rule_annotations(self, res: Resource) -> str:
        annotations = res.get_annotations()
        annotations.update(self.annotations)
        res.set_annotations(annotations)
        return ""
