#!/usr/bin/env python3
"""
KUBELAYER CORE MODELS
---------------------
Defines the value types shared across the KubeLayer engine: the
group/version/kind triple, the resource identity used for cross-layer
matching, generation options and substitution variables.

These models are immutable where identity is concerned so they can be
used as dict keys and set members.

Author: KubeLayer Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

NO_GROUP = "~G"
NO_VERSION = "~V"
NO_KIND = "~K"
NO_NAMESPACE = "~X"
NO_NAME = "~N"
DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class Gvk:
    """
    Kubernetes group, version and kind.

    The core API group is represented by an empty group string, so
    ``apiVersion: v1`` yields ``Gvk(group="", version="v1", ...)``.
    """
    group: str = ""
    version: str = ""
    kind: str = ""

    @classmethod
    def from_api_version(cls, api_version: Optional[str], kind: Optional[str]) -> "Gvk":
        api_version = api_version or ""
        if "/" in api_version:
            group, _, version = api_version.partition("/")
        else:
            group, version = "", api_version
        return cls(group=group, version=version, kind=kind or "")

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return "_".join([
            self.group or NO_GROUP,
            self.version or NO_VERSION,
            self.kind or NO_KIND,
        ])


@dataclass(frozen=True)
class ResId:
    """
    The identity of one resource instance: group, version, kind, name
    and namespace. Two ids are equal iff every field matches.
    """
    gvk: Gvk = field(default_factory=Gvk)
    name: str = ""
    namespace: str = ""

    @property
    def group(self) -> str:
        return self.gvk.group

    @property
    def version(self) -> str:
        return self.gvk.version

    @property
    def kind(self) -> str:
        return self.gvk.kind

    def gvkn_equals(self, other: "ResId") -> bool:
        """Same kind/group/version and name; namespace ignored."""
        return self.gvk == other.gvk and self.name == other.name

    def is_ns_equals(self, other: "ResId") -> bool:
        """Namespace comparison where unset and 'default' are the same."""
        return _effective_ns(self.namespace) == _effective_ns(other.namespace)

    def __str__(self) -> str:
        return "|".join([
            str(self.gvk),
            self.namespace or NO_NAMESPACE,
            self.name or NO_NAME,
        ])


def _effective_ns(namespace: str) -> str:
    return namespace or DEFAULT_NAMESPACE


class GenerationBehavior(Enum):
    """How a resource combines with an existing one of the same id."""
    UNSPECIFIED = "unspecified"
    CREATE = "create"
    REPLACE = "replace"
    MERGE = "merge"

    @classmethod
    def parse(cls, text: Optional[str]) -> "GenerationBehavior":
        """Unknown or empty text maps to UNSPECIFIED."""
        for member in cls:
            if member.value == (text or "").strip().lower():
                return member
        return cls.UNSPECIFIED

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GenerationOptions:
    """
    Generation behavior plus the content-hash suffix flag. Shared
    read-only between every resource loaded by the same layer.
    """
    behavior: GenerationBehavior = GenerationBehavior.UNSPECIFIED
    hash_suffix: bool = False

    def should_add_hash_suffix_to_name(self) -> bool:
        return self.hash_suffix

    def __str__(self) -> str:
        nsfx = "true" if self.hash_suffix else "false"
        return "{" + ",".join([f"nsfx:{nsfx}", f"beh:{self.behavior}"]) + "}"


@dataclass(frozen=True)
class Var:
    """
    A substitution variable. Its value is read from ``field_ref`` of the
    object identified by ``obj_ref``.
    """
    name: str
    obj_ref: ResId = field(default_factory=ResId)
    field_ref: str = "metadata.name"
