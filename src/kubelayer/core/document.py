#!/usr/bin/env python3
"""
KUBELAYER DOCUMENT - Structured Document Adapter
------------------------------------------------
The Resource record never touches raw YAML. It talks to a document
through the StructuredDocument capability defined here: field access by
dotted path, labels/annotations, identity fields, deep copy, JSON
marshaling and selector matching.

KubeDocument is the concrete adapter, backed by a ruamel.yaml
CommentedMap so comments survive a load/compose/export round trip.

Author: KubeLayer Team
Date: 2026-10-19
"""

import copy
import datetime
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Tuple, Union

from ruamel.yaml.comments import CommentedMap

from kubelayer.core.errors import (
    DocumentLoadError,
    FieldNotFoundError,
    FieldTypeError,
    InvalidFieldPathError,
    MarshalError,
)
from kubelayer.core.models import Gvk
from kubelayer.core.selector import matches_selector

# The closed set of values a field lookup can return.
FieldValue = Union[str, int, float, bool, Dict[str, Any], List[Any], None]

# One path segment: a key followed by zero or more [index] accessors.
SEGMENT_PATTERN = re.compile(r"^([^\[\]]+)((?:\[\d+\])*)$")
INDEX_PATTERN = re.compile(r"\[(\d+)\]")


def to_plain(value: Any) -> Any:
    """
    Recursively converts ruamel containers into plain dicts and lists so
    that equality ignores key order and comment metadata.
    """
    if isinstance(value, Mapping):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def scalar_text(value: Any) -> str:
    """Renders a scalar the way YAML would write it back: true, not True."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def _json_scalar(value: Any) -> Any:
    # YAML timestamps have no JSON type; they travel as strings
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def parse_field_path(path: str) -> List[Union[str, int]]:
    """
    Splits 'spec.ports[0].port' into ['spec', 'ports', 0, 'port'].
    """
    if not path or not path.strip():
        raise InvalidFieldPathError("empty field path", context={"path": path})

    steps: List[Union[str, int]] = []
    for segment in path.split("."):
        match = SEGMENT_PATTERN.match(segment)
        if not match:
            raise InvalidFieldPathError(
                f"malformed segment '{segment}' in field path '{path}'",
                context={"path": path})
        key, indexes = match.groups()
        steps.append(key)
        steps.extend(int(i) for i in INDEX_PATTERN.findall(indexes))
    return steps


class StructuredDocument(ABC):
    """
    Capability interface consumed by Resource. Implementations own their
    content: copy() must return an independent deep copy.
    """

    @abstractmethod
    def get_field_value(self, path: str) -> FieldValue: ...

    @abstractmethod
    def set_field_value(self, path: str, value: FieldValue) -> None: ...

    @abstractmethod
    def get_string(self, path: str) -> str: ...

    @abstractmethod
    def get_slice(self, path: str) -> List[Any]: ...

    @abstractmethod
    def get_labels(self) -> Dict[str, str]: ...

    @abstractmethod
    def set_labels(self, labels: Mapping[str, str]) -> None: ...

    @abstractmethod
    def get_annotations(self) -> Dict[str, str]: ...

    @abstractmethod
    def set_annotations(self, annotations: Mapping[str, str]) -> None: ...

    @abstractmethod
    def get_name(self) -> str: ...

    @abstractmethod
    def set_name(self, name: str) -> None: ...

    @abstractmethod
    def get_namespace(self) -> str: ...

    @abstractmethod
    def set_namespace(self, namespace: str) -> None: ...

    @abstractmethod
    def get_kind(self) -> str: ...

    @abstractmethod
    def get_gvk(self) -> Gvk: ...

    @abstractmethod
    def set_gvk(self, gvk: Gvk) -> None: ...

    @abstractmethod
    def copy(self) -> "StructuredDocument": ...

    @abstractmethod
    def to_map(self) -> MutableMapping[str, Any]: ...

    @abstractmethod
    def marshal_json(self) -> bytes: ...

    @abstractmethod
    def unmarshal_json(self, data: Union[bytes, str]) -> None: ...

    @abstractmethod
    def matches_label_selector(self, selector: str) -> bool: ...

    @abstractmethod
    def matches_annotation_selector(self, selector: str) -> bool: ...


class KubeDocument(StructuredDocument):
    """
    StructuredDocument over a single Kubernetes object held in a
    CommentedMap (or any mutable mapping handed in by the caller).
    """

    def __init__(self, obj: Optional[MutableMapping[str, Any]] = None):
        self._obj: MutableMapping[str, Any] = obj if obj is not None else CommentedMap()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuredDocument):
            return NotImplemented
        return to_plain(self._obj) == to_plain(other.to_map())

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"KubeDocument({to_plain(self._obj)!r})"

    # --- Path access ---

    def _walk(self, path: str) -> Tuple[Any, List[Union[str, int]]]:
        steps = parse_field_path(path)
        node: Any = self._obj
        for depth, step in enumerate(steps):
            where = steps[:depth + 1]
            if isinstance(step, int):
                if not isinstance(node, list):
                    raise FieldTypeError(
                        f"'{path}': {where[:-1]} is not a sequence", context={"path": path})
                if step >= len(node):
                    raise FieldNotFoundError(
                        f"'{path}': index {step} out of range", context={"path": path})
                node = node[step]
            else:
                if not isinstance(node, Mapping):
                    raise FieldTypeError(
                        f"'{path}': {where[:-1]} is not a mapping", context={"path": path})
                if step not in node:
                    raise FieldNotFoundError(
                        f"'{path}': no field '{step}'", context={"path": path})
                node = node[step]
        return node, steps

    def get_field_value(self, path: str) -> FieldValue:
        value, _ = self._walk(path)
        return value

    def get_string(self, path: str) -> str:
        value = self.get_field_value(path)
        if not isinstance(value, str):
            raise FieldTypeError(
                f"'{path}' holds {type(value).__name__}, expected string",
                context={"path": path})
        return value

    def get_slice(self, path: str) -> List[Any]:
        value = self.get_field_value(path)
        if not isinstance(value, list):
            raise FieldTypeError(
                f"'{path}' holds {type(value).__name__}, expected sequence",
                context={"path": path})
        return value

    def set_field_value(self, path: str, value: FieldValue) -> None:
        """Sets a field, creating intermediate mappings as needed."""
        steps = parse_field_path(path)
        node: Any = self._obj
        for step, following in zip(steps, steps[1:]):
            if isinstance(step, int):
                if not isinstance(node, list) or step >= len(node):
                    raise FieldNotFoundError(
                        f"'{path}': index {step} out of range", context={"path": path})
                node = node[step]
                continue
            if not isinstance(node, MutableMapping):
                raise FieldTypeError(f"'{path}': cannot descend into scalar", context={"path": path})
            if step not in node or node[step] is None:
                if isinstance(following, int):
                    raise FieldNotFoundError(
                        f"'{path}': no sequence at '{step}'", context={"path": path})
                node[step] = CommentedMap()
            node = node[step]

        last = steps[-1]
        if isinstance(last, int):
            if not isinstance(node, list) or last >= len(node):
                raise FieldNotFoundError(
                    f"'{path}': index {last} out of range", context={"path": path})
        elif not isinstance(node, MutableMapping):
            raise FieldTypeError(f"'{path}': cannot set on scalar", context={"path": path})
        node[last] = value

    def _remove_metadata_field(self, key: str) -> None:
        metadata = self._obj.get("metadata")
        if isinstance(metadata, MutableMapping):
            metadata.pop(key, None)

    # --- Metadata ---

    def _string_map(self, key: str) -> Dict[str, str]:
        metadata = self._obj.get("metadata")
        if not isinstance(metadata, Mapping):
            return {}
        found = metadata.get(key)
        if not isinstance(found, Mapping):
            return {}
        return {str(k): scalar_text(v) for k, v in found.items()}

    def _set_string_map(self, key: str, values: Mapping[str, str]) -> None:
        if not values:
            self._remove_metadata_field(key)
            return
        self.set_field_value(f"metadata.{key}", CommentedMap(values))

    def get_labels(self) -> Dict[str, str]:
        return self._string_map("labels")

    def set_labels(self, labels: Mapping[str, str]) -> None:
        self._set_string_map("labels", labels)

    def get_annotations(self) -> Dict[str, str]:
        return self._string_map("annotations")

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        self._set_string_map("annotations", annotations)

    def get_name(self) -> str:
        metadata = self._obj.get("metadata")
        if isinstance(metadata, Mapping):
            return str(metadata.get("name") or "")
        return ""

    def set_name(self, name: str) -> None:
        self.set_field_value("metadata.name", name)

    def get_namespace(self) -> str:
        metadata = self._obj.get("metadata")
        if isinstance(metadata, Mapping):
            return str(metadata.get("namespace") or "")
        return ""

    def set_namespace(self, namespace: str) -> None:
        if not namespace:
            self._remove_metadata_field("namespace")
            return
        self.set_field_value("metadata.namespace", namespace)

    def get_kind(self) -> str:
        return str(self._obj.get("kind") or "")

    def get_gvk(self) -> Gvk:
        return Gvk.from_api_version(self._obj.get("apiVersion"), self._obj.get("kind"))

    def set_gvk(self, gvk: Gvk) -> None:
        self._obj["apiVersion"] = gvk.api_version
        self._obj["kind"] = gvk.kind

    # --- Whole-document operations ---

    def copy(self) -> "KubeDocument":
        return KubeDocument(copy.deepcopy(self._obj))

    def to_map(self) -> MutableMapping[str, Any]:
        """Returns the live underlying mapping, not a copy."""
        return self._obj

    def marshal_json(self) -> bytes:
        try:
            return json.dumps(self._obj, separators=(",", ":"), ensure_ascii=False,
                              default=_json_scalar).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise MarshalError(f"cannot marshal {self.get_kind() or 'document'}: {e}") from e

    def unmarshal_json(self, data: Union[bytes, str]) -> None:
        try:
            obj = json.loads(data)
        except ValueError as e:
            raise DocumentLoadError(f"invalid JSON document: {e}") from e
        if not isinstance(obj, dict):
            raise DocumentLoadError(
                f"expected a JSON object, got {type(obj).__name__}")
        self._obj = obj

    def matches_label_selector(self, selector: str) -> bool:
        return matches_selector(selector, self.get_labels())

    def matches_annotation_selector(self, selector: str) -> bool:
        return matches_selector(selector, self.get_annotations())
