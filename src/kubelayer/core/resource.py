#!/usr/bin/env python3
"""
KUBELAYER RESOURCE - The Tracking Record
----------------------------------------
A Resource pairs one StructuredDocument with the provenance KubeLayer
needs while composing layers:

  * the original name/namespace, snapshotted at load time,
  * the stack of name prefixes/suffixes pushed by enclosing layers,
  * the ids and variable names that refer to this resource,
  * the generation options of the layer that produced it.

A Resource exclusively owns its document. Anything that needs an
independent branch must go through deep_copy().

Author: KubeLayer Team
Date: 2026-10-19
"""

import copy
import io
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Union

from ruamel.yaml import YAML

from kubelayer.core.document import FieldValue, StructuredDocument
from kubelayer.core.errors import KubeLayerError
from kubelayer.core.models import GenerationBehavior, GenerationOptions, Gvk, ResId, Var

logger = logging.getLogger("kubelayer.resource")

NIL_OPTIONS = "{nilGenArgs}"


class NameTransformStack:
    """
    Name decorations applied by successive enclosing layers.

    Index 0 holds the innermost (earliest) decoration and the last index
    the outermost (latest) one. A prefix transformer running in an outer
    overlay pushes after every base beneath it has pushed, so the
    outermost prefix is the last element even though it appears first
    in the rendered name.
    """

    def __init__(self, prefixes: Optional[List[str]] = None, suffixes: Optional[List[str]] = None):
        self.prefixes: List[str] = list(prefixes) if prefixes else []
        self.suffixes: List[str] = list(suffixes) if suffixes else []

    def push_prefix(self, prefix: str) -> None:
        self.prefixes.append(prefix)

    def push_suffix(self, suffix: str) -> None:
        self.suffixes.append(suffix)

    def outermost_prefix(self) -> str:
        return self.prefixes[-1] if self.prefixes else ""

    def outermost_suffix(self) -> str:
        return self.suffixes[-1] if self.suffixes else ""

    def outermost_equals(self, other: "NameTransformStack") -> bool:
        return (self.outermost_prefix() == other.outermost_prefix()
                and self.outermost_suffix() == other.outermost_suffix())

    def partial_equals(self, other: "NameTransformStack") -> bool:
        """
        Deep comparison anchored at the outer end of both stacks.
        Stacks built by overlays of different depth still match when
        their shared outer layers agree: ['x'] and ['a', 'x'] match.
        """
        return (same_ending_subsequence(self.prefixes, other.prefixes)
                and same_ending_subsequence(self.suffixes, other.suffixes))

    def copy(self) -> "NameTransformStack":
        return NameTransformStack(self.prefixes, self.suffixes)

    def __repr__(self) -> str:
        return f"NameTransformStack(prefixes={self.prefixes!r}, suffixes={self.suffixes!r})"


def same_ending_subsequence(a: List[str], b: List[str]) -> bool:
    """Compares the last min(len(a), len(b)) elements, back to front."""
    compare_len = min(len(a), len(b))
    for i in range(compare_len):
        if a[len(a) - 1 - i] != b[len(b) - 1 - i]:
            return False
    return True


class ReferenceTracker:
    """
    Back references to a resource: ids of resources that refer to it and
    names of variables whose value resolves to it. Append-only; the
    referrer list may hold duplicates.
    """

    def __init__(self, ref_by: Optional[List[ResId]] = None, ref_var_names: Optional[List[str]] = None):
        self.ref_by: List[ResId] = list(ref_by) if ref_by else []
        self.ref_var_names: List[str] = list(ref_var_names) if ref_var_names else []

    def append_ref_by(self, res_id: ResId) -> None:
        self.ref_by.append(res_id)

    def append_ref_var_name(self, name: str) -> None:
        self.ref_var_names.append(name)

    def references_equal(self, other: "ReferenceTracker") -> bool:
        """Set equality of referrers; order and duplicates are ignored."""
        set_other = set(other.ref_by)
        set_self = set()
        for ref in self.ref_by:
            if ref not in set_other:
                return False
            set_self.add(ref)
        return len(set_self) == len(set_other)

    def copy(self) -> "ReferenceTracker":
        return ReferenceTracker(self.ref_by, self.ref_var_names)


# A predicate deciding whether two resources were decorated in the
# same overlay context. Usually bound to a referrer's stack.
OverlayCtxMatcher = Callable[["Resource"], bool]


class Resource:
    """
    A Kubernetes object paired with the metadata KubeLayer carries
    across layers.
    """

    def __init__(self, document: StructuredDocument, options: Optional[GenerationOptions] = None):
        self._doc = document
        self.options = options
        self._original_name = document.get_name()
        self._original_ns = self._namespace_of(document)
        self._transforms = NameTransformStack()
        self._refs = ReferenceTracker()

    @staticmethod
    def _namespace_of(document: StructuredDocument) -> str:
        try:
            return document.get_string("metadata.namespace")
        except KubeLayerError:
            return ""

    # --- Copying ---

    def deep_copy(self) -> "Resource":
        """Returns a resource sharing nothing mutable with this one."""
        rc = Resource(self._doc.copy())
        rc._copy_other_fields(self)
        return rc

    def reset_primary_data(self, incoming: "Resource") -> None:
        """Replaces the document with a copy of incoming's; provenance kept."""
        self._doc = incoming._doc.copy()

    def copy_document(self) -> StructuredDocument:
        return self._doc.copy()

    def _copy_other_fields(self, other: "Resource") -> None:
        self._original_name = other._original_name
        self._original_ns = other._original_ns
        self.options = other.options
        self._refs = other._refs.copy()
        self._transforms = other._transforms.copy()

    # --- Equality ---

    def equals(self, other: "Resource") -> bool:
        return self.references_equal(other) and self.document_equals(other)

    def references_equal(self, other: "Resource") -> bool:
        return self._refs.references_equal(other._refs)

    def document_equals(self, other: "Resource") -> bool:
        return self._doc == other._doc

    # --- Combinators ---

    def replace(self, other: "Resource") -> None:
        """
        Collapses other into this resource. Labels and annotations are
        unioned with ours winning; name, namespace and all provenance
        are taken from other.
        """
        logger.debug(f"Replacing {other.cur_id()} with {self.cur_id()}")
        self._doc.set_labels(merge_string_maps(other.get_labels(), self.get_labels()))
        self._doc.set_annotations(merge_string_maps(other.get_annotations(), self.get_annotations()))
        self._doc.set_name(other.get_name())
        self._doc.set_namespace(other.get_namespace())
        self._copy_other_fields(other)

    def merge(self, other: "Resource") -> None:
        """replace(other), then union the 'data' maps with ours winning."""
        self.replace(other)
        logger.debug(f"Merging data of {other.cur_id()} into {self.cur_id()}")
        merge_data_field(self._doc.to_map(), other.to_map(), self.to_map())

    # --- Identity ---

    def org_id(self) -> ResId:
        """The original, immutable id. Need not be unique in a set."""
        return ResId(gvk=self._doc.get_gvk(), name=self._original_name, namespace=self._original_ns)

    def cur_id(self) -> ResId:
        """The id built from the live document; unique within one set."""
        return ResId(gvk=self._doc.get_gvk(), name=self._doc.get_name(), namespace=self.get_namespace())

    def get_original_name(self) -> str:
        return self._original_name

    def get_original_ns(self) -> str:
        return self._original_ns

    # --- Name transform stack ---

    @property
    def name_transforms(self) -> NameTransformStack:
        return self._transforms

    def add_name_prefix(self, prefix: str) -> None:
        self._transforms.push_prefix(prefix)

    def add_name_suffix(self, suffix: str) -> None:
        self._transforms.push_suffix(suffix)

    def get_outermost_name_prefix(self) -> str:
        return self._transforms.outermost_prefix()

    def get_outermost_name_suffix(self) -> str:
        return self._transforms.outermost_suffix()

    def get_name_prefixes(self) -> List[str]:
        return self._transforms.prefixes

    def get_name_suffixes(self) -> List[str]:
        return self._transforms.suffixes

    def outermost_prefix_suffix_equals(self, other: "Resource") -> bool:
        return self._transforms.outermost_equals(other._transforms)

    def prefixes_suffixes_equals(self, other: "Resource") -> bool:
        return self._transforms.partial_equals(other._transforms)

    def in_same_overlay_ctx(self, matcher: OverlayCtxMatcher) -> bool:
        """Whether a renamed referral could affect this referrer."""
        return matcher(self)

    # --- References ---

    @property
    def references(self) -> ReferenceTracker:
        return self._refs

    def get_ref_by(self) -> List[ResId]:
        return self._refs.ref_by

    def append_ref_by(self, res_id: ResId) -> None:
        self._refs.append_ref_by(res_id)

    def get_ref_var_names(self) -> List[str]:
        return self._refs.ref_var_names

    def append_ref_var_name(self, variable: Union[Var, str]) -> None:
        name = variable.name if isinstance(variable, Var) else variable
        self._refs.append_ref_var_name(name)

    # --- Generation options ---

    def set_options(self, options: Optional[GenerationOptions]) -> None:
        self.options = options

    def behavior(self) -> GenerationBehavior:
        if self.options is None:
            return GenerationBehavior.UNSPECIFIED
        return self.options.behavior

    def need_hash_suffix(self) -> bool:
        return self.options is not None and self.options.should_add_hash_suffix_to_name()

    # --- Document delegation ---

    def get_field_value(self, path: str) -> FieldValue:
        return self._doc.get_field_value(path)

    def set_field_value(self, path: str, value: FieldValue) -> None:
        self._doc.set_field_value(path, value)

    def get_string(self, path: str) -> str:
        return self._doc.get_string(path)

    def get_slice(self, path: str) -> List[Any]:
        return self._doc.get_slice(path)

    def get_gvk(self) -> Gvk:
        return self._doc.get_gvk()

    def set_gvk(self, gvk: Gvk) -> None:
        self._doc.set_gvk(gvk)

    def get_kind(self) -> str:
        return self._doc.get_kind()

    def get_name(self) -> str:
        return self._doc.get_name()

    def set_name(self, name: str) -> None:
        self._doc.set_name(name)

    def get_namespace(self) -> str:
        """The namespace the document claims; lookup failure means none."""
        return self._namespace_of(self._doc)

    def set_namespace(self, namespace: str) -> None:
        self._doc.set_namespace(namespace)

    def get_labels(self) -> Dict[str, str]:
        return self._doc.get_labels()

    def set_labels(self, labels: Mapping[str, str]) -> None:
        self._doc.set_labels(labels)

    def get_annotations(self) -> Dict[str, str]:
        return self._doc.get_annotations()

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        self._doc.set_annotations(annotations)

    def to_map(self) -> MutableMapping[str, Any]:
        return self._doc.to_map()

    def marshal_json(self) -> bytes:
        return self._doc.marshal_json()

    def unmarshal_json(self, data: Union[bytes, str]) -> None:
        self._doc.unmarshal_json(data)

    def matches_label_selector(self, selector: str) -> bool:
        return self._doc.matches_label_selector(selector)

    def matches_annotation_selector(self, selector: str) -> bool:
        return self._doc.matches_annotation_selector(selector)

    # --- Text forms ---

    def __str__(self) -> str:
        """Trimmed JSON immediately followed by the options rendering."""
        try:
            bs = self._doc.marshal_json()
        except KubeLayerError as e:
            return f"<{e}>"
        options = str(self.options) if self.options is not None else NIL_OPTIONS
        return bs.decode("utf-8").strip() + options

    def __repr__(self) -> str:
        return f"Resource({self.cur_id()})"

    def as_yaml(self) -> bytes:
        """The document as YAML, transcoded from its JSON form."""
        data = json.loads(self._doc.marshal_json())
        yaml = YAML()
        yaml.default_flow_style = False
        stream = io.StringIO()
        yaml.dump(data, stream)
        return stream.getvalue().encode("utf-8")


def merge_string_maps(*maps: Mapping[str, str]) -> Dict[str, str]:
    """Later maps win on key collision."""
    result: Dict[str, str] = {}
    for m in maps:
        result.update(m)
    return result


def merge_data_field(merged_to: MutableMapping[str, Any], *maps: Mapping[str, Any]) -> None:
    """
    Key-level union of each map's 'data' mapping into merged_to['data'].
    Later maps win; a missing or non-mapping 'data' contributes nothing.
    Values are copied so merged_to shares nothing with the other maps.
    """
    merged: Dict[str, Any] = {}
    for m in maps:
        data = m.get("data")
        if isinstance(data, Mapping):
            merged.update(copy.deepcopy(dict(data)))
    merged_to["data"] = merged
