#!/usr/bin/env python3
"""
KUBELAYER FACTORY - Document Loading
------------------------------------
Wraps raw YAML/JSON text or in-memory mappings into Resource records.
This is the moment each Resource snapshots its original identity.

Author: KubeLayer Team
Date: 2026-10-19
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from ruamel.yaml import YAML, YAMLError
from ruamel.yaml.comments import CommentedMap

from kubelayer.core.document import KubeDocument
from kubelayer.core.errors import DocumentLoadError
from kubelayer.core.models import GenerationOptions
from kubelayer.core.resource import Resource

logger = logging.getLogger("kubelayer.factory")


class ResourceFactory:
    """
    Builds Resources from text or mappings. 'List' kinds are expanded
    into their items so every Resource holds exactly one object.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        self.yaml.preserve_quotes = True

    def from_map(self, obj: Mapping[str, Any], options: Optional[GenerationOptions] = None) -> Resource:
        if not isinstance(obj, Mapping):
            raise DocumentLoadError(
                f"expected a mapping, got {type(obj).__name__}",
                context={"type": type(obj).__name__})
        if not isinstance(obj, CommentedMap):
            obj = CommentedMap(obj)
        return Resource(KubeDocument(obj), options)

    def from_documents(self, docs: Iterable[Any], options: Optional[GenerationOptions] = None) -> List[Resource]:
        resources = []
        for index, doc in enumerate(docs):
            # Empty documents between separators are legal YAML
            if doc is None:
                continue
            if not isinstance(doc, Mapping):
                raise DocumentLoadError(
                    f"document {index} is a {type(doc).__name__}, expected a mapping",
                    context={"doc_index": index})
            if self._is_list(doc):
                resources.extend(self.from_documents(doc.get("items") or [], options))
                continue
            resources.append(self.from_map(doc, options))
        return resources

    def from_bytes(self, content: Union[bytes, str], options: Optional[GenerationOptions] = None) -> List[Resource]:
        """Parses multi-document YAML (or JSON) into Resources."""
        if isinstance(content, bytes):
            content = content.decode("utf-8-sig")
        try:
            docs = list(self.yaml.load_all(content))
        except YAMLError as e:
            logger.error(f"Unable to parse input: {e}")
            raise DocumentLoadError(f"unable to parse YAML: {e}") from e
        return self.from_documents(docs, options)

    @staticmethod
    def _is_list(doc: Mapping[str, Any]) -> bool:
        kind = str(doc.get("kind") or "")
        return kind.endswith("List") and "items" in doc
