#!/usr/bin/env python3
"""
KUBELAYER ENGINE - The Composer
-------------------------------
The OverlayEngine builds a layer tree into a single ResourceSet:

  1. every base is built recursively and its resources appended,
  2. the layer's own documents are loaded and absorbed
     (create, or replace/merge onto the base definition),
  3. the layer's transformer chain decorates everything accumulated.

Because step 3 runs after the bases were fully built, an outer layer's
prefix is always pushed after every inner one.

Author: KubeLayer Team
Date: 2026-10-19
"""

import dataclasses
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubelayer.core.errors import KubeLayerError
from kubelayer.core.factory import ResourceFactory
from kubelayer.core.models import GenerationBehavior, GenerationOptions
from kubelayer.core.resmap import ResourceSet
from kubelayer.rules.transformers import TransformerChain

logger = logging.getLogger("kubelayer.engine")


@dataclass
class Layer:
    """
    One base or overlay: its own documents, the layers beneath it and
    the decorations it applies to everything it accumulates.
    """
    name: str = "layer"
    documents: List[str] = field(default_factory=list)   # raw YAML text
    bases: List["Layer"] = field(default_factory=list)
    name_prefix: str = ""
    name_suffix: str = ""
    namespace: str = ""
    common_labels: Dict[str, str] = field(default_factory=dict)
    common_annotations: Dict[str, str] = field(default_factory=dict)
    behavior: GenerationBehavior = GenerationBehavior.UNSPECIFIED
    hash_suffix: bool = False

    def generation_options(self) -> Optional[GenerationOptions]:
        """Plain resources carry no options; generated ones share one."""
        if self.behavior == GenerationBehavior.UNSPECIFIED and not self.hash_suffix:
            return None
        return GenerationOptions(behavior=self.behavior, hash_suffix=self.hash_suffix)

    def transformers(self) -> TransformerChain:
        return TransformerChain(
            name_prefix=self.name_prefix,
            name_suffix=self.name_suffix,
            namespace=self.namespace,
            labels=self.common_labels,
            annotations=self.common_annotations,
        )


class OverlayEngine:
    """
    Composes Layers into ResourceSets. Stateless between builds apart
    from the accumulated transformer notes of the last build.
    """

    def __init__(self, factory: Optional[ResourceFactory] = None):
        self.factory = factory or ResourceFactory()
        self.logic_logs: List[str] = []

    def build(self, layer: Layer) -> ResourceSet:
        """Builds one layer tree, bases first."""
        logger.info(f"Building layer '{layer.name}' ({len(layer.bases)} bases)")
        accumulated = ResourceSet()
        try:
            for base in layer.bases:
                for res in self.build(base):
                    accumulated.append(res)

            options = layer.generation_options()
            for text in layer.documents:
                accumulated.absorb_all(self.factory.from_bytes(text, options))

            notes = layer.transformers().apply(accumulated)
        except KubeLayerError as e:
            logger.error(f"Layer '{layer.name}' failed: {e}")
            raise

        for note in notes:
            logger.debug(note)
        self.logic_logs.extend(notes)
        return accumulated

    def compose(self, layers: List[Layer]) -> ResourceSet:
        """
        Treats layers as a chain: each one is an overlay of the one
        before it. The first layer is the base.
        """
        if not layers:
            return ResourceSet()
        self.logic_logs = []
        current = layers[0]
        for overlay in layers[1:]:
            current = dataclasses.replace(overlay, bases=[current] + list(overlay.bases))
        return self.build(current)

    def generate_summary(self, resources: ResourceSet) -> Dict[str, Any]:
        """Counts of what a build produced."""
        items = resources.resources()
        renamed = sum(1 for r in items if r.get_name() != r.get_original_name())
        relocated = sum(1 for r in items if r.get_namespace() != r.get_original_ns())
        return {
            "total_resources": len(items),
            "kinds": dict(Counter(r.get_kind() for r in items)),
            "renamed": renamed,
            "relocated": relocated,
            "with_referrers": sum(1 for r in items if r.get_ref_by()),
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }
