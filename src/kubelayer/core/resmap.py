#!/usr/bin/env python3
"""
KUBELAYER RESOURCE SET - The Accumulator
----------------------------------------
An ordered collection of Resources in which current ids are unique.
Absorbing a later layer's resource either appends it or collapses it
onto the earlier definition via Resource.replace / Resource.merge,
depending on the incoming resource's generation behavior.

Author: KubeLayer Team
Date: 2026-10-19
"""

import logging
from typing import Callable, Iterable, Iterator, List, Optional

from kubelayer.core.errors import ResourceConflictError
from kubelayer.core.models import GenerationBehavior, ResId
from kubelayer.core.resource import Resource

logger = logging.getLogger("kubelayer.resmap")

IdMatcher = Callable[[ResId], bool]


class ResourceSet:
    """Ordered, id-unique set of Resources owned by one composition."""

    def __init__(self, resources: Optional[Iterable[Resource]] = None):
        self._rlist: List[Resource] = []
        for res in resources or []:
            self.append(res)

    def __len__(self) -> int:
        return len(self._rlist)

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._rlist))

    def resources(self) -> List[Resource]:
        return list(self._rlist)

    def ids(self) -> List[ResId]:
        return [r.cur_id() for r in self._rlist]

    def append(self, res: Resource) -> None:
        cur = res.cur_id()
        if self.get_by_current_id(cur) is not None:
            raise ResourceConflictError(
                f"may not add resource with an already registered id: {cur}",
                context={"id": str(cur)})
        self._rlist.append(res)

    def get_by_current_id(self, res_id: ResId) -> Optional[Resource]:
        for res in self._rlist:
            if res.cur_id() == res_id:
                return res
        return None

    def get_matching_by_original_id(self, matches: IdMatcher) -> List[Resource]:
        return [r for r in self._rlist if matches(r.org_id())]

    def get_matching_by_current_id(self, matches: IdMatcher) -> List[Resource]:
        return [r for r in self._rlist if matches(r.cur_id())]

    def index_of(self, res: Resource) -> int:
        for i, candidate in enumerate(self._rlist):
            if candidate is res:
                return i
        return -1

    def replace(self, res: Resource) -> int:
        """
        Swaps res in for the resource sharing its current id.
        Returns the position it took.
        """
        cur = res.cur_id()
        for i, candidate in enumerate(self._rlist):
            if candidate.cur_id() == cur:
                self._rlist[i] = res
                return i
        raise ResourceConflictError(
            f"cannot replace unknown id {cur}", context={"id": str(cur)})

    def remove(self, res_id: ResId) -> Resource:
        """Drops the resource with the given current id."""
        res = self.get_by_current_id(res_id)
        if res is None:
            raise ResourceConflictError(
                f"cannot remove unknown id {res_id}", context={"id": str(res_id)})
        self._rlist.remove(res)
        logger.debug(f"Dropped {res_id}")
        return res

    def deep_copy(self) -> "ResourceSet":
        copied = ResourceSet()
        copied._rlist = [r.deep_copy() for r in self._rlist]
        return copied

    def filter_by_label_selector(self, selector: str) -> List[Resource]:
        return [r for r in self._rlist if r.matches_label_selector(selector)]

    # --- Absorption ---

    def _candidates(self, res: Resource) -> List[Resource]:
        incoming = res.cur_id()

        def same(candidate: ResId) -> bool:
            return candidate.gvkn_equals(incoming) and candidate.is_ns_equals(incoming)

        matches = self.get_matching_by_original_id(same)
        if not matches:
            matches = self.get_matching_by_current_id(same)
        return matches

    def absorb(self, res: Resource) -> None:
        """
        Adds res, or collapses it onto the single earlier resource it
        redefines. The incoming resource survives and keeps the earlier
        one's provenance.
        """
        matches = self._candidates(res)
        behavior = res.behavior()

        if not matches:
            if behavior in (GenerationBehavior.MERGE, GenerationBehavior.REPLACE):
                raise ResourceConflictError(
                    f"id {res.cur_id()} does not exist; cannot {behavior} it",
                    context={"id": str(res.cur_id()), "behavior": str(behavior)})
            self.append(res)
            return

        if len(matches) > 1:
            raise ResourceConflictError(
                f"found multiple objects {[str(m.cur_id()) for m in matches]} "
                f"that could accept {res.cur_id()}",
                context={"id": str(res.cur_id())})

        old = matches[0]
        if behavior == GenerationBehavior.REPLACE:
            res.replace(old)
        elif behavior == GenerationBehavior.MERGE:
            res.merge(old)
        else:
            raise ResourceConflictError(
                f"id {res.cur_id()} exists; behavior must be merge or replace",
                context={"id": str(res.cur_id()), "behavior": str(behavior)})

        index = self.index_of(old)
        self._rlist[index] = res
        logger.debug(f"Absorbed {res.cur_id()} at position {index} ({behavior})")

    def absorb_all(self, other: Iterable[Resource]) -> None:
        for res in other:
            self.absorb(res)

    def as_yaml(self) -> bytes:
        """Every resource's YAML form, separated by document markers."""
        return b"---\n".join(r.as_yaml() for r in self._rlist)
