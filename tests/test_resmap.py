#!/usr/bin/env python3
"""
KUBELAYER RESOURCE SET SUITE
----------------------------
Id-unique ordering, lookups, selectors and absorb behaviors
of ResourceSet.

Author: KubeLayer Team
Date: 2026-10-19
"""

import pytest

from kubelayer.core.document import to_plain
from kubelayer.core.errors import ResourceConflictError
from kubelayer.core.factory import ResourceFactory
from kubelayer.core.models import GenerationBehavior, GenerationOptions, Gvk, ResId
from kubelayer.core.resmap import ResourceSet

factory = ResourceFactory()
CM = Gvk(group="", version="v1", kind="ConfigMap")


def configmap(name, data=None, behavior=GenerationBehavior.UNSPECIFIED, namespace=None, labels=None):
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    options = None if behavior == GenerationBehavior.UNSPECIFIED else GenerationOptions(behavior=behavior)
    return factory.from_map({"apiVersion": "v1", "kind": "ConfigMap",
                             "metadata": metadata, "data": data or {}}, options)


def test_append_rejects_duplicate_current_ids():
    resources = ResourceSet([configmap("a")])
    with pytest.raises(ResourceConflictError):
        resources.append(configmap("a"))
    resources.append(configmap("a", namespace="other"))
    assert len(resources) == 2


def test_lookup_by_current_and_original_id():
    res = configmap("a")
    res.set_name("pre-a")
    resources = ResourceSet([res])

    assert resources.get_by_current_id(ResId(gvk=CM, name="pre-a")) is res
    assert resources.get_by_current_id(ResId(gvk=CM, name="a")) is None
    assert resources.get_matching_by_original_id(lambda i: i.name == "a") == [res]
    assert resources.get_matching_by_current_id(lambda i: i.name == "a") == []


def test_absorb_merge_finds_renamed_base_by_original_id():
    base = configmap("cfg", data={"k1": "old", "k2": "v2"}, labels={"team": "x"})
    base.set_name("base-cfg")
    base.add_name_prefix("base-")
    resources = ResourceSet([configmap("other"), base])

    overlay = configmap("cfg", data={"k1": "v1"}, behavior=GenerationBehavior.MERGE)
    resources.absorb(overlay)

    assert len(resources) == 2
    assert resources.resources()[1] is overlay, "Survivor takes the earlier position"
    assert overlay.get_name() == "base-cfg"
    assert overlay.get_name_prefixes() == ["base-"]
    assert overlay.get_labels() == {"team": "x"}
    assert to_plain(overlay.get_field_value("data")) == {"k1": "v1", "k2": "v2"}


def test_absorb_replace_keeps_only_incoming_data():
    resources = ResourceSet([configmap("cfg", data={"k1": "old", "k2": "v2"})])
    overlay = configmap("cfg", data={"k1": "v1"}, behavior=GenerationBehavior.REPLACE)
    resources.absorb(overlay)
    assert to_plain(resources.resources()[0].get_field_value("data")) == {"k1": "v1"}


def test_absorb_treats_default_namespace_as_unset():
    resources = ResourceSet([configmap("cfg", namespace="default")])
    resources.absorb(configmap("cfg", behavior=GenerationBehavior.MERGE))
    assert len(resources) == 1
    assert resources.resources()[0].get_namespace() == "default"


@pytest.mark.parametrize("behavior", [GenerationBehavior.MERGE, GenerationBehavior.REPLACE])
def test_absorb_missing_target_fails(behavior):
    resources = ResourceSet([configmap("a")])
    with pytest.raises(ResourceConflictError):
        resources.absorb(configmap("b", behavior=behavior))


@pytest.mark.parametrize("behavior", [GenerationBehavior.CREATE, GenerationBehavior.UNSPECIFIED])
def test_absorb_existing_id_needs_merge_or_replace(behavior):
    resources = ResourceSet([configmap("a")])
    with pytest.raises(ResourceConflictError):
        resources.absorb(configmap("a", behavior=behavior))


def test_absorb_new_id_appends():
    resources = ResourceSet([configmap("a")])
    resources.absorb(configmap("b", behavior=GenerationBehavior.CREATE))
    assert [i.name for i in resources.ids()] == ["a", "b"]


def test_absorb_ambiguous_match_fails():
    first = configmap("cfg")
    second = configmap("cfg", namespace="default")
    second.set_name("renamed")
    resources = ResourceSet([first, second])
    with pytest.raises(ResourceConflictError):
        resources.absorb(configmap("cfg", behavior=GenerationBehavior.MERGE))


def test_replace_and_remove():
    resources = ResourceSet([configmap("a"), configmap("b")])
    newer = configmap("b", data={"x": "1"})
    assert resources.replace(newer) == 1
    assert resources.resources()[1] is newer

    dropped = resources.remove(ResId(gvk=CM, name="a"))
    assert dropped.get_name() == "a"
    assert [i.name for i in resources.ids()] == ["b"]
    with pytest.raises(ResourceConflictError):
        resources.remove(ResId(gvk=CM, name="a"))


def test_deep_copy_is_independent():
    resources = ResourceSet([configmap("a")])
    copied = resources.deep_copy()
    copied.resources()[0].set_name("z")
    assert resources.ids()[0].name == "a"


def test_filter_by_label_selector():
    resources = ResourceSet([configmap("a", labels={"app": "web"}), configmap("b")])
    assert [r.get_name() for r in resources.filter_by_label_selector("app=web")] == ["a"]


def test_as_yaml_separates_documents():
    resources = ResourceSet([configmap("a"), configmap("b")])
    assert resources.as_yaml().count(b"---\n") == 1
