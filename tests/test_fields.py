import pytest

from clustersync.sync.handlers.fields import (
    ClusterSpec,
    ObjectHandler,
    ParseError,
    get_nested_int,
    get_nested_list,
    get_nested_string,
    get_nested_string_list,
    get_nested_string_map,
)


@pytest.fixture
def obj():
    return {
        "apiVersion": "bootstrap.cluster.x-k8s.io/v1beta2",
        "kind": "EKSConfig",
        "metadata": {"name": "worker0", "namespace": "ns", "labels": {"tier": "worker"}},
        "spec": {
            "containerRuntime": "containerd",
            "scaling": {"minSize": 1, "maxSize": 10, "ratio": 1.5, "flag": True},
            "cidrBlocks": ["10.0.0.0/16", "100.64.0.0/16"],
            "mixed": ["a", 3],
            "taints": [{"key": "k", "effect": "NoSchedule"}],
        },
    }


def test_get_nested_string(obj):
    assert get_nested_string(obj, "spec", "containerRuntime") == "containerd"


def test_missing_field_raises_parse_error(obj):
    with pytest.raises(ParseError) as info:
        get_nested_string(obj, "spec", "missing")
    assert info.value.fields == ("spec", "missing")
    assert str(info.value.err) == "field not found"
    assert info.value.object is obj


def test_parse_error_message(obj):
    with pytest.raises(ParseError) as info:
        get_nested_string(obj, "spec", "other")
    assert str(info.value) == (
        "failed to get value (spec.other) from object (namespace: ns, name: worker0, "
        "gvk: bootstrap.cluster.x-k8s.io/v1beta2, Kind=EKSConfig): field not found"
    )


def test_parse_error_core_group_gvk():
    obj = {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "n"}}
    with pytest.raises(ParseError) as info:
        get_nested_string(obj, "data")
    assert "gvk: /v1, Kind=ConfigMap" in str(info.value)


def test_wrong_type_raises(obj):
    with pytest.raises(ParseError) as info:
        get_nested_string(obj, "spec", "scaling")
    assert isinstance(info.value.err, ValueError)
    assert "accessor error" in str(info.value)


def test_intermediate_not_mapping_raises(obj):
    with pytest.raises(ParseError) as info:
        get_nested_string(obj, "spec", "containerRuntime", "deeper")
    assert isinstance(info.value.err, ValueError)


def test_get_nested_int(obj):
    assert get_nested_int(obj, "spec", "scaling", "maxSize") == 10


@pytest.mark.parametrize("name", ["ratio", "flag"])
def test_get_nested_int_rejects_non_int(obj, name):
    with pytest.raises(ParseError):
        get_nested_int(obj, "spec", "scaling", name)


def test_get_nested_string_list_returns_copy(obj):
    result = get_nested_string_list(obj, "spec", "cidrBlocks")
    assert result == ["10.0.0.0/16", "100.64.0.0/16"]
    result.append("x")
    assert obj["spec"]["cidrBlocks"] == ["10.0.0.0/16", "100.64.0.0/16"]


def test_get_nested_string_list_rejects_non_strings(obj):
    with pytest.raises(ParseError):
        get_nested_string_list(obj, "spec", "mixed")


def test_get_nested_string_map(obj):
    assert get_nested_string_map(obj, "metadata", "labels") == {"tier": "worker"}


def test_get_nested_string_map_rejects_non_strings(obj):
    with pytest.raises(ParseError):
        get_nested_string_map(obj, "spec", "scaling")


def test_get_nested_list_is_deep_copy(obj):
    result = get_nested_list(obj, "spec", "taints")
    assert result == [{"key": "k", "effect": "NoSchedule"}]
    result[0]["key"] = "changed"
    assert obj["spec"]["taints"][0]["key"] == "k"


def test_get_nested_list_missing(obj):
    with pytest.raises(ParseError) as info:
        get_nested_list(obj, "spec", "nothing")
    assert info.value.fields == ("spec", "nothing")


def test_object_handler_is_abstract():
    with pytest.raises(TypeError):
        ObjectHandler()


def test_cluster_spec_defaults_are_independent():
    first, second = ClusterSpec(), ClusterSpec()
    first.tiers.append("x")
    assert second.tiers == []