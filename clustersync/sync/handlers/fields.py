"""Cluster metadata types and typed access to fields of unstructured objects."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

Object = Mapping[str, Any]


@dataclass
class Tier:
    """A group of nodes sharing one configuration."""

    name: str = ""
    instance_type: str = ""
    container_runtime: str = ""
    min_capacity: int = 0
    max_capacity: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    taints: list[str] = field(default_factory=list)


@dataclass
class AvailabilityZone:
    """An availability zone the cluster has nodes in."""

    name: str = ""
    id: str = ""


@dataclass
class VirtualNetwork:
    """A network the cluster runs in, with its address ranges."""

    id: str = ""
    cidrs: list[str] = field(default_factory=list)


@dataclass
class Extra:
    """Additional cluster metadata."""

    oidc_issuer: str = ""


@dataclass
class ClusterSpec:
    """Cluster registry metadata collected from watched objects."""

    short_name: str = ""
    region: str = ""
    cloud_type: str = ""
    cloud_provider_region: str = ""
    environment: str = ""
    account_id: str = ""
    tiers: list[Tier] = field(default_factory=list)
    availability_zones: list[AvailabilityZone] = field(default_factory=list)
    virtual_networks: list[VirtualNetwork] = field(default_factory=list)
    extra: Extra = field(default_factory=Extra)


class ObjectHandler(ABC):
    """Extracts cluster metadata from objects of one kind."""

    @abstractmethod
    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        """Return the metadata found in the given objects."""


def _metadata_string(obj: Object, key: str) -> str:
    metadata = obj.get("metadata")
    if isinstance(metadata, Mapping):
        value = metadata.get(key)
        if isinstance(value, str):
            return value
    return ""


def _gvk_string(obj: Object) -> str:
    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    api_version = api_version if isinstance(api_version, str) else ""
    kind = kind if isinstance(kind, str) else ""
    group, version = "", ""
    slashes = api_version.count("/")
    if slashes == 0:
        version = api_version
    elif slashes == 1:
        group, version = api_version.split("/")
    else:
        kind = ""
    return f"{group}/{version}, Kind={kind}"


class ParseError(Exception):
    """A field could not be read from an object."""

    def __init__(self, fields: Sequence[str], obj: Object, err: BaseException) -> None:
        super().__init__(tuple(fields), err)
        self.fields = tuple(fields)
        self.object = obj
        self.err = err

    def __str__(self) -> str:
        return (
            f"failed to get value ({'.'.join(self.fields)}) from object "
            f"(namespace: {_metadata_string(self.object, 'namespace')}, "
            f"name: {_metadata_string(self.object, 'name')}, "
            f"gvk: {_gvk_string(self.object)}): {self.err}"
        )


def _path(fields: Sequence[str]) -> str:
    return "." + ".".join(fields)


def _type_error(fields: Sequence[str], value: Any, expected: str, detail: str = "") -> ValueError:
    return ValueError(
        f"{_path(fields)} accessor error: {detail}{value!r} is of the type "
        f"{type(value).__name__}, expected {expected}"
    )


def _lookup(obj: Object, fields: Sequence[str]) -> tuple[Any, bool]:
    value: Any = obj
    for depth, name in enumerate(fields):
        if not isinstance(value, Mapping):
            raise _type_error(fields[: depth + 1], value, "dict")
        if name not in value:
            return None, False
        value = value[name]
    return value, True


def _resolve(obj: Object, fields: Sequence[str], convert: Callable[[Any, Sequence[str]], Any]) -> Any:
    try:
        value, found = _lookup(obj, fields)
        if found:
            return convert(value, fields)
        cause: Exception = LookupError("field not found")
    except ValueError as exc:
        cause = exc
    raise ParseError(fields, obj, cause) from cause


def _as_string(value: Any, fields: Sequence[str]) -> str:
    if not isinstance(value, str):
        raise _type_error(fields, value, "str")
    return value


def _as_int(value: Any, fields: Sequence[str]) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise _type_error(fields, value, "int")
    return value


def _as_list(value: Any, fields: Sequence[str]) -> list:
    if not isinstance(value, list):
        raise _type_error(fields, value, "list")
    return copy.deepcopy(value)


def _as_string_list(value: Any, fields: Sequence[str]) -> list[str]:
    items = _as_list(value, fields)
    for item in items:
        if not isinstance(item, str):
            raise _type_error(fields, item, "str", "contains non-string value in the slice: ")
    return items


def _as_string_map(value: Any, fields: Sequence[str]) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise _type_error(fields, value, "dict")
    for key, item in value.items():
        if not isinstance(item, str):
            raise _type_error(
                fields, item, "str", f"contains non-string value in the map under key {key!r}: "
            )
    return dict(value)


def get_nested_string(obj: Object, *args: str) -> str:
    """Return the string at the given field path, raising ParseError otherwise."""
    return _resolve(obj, args, _as_string)


def get_nested_int(obj: Object, *args: str) -> int:
    """Return the integer at the given field path, raising ParseError otherwise."""
    return _resolve(obj, args, _as_int)


def get_nested_string_list(obj: Object, *args: str) -> list[str]:
    """Return a copy of the list of strings at the given field path."""
    return _resolve(obj, args, _as_string_list)


def get_nested_string_map(obj: Object, *args: str) -> dict[str, str]:
    """Return a copy of the string-to-string mapping at the given field path."""
    return _resolve(obj, args, _as_string_map)


def get_nested_list(obj: Object, *args: str) -> list:
    """Return a deep copy of the list at the given field path."""
    return _resolve(obj, args, _as_list)