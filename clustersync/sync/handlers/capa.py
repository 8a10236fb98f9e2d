"""Handlers for Cluster API and Cluster API AWS provider objects."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .fields import (
    ClusterSpec,
    Object,
    ObjectHandler,
    Tier,
    get_nested_int,
    get_nested_list,
    get_nested_string,
    get_nested_string_map,
)


def _name(obj: Object) -> str:
    metadata = obj.get("metadata")
    if isinstance(metadata, Mapping) and isinstance(metadata.get("name"), str):
        return metadata["name"]
    return ""


def _tier_index(tiers: list[Tier], name: str) -> int | None:
    return next((i for i, tier in enumerate(tiers) if tier.name == name), None)


class ClusterHandler(ObjectHandler):
    """Reads short name, region, provider, location and environment from Cluster labels."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            spec.short_name = get_nested_string(obj, "metadata", "labels", "clusterShortName")
            spec.region = get_nested_string(obj, "metadata", "labels", "locationShortName")
            spec.cloud_type = get_nested_string(obj, "metadata", "labels", "provider")
            spec.cloud_provider_region = get_nested_string(obj, "metadata", "labels", "location")
            spec.environment = get_nested_string(obj, "metadata", "labels", "environment")
        return spec


def extract_oidc_issuer_from_arn(arn: str) -> str:
    """Return what follows the first '/' of an OIDC provider ARN, or ''."""
    _, found, after = arn.partition("/")
    return after if found else ""


class AWSManagedControlPlaneHandler(ObjectHandler):
    """Reads the OIDC issuer from AWSManagedControlPlane status."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            arn = get_nested_string(obj, "status", "oidcProvider", "arn")
            spec.extra.oidc_issuer = extract_oidc_issuer_from_arn(arn)
        return spec


def _taint_field(taint: Mapping[str, Any], name: str) -> str:
    value = taint.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"taint field {name!r} must be a string, got {type(value).__name__}")
    return value


def taint_to_string(taint: Mapping[str, Any]) -> str:
    """Render a taint as key[=value][:effect]."""
    if not isinstance(taint, Mapping):
        raise ValueError(f"taint must be an object, got {type(taint).__name__}")
    key = _taint_field(taint, "key")
    value = _taint_field(taint, "value")
    effect = _taint_field(taint, "effect")
    if not effect:
        return f"{key}={value}:" if value else key
    if not value:
        return f"{key}:{effect}"
    return f"{key}={value}:{effect}"


class AWSManagedMachinePoolHandler(ObjectHandler):
    """Builds one tier per AWSManagedMachinePool."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            name = get_nested_string(obj, "spec", "awsLaunchTemplate", "name")
            instance_type = get_nested_string(obj, "spec", "awsLaunchTemplate", "instanceType")
            min_size = get_nested_int(obj, "spec", "scaling", "minSize")
            max_size = get_nested_int(obj, "spec", "scaling", "maxSize")
            labels = get_nested_string_map(obj, "spec", "labels")
            taints = [taint_to_string(t) for t in get_nested_list(obj, "spec", "taints")]
            tier = Tier(
                name=name,
                instance_type=instance_type,
                min_capacity=min_size,
                max_capacity=max_size,
                labels=labels,
                taints=taints,
            )
            index = _tier_index(spec.tiers, name)
            if index is None:
                spec.tiers.append(tier)
            else:
                spec.tiers[index] = tier
        return spec


class EKSConfigHandler(ObjectHandler):
    """Reads each tier's container runtime from EKSConfig objects."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            runtime = get_nested_string(obj, "spec", "containerRuntime")
            name = _name(obj)
            index = _tier_index(spec.tiers, name)
            if index is None:
                spec.tiers.append(Tier(name=name, container_runtime=runtime))
            else:
                spec.tiers[index].container_runtime = runtime
        return spec