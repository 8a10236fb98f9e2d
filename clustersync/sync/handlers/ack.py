"""Handlers for AWS controller (ACK) network objects."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .fields import (
    AvailabilityZone,
    ClusterSpec,
    Object,
    ObjectHandler,
    VirtualNetwork,
    get_nested_string,
    get_nested_string_list,
)


def is_private_subnet(obj: Object) -> bool:
    """Tell whether a subnet is private, judged by its name."""
    metadata = obj.get("metadata")
    name = metadata.get("name") if isinstance(metadata, Mapping) else None
    return isinstance(name, str) and "private" in name


class SubnetHandler(ObjectHandler):
    """Collects availability zones from private subnets."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            if not is_private_subnet(obj):
                continue
            name = get_nested_string(obj, "spec", "availabilityZone")
            zone_id = get_nested_string(obj, "spec", "availabilityZoneID")
            spec.availability_zones.append(AvailabilityZone(name=name, id=zone_id))
        return spec


class VPCHandler(ObjectHandler):
    """Collects virtual networks and the owning account from VPC objects."""

    def handle(self, objects: Sequence[Object]) -> ClusterSpec:
        spec = ClusterSpec()
        for obj in objects:
            vpc_id = get_nested_string(obj, "status", "vpcID")
            cidrs = get_nested_string_list(obj, "spec", "cidrBlocks")
            spec.virtual_networks.append(VirtualNetwork(id=vpc_id, cidrs=cidrs))
            spec.account_id = get_nested_string(obj, "status", "ownerID")
        return spec