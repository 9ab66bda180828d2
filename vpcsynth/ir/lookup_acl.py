"""Resolving specification resources into endpoints for network ACL synthesis."""

from __future__ import annotations

from typing import Mapping

from vpcsynth.ir.spec import (
    ConnectedResource,
    Definitions,
    InstanceDetails,
    NamedAddrs,
    ResourceNotFoundError,
    ResourceType,
    VPEDetails,
    lookup_single,
)
from vpcsynth.netset import IPBlock


def lookup_for_acl_synth(defs: Definitions, t: ResourceType, name: str) -> ConnectedResource:
    """Resolve resource ``name`` of type ``t``; every endpoint is a subnet or an external."""

    def lookup(element_type: ResourceType, element_name: str) -> ConnectedResource:
        return lookup_for_acl_synth(defs, element_type, element_name)

    if t == ResourceType.EXTERNAL:
        return lookup_single(defs.externals, name, t)
    if t == ResourceType.SUBNET:
        return lookup_single(defs.subnets, name, t)
    if t == ResourceType.NIF:
        return _lookup_nif(defs, name)
    if t == ResourceType.INSTANCE:
        return _lookup_container(defs.instances, defs, name, t)
    if t == ResourceType.VPE:
        return _lookup_container(defs.vpes, defs, name, t)
    if t == ResourceType.SUBNET_SEGMENT:
        return defs.lookup_segment(defs.subnet_segments, name, t, ResourceType.SUBNET, lookup)
    if t == ResourceType.CIDR_SEGMENT:
        return _lookup_cidr_segment(defs, name)
    if t == ResourceType.NIF_SEGMENT:
        return defs.lookup_segment(defs.nif_segments, name, t, ResourceType.NIF, lookup)
    if t == ResourceType.INSTANCE_SEGMENT:
        return defs.lookup_segment(defs.instance_segments, name, t, ResourceType.INSTANCE, lookup)
    if t == ResourceType.VPE_SEGMENT:
        return defs.lookup_segment(defs.vpe_segments, name, t, ResourceType.VPE, lookup)
    raise ValueError(f"unsupported resource type {t}")


def _lookup_container(
    m: Mapping[str, InstanceDetails | VPEDetails], defs: Definitions, name: str, t: ResourceType
) -> ConnectedResource:
    details = m.get(name)
    if details is None:
        raise ResourceNotFoundError.container(name, t)
    if details.connected_resource is not None:
        return details.connected_resource

    result = ConnectedResource(name=name, resource_type=ResourceType.SUBNET)
    endpoints = details.endpoint_map(defs)
    seen: set[str] = set()
    for endpoint_name in details.endpoint_names():
        subnet_name = endpoints[endpoint_name].subnet_name
        if subnet_name in seen:
            continue
        seen.add(subnet_name)
        named = NamedAddrs(ip_addrs=defs.subnets[subnet_name].cidr, name=subnet_name)
        result.cidrs_when_remote.append(named)
        result.cidrs_when_local.append(named)
    details.connected_resource = result
    return result


def _lookup_nif(defs: Definitions, name: str) -> ConnectedResource:
    details = defs.nifs.get(name)
    if details is None:
        raise ResourceNotFoundError.resource(name, ResourceType.NIF)
    if details.connected_resource is not None:
        return details.connected_resource
    subnet_name = details.subnet
    subnet_cidr = defs.subnets[subnet_name].cidr
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=[NamedAddrs(ip_addrs=subnet_cidr, name=subnet_name)],
        cidrs_when_remote=[NamedAddrs(ip_addrs=subnet_cidr, name=subnet_name)],
        resource_type=ResourceType.SUBNET,
    )
    return details.connected_resource


def _lookup_cidr_segment(defs: Definitions, name: str) -> ConnectedResource:
    details = defs.cidr_segments.get(name)
    if details is None:
        raise ResourceNotFoundError.container(name, ResourceType.CIDR_SEGMENT)
    if details.connected_resource is not None:
        return details.connected_resource
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=contained_subnets_in_cidr(defs, details.cidrs),
        cidrs_when_remote=[NamedAddrs(ip_addrs=cidr, name=name) for cidr in details.cidrs.split_to_cidrs()],
        resource_type=ResourceType.SUBNET,
    )
    return details.connected_resource


def contained_subnets_in_cidr(defs: Definitions, cidr: IPBlock) -> list[NamedAddrs]:
    """Return the subnets lying wholly inside ``cidr``, ordered by name."""
    return sorted(
        (
            NamedAddrs(ip_addrs=details.cidr, name=subnet)
            for subnet, details in defs.subnets.items()
            if details.cidr.is_subset(cidr)
        ),
        key=lambda named: named.name,
    )