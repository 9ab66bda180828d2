"""Resolving specification resources into endpoints for security-group synthesis."""

from __future__ import annotations

from typing import Iterable, Mapping

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


def lookup_for_sg_synth(defs: Definitions, t: ResourceType, name: str) -> ConnectedResource:
    """Resolve resource ``name`` of type ``t``; local endpoints are instances and VPEs."""

    def lookup(element_type: ResourceType, element_name: str) -> ConnectedResource:
        return lookup_for_sg_synth(defs, element_type, element_name)

    if t == ResourceType.EXTERNAL:
        return lookup_single(defs.externals, name, t)
    if t == ResourceType.SUBNET:
        return _lookup_subnet(defs, name)
    if t == ResourceType.NIF:
        return _lookup_nif(defs, name)
    if t == ResourceType.INSTANCE:
        return _lookup_container(defs.instances, name, t)
    if t == ResourceType.VPE:
        return _lookup_container(defs.vpes, name, t)
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


def _lookup_nif(defs: Definitions, name: str) -> ConnectedResource:
    details = defs.nifs.get(name)
    if details is None:
        raise ResourceNotFoundError.resource(ResourceType.NIF, name)
    if details.connected_resource is not None:
        return details.connected_resource
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=[NamedAddrs(name=details.instance)],
        cidrs_when_remote=[NamedAddrs(name=details.instance)],
        resource_type=ResourceType.INSTANCE,
    )
    return details.connected_resource


def _lookup_container(
    m: Mapping[str, InstanceDetails | VPEDetails], name: str, t: ResourceType
) -> ConnectedResource:
    details = m.get(name)
    if details is None:
        raise ResourceNotFoundError.container(t, name)
    if details.connected_resource is not None:
        return details.connected_resource
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=[NamedAddrs(name=name)],
        cidrs_when_remote=[NamedAddrs(name=name)],
        resource_type=t,
    )
    return details.connected_resource


def _lookup_subnet(defs: Definitions, name: str) -> ConnectedResource:
    details = defs.subnets.get(name)
    if details is None:
        raise ResourceNotFoundError.resource(ResourceType.SUBNET, name)
    if details.connected_resource is not None:
        return details.connected_resource
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=contained_resources_in_cidr(defs, details.cidr),
        cidrs_when_remote=[NamedAddrs(ip_addrs=details.cidr)],
        resource_type=ResourceType.SUBNET,
    )
    return details.connected_resource


def _lookup_cidr_segment(defs: Definitions, name: str) -> ConnectedResource:
    details = defs.cidr_segments.get(name)
    if details is None:
        raise ResourceNotFoundError.container(ResourceType.CIDR_SEGMENT, name)
    if details.connected_resource is not None:
        return details.connected_resource
    details.connected_resource = ConnectedResource(
        name=name,
        cidrs_when_local=contained_resources_in_cidr(defs, details.cidrs),
        cidrs_when_remote=cidr_to_named_addrs(details.cidrs),
        resource_type=ResourceType.CIDR,
    )
    return details.connected_resource


def contained_resources_in_cidr(defs: Definitions, cidr: IPBlock) -> list[NamedAddrs]:
    """Return the instances and VPEs with an address inside ``cidr``, by name, once each."""
    names = {nif.instance for nif in defs.nifs.values() if nif.ip.is_subset(cidr)}
    names.update(rip.vpe_name for rip in defs.vpe_reserved_ips.values() if rip.ip.is_subset(cidr))
    return names_to_named_addrs(sorted(names))


def cidr_to_named_addrs(cidr: IPBlock) -> list[NamedAddrs]:
    return [NamedAddrs(ip_addrs=block) for block in cidr.split_to_cidrs()]


def names_to_named_addrs(names: Iterable[str]) -> list[NamedAddrs]:
    return [NamedAddrs(name=name) for name in names]