"""Input-format-agnostic specification of the required connectivity."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from vpcsynth.netset import IPBlock


class ResourceType(str, Enum):
    """Kinds of resources a connection endpoint may name."""

    EXTERNAL = "external"
    CIDR = "cidr"
    SUBNET = "subnet"
    NIF = "nif"
    VPE = "vpe"
    INSTANCE = "instance"
    SUBNET_SEGMENT = "subnetSegment"
    CIDR_SEGMENT = "cidrSegment"
    NIF_SEGMENT = "nifSegment"
    INSTANCE_SEGMENT = "instanceSegment"
    VPE_SEGMENT = "vpeSegment"

    def __str__(self) -> str:
        return self.value


class ResourceNotFoundError(LookupError):
    """A resource named in the specification is not defined."""

    @classmethod
    def resource(cls, first: object, second: object) -> ResourceNotFoundError:
        return cls(f"{first} {second} not found")

    @classmethod
    def container(cls, first: object, second: object) -> ResourceNotFoundError:
        return cls(f"container {first} {second} not found")


@dataclass
class NamedAddrs:
    """An endpoint given by IP addresses, by name, or both."""

    ip_addrs: IPBlock | None = None
    name: str = ""


@dataclass
class ConnectedResource:
    """A resolved connection endpoint.

    ``cidrs_when_local`` lists the endpoints to which firewall rules are applied;
    ``cidrs_when_remote`` lists the endpoints used as remotes of firewall rules.
    """

    name: str
    cidrs_when_local: list[NamedAddrs] = field(default_factory=list)
    cidrs_when_remote: list[NamedAddrs] = field(default_factory=list)
    resource_type: ResourceType = ResourceType.SUBNET


@dataclass
class TrackedProtocol:
    """An allowed protocol together with where it was specified."""

    protocol: Any
    origin: Any = None


@dataclass
class Connection:
    """A required connection from ``src`` to ``dst``."""

    src: ConnectedResource
    dst: ConnectedResource
    tracked_protocols: list[TrackedProtocol] = field(default_factory=list)
    origin: Any = None


@dataclass
class VPCDetails:
    address_prefixes: IPBlock | None = None


@dataclass
class SubnetDetails:
    cidr: IPBlock
    connected_resource: ConnectedResource | None = None

    @property
    def address(self) -> IPBlock:
        return self.cidr


@dataclass
class NifDetails:
    ip: IPBlock
    instance: str = ""
    subnet: str = ""
    connected_resource: ConnectedResource | None = None

    @property
    def address(self) -> IPBlock:
        return self.ip

    @property
    def subnet_name(self) -> str:
        return self.subnet


@dataclass
class VPEReservedIPsDetails:
    ip: IPBlock
    vpe_name: str = ""
    subnet: str = ""

    @property
    def address(self) -> IPBlock:
        return self.ip

    @property
    def subnet_name(self) -> str:
        return self.subnet


class SubSubnetResource(Protocol):
    """A resource that lives inside a subnet."""

    @property
    def address(self) -> IPBlock: ...

    @property
    def subnet_name(self) -> str: ...


@dataclass
class InstanceDetails:
    nifs: list[str] = field(default_factory=list)
    connected_resource: ConnectedResource | None = None

    def endpoint_names(self) -> list[str]:
        return self.nifs

    def endpoint_map(self, defs: Definitions) -> dict[str, NifDetails]:
        return {nif: defs.nifs[nif] for nif in self.nifs}


@dataclass
class VPEDetails:
    vpe_reserved_ips: list[str] = field(default_factory=list)
    connected_resource: ConnectedResource | None = None

    def endpoint_names(self) -> list[str]:
        return self.vpe_reserved_ips

    def endpoint_map(self, defs: Definitions) -> dict[str, VPEReservedIPsDetails]:
        return {rip: defs.vpe_reserved_ips[rip] for rip in self.vpe_reserved_ips}


@dataclass
class SegmentDetails:
    elements: list[str] = field(default_factory=list)
    connected_resource: ConnectedResource | None = None


@dataclass
class CidrSegmentDetails:
    cidrs: IPBlock
    connected_resource: ConnectedResource | None = None


@dataclass
class ExternalDetails:
    external_addrs: IPBlock
    connected_resource: ConnectedResource | None = None

    @property
    def address(self) -> IPBlock:
        return self.external_addrs


@dataclass
class ConfigDefs:
    """Definitions that are part of the network architecture."""

    vpcs: dict[str, VPCDetails] = field(default_factory=dict)
    subnets: dict[str, SubnetDetails] = field(default_factory=dict)
    nifs: dict[str, NifDetails] = field(default_factory=dict)
    instances: dict[str, InstanceDetails] = field(default_factory=dict)
    vpe_reserved_ips: dict[str, VPEReservedIPsDetails] = field(default_factory=dict)
    vpes: dict[str, VPEDetails] = field(default_factory=dict)


Lookup = Callable[[ResourceType, str], ConnectedResource]


@dataclass
class Definitions(ConfigDefs):
    """Architecture definitions plus the segments and externals of a spec."""

    subnet_segments: dict[str, SegmentDetails] = field(default_factory=dict)
    cidr_segments: dict[str, CidrSegmentDetails] = field(default_factory=dict)
    nif_segments: dict[str, SegmentDetails] = field(default_factory=dict)
    instance_segments: dict[str, SegmentDetails] = field(default_factory=dict)
    vpe_segments: dict[str, SegmentDetails] = field(default_factory=dict)
    externals: dict[str, ExternalDetails] = field(default_factory=dict)

    def lookup_segment(
        self,
        segment: Mapping[str, SegmentDetails],
        name: str,
        t: ResourceType,
        element_type: ResourceType,
        lookup: Lookup,
    ) -> ConnectedResource:
        """Resolve a segment by resolving each of its elements with ``lookup``."""
        details = segment.get(name)
        if details is None:
            raise ResourceNotFoundError.container(name, t)
        if details.connected_resource is not None:
            return details.connected_resource
        result = ConnectedResource(name=name, resource_type=element_type)
        for element_name in details.elements:
            element = lookup(element_type, element_name)
            result.cidrs_when_local = result.cidrs_when_local + element.cidrs_when_local
            result.cidrs_when_remote = result.cidrs_when_remote + element.cidrs_when_remote
        details.connected_resource = result
        return result


@dataclass
class BlockedResources:
    """Resources that do not appear in the spec."""

    blocked_subnets: dict[str, bool] = field(default_factory=dict)
    blocked_instances: dict[str, bool] = field(default_factory=dict)
    blocked_vpes: dict[str, bool] = field(default_factory=dict)


@dataclass
class Spec:
    """Required connections together with the definitions they refer to."""

    connections: list[Connection] = field(default_factory=list)
    defs: Definitions = field(default_factory=Definitions)
    blocked: BlockedResources = field(default_factory=BlockedResources)

    @property
    def blocked_subnets(self) -> dict[str, bool]:
        return self.blocked.blocked_subnets

    @property
    def blocked_instances(self) -> dict[str, bool]:
        return self.blocked.blocked_instances

    @property
    def blocked_vpes(self) -> dict[str, bool]:
        return self.blocked.blocked_vpes


def lookup_single(m: Mapping[str, Any], name: str, t: ResourceType) -> ConnectedResource:
    """Resolve a subnet or an external resource, caching the result on its details."""
    details = m.get(name)
    if details is None:
        raise ResourceNotFoundError.resource(name, t)
    if details.connected_resource is not None:
        return details.connected_resource
    result = ConnectedResource(
        name=name,
        cidrs_when_local=[NamedAddrs(ip_addrs=details.address, name=name)],
        cidrs_when_remote=[NamedAddrs(ip_addrs=details.address, name=name)],
        resource_type=t,
    )
    details.connected_resource = result
    return result


def scoping_components(s: str) -> list[str]:
    return s.split("/")


def vpc_from_scoped_resource(resource: str) -> str:
    return scoping_components(resource)[0]


def change_scoping(s: str) -> str:
    return s.replace("/", "--")