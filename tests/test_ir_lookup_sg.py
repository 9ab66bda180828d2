import pytest

from vpcsynth.ir.lookup_sg import (
    cidr_to_named_addrs,
    contained_resources_in_cidr,
    lookup_for_sg_synth,
    names_to_named_addrs,
)
from vpcsynth.ir.spec import (
    CidrSegmentDetails,
    Definitions,
    ExternalDetails,
    InstanceDetails,
    NamedAddrs,
    NifDetails,
    ResourceNotFoundError,
    ResourceType,
    SegmentDetails,
    SubnetDetails,
    VPEDetails,
    VPEReservedIPsDetails,
)
from vpcsynth.netset import IPBlock

SUB1 = IPBlock.from_cidr("10.0.1.0/24")
SUB2 = IPBlock.from_cidr("10.0.2.0/24")


@pytest.fixture
def defs():
    return Definitions(
        subnets={"vpc/sub1": SubnetDetails(SUB1), "vpc/sub2": SubnetDetails(SUB2)},
        nifs={
            "vpc/nif1": NifDetails(IPBlock.from_cidr("10.0.1.5/32"), "vpc/vsi1", "vpc/sub1"),
            "vpc/nif2": NifDetails(IPBlock.from_cidr("10.0.1.6/32"), "vpc/vsi1", "vpc/sub1"),
            "vpc/nif3": NifDetails(IPBlock.from_cidr("10.0.2.5/32"), "vpc/vsi2", "vpc/sub2"),
        },
        instances={
            "vpc/vsi1": InstanceDetails(["vpc/nif1", "vpc/nif2"]),
            "vpc/vsi2": InstanceDetails(["vpc/nif3"]),
        },
        vpe_reserved_ips={"vpc/rip1": VPEReservedIPsDetails(IPBlock.from_cidr("10.0.2.9/32"), "vpc/vpe1", "vpc/sub2")},
        vpes={"vpc/vpe1": VPEDetails(["vpc/rip1"])},
        externals={"public": ExternalDetails(IPBlock.from_cidr("8.8.8.0/24"))},
        subnet_segments={"seg": SegmentDetails(["vpc/sub1", "vpc/sub2"])},
        cidr_segments={"cseg": CidrSegmentDetails(IPBlock.from_ip_range("10.0.1.0", "10.0.2.255"))},
        nif_segments={"nseg": SegmentDetails(["vpc/nif1", "vpc/nif3"])},
        instance_segments={"iseg": SegmentDetails(["vpc/vsi1", "vpc/vsi2"])},
        vpe_segments={"vseg": SegmentDetails(["vpc/vpe1"])},
    )


def _names(addrs):
    return [a.name for a in addrs]


def test_subnet_lookup_lists_instances_once(defs):
    res = lookup_for_sg_synth(defs, ResourceType.SUBNET, "vpc/sub1")
    assert res.resource_type == ResourceType.SUBNET
    assert _names(res.cidrs_when_local) == ["vpc/vsi1"]
    assert res.cidrs_when_remote == [NamedAddrs(ip_addrs=SUB1)]
    assert lookup_for_sg_synth(defs, ResourceType.SUBNET, "vpc/sub1") is res


def test_subnet_lookup_includes_vpes(defs):
    res = lookup_for_sg_synth(defs, ResourceType.SUBNET, "vpc/sub2")
    assert _names(res.cidrs_when_local) == ["vpc/vpe1", "vpc/vsi2"]


def test_nif_resolves_to_instance(defs):
    res = lookup_for_sg_synth(defs, ResourceType.NIF, "vpc/nif2")
    assert res.resource_type == ResourceType.INSTANCE
    assert res.cidrs_when_local == [NamedAddrs(name="vpc/vsi1")]
    assert res.cidrs_when_remote == [NamedAddrs(name="vpc/vsi1")]


@pytest.mark.parametrize(
    ("t", "name"),
    [(ResourceType.INSTANCE, "vpc/vsi2"), (ResourceType.VPE, "vpc/vpe1")],
)
def test_containers_resolve_to_themselves(defs, t, name):
    res = lookup_for_sg_synth(defs, t, name)
    assert res.resource_type == t
    assert res.cidrs_when_local == [NamedAddrs(name=name)]
    assert res.cidrs_when_remote == [NamedAddrs(name=name)]


def test_external(defs):
    res = lookup_for_sg_synth(defs, ResourceType.EXTERNAL, "public")
    assert res.resource_type == ResourceType.EXTERNAL
    assert [a.ip_addrs for a in res.cidrs_when_remote] == [defs.externals["public"].external_addrs]


def test_cidr_segment(defs):
    res = lookup_for_sg_synth(defs, ResourceType.CIDR_SEGMENT, "cseg")
    assert res.resource_type == ResourceType.CIDR
    assert _names(res.cidrs_when_local) == ["vpc/vpe1", "vpc/vsi1", "vpc/vsi2"]
    assert res.cidrs_when_remote == [NamedAddrs(ip_addrs=SUB1), NamedAddrs(ip_addrs=SUB2)]


def test_segments(defs):
    nseg = lookup_for_sg_synth(defs, ResourceType.NIF_SEGMENT, "nseg")
    assert nseg.resource_type == ResourceType.NIF
    assert _names(nseg.cidrs_when_local) == ["vpc/vsi1", "vpc/vsi2"]
    iseg = lookup_for_sg_synth(defs, ResourceType.INSTANCE_SEGMENT, "iseg")
    assert _names(iseg.cidrs_when_remote) == ["vpc/vsi1", "vpc/vsi2"]
    seg = lookup_for_sg_synth(defs, ResourceType.SUBNET_SEGMENT, "seg")
    assert seg.cidrs_when_remote == [NamedAddrs(ip_addrs=SUB1), NamedAddrs(ip_addrs=SUB2)]
    vseg = lookup_for_sg_synth(defs, ResourceType.VPE_SEGMENT, "vseg")
    assert vseg.resource_type == ResourceType.VPE


def test_missing_nif(defs):
    with pytest.raises(ResourceNotFoundError, match="nif vpc/nope not found"):
        lookup_for_sg_synth(defs, ResourceType.NIF, "vpc/nope")


def test_missing_container(defs):
    with pytest.raises(ResourceNotFoundError, match="container instance vpc/nope not found"):
        lookup_for_sg_synth(defs, ResourceType.INSTANCE, "vpc/nope")


@pytest.mark.parametrize(
    "t", [ResourceType.SUBNET, ResourceType.CIDR_SEGMENT, ResourceType.EXTERNAL, ResourceType.NIF_SEGMENT]
)
def test_missing_resources_raise(defs, t):
    with pytest.raises(ResourceNotFoundError):
        lookup_for_sg_synth(defs, t, "nope")


def test_contained_resources_outside_any(defs):
    assert contained_resources_in_cidr(defs, IPBlock.from_cidr("192.168.0.0/16")) == []


def test_cidr_to_named_addrs_round_trip():
    block = SUB1.union(SUB2)
    addrs = cidr_to_named_addrs(block)
    assert all(a.name == "" for a in addrs)
    merged = addrs[0].ip_addrs
    for a in addrs[1:]:
        merged = merged.union(a.ip_addrs)
    assert merged == block


def test_names_to_named_addrs():
    assert names_to_named_addrs(["a", "b"]) == [NamedAddrs(name="a"), NamedAddrs(name="b")]
    assert names_to_named_addrs([]) == []