"""Grouping security-group rules by protocol and turning them into cubes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from vpcsynth.ir.sg import SGName, SGRule
from vpcsynth.netset import (
    CubeProduct,
    ICMPSet,
    IntervalSet,
    IPBlock,
    all_icmp_set,
    all_ports,
)
from vpcsynth.optimize.common import icmp_to_icmp_set, sort_partitions_by_ip_addrs


@dataclass
class SGRulesPerProtocol:
    """Rules of one remote kind, split by protocol."""

    tcp: list[SGRule] = field(default_factory=list)
    udp: list[SGRule] = field(default_factory=list)
    icmp: list[SGRule] = field(default_factory=list)
    any_protocol: list[SGRule] = field(default_factory=list)

    def all_rules(self) -> list[SGRule]:
        return self.tcp + self.udp + self.icmp + self.any_protocol


@dataclass
class SGCubesPerProtocol:
    """Allowed traffic per remote security group, split by protocol."""

    tcp: dict[SGName, IntervalSet] = field(default_factory=dict)
    udp: dict[SGName, IntervalSet] = field(default_factory=dict)
    icmp: dict[SGName, ICMPSet] = field(default_factory=dict)
    any_protocol: list[SGName] = field(default_factory=list)


@dataclass
class IPCubesPerProtocol:
    """Allowed traffic per remote addresses, split by protocol.

    The TCP, UDP and ICMP lists hold (contiguous IP block, set) pairs sorted by
    address; ``any_protocol`` holds the addresses allowed with every protocol.
    """

    tcp: list[tuple[IPBlock, IntervalSet]] = field(default_factory=list)
    udp: list[tuple[IPBlock, IntervalSet]] = field(default_factory=list)
    icmp: list[tuple[IPBlock, ICMPSet]] = field(default_factory=list)
    any_protocol: IPBlock = field(default_factory=IPBlock)


def rules_to_sg_cubes(rules: SGRulesPerProtocol) -> SGCubesPerProtocol:
    """Turn rules whose remotes are security groups into cubes."""
    return SGCubesPerProtocol(
        tcp=_tcpudp_rules_to_sg_cubes(rules.tcp),
        udp=_tcpudp_rules_to_sg_cubes(rules.udp),
        icmp=_icmp_rules_to_sg_cubes(rules.icmp),
        any_protocol=_any_protocol_rules_to_sg_cubes(rules.any_protocol),
    )


def _any_protocol_rules_to_sg_cubes(rules: Iterable[SGRule]) -> list[SGName]:
    return sorted({SGName(rule.remote) for rule in rules})


def _tcpudp_rules_to_sg_cubes(rules: Iterable[SGRule]) -> dict[SGName, IntervalSet]:
    result: dict[SGName, IntervalSet] = {}
    for rule in rules:
        remote = SGName(rule.remote)
        result[remote] = result.get(remote, IntervalSet()).union(rule.protocol.dst_ports())
    return result


def _icmp_rules_to_sg_cubes(rules: Iterable[SGRule]) -> dict[SGName, ICMPSet]:
    result: dict[SGName, ICMPSet] = {}
    for rule in rules:
        remote = SGName(rule.remote)
        result[remote] = result.get(remote, ICMPSet()).union(icmp_to_icmp_set(rule.protocol))
    return result


def rules_to_ip_cubes(rules: SGRulesPerProtocol) -> IPCubesPerProtocol:
    """Turn rules whose remotes are IP blocks into cubes, minus the any-protocol addresses."""
    any_protocol = _any_protocol_rules_to_ip_cubes(rules.any_protocol)
    return IPCubesPerProtocol(
        tcp=_tcpudp_rules_to_ip_cubes(rules.tcp, any_protocol),
        udp=_tcpudp_rules_to_ip_cubes(rules.udp, any_protocol),
        icmp=_icmp_rules_to_ip_cubes(rules.icmp, any_protocol),
        any_protocol=any_protocol,
    )


def _any_protocol_rules_to_ip_cubes(rules: Iterable[SGRule]) -> IPBlock:
    result = IPBlock()
    for rule in rules:
        result = result.union(rule.remote)
    return result


def _contiguous_partitions(product: CubeProduct) -> list[tuple[IPBlock, object]]:
    pairs = [
        (IPBlock(IntervalSet.from_interval(start, end)), right)
        for left, right in product.partitions()
        for start, end in left.ranges.intervals()
    ]
    return sort_partitions_by_ip_addrs(pairs)


def _tcpudp_rules_to_ip_cubes(
    rules: Iterable[SGRule], any_protocol: IPBlock
) -> list[tuple[IPBlock, IntervalSet]]:
    cubes = CubeProduct()
    for rule in rules:
        cubes = cubes.union(CubeProduct.cartesian(rule.remote, rule.protocol.dst_ports()))
    cubes = cubes.subtract(CubeProduct.cartesian(any_protocol, all_ports()))
    return _contiguous_partitions(cubes)


def _icmp_rules_to_ip_cubes(rules: Iterable[SGRule], any_protocol: IPBlock) -> list[tuple[IPBlock, ICMPSet]]:
    cubes = CubeProduct()
    for rule in rules:
        cubes = cubes.union(CubeProduct.cartesian(rule.remote, icmp_to_icmp_set(rule.protocol)))
    cubes = cubes.subtract(CubeProduct.cartesian(any_protocol, all_icmp_set()))
    return _contiguous_partitions(cubes)