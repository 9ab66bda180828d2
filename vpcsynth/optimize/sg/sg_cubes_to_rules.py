"""Turning security-group-remote cubes back into SG rules."""

from __future__ import annotations

from typing import Iterable, Mapping

from vpcsynth.ir.common import Direction
from vpcsynth.ir.sg import SGName, SGRule
from vpcsynth.netset import MAX_PORT, MIN_PORT, TCPUDP, AnyProtocol, ICMPSet, IntervalSet, IPBlock
from vpcsynth.optimize.common import icmpset_partitions


def tcpudp_sg_cubes_to_rules(
    cubes: Mapping[SGName, IntervalSet], direction: Direction, is_tcp: bool, local: IPBlock
) -> list[SGRule]:
    """Return one rule per remote SG and destination port interval."""
    return [
        SGRule(direction, SGName(sg_name), TCPUDP(is_tcp, MIN_PORT, MAX_PORT, start, end), local, "")
        for sg_name in sorted(cubes)
        for start, end in cubes[sg_name].intervals()
    ]


def icmp_sg_cubes_to_rules(cubes: Mapping[SGName, ICMPSet], direction: Direction, local: IPBlock) -> list[SGRule]:
    """Return one rule per remote SG and expressible ICMP value."""
    return [
        SGRule(direction, SGName(sg_name), icmp, local, "")
        for sg_name in sorted(cubes)
        for icmp in icmpset_partitions(cubes[sg_name])
    ]


def any_protocol_cubes_to_rules(remote_sgs: Iterable[SGName], direction: Direction, local: IPBlock) -> list[SGRule]:
    """Return one any-protocol rule per remote SG."""
    return [SGRule(direction, SGName(sg_name), AnyProtocol(), local, "") for sg_name in remote_sgs]