"""Turning IP-remote cubes back into security-group rules."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from vpcsynth.ir.common import Direction
from vpcsynth.ir.sg import SGRule
from vpcsynth.netset import MAX_PORT, MIN_PORT, TCPUDP, AnyProtocol, ICMPSet, IntervalSet, IPBlock
from vpcsynth.optimize.common import icmp_to_icmp_set, icmpset_partitions

# An active rule: the first IP address it covers and its protocol.
_ActiveRule = tuple[int, Any]


def any_protocol_ip_cubes_to_rules(cubes: IPBlock, direction: Direction, local: IPBlock) -> list[SGRule]:
    """Return one any-protocol rule per CIDR of ``cubes``."""
    return [SGRule(direction, cidr, AnyProtocol(), local, "") for cidr in cubes.split_to_cidrs()]


def tcpudp_ip_cubes_to_rules(
    cubes: Sequence[tuple[IPBlock, IntervalSet]],
    any_protocol_cubes: IPBlock,
    direction: Direction,
    is_tcp: bool,
    local: IPBlock,
) -> list[SGRule]:
    """Convert sorted (IP range, port set) cubes of TCP or UDP into SG rules."""

    def split(ports: IntervalSet) -> list[tuple[Any, IntervalSet]]:
        return [
            (TCPUDP(is_tcp, MIN_PORT, MAX_PORT, start, end), IntervalSet.from_interval(start, end))
            for start, end in ports.intervals()
        ]

    return _cubes_to_rules(
        cubes, any_protocol_cubes, direction, local, lambda p: p.dst_ports(), split, IntervalSet()
    )


def icmp_ip_cubes_to_rules(
    cubes: Sequence[tuple[IPBlock, ICMPSet]],
    any_protocol_cubes: IPBlock,
    direction: Direction,
    local: IPBlock,
) -> list[SGRule]:
    """Convert sorted (IP range, ICMP set) cubes into SG rules."""

    def split(icmp_set: ICMPSet) -> list[tuple[Any, ICMPSet]]:
        return [(icmp, icmp_to_icmp_set(icmp)) for icmp in icmpset_partitions(icmp_set)]

    return _cubes_to_rules(cubes, any_protocol_cubes, direction, local, icmp_to_icmp_set, split, ICMPSet())


def _cubes_to_rules(
    cubes: Sequence[tuple[IPBlock, Any]],
    any_protocol_cubes: IPBlock,
    direction: Direction,
    local: IPBlock,
    protocol_set: Callable[[Any], Any],
    split: Callable[[Any], Iterable[tuple[Any, Any]]],
    empty: Any,
) -> list[SGRule]:
    """Sweep the cubes by address, extending rules over consecutive cubes while possible."""
    result: list[SGRule] = []
    active: list[_ActiveRule] = []
    prev_block: IPBlock | None = None

    for block, values in cubes:
        covered = empty
        if prev_block is not None:
            prev_last = _bounds(prev_block)[1]
            # a rule cannot continue across a hole not covered by any-protocol addresses
            if _uncovered_hole(prev_block, block, any_protocol_cubes):
                result.extend(_create_active_rules(active, prev_last, direction, local))
                active = []

            # close the active rules whose values the current cube does not fully hold
            kept: list[_ActiveRule] = []
            for first_ip, protocol in reversed(active):
                values_of_rule = protocol_set(protocol)
                if values_of_rule.is_subset(values):
                    covered = covered.union(values_of_rule)
                    kept.append((first_ip, protocol))
                else:
                    result.extend(_create_new_rules(protocol, first_ip, prev_last, direction, local))
            active = kept[::-1]

        # open rules for the values of the cube no active rule holds
        first_ip = _bounds(block)[0]
        active.extend((first_ip, protocol) for protocol, s in split(values) if not s.is_subset(covered))
        prev_block = block

    if prev_block is not None:
        result.extend(_create_active_rules(active, _bounds(prev_block)[1], direction, local))
    return result


def _bounds(block: IPBlock) -> tuple[int, int]:
    intervals = list(block.ranges.intervals())
    return intervals[0][0], intervals[-1][1]


def _range_block(first: int, last: int) -> IPBlock:
    return IPBlock(IntervalSet.from_interval(first, last))


def _uncovered_hole(prev_block: IPBlock, curr_block: IPBlock, any_protocol_cubes: IPBlock) -> bool:
    """Tell whether the gap between two blocks is not covered by any-protocol addresses."""
    prev_last = _bounds(prev_block)[1]
    curr_first = _bounds(curr_block)[0]
    if curr_first <= prev_last + 1:
        return False
    return not _range_block(prev_last + 1, curr_first - 1).is_subset(any_protocol_cubes)


def _create_active_rules(
    active: Iterable[_ActiveRule], last_ip: int, direction: Direction, local: IPBlock
) -> list[SGRule]:
    return [
        rule
        for first_ip, protocol in active
        for rule in _create_new_rules(protocol, first_ip, last_ip, direction, local)
    ]


def _create_new_rules(
    protocol: Any, first_ip: int, last_ip: int, direction: Direction, local: IPBlock
) -> list[SGRule]:
    """Break the address range into CIDRs and make one rule per CIDR."""
    return [
        SGRule(direction, cidr, protocol, local, "")
        for cidr in _range_block(first_ip, last_ip).split_to_cidrs()
    ]