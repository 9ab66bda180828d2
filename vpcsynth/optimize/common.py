"""Helpers shared by the rule optimizers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cmp_to_key
from typing import Any

from vpcsynth.netset import (
    ICMP,
    MAX_ICMP_CODE,
    MIN_ICMP_CODE,
    ICMPSet,
    IntervalSet,
    IPBlock,
    all_icmp_codes,
    all_icmp_set,
    all_ports,
)


class Optimizer(ABC):
    """Attempts to reduce the number of SG or network ACL rules."""

    @abstractmethod
    def optimize(self) -> Any:
        """Return the optimized collection."""


def sort_partitions_by_ip_addrs(pairs: list[tuple[IPBlock, Any]]) -> list[tuple[IPBlock, Any]]:
    """Sort (IP block, set) pairs by their disjoint single-CIDR IP blocks."""
    return sorted(pairs, key=cmp_to_key(lambda a, b: a[0].compare(b[0])))


def icmpset_partitions(icmpset: ICMPSet) -> list[ICMP]:
    """Break an ICMP set into ICMP values, each expressible as a single rule."""
    if icmpset.is_all():
        return [ICMP()]
    all_codes = all_icmp_codes()
    result: list[ICMP] = []
    for types, codes in icmpset.partitions():
        for type_start, type_end in types.intervals():
            for icmp_type in range(type_start, type_end + 1):
                if codes == all_codes:
                    result.append(ICMP(icmp_type))
                    continue
                result.extend(
                    ICMP(icmp_type, code)
                    for code_start, code_end in codes.intervals()
                    for code in range(code_start, code_end + 1)
                )
    return result


def icmp_to_icmp_set(icmp: ICMP) -> ICMPSet:
    """Return the set of (type, code) values an ICMP value allows."""
    if icmp.icmp_type is None:
        return all_icmp_set()
    if icmp.icmp_code is None:
        return ICMPSet.from_ranges(icmp.icmp_type, icmp.icmp_type, MIN_ICMP_CODE, MAX_ICMP_CODE)
    return ICMPSet.from_ranges(icmp.icmp_type, icmp.icmp_type, icmp.icmp_code, icmp.icmp_code)


def is_all_ports(ports: IntervalSet) -> bool:
    return ports == all_ports()