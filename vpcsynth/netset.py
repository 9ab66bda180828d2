"""Sets of integers, IPv4 addresses and ICMP values, cube products, and protocols."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Iterable, Iterator

MIN_PORT = 1
MAX_PORT = 65535
MIN_ICMP_TYPE = 0
MAX_ICMP_TYPE = 254
MIN_ICMP_CODE = 0
MAX_ICMP_CODE = 255
_MAX_IPV4 = 2**32 - 1


def _normalize(intervals: Iterable[tuple[int, int]]) -> tuple[tuple[int, int], ...]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted((int(s), int(e)) for s, e in intervals):
        if start > end:
            raise ValueError(f"invalid interval [{start}, {end}]")
        if merged and start <= merged[-1][1] + 1:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return tuple(merged)


class IntervalSet:
    """An immutable set of integers kept as disjoint, non-adjacent closed intervals."""

    __slots__ = ("_intervals",)

    def __init__(self, intervals: Iterable[tuple[int, int]] = ()) -> None:
        self._intervals = _normalize(intervals)

    @classmethod
    def from_interval(cls, start: int, end: int) -> IntervalSet:
        return cls([(start, end)])

    def intervals(self) -> list[tuple[int, int]]:
        return list(self._intervals)

    def union(self, other: IntervalSet) -> IntervalSet:
        return IntervalSet(self._intervals + other._intervals)

    def intersect(self, other: IntervalSet) -> IntervalSet:
        result = []
        for start, end in self._intervals:
            for o_start, o_end in other._intervals:
                low, high = max(start, o_start), min(end, o_end)
                if low <= high:
                    result.append((low, high))
        return IntervalSet(result)

    def subtract(self, other: IntervalSet) -> IntervalSet:
        result = []
        for start, end in self._intervals:
            current = start
            for o_start, o_end in other._intervals:
                if o_end < current:
                    continue
                if o_start > end:
                    break
                if o_start > current:
                    result.append((current, o_start - 1))
                current = o_end + 1
                if current > end:
                    break
            if current <= end:
                result.append((current, end))
        return IntervalSet(result)

    def is_subset(self, other: IntervalSet) -> bool:
        return self.subtract(other).is_empty()

    def is_empty(self) -> bool:
        return not self._intervals

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and any(s <= value <= e for s, e in self._intervals)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return self._intervals == other._intervals

    def __lt__(self, other: IntervalSet) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return self._intervals < other._intervals

    def __hash__(self) -> int:
        return hash(self._intervals)

    def __repr__(self) -> str:
        return f"IntervalSet({list(self._intervals)!r})"


def _address_value(address: IPBlock | str, first: bool) -> int:
    if isinstance(address, IPBlock):
        intervals = address.ranges.intervals()
        if not intervals:
            raise ValueError("empty IP block has no address")
        return intervals[0][0] if first else intervals[-1][1]
    try:
        return int(ipaddress.IPv4Address(address))
    except ValueError as exc:
        raise ValueError(f"invalid IP address {address!r}") from exc


class IPBlock:
    """An immutable set of IPv4 addresses."""

    __slots__ = ("_ranges",)

    def __init__(self, ranges: IntervalSet | None = None) -> None:
        ranges = IntervalSet() if ranges is None else ranges
        if any(start < 0 or end > _MAX_IPV4 for start, end in ranges.intervals()):
            raise ValueError("IP range outside the IPv4 address space")
        self._ranges = ranges

    @property
    def ranges(self) -> IntervalSet:
        return self._ranges

    @classmethod
    def from_cidr(cls, cidr: str) -> IPBlock:
        try:
            network = ipaddress.IPv4Network(cidr, strict=False)
        except ValueError as exc:
            raise ValueError(f"invalid CIDR {cidr!r}") from exc
        return cls(IntervalSet.from_interval(int(network.network_address), int(network.broadcast_address)))

    @classmethod
    def from_cidr_list(cls, cidrs: Iterable[str]) -> IPBlock:
        return reduce(lambda acc, cidr: acc.union(cls.from_cidr(cidr)), cidrs, cls())

    @classmethod
    def from_ip_range(cls, first: IPBlock | str, last: IPBlock | str) -> IPBlock:
        start = _address_value(first, first=True)
        end = _address_value(last, first=False)
        if start > end:
            raise ValueError("first address of a range is after its last address")
        return cls(IntervalSet.from_interval(start, end))

    def union(self, other: IPBlock) -> IPBlock:
        return IPBlock(self._ranges.union(other._ranges))

    def intersect(self, other: IPBlock) -> IPBlock:
        return IPBlock(self._ranges.intersect(other._ranges))

    def subtract(self, other: IPBlock) -> IPBlock:
        return IPBlock(self._ranges.subtract(other._ranges))

    def is_subset(self, other: IPBlock) -> bool:
        return self._ranges.is_subset(other._ranges)

    def is_empty(self) -> bool:
        return self._ranges.is_empty()

    def _networks(self) -> Iterator[ipaddress.IPv4Network]:
        for start, end in self._ranges.intervals():
            yield from ipaddress.summarize_address_range(ipaddress.IPv4Address(start), ipaddress.IPv4Address(end))

    def split_to_cidrs(self) -> list[IPBlock]:
        """Return the block as a sorted list of blocks, each a single CIDR."""
        return [
            IPBlock(IntervalSet.from_interval(int(net.network_address), int(net.broadcast_address)))
            for net in self._networks()
        ]

    @staticmethod
    def _single(value: int) -> IPBlock:
        return IPBlock(IntervalSet.from_interval(value, value))

    def first_ip(self) -> IPBlock:
        return self._single(_address_value(self, first=True))

    def last_ip(self) -> IPBlock:
        return self._single(_address_value(self, first=False))

    def next_ip(self) -> IPBlock:
        """Return the address right after the last address of the block."""
        last = _address_value(self, first=False)
        if last == _MAX_IPV4:
            raise ValueError("no address follows 255.255.255.255")
        return self._single(last + 1)

    def previous_ip(self) -> IPBlock:
        """Return the address right before the first address of the block."""
        first = _address_value(self, first=True)
        if first == 0:
            raise ValueError("no address precedes 0.0.0.0")
        return self._single(first - 1)

    def touching(self, other: IPBlock) -> bool:
        """Tell whether the two blocks overlap or are adjacent."""
        if self.is_empty() or other.is_empty():
            return False
        own, theirs = self._ranges.intervals(), other._ranges.intervals()
        return len(self._ranges.union(other._ranges).intervals()) < len(own) + len(theirs)

    def compare(self, other: IPBlock) -> int:
        if self == other:
            return 0
        return -1 if self._ranges < other._ranges else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IPBlock):
            return NotImplemented
        return self._ranges == other._ranges

    def __lt__(self, other: IPBlock) -> bool:
        if not isinstance(other, IPBlock):
            return NotImplemented
        return self._ranges < other._ranges

    def __hash__(self) -> int:
        return hash(("ipblock", self._ranges))

    def __str__(self) -> str:
        return ", ".join(str(net) for net in self._networks())

    def __repr__(self) -> str:
        return f"IPBlock({str(self)!r})"


def _union_all(items: Iterable[Any]) -> Any | None:
    items = list(items)
    if not items:
        return None
    return reduce(lambda a, b: a.union(b), items)


class CubeProduct:
    """A set of pairs (left x right) kept as disjoint lefts, each with a distinct right set."""

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[tuple[Any, Any]] = ()) -> None:
        result = CubeProduct._make([])
        for left, right in pairs:
            result = result.union(CubeProduct.cartesian(left, right))
        self._pairs = result._pairs

    @classmethod
    def _make(cls, pairs: Iterable[tuple[Any, Any]]) -> CubeProduct:
        grouped: dict[Any, Any] = {}
        for left, right in pairs:
            if left.is_empty() or right.is_empty():
                continue
            grouped[right] = grouped[right].union(left) if right in grouped else left
        product = cls.__new__(cls)
        product._pairs = tuple(sorted(((left, right) for right, left in grouped.items()), key=lambda p: p[0]))
        return product

    @classmethod
    def cartesian(cls, left: Any, right: Any) -> CubeProduct:
        return cls._make([(left, right)])

    def _combine(
        self, other: CubeProduct, both: Callable[[Any, Any], Any], keep_self: bool, keep_other: bool
    ) -> CubeProduct:
        pairs = []
        other_lefts = _union_all(left for left, _ in other._pairs)
        self_lefts = _union_all(left for left, _ in self._pairs)
        for a_left, a_right in self._pairs:
            for b_left, b_right in other._pairs:
                overlap = a_left.intersect(b_left)
                if not overlap.is_empty():
                    pairs.append((overlap, both(a_right, b_right)))
            if keep_self:
                pairs.append((a_left if other_lefts is None else a_left.subtract(other_lefts), a_right))
        if keep_other:
            for b_left, b_right in other._pairs:
                pairs.append((b_left if self_lefts is None else b_left.subtract(self_lefts), b_right))
        return CubeProduct._make(pairs)

    def union(self, other: CubeProduct) -> CubeProduct:
        return self._combine(other, lambda a, b: a.union(b), keep_self=True, keep_other=True)

    def intersect(self, other: CubeProduct) -> CubeProduct:
        return self._combine(other, lambda a, b: a.intersect(b), keep_self=False, keep_other=False)

    def subtract(self, other: CubeProduct) -> CubeProduct:
        return self._combine(other, lambda a, b: a.subtract(b), keep_self=True, keep_other=False)

    def is_subset(self, other: CubeProduct) -> bool:
        return self.subtract(other).is_empty()

    def is_empty(self) -> bool:
        return not self._pairs

    def partitions(self) -> list[tuple[Any, Any]]:
        """Return the (left, right) pairs, sorted by left."""
        return list(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CubeProduct):
            return NotImplemented
        return self._pairs == other._pairs

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"CubeProduct({list(self._pairs)!r})"


class ICMPSet:
    """An immutable set of ICMP (type, code) values."""

    __slots__ = ("_cubes",)

    def __init__(self, cubes: CubeProduct | None = None) -> None:
        self._cubes = CubeProduct() if cubes is None else cubes

    @classmethod
    def from_ranges(cls, type_min: int, type_max: int, code_min: int, code_max: int) -> ICMPSet:
        if not MIN_ICMP_TYPE <= type_min <= type_max <= MAX_ICMP_TYPE:
            raise ValueError(f"invalid ICMP type range [{type_min}, {type_max}]")
        if not MIN_ICMP_CODE <= code_min <= code_max <= MAX_ICMP_CODE:
            raise ValueError(f"invalid ICMP code range [{code_min}, {code_max}]")
        return cls(
            CubeProduct.cartesian(
                IntervalSet.from_interval(type_min, type_max), IntervalSet.from_interval(code_min, code_max)
            )
        )

    def union(self, other: ICMPSet) -> ICMPSet:
        return ICMPSet(self._cubes.union(other._cubes))

    def intersect(self, other: ICMPSet) -> ICMPSet:
        return ICMPSet(self._cubes.intersect(other._cubes))

    def subtract(self, other: ICMPSet) -> ICMPSet:
        return ICMPSet(self._cubes.subtract(other._cubes))

    def is_subset(self, other: ICMPSet) -> bool:
        return self._cubes.is_subset(other._cubes)

    def is_empty(self) -> bool:
        return self._cubes.is_empty()

    def is_all(self) -> bool:
        return self == all_icmp_set()

    def partitions(self) -> list[tuple[IntervalSet, IntervalSet]]:
        """Return (types, codes) pairs, each type set with a distinct code set."""
        return self._cubes.partitions()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ICMPSet):
            return NotImplemented
        return self._cubes == other._cubes

    def __hash__(self) -> int:
        return hash(("icmpset", self._cubes))

    def __repr__(self) -> str:
        return f"ICMPSet({self._cubes.partitions()!r})"


@dataclass(frozen=True)
class AnyProtocol:
    """All protocols."""

    def inverse_direction(self) -> AnyProtocol:
        return AnyProtocol()


@dataclass(frozen=True)
class TCPUDP:
    """A TCP or UDP protocol with source and destination port ranges."""

    is_tcp: bool = True
    src_min: int = MIN_PORT
    src_max: int = MAX_PORT
    dst_min: int = MIN_PORT
    dst_max: int = MAX_PORT

    def __post_init__(self) -> None:
        for low, high in ((self.src_min, self.src_max), (self.dst_min, self.dst_max)):
            if not MIN_PORT <= low <= high <= MAX_PORT:
                raise ValueError(f"invalid port range [{low}, {high}]")

    def dst_ports(self) -> IntervalSet:
        return IntervalSet.from_interval(self.dst_min, self.dst_max)

    def protocol_string(self) -> str:
        return "TCP" if self.is_tcp else "UDP"

    def inverse_direction(self) -> TCPUDP | None:
        """Return the protocol of responses; only TCP tracks responses."""
        if not self.is_tcp:
            return None
        return TCPUDP(True, self.dst_min, self.dst_max, self.src_min, self.src_max)


_ICMP_INVERSE_TYPES = {0: 8, 8: 0, 13: 14, 14: 13}


@dataclass(frozen=True)
class ICMP:
    """ICMP with an optional type and, when a type is given, an optional code."""

    icmp_type: int | None = None
    icmp_code: int | None = None

    def __post_init__(self) -> None:
        if self.icmp_type is None:
            if self.icmp_code is not None:
                raise ValueError("ICMP code given without a type")
            return
        if not MIN_ICMP_TYPE <= self.icmp_type <= MAX_ICMP_TYPE:
            raise ValueError(f"invalid ICMP type {self.icmp_type}")
        if self.icmp_code is not None and not MIN_ICMP_CODE <= self.icmp_code <= MAX_ICMP_CODE:
            raise ValueError(f"invalid ICMP code {self.icmp_code}")

    def inverse_direction(self) -> ICMP | None:
        if self.icmp_type is None:
            return None
        inverse = _ICMP_INVERSE_TYPES.get(self.icmp_type)
        if inverse is None:
            return None
        return ICMP(inverse, self.icmp_code)


def cidr_all() -> IPBlock:
    """Return the block of every IPv4 address."""
    return IPBlock(IntervalSet.from_interval(0, _MAX_IPV4))


def all_ports() -> IntervalSet:
    return IntervalSet.from_interval(MIN_PORT, MAX_PORT)


def all_icmp_codes() -> IntervalSet:
    return IntervalSet.from_interval(MIN_ICMP_CODE, MAX_ICMP_CODE)


def all_icmp_set() -> ICMPSet:
    return ICMPSet.from_ranges(MIN_ICMP_TYPE, MAX_ICMP_TYPE, MIN_ICMP_CODE, MAX_ICMP_CODE)