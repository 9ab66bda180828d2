import pytest

from vpcsynth.netset import (
    ICMP,
    MAX_ICMP_CODE,
    MAX_ICMP_TYPE,
    MAX_PORT,
    MIN_ICMP_CODE,
    MIN_ICMP_TYPE,
    MIN_PORT,
    TCPUDP,
    AnyProtocol,
    CubeProduct,
    ICMPSet,
    IntervalSet,
    IPBlock,
    all_icmp_codes,
    all_icmp_set,
    all_ports,
    cidr_all,
)

RFC1918 = ["10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"]


def test_interval_set_merges_adjacent_intervals():
    merged = IntervalSet.from_interval(1, 3).union(IntervalSet.from_interval(4, 6))
    assert merged == IntervalSet.from_interval(1, 6)
    assert merged.intervals() == [(1, 6)]


def test_interval_set_subtract_and_union_restore_whole():
    whole = IntervalSet.from_interval(1, 10)
    hole = IntervalSet.from_interval(4, 6)
    rest = whole.subtract(hole)
    assert rest.intersect(hole).is_empty()
    assert rest.union(hole) == whole
    assert len(rest.intervals()) == 2


def test_interval_set_subset():
    small = IntervalSet.from_interval(3, 4)
    big = IntervalSet.from_interval(1, 10)
    assert small.is_subset(big)
    assert not big.is_subset(small)
    assert IntervalSet().is_subset(small)


def test_interval_set_rejects_reversed_interval():
    with pytest.raises(ValueError):
        IntervalSet.from_interval(5, 1)


def test_ipblock_cidr_round_trip():
    for cidr in RFC1918:
        assert str(IPBlock.from_cidr(cidr)) == cidr


def test_ipblock_from_cidr_masks_host_bits():
    assert IPBlock.from_cidr("10.1.2.3/8") == IPBlock.from_cidr("10.0.0.0/8")


def test_ipblock_from_cidr_rejects_garbage():
    with pytest.raises(ValueError):
        IPBlock.from_cidr("not-a-cidr")


def test_ipblock_from_cidr_list_splits_back_in_order():
    block = IPBlock.from_cidr_list(reversed(RFC1918))
    assert [str(c) for c in block.split_to_cidrs()] == RFC1918


def test_ipblock_from_ip_range_matches_cidr():
    assert IPBlock.from_ip_range("10.0.0.0", "10.0.0.255") == IPBlock.from_cidr("10.0.0.0/24")


def test_ipblock_from_ip_range_rejects_reversed():
    with pytest.raises(ValueError):
        IPBlock.from_ip_range("10.0.0.9", "10.0.0.1")


def test_split_to_cidrs_partitions_block():
    block = IPBlock.from_ip_range("10.0.0.5", "10.0.1.3")
    cidrs = block.split_to_cidrs()
    rebuilt = IPBlock()
    for cidr in cidrs:
        assert rebuilt.intersect(cidr).is_empty()
        assert cidr.split_to_cidrs() == [cidr]
        rebuilt = rebuilt.union(cidr)
    assert rebuilt == block


def test_ipblock_set_algebra_invariant():
    a = IPBlock.from_cidr("10.0.0.0/16")
    b = IPBlock.from_cidr("10.0.128.0/17").union(IPBlock.from_cidr("11.0.0.0/8"))
    assert a.subtract(b).union(a.intersect(b)) == a
    assert a.intersect(b).is_subset(a)
    assert a.subtract(a).is_empty()


def test_first_and_last_ip():
    block = IPBlock.from_cidr("10.0.0.0/24")
    assert block.first_ip() == IPBlock.from_cidr("10.0.0.0/32")
    assert block.last_ip() == IPBlock.from_cidr("10.0.0.255")
    assert IPBlock.from_ip_range(block.first_ip(), block.last_ip()) == block


def test_next_and_previous_ip_are_adjacent():
    block = IPBlock.from_cidr("10.0.1.0/24")
    after = block.next_ip()
    before = block.previous_ip()
    assert block.touching(after)
    assert block.touching(before)
    assert block.intersect(after).is_empty()
    assert after.previous_ip() == block.last_ip()
    assert before.next_ip() == block.first_ip()


def test_next_and_previous_ip_at_edges_raise():
    with pytest.raises(ValueError):
        cidr_all().next_ip()
    with pytest.raises(ValueError):
        cidr_all().previous_ip()


def test_touching():
    low = IPBlock.from_cidr("10.0.0.0/25")
    high = IPBlock.from_cidr("10.0.0.128/25")
    far = IPBlock.from_cidr("10.0.2.0/24")
    assert low.touching(high)
    assert not low.touching(far)


def test_compare():
    a = IPBlock.from_cidr(RFC1918[0])
    b = IPBlock.from_cidr(RFC1918[2])
    assert a.compare(a) == 0
    assert a.compare(b) == -1
    assert b.compare(a) == 1


def test_cidr_all_contains_everything():
    block = IPBlock.from_cidr_list(RFC1918)
    assert block.is_subset(cidr_all())
    assert cidr_all().subtract(block).union(block) == cidr_all()


def test_ipblock_hash_consistent_with_equality():
    blocks = {IPBlock.from_cidr("10.0.0.0/8"), IPBlock.from_cidr("10.9.9.9/8")}
    assert len(blocks) == 1


def test_cube_product_merges_lefts_with_equal_rights():
    ports = IntervalSet.from_interval(1, 10)
    low = IPBlock.from_cidr("10.0.0.0/25")
    high = IPBlock.from_cidr("10.0.0.128/25")
    product = CubeProduct.cartesian(low, ports).union(CubeProduct.cartesian(high, ports))
    assert product.partitions() == [(low.union(high), ports)]


def test_cube_product_union_splits_overlap():
    wide = IPBlock.from_cidr("10.0.0.0/24")
    narrow = IPBlock.from_cidr("10.0.0.0/25")
    ports_a = IntervalSet.from_interval(1, 10)
    ports_b = IntervalSet.from_interval(20, 30)
    product = CubeProduct.cartesian(wide, ports_a).union(CubeProduct.cartesian(narrow, ports_b))
    assert product.partitions() == [
        (narrow, ports_a.union(ports_b)),
        (wide.subtract(narrow), ports_a),
    ]


def test_cube_product_subtract():
    block = IPBlock.from_cidr("10.0.0.0/24")
    product = CubeProduct.cartesian(block, all_ports())
    removed = CubeProduct.cartesian(block, all_ports())
    assert product.subtract(removed).is_empty()
    partial = product.subtract(CubeProduct.cartesian(IPBlock.from_cidr("10.0.0.0/25"), all_ports()))
    assert partial.partitions() == [(IPBlock.from_cidr("10.0.0.128/25"), all_ports())]
    assert partial.is_subset(product)


def test_cube_product_cartesian_with_empty_side_is_empty():
    assert CubeProduct.cartesian(IPBlock(), all_ports()).is_empty()
    assert CubeProduct.cartesian(cidr_all(), IntervalSet()).is_empty()


def test_icmp_set_all_and_empty():
    assert all_icmp_set().is_all()
    assert ICMPSet().is_empty()
    assert not ICMPSet().is_all()


def test_icmp_set_union_of_pieces_is_all():
    first = ICMPSet.from_ranges(MIN_ICMP_TYPE, 10, MIN_ICMP_CODE, MAX_ICMP_CODE)
    rest = all_icmp_set().subtract(first)
    assert rest.intersect(first).is_empty()
    assert first.union(rest).is_all()


def test_icmp_set_partitions_single_value():
    single = ICMPSet.from_ranges(8, 8, 0, 0)
    assert single.partitions() == [(IntervalSet.from_interval(8, 8), IntervalSet.from_interval(0, 0))]
    assert single.is_subset(all_icmp_set())


def test_icmp_set_rejects_out_of_range():
    with pytest.raises(ValueError):
        ICMPSet.from_ranges(0, MAX_ICMP_TYPE + 1, 0, 0)
    with pytest.raises(ValueError):
        ICMPSet.from_ranges(0, 0, 0, MAX_ICMP_CODE + 1)


def test_all_icmp_codes_matches_bounds():
    assert all_icmp_codes().intervals() == [(MIN_ICMP_CODE, MAX_ICMP_CODE)]


def test_any_protocol_inverse():
    assert AnyProtocol().inverse_direction() == AnyProtocol()


def test_tcp_inverse_swaps_ports():
    tcp = TCPUDP(True, MIN_PORT, MAX_PORT, 80, 80)
    assert tcp.inverse_direction() == TCPUDP(True, 80, 80, MIN_PORT, MAX_PORT)
    assert tcp.protocol_string() == "TCP"


def test_udp_has_no_inverse():
    assert TCPUDP(False).inverse_direction() is None


def test_tcpudp_dst_ports():
    assert TCPUDP(True, dst_min=80, dst_max=90).dst_ports() == IntervalSet.from_interval(80, 90)
    assert TCPUDP(False).dst_ports() == all_ports()


def test_tcpudp_rejects_bad_ports():
    with pytest.raises(ValueError):
        TCPUDP(True, dst_min=0, dst_max=10)
    with pytest.raises(ValueError):
        TCPUDP(True, src_min=100, src_max=50)


def test_icmp_inverse():
    assert ICMP(8, 0).inverse_direction() == ICMP(0, 0)
    assert ICMP(0, 0).inverse_direction() == ICMP(8, 0)
    assert ICMP().inverse_direction() is None


def test_icmp_code_requires_type():
    with pytest.raises(ValueError):
        ICMP(None, 3)