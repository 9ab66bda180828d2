"""Merging per-protocol cubes into any-protocol cubes where possible."""

from __future__ import annotations

from vpcsynth.optimize.common import is_all_ports
from vpcsynth.optimize.sg.rules_to_cubes import IPCubesPerProtocol, SGCubesPerProtocol


def reduce_cubes_with_sg_remote(cubes: SGCubesPerProtocol) -> None:
    """Simplify security-group-remote cubes in place."""
    _delete_other_protocols_if_any_protocol_exists(cubes)
    _compress_three_protocols_to_any_protocol(cubes)


def _delete_other_protocols_if_any_protocol_exists(cubes: SGCubesPerProtocol) -> None:
    for sg_name in cubes.any_protocol:
        cubes.tcp.pop(sg_name, None)
        cubes.udp.pop(sg_name, None)
        cubes.icmp.pop(sg_name, None)


def _compress_three_protocols_to_any_protocol(cubes: SGCubesPerProtocol) -> None:
    for sg_name in sorted(cubes.tcp):
        tcp_ports = cubes.tcp[sg_name]
        udp_ports = cubes.udp.get(sg_name)
        icmp_set = cubes.icmp.get(sg_name)
        if udp_ports is None or icmp_set is None:
            continue
        if icmp_set.is_all() and is_all_ports(tcp_ports) and is_all_ports(udp_ports):
            del cubes.tcp[sg_name]
            del cubes.udp[sg_name]
            del cubes.icmp[sg_name]
            cubes.any_protocol.append(sg_name)


def reduce_ip_cubes(cubes: IPCubesPerProtocol) -> None:
    """Replace full TCP, UDP and ICMP cubes on the same addresses by any-protocol cubes, in place."""
    tcp_ptr = udp_ptr = icmp_ptr = 0

    while tcp_ptr < len(cubes.tcp) and udp_ptr < len(cubes.udp) and icmp_ptr < len(cubes.icmp):
        if not is_all_ports(cubes.tcp[tcp_ptr][1]):
            tcp_ptr += 1
            continue
        if not is_all_ports(cubes.udp[udp_ptr][1]):
            udp_ptr += 1
            continue
        if not cubes.icmp[icmp_ptr][1].is_all():
            icmp_ptr += 1
            continue

        if _compressed_to_any_protocol(cubes, tcp_ptr, udp_ptr, icmp_ptr):
            continue

        # Could not compress: advance past one block. If one block contains the
        # other two, advance the smaller of those two; otherwise the smallest.
        tcp_ip = cubes.tcp[tcp_ptr][0]
        udp_ip = cubes.udp[udp_ptr][0]
        icmp_ip = cubes.icmp[icmp_ptr][0]

        udp_vs_icmp = udp_ip.compare(icmp_ip)
        tcp_vs_udp = tcp_ip.compare(udp_ip)
        tcp_vs_icmp = tcp_ip.compare(icmp_ip)

        in_tcp = udp_ip.is_subset(tcp_ip) and icmp_ip.is_subset(tcp_ip)
        in_udp = icmp_ip.is_subset(udp_ip) and tcp_ip.is_subset(udp_ip)
        in_icmp = tcp_ip.is_subset(icmp_ip) and udp_ip.is_subset(icmp_ip)

        if in_tcp:
            if udp_vs_icmp == -1:
                udp_ptr += 1
            else:
                icmp_ptr += 1
        elif in_udp:
            if tcp_vs_icmp == -1:
                tcp_ptr += 1
            else:
                icmp_ptr += 1
        elif in_icmp:
            if tcp_vs_udp == -1:
                tcp_ptr += 1
            else:
                udp_ptr += 1
        elif tcp_vs_udp < 1 and tcp_vs_icmp < 1:
            tcp_ptr += 1
        elif tcp_vs_udp >= 0 and udp_vs_icmp < 1:
            udp_ptr += 1
        elif tcp_vs_icmp >= 0 and udp_vs_icmp >= 0:
            icmp_ptr += 1


def _compressed_to_any_protocol(cubes: IPCubesPerProtocol, tcp_ptr: int, udp_ptr: int, icmp_ptr: int) -> bool:
    """Merge three full-protocol cubes into an any-protocol cube; tell whether it happened."""
    tcp_ip = cubes.tcp[tcp_ptr][0]
    udp_ip = cubes.udp[udp_ptr][0]
    icmp_ip = cubes.icmp[icmp_ptr][0]

    if udp_ip == tcp_ip and udp_ip == icmp_ip:
        del cubes.tcp[tcp_ptr]
        del cubes.udp[udp_ptr]
        del cubes.icmp[icmp_ptr]
        cubes.any_protocol = cubes.any_protocol.union(udp_ip)
        return True
    if udp_ip.is_subset(tcp_ip) and udp_ip == icmp_ip:
        del cubes.udp[udp_ptr]
        del cubes.icmp[icmp_ptr]
        cubes.any_protocol = cubes.any_protocol.union(udp_ip)
        return True
    if tcp_ip.is_subset(udp_ip) and tcp_ip == icmp_ip:
        del cubes.tcp[tcp_ptr]
        del cubes.icmp[icmp_ptr]
        cubes.any_protocol = cubes.any_protocol.union(tcp_ip)
        return True
    if tcp_ip.is_subset(icmp_ip) and tcp_ip == udp_ip:
        del cubes.tcp[tcp_ptr]
        del cubes.udp[udp_ptr]
        cubes.any_protocol = cubes.any_protocol.union(tcp_ip)
        return True
    return False