"""Generating network ACLs that together enable the connectivity of a spec."""

from __future__ import annotations

from typing import Callable

from vpcsynth.ir.acl import ACLCollection, ACLRule, Packet, allow_receive, allow_send, deny_all_receive, deny_all_send
from vpcsynth.ir.spec import ConnectedResource, Connection, NamedAddrs, Spec, TrackedProtocol
from vpcsynth.netset import IPBlock
from vpcsynth.synth.common import Explanation, Synthesizer, internal_connection, set_unspecified_warning
from vpcsynth.utils import true_key_values

WARNING_UNSPECIFIED_ACL = (
    "The following subnets do not have required connections; the generated ACL will block all traffic: "
)

_Allow = Callable[[Connection, TrackedProtocol, NamedAddrs, IPBlock], None]


class ACLSynthesizer(Synthesizer):
    """Builds network ACLs, one per subnet or one per VPC when ``single_acl`` is set."""

    def __init__(self, spec: Spec, single_acl: bool = False) -> None:
        self._spec = spec
        self._single_acl = single_acl
        self._result = ACLCollection()

    def synth(self) -> tuple[ACLCollection, str]:
        """Generate rules for each connection, then deny-all rules for unused subnets."""
        for conn in self._spec.connections:
            self._rules_from_connection(conn, conn.src, conn.dst, self._allow_connection_src)
            self._rules_from_connection(conn, conn.dst, conn.src, self._allow_connection_dst)
        warning = self._rules_for_blocked_subnets()
        return self._result, warning

    @staticmethod
    def _rules_from_connection(
        conn: Connection, this: ConnectedResource, other: ConnectedResource, allow: _Allow
    ) -> None:
        for this_subnet in this.cidrs_when_local:
            for other_cidr in other.cidrs_when_remote:
                if this_subnet.ip_addrs == other_cidr.ip_addrs:
                    continue
                for tracked in conn.tracked_protocols:
                    allow(conn, tracked, this_subnet, other_cidr.ip_addrs)

    def _allow_connection_src(
        self, conn: Connection, p: TrackedProtocol, src_subnet: NamedAddrs, dst_cidr: IPBlock
    ) -> None:
        internal_src, _, internal = internal_connection(conn)
        if not internal_src:
            return
        reason = Explanation(internal=internal, connection_origin=conn.origin, protocol_origin=p.origin)
        request = Packet(src_subnet.ip_addrs, dst_cidr, p.protocol, str(reason))
        self._add_rule(allow_send(request), src_subnet.name, internal)
        inverse = p.protocol.inverse_direction()
        if inverse is not None:
            response = Packet(dst_cidr, src_subnet.ip_addrs, inverse, str(reason.response()))
            self._add_rule(allow_receive(response), src_subnet.name, internal)

    def _allow_connection_dst(
        self, conn: Connection, p: TrackedProtocol, dst_subnet: NamedAddrs, src_cidr: IPBlock
    ) -> None:
        _, internal_dst, internal = internal_connection(conn)
        if not internal_dst:
            return
        reason = Explanation(internal=internal, connection_origin=conn.origin, protocol_origin=p.origin)
        request = Packet(src_cidr, dst_subnet.ip_addrs, p.protocol, str(reason))
        self._add_rule(allow_receive(request), dst_subnet.name, internal)
        inverse = p.protocol.inverse_direction()
        if inverse is not None:
            response = Packet(dst_subnet.ip_addrs, src_cidr, inverse, str(reason.response()))
            self._add_rule(allow_send(response), dst_subnet.name, internal)

    def _add_rule(self, rule: ACLRule, subnet_name: str, internal: bool) -> None:
        acl = self._result.lookup_or_create(subnet_name, self._single_acl)
        if internal:
            acl.append_internal(rule)
        else:
            acl.append_external(rule)

    def _rules_for_blocked_subnets(self) -> str:
        blocked = true_key_values(self._spec.blocked_subnets)
        for subnet in blocked:
            acl = self._result.lookup_or_create(subnet, self._single_acl)
            cidr = self._spec.defs.subnets[subnet].address
            acl.append_internal(deny_all_receive(subnet, cidr))
            acl.append_internal(deny_all_send(subnet, cidr))
        return set_unspecified_warning(WARNING_UNSPECIFIED_ACL, blocked)