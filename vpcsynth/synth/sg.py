"""Generating security groups that together enable the connectivity of a spec."""

from __future__ import annotations

from typing import Any

from vpcsynth.ir.common import Direction
from vpcsynth.ir.sg import RemoteType, SGCollection, SGName, SGRule
from vpcsynth.ir.spec import ConnectedResource, Connection, NamedAddrs, ResourceType, Spec
from vpcsynth.netset import cidr_all
from vpcsynth.synth.common import Explanation, Synthesizer, internal_connection, set_unspecified_warning
from vpcsynth.utils import true_key_values

WARNING_UNSPECIFIED_SG = (
    "The following endpoints do not have required connections; the generated SGs will block all traffic: "
)

_SG_REMOTE_TYPES = frozenset({ResourceType.INSTANCE, ResourceType.NIF, ResourceType.VPE})


class SGSynthesizer(Synthesizer):
    """Builds one security group per internal endpoint."""

    def __init__(self, spec: Spec, single: bool = False) -> None:
        self._spec = spec
        self._result = SGCollection()

    def synth(self) -> tuple[SGCollection, str]:
        """Generate rules for each connection, then empty SGs for unused endpoints."""
        for conn in self._spec.connections:
            self._rules_from_connection(conn, Direction.OUTBOUND)
            self._rules_from_connection(conn, Direction.INBOUND)
        warning = self._sgs_for_blocked_resources()
        return self._result, warning

    def _rules_from_connection(self, conn: Connection, direction: Direction) -> None:
        local, remote, internal_endpoint, internal_conn = conn_settings(conn, direction)
        if not internal_endpoint:
            return
        for local_endpoint in local.cidrs_when_local:
            for remote_cidr in remote.cidrs_when_remote:
                for tracked in conn.tracked_protocols:
                    reason = Explanation(
                        internal=internal_conn, connection_origin=conn.origin, protocol_origin=tracked.origin
                    )
                    self._allow_endpoint(
                        local_endpoint, remote_cidr, remote.resource_type, tracked.protocol, direction, str(reason)
                    )

    def _allow_endpoint(
        self,
        local_endpoint: NamedAddrs,
        remote_endpoint: NamedAddrs,
        remote_type: ResourceType,
        protocol: Any,
        direction: Direction,
        explanation: str,
    ) -> None:
        sg_name = SGName(local_endpoint.name)
        sg = self._result.lookup_or_create(sg_name)
        sg.targets = [str(sg_name)]
        sg.add(SGRule(direction, sg_remote(remote_endpoint, remote_type), protocol, cidr_all(), explanation))

    def _sgs_for_blocked_resources(self) -> str:
        blocked = true_key_values(self._spec.blocked_instances) + true_key_values(self._spec.blocked_vpes)
        for resource in blocked:
            sg = self._result.lookup_or_create(resource)  # an empty SG allows no connections
            sg.targets = [resource]
        return set_unspecified_warning(WARNING_UNSPECIFIED_SG, blocked)


def sg_remote(resource: NamedAddrs, t: ResourceType) -> RemoteType:
    """Return the remote of a rule: an SG name for instances, NIFs and VPEs, else addresses."""
    if is_sg_remote(t):
        return SGName(resource.name)
    return resource.ip_addrs


def conn_settings(
    conn: Connection, direction: Direction
) -> tuple[ConnectedResource, ConnectedResource, bool, bool]:
    """Return the local and remote resources, whether the local is internal, and whether both are."""
    internal_src, internal_dst, internal_conn = internal_connection(conn)
    if direction == Direction.INBOUND:
        return conn.dst, conn.src, internal_dst, internal_conn
    return conn.src, conn.dst, internal_src, internal_conn


def is_sg_remote(t: ResourceType) -> bool:
    return t in _SG_REMOTE_TYPES