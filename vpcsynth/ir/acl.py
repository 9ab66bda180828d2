"""Network ACLs, their rules and the packets rules are built from."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from vpcsynth.ir.common import Direction, Writer
from vpcsynth.ir.spec import vpc_from_scoped_resource
from vpcsynth.netset import AnyProtocol, IPBlock, cidr_all
from vpcsynth.utils import sorted_all_inner_maps_keys, sorted_map_keys

_RFC1918_CIDRS = ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")


class Action(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    def __str__(self) -> str:
        return self.value


@dataclass
class ACLRule:
    action: Action
    direction: Direction
    source: IPBlock
    destination: IPBlock
    protocol: Any
    explanation: str = ""

    def is_redundant(self, rules: list[ACLRule]) -> bool:
        """Tell whether one of ``rules`` already states this rule."""
        return any(rule.must_supersede(self) for rule in rules)

    def must_supersede(self, other: ACLRule) -> bool:
        """Tell whether the rules are equal apart from their explanations."""
        return self == replace(other, explanation=self.explanation)

    def target(self) -> IPBlock:
        return self.destination if self.direction == Direction.INBOUND else self.source


@dataclass
class ACL:
    """A network ACL.

    ``internal`` and ``external`` hold rules during synthesis; ``inbound`` and
    ``outbound`` hold rules during optimization.
    """

    name: str
    subnets: list[str] = field(default_factory=list)
    internal: list[ACLRule] = field(default_factory=list)
    external: list[ACLRule] = field(default_factory=list)
    inbound: list[ACLRule] = field(default_factory=list)
    outbound: list[ACLRule] = field(default_factory=list)

    def rules(self) -> list[ACLRule]:
        if not self.internal and not self.external:
            return self.inbound + self.outbound
        if self.external:
            return self.internal + make_deny_internal() + self.external
        return list(self.internal)

    def append_internal(self, rule: ACLRule) -> None:
        if not rule.is_redundant(self.internal):
            self.internal.append(rule)

    def append_external(self, rule: ACLRule) -> None:
        if not rule.is_redundant(self.external):
            self.external.append(rule)

    def attached_subnets_string(self) -> str:
        """Sort and deduplicate the attached subnets, and join them."""
        self.subnets = sorted(set(self.subnets))
        return ", ".join(self.subnets)


def _acl_selector(subnet_name: str, single: bool) -> str:
    if single:
        return f"{vpc_from_scoped_resource(subnet_name)}/singleACL"
    return subnet_name


@dataclass
class ACLCollection:
    """Network ACLs keyed by VPC name, then by ACL name."""

    acls: dict[str, dict[str, ACL]] = field(default_factory=dict)

    def lookup_or_create(self, subnet_name: str, single_acl: bool) -> ACL:
        vpc_name = vpc_from_scoped_resource(subnet_name)
        acl_name = _acl_selector(subnet_name, single_acl)
        vpc_acls = self.acls.setdefault(vpc_name, {})
        acl = vpc_acls.get(acl_name)
        if acl is not None:
            if single_acl:
                acl.subnets.append(subnet_name)
            return acl
        acl = ACL(name=acl_name, subnets=[subnet_name])
        vpc_acls[acl_name] = acl
        return acl

    def vpc_names(self) -> list[str]:
        return sorted_map_keys(self.acls)

    def write(self, writer: Writer, vpc: str, is_synth: bool) -> None:
        writer.write_acl(self, vpc, is_synth)

    def sorted_acl_names(self, vpc: str) -> list[str]:
        if not vpc:
            return sorted_all_inner_maps_keys(self.acls)
        return sorted_map_keys(self.acls.get(vpc, {}))


@dataclass
class Packet:
    src: IPBlock
    dst: IPBlock
    protocol: Any
    explanation: str = ""


def _packet_acl_rule(packet: Packet, direction: Direction, action: Action) -> ACLRule:
    return ACLRule(
        action=action,
        direction=direction,
        source=packet.src,
        destination=packet.dst,
        protocol=packet.protocol,
        explanation=packet.explanation,
    )


def allow_send(packet: Packet) -> ACLRule:
    return _packet_acl_rule(packet, Direction.OUTBOUND, Action.ALLOW)


def allow_receive(packet: Packet) -> ACLRule:
    return _packet_acl_rule(packet, Direction.INBOUND, Action.ALLOW)


def make_deny_internal() -> list[ACLRule]:
    """Deny rules between private ranges, so external allows never open internal traffic."""
    local_cidrs = IPBlock.from_cidr_list(_RFC1918_CIDRS).split_to_cidrs()
    rules: list[ACLRule] = []
    for i, src in enumerate(local_cidrs):
        for j, dst in enumerate(local_cidrs):
            explanation = f"Deny other internal communication; see rfc1918#3; item {i},{j}"
            rules.append(_packet_acl_rule(Packet(src, dst, AnyProtocol(), explanation), Direction.OUTBOUND, Action.DENY))
            rules.append(_packet_acl_rule(Packet(dst, src, AnyProtocol(), explanation), Direction.INBOUND, Action.DENY))
    return rules


def deny_all_send(subnet_name: str, cidr: IPBlock) -> ACLRule:
    packet = Packet(cidr, cidr_all(), AnyProtocol(), deny_all_explanation(subnet_name, cidr))
    return _packet_acl_rule(packet, Direction.OUTBOUND, Action.DENY)


def deny_all_receive(subnet_name: str, cidr: IPBlock) -> ACLRule:
    packet = Packet(cidr_all(), cidr, AnyProtocol(), deny_all_explanation(subnet_name, cidr))
    return _packet_acl_rule(packet, Direction.INBOUND, Action.DENY)


def deny_all_explanation(subnet_name: str, cidr: IPBlock) -> str:
    return f"Deny all communication; subnet {subnet_name}[{cidr}] does not have required connections"