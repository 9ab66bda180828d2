"""Reducing the number of rules in security groups."""

from __future__ import annotations

import logging

from vpcsynth.ir.common import Direction
from vpcsynth.ir.sg import SG, SGCollection, SGName, SGRule
from vpcsynth.ir.spec import scoping_components
from vpcsynth.netset import ICMP, TCPUDP, AnyProtocol, IPBlock
from vpcsynth.optimize.common import Optimizer
from vpcsynth.optimize.sg.ip_cubes_to_rules import (
    any_protocol_ip_cubes_to_rules,
    icmp_ip_cubes_to_rules,
    tcpudp_ip_cubes_to_rules,
)
from vpcsynth.optimize.sg.reduce_cubes import reduce_cubes_with_sg_remote, reduce_ip_cubes
from vpcsynth.optimize.sg.rules_to_cubes import (
    IPCubesPerProtocol,
    SGCubesPerProtocol,
    SGRulesPerProtocol,
    rules_to_ip_cubes,
    rules_to_sg_cubes,
)
from vpcsynth.optimize.sg.sg_cubes_to_rules import (
    any_protocol_cubes_to_rules,
    icmp_sg_cubes_to_rules,
    tcpudp_sg_cubes_to_rules,
)
from vpcsynth.utils import sorted_map_keys

logger = logging.getLogger(__name__)


class SGOptimizer(Optimizer):
    """Optimizes one named security group, or all of them when no name is given.

    The name may be scoped by its VPC as ``vpc/name``.
    """

    def __init__(self, collection: SGCollection, sg_name: str = "") -> None:
        self.collection = collection
        components = scoping_components(sg_name)
        if len(components) == 1:
            self.sg_name = SGName(sg_name)
            self.sg_vpc = ""
        else:
            self.sg_name = SGName(components[1])
            self.sg_vpc = components[0]

    def optimize(self) -> SGCollection:
        """Reduce rules in place and return the collection.

        Raises LookupError when a named security group is not found.
        """
        sgs = self.collection.sgs
        if self.sg_name:
            for vpc_name in sorted_map_keys(sgs):
                if self.sg_vpc and self.sg_vpc != vpc_name:
                    continue
                sg = sgs[vpc_name].get(self.sg_name)
                if sg is not None:
                    _optimize_sg(sg)
                    return self.collection
            raise LookupError(f"could not find {self.sg_name} sg")

        for vpc_name in sorted_map_keys(sgs):
            for sg_name in sorted_map_keys(sgs[vpc_name]):
                _optimize_sg(sgs[vpc_name][sg_name])
        return self.collection


def _optimize_sg(sg: SG) -> None:
    """Reduce inbound, then outbound rules of one SG, and log the outcome."""
    reduced = 0
    for rules_by_local, direction in ((sg.inbound_rules, Direction.INBOUND), (sg.outbound_rules, Direction.OUTBOUND)):
        for local_key, rules in list(rules_by_local.items()):
            new_rules = reduce_sg_rules(rules, direction, IPBlock.from_cidr(local_key))
            if len(rules) > len(new_rules):
                reduced += len(rules) - len(new_rules)
                rules_by_local[local_key] = new_rules

    if reduced == 0:
        logger.info("no rules were reduced in sg %s", sg.sg_name)
    else:
        logger.info("the number of rules in sg %s was reduced by %d", sg.sg_name, reduced)


def reduce_sg_rules(rules: list[SGRule], direction: Direction, local: IPBlock) -> list[SGRule]:
    """Reduce rules with SG remotes and rules with IP remotes separately."""
    sg_remote_rules, ip_remote_rules = divide_sg_rules(rules)

    optimized_to_sg = _reduce_rules_sg_remote(rules_to_sg_cubes(sg_remote_rules), direction, local)
    original_to_sg = sg_remote_rules.all_rules()
    if len(original_to_sg) <= len(optimized_to_sg):
        optimized_to_sg = original_to_sg

    optimized_to_ip = _reduce_rules_ip_remote(rules_to_ip_cubes(ip_remote_rules), direction, local)
    original_to_ip = ip_remote_rules.all_rules()
    if len(original_to_ip) <= len(optimized_to_sg):
        optimized_to_ip = original_to_ip

    return optimized_to_sg + optimized_to_ip


def _reduce_rules_sg_remote(cubes: SGCubesPerProtocol, direction: Direction, local: IPBlock) -> list[SGRule]:
    reduce_cubes_with_sg_remote(cubes)
    return (
        tcpudp_sg_cubes_to_rules(cubes.tcp, direction, True, local)
        + tcpudp_sg_cubes_to_rules(cubes.udp, direction, False, local)
        + icmp_sg_cubes_to_rules(cubes.icmp, direction, local)
        + any_protocol_cubes_to_rules(cubes.any_protocol, direction, local)
    )


def _reduce_rules_ip_remote(cubes: IPCubesPerProtocol, direction: Direction, local: IPBlock) -> list[SGRule]:
    reduce_ip_cubes(cubes)
    return (
        tcpudp_ip_cubes_to_rules(cubes.tcp, cubes.any_protocol, direction, True, local)
        + tcpudp_ip_cubes_to_rules(cubes.udp, cubes.any_protocol, direction, False, local)
        + icmp_ip_cubes_to_rules(cubes.icmp, cubes.any_protocol, direction, local)
        + any_protocol_ip_cubes_to_rules(cubes.any_protocol, direction, local)
    )


def divide_sg_rules(rules: list[SGRule]) -> tuple[SGRulesPerProtocol, SGRulesPerProtocol]:
    """Split rules by protocol; return those with SG remotes and those with IP remotes."""
    to_sg = SGRulesPerProtocol()
    to_ip = SGRulesPerProtocol()
    for rule in rules:
        group = to_ip if isinstance(rule.remote, IPBlock) else to_sg
        protocol = rule.protocol
        if isinstance(protocol, TCPUDP):
            (group.tcp if protocol.protocol_string() == "TCP" else group.udp).append(rule)
        elif isinstance(protocol, ICMP):
            group.icmp.append(rule)
        elif isinstance(protocol, AnyProtocol):
            group.any_protocol.append(rule)
    return to_sg, to_ip