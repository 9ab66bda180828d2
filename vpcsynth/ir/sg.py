"""Security groups, their rules and collections of them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from vpcsynth.ir.common import Direction, Writer
from vpcsynth.ir.spec import vpc_from_scoped_resource
from vpcsynth.netset import IPBlock
from vpcsynth.utils import sorted_all_inner_maps_keys, sorted_map_keys


class SGName(str):
    """The name of a security group, used as a rule remote."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"SGName({str.__repr__(self)})"


RemoteType = Union[IPBlock, SGName]


@dataclass
class SGRule:
    direction: Direction
    remote: RemoteType
    protocol: Any
    local: IPBlock
    explanation: str = ""

    def is_redundant(self, rules: list[SGRule]) -> bool:
        """Tell whether one of ``rules`` already states this rule."""
        return any(rule.must_supersede(self) for rule in rules)

    def must_supersede(self, other: SGRule) -> bool:
        """Tell whether the rules are equal apart from their explanations."""
        if type(self.remote) is not type(other.remote):
            return False
        return self == replace(other, explanation=self.explanation)


@dataclass
class SG:
    """A security group; rules are grouped by the string form of their local."""

    sg_name: SGName
    inbound_rules: dict[str, list[SGRule]] = field(default_factory=dict)
    outbound_rules: dict[str, list[SGRule]] = field(default_factory=dict)
    targets: list[str] = field(default_factory=list)

    def add(self, rule: SGRule) -> None:
        """Add a rule unless an equal rule is already there."""
        local = str(rule.local)
        if rule.direction == Direction.OUTBOUND:
            rules = self.outbound_rules
        elif rule.direction == Direction.INBOUND:
            rules = self.inbound_rules
        else:
            return
        if not rule.is_redundant(rules.get(local, [])):
            rules.setdefault(local, []).append(rule)

    def all_rules(self) -> list[SGRule]:
        """Return inbound then outbound rules, each ordered by local."""
        return [
            rule
            for rules in (self.inbound_rules, self.outbound_rules)
            for key in sorted_map_keys(rules)
            for rule in rules[key]
        ]


@dataclass
class SGCollection:
    """Security groups keyed by VPC name, then by SG name."""

    sgs: dict[str, dict[SGName, SG]] = field(default_factory=dict)

    def lookup_or_create(self, name: str) -> SG:
        sg_name = SGName(name)
        vpc_sgs = self.sgs.setdefault(vpc_from_scoped_resource(sg_name), {})
        sg = vpc_sgs.get(sg_name)
        if sg is None:
            sg = SG(sg_name=sg_name)
            vpc_sgs[sg_name] = sg
        return sg

    def vpc_names(self) -> list[str]:
        return sorted_map_keys(self.sgs)

    def write(self, writer: Writer, vpc: str, is_synth: bool) -> None:
        writer.write_sg(self, vpc, is_synth)

    def sorted_sg_names(self, vpc: str) -> list[SGName]:
        if not vpc:
            return sorted_all_inner_maps_keys(self.sgs)
        return sorted_map_keys(self.sgs.get(vpc, {}))