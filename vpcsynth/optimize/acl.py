"""Network ACL optimization."""

from __future__ import annotations

from vpcsynth.ir.acl import ACLCollection
from vpcsynth.ir.spec import scoping_components
from vpcsynth.optimize.common import Optimizer


class ACLOptimizer(Optimizer):
    """Optimizer for network ACLs; the collection is returned unchanged.

    The ACL name may be scoped by its VPC as ``vpc/name``.
    """

    def __init__(self, collection: ACLCollection, acl_name: str = "") -> None:
        self.collection = collection
        components = scoping_components(acl_name)
        if len(components) == 1:
            self.acl_name = acl_name
            self.acl_vpc = ""
        else:
            self.acl_name = components[1]
            self.acl_vpc = components[0]

    def optimize(self) -> ACLCollection:
        return self.collection