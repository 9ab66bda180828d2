"""Rule directions and the interface of collection writers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class Direction(str, Enum):
    """Direction of traffic a rule applies to."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"

    def __str__(self) -> str:
        return self.value


class Writer(ABC):
    """Writes ACL and security-group collections in some output format."""

    @abstractmethod
    def write_acl(self, acl_collection: Any, vpc: str, is_synth: bool) -> None:
        """Write the network ACLs of ``vpc`` (all VPCs when empty)."""

    @abstractmethod
    def write_sg(self, sg_collection: Any, vpc: str, is_synth: bool) -> None:
        """Write the security groups of ``vpc`` (all VPCs when empty)."""