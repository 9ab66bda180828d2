"""Pieces shared by the ACL and security-group synthesizers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Iterable

from vpcsynth.ir.spec import Connection, ResourceType


class Synthesizer(ABC):
    """Turns a specification into a collection of firewall rules."""

    @abstractmethod
    def synth(self) -> tuple[Any, str]:
        """Return the synthesized collection and a warning (empty when there is none)."""


@dataclass(frozen=True)
class Explanation:
    """Why a rule was generated; its string form becomes the rule's explanation."""

    internal: bool = False
    connection_origin: Any = None
    protocol_origin: Any = None
    is_response: bool = False

    def response(self) -> Explanation:
        """Return the explanation of the rule allowing responses."""
        return replace(self, is_response=True)

    def __str__(self) -> str:
        locality = "Internal" if self.internal else "External"
        result = f"{self.connection_origin}; {self.protocol_origin}"
        if self.is_response:
            result = f"response to {result}"
        return f"{locality}. {result}"


def internal_connection(conn: Connection) -> tuple[bool, bool, bool]:
    """Return whether the source, the destination, and both are internal."""
    internal_src = conn.src.resource_type != ResourceType.EXTERNAL
    internal_dst = conn.dst.resource_type != ResourceType.EXTERNAL
    return internal_src, internal_dst, internal_src and internal_dst


def set_unspecified_warning(prefix: str, blocked_resources: Iterable[str]) -> str:
    """Return a warning naming the blocked resources, or an empty string if there are none."""
    blocked = list(blocked_resources)
    if not blocked:
        return ""
    return prefix + ", ".join(blocked)