"""Resource nodes held by the prior-state and desired graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .address import Address


@dataclass(frozen=True, slots=True)
class ResourceNode:
    """One resource instance in either the prior-state graph or the desired graph."""

    address: Address
    provider: str = ""
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)


def index_nodes(nodes: Iterable[ResourceNode]) -> Dict[Address, ResourceNode]:
    """Return nodes keyed by address, rejecting duplicate addresses."""

    indexed: Dict[Address, ResourceNode] = {}
    duplicates: List[str] = []
    for node in nodes:
        if node.address in indexed:
            duplicates.append(str(node.address))
            continue
        indexed[node.address] = node

    if duplicates:
        raise ValueError(f"Duplicate resource addresses in graph: {', '.join(sorted(duplicates))}")

    return indexed


__all__ = ["ResourceNode", "index_nodes"]
