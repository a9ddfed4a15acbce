"""Turn a correspondence into an ordered, deterministic list of state mutations."""

from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Mapping

from ..models import (
    Address,
    Correspondence,
    MutationKind,
    MutationOp,
    Plan,
    ResourceNode,
)


def _by_address(nodes: Iterable[ResourceNode]) -> Dict[Address, ResourceNode]:
    return {node.address: node for node in nodes}


def _provider(nodes: Dict[Address, ResourceNode], address: Address) -> str:
    node = nodes.get(address)
    return node.provider if node else ""


def _move_order(renames: Mapping[Address, Address]) -> List[Address]:
    """Order move sources so every address is vacated before anything moves into it.

    Independent moves are ordered by address text.
    """

    # The move into each source address, if any.
    incoming = {target: source for source, target in renames.items() if target in renames}
    ready = [
        (source.sort_key, source) for source, target in renames.items() if target not in renames
    ]
    heapq.heapify(ready)

    ordered: List[Address] = []
    while ready:
        _, source = heapq.heappop(ready)
        ordered.append(source)
        follower = incoming.get(source)
        if follower is not None:
            heapq.heappush(ready, (follower.sort_key, follower))

    if len(ordered) != len(renames):
        pending = sorted(set(renames) - set(ordered), key=lambda item: item.sort_key)
        raise ValueError("Moves form a cycle: " + ", ".join(str(item) for item in pending))
    return ordered


class PlanBuilder:
    """Build a :class:`Plan` from a :class:`Correspondence`.

    Operations are grouped so that state hygiene runs first and no rename can
    land on an address that is still occupied: removals, then moves, then
    import bindings, then destroys, then creates. Moves run in dependency
    order; every other group is sorted by address text.
    """

    def build(
        self,
        correspondence: Correspondence,
        prior: Iterable[ResourceNode],
        desired: Iterable[ResourceNode],
    ) -> Plan:
        prior_nodes = _by_address(prior)
        desired_nodes = _by_address(desired)
        operations: List[MutationOp] = []

        for address in sorted(correspondence.removals, key=lambda item: item.sort_key):
            operations.append(
                MutationOp(
                    kind=MutationKind.REMOVE_FROM_STATE,
                    address=address,
                    destroy=correspondence.removals[address],
                    provider=_provider(prior_nodes, address),
                )
            )

        renames = correspondence.renames()
        for source in _move_order(renames):
            operations.append(
                MutationOp(
                    kind=MutationKind.MOVE,
                    address=renames[source],
                    source=source,
                    implicit=source not in correspondence.explicit,
                    provider=_provider(desired_nodes, renames[source])
                    or _provider(prior_nodes, source),
                )
            )

        for address in sorted(correspondence.imports, key=lambda item: item.sort_key):
            operations.append(
                MutationOp(
                    kind=MutationKind.BIND,
                    address=address,
                    import_id=correspondence.imports[address],
                    provider=_provider(desired_nodes, address),
                )
            )

        for address in sorted(correspondence.destroys, key=lambda item: item.sort_key):
            operations.append(
                MutationOp(
                    kind=MutationKind.DESTROY,
                    address=address,
                    provider=_provider(prior_nodes, address),
                )
            )

        for address in sorted(correspondence.creates, key=lambda item: item.sort_key):
            operations.append(
                MutationOp(
                    kind=MutationKind.CREATE,
                    address=address,
                    provider=_provider(desired_nodes, address),
                )
            )

        return Plan(operations=tuple(operations))


__all__ = ["PlanBuilder"]
