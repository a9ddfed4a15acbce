"""Match prior-state resources to desired resources using validated directives."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models import (
    Address,
    Correspondence,
    Diagnostic,
    DiagnosticCode,
    DiagnosticError,
    Diagnostics,
    ResourceNode,
    index_nodes,
)
from ..validation import ValidatedSet

logger = logging.getLogger(__name__)


class MatchError(DiagnosticError):
    """Raised when directives cannot be applied to the supplied graphs."""


def _sort(addresses: Iterable[Address]) -> List[Address]:
    return sorted(addresses, key=lambda address: address.sort_key)


class GraphMatcher:
    """Compute the :class:`Correspondence` between a prior and a desired graph.

    Matching runs in a fixed order: removals leave candidacy first, explicit
    moves claim their targets, remaining prior addresses match identical
    desired addresses, imports bind what is left, and finally a bare prior
    address may claim instance ``[0]`` of the same resource. Whatever remains
    is created or destroyed.
    """

    def match(
        self,
        prior: Iterable[ResourceNode],
        desired: Iterable[ResourceNode],
        directives: ValidatedSet,
    ) -> Correspondence:
        prior_nodes = index_nodes(prior)
        desired_nodes = index_nodes(desired)
        diagnostics = Diagnostics()

        removals = self._collect_removals(prior_nodes, desired_nodes, directives, diagnostics)
        for directive in directives.imports:
            if directive.to not in desired_nodes:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.IMPORT_TARGET_UNDECLARED,
                        f"Import target {directive.to} is not declared in the configuration",
                        directive.to,
                    )
                )

        if diagnostics.has_errors:
            raise MatchError("Directives cannot be applied", diagnostics.to_list())

        self._report_dangling(desired_nodes, directives, diagnostics)

        matches: Dict[Address, Address] = {}
        claimed: Set[Address] = set()

        moved = self._resolve_moves(prior_nodes, desired_nodes, removals, directives, diagnostics)
        for source, target in moved.items():
            matches[source] = target
            claimed.add(target)

        for address in _sort(prior_nodes):
            if address in removals or address in matches:
                continue
            if address in desired_nodes and address not in claimed:
                matches[address] = address
                claimed.add(address)

        imports: Dict[Address, str] = {}
        for directive in directives.imports:
            if directive.to in claimed:
                diagnostics.add(
                    Diagnostic.warning(
                        DiagnosticCode.IMPORT_TARGET_MANAGED,
                        f"{directive.to} is already managed; import of {directive.id!r} skipped",
                        directive.to,
                    )
                )
                continue
            imports[directive.to] = directive.id
            claimed.add(directive.to)

        for address in _sort(prior_nodes):
            if address in removals or address in matches or address.instance_key is not None:
                continue
            indexed = address.with_key(0)
            if indexed in desired_nodes and indexed not in claimed:
                matches[address] = indexed
                claimed.add(indexed)

        creates = tuple(address for address in _sort(desired_nodes) if address not in claimed)
        destroys = tuple(
            address
            for address in _sort(prior_nodes)
            if address not in removals and address not in matches
        )

        logger.debug(
            "Matched %d prior address(es): %d moved, %d import(s), %d removal(s), "
            "%d create(s), %d destroy(s)",
            len(matches),
            len(moved),
            len(imports),
            len(removals),
            len(creates),
            len(destroys),
        )

        return Correspondence(
            matches=matches,
            explicit=frozenset(moved),
            imports=imports,
            removals=removals,
            creates=creates,
            destroys=destroys,
            diagnostics=diagnostics.to_list(),
        )

    # ------------------------------------------------------------------
    def _collect_removals(
        self,
        prior_nodes: Dict[Address, ResourceNode],
        desired_nodes: Dict[Address, ResourceNode],
        directives: ValidatedSet,
        diagnostics: Diagnostics,
    ) -> Dict[Address, bool]:
        removals: Dict[Address, bool] = {}

        # Whole-resource removals first so per-instance removals override them.
        ordered = sorted(directives.removals, key=lambda item: item.from_.instance_key is not None)
        for directive in ordered:
            target = directive.from_
            if target.instance_key is None:
                declared = [address for address in desired_nodes if address.same_resource(target)]
                covered = [address for address in prior_nodes if address.same_resource(target)]
            else:
                declared = [target] if target in desired_nodes else []
                covered = [target] if target in prior_nodes else []

            if declared:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.REMOVED_STILL_DECLARED,
                        f"{target} is removed but still declared in the configuration",
                        *_sort(declared),
                    )
                )
                continue

            if not covered:
                logger.debug("Removed block for %s matches nothing in state", target)
            for address in covered:
                removals[address] = directive.destroy

        return removals

    def _report_dangling(
        self,
        desired_nodes: Dict[Address, ResourceNode],
        directives: ValidatedSet,
        diagnostics: Diagnostics,
    ) -> None:
        for source in _sort(directives.moves):
            target = directives.moves[source]
            if target in directives.moves or target in desired_nodes:
                continue
            diagnostics.add(
                Diagnostic.warning(
                    DiagnosticCode.DANGLING_MOVE,
                    f"Moved block target {target} is not declared; the move from {source} is ignored",
                    source,
                    target,
                )
            )

    def _resolve_moves(
        self,
        prior_nodes: Dict[Address, ResourceNode],
        desired_nodes: Dict[Address, ResourceNode],
        removals: Dict[Address, bool],
        directives: ValidatedSet,
        diagnostics: Diagnostics,
    ) -> Dict[Address, Address]:
        # Declared hops of every chain, furthest first.
        candidates: Dict[Address, List[Tuple[Address, int]]] = {}
        for source in _sort(prior_nodes):
            if source in removals or source not in directives.moves:
                continue
            hops = directives.chain(source)
            declared = [
                (hops[distance - 1], distance)
                for distance in range(len(hops), 0, -1)
                if hops[distance - 1] in desired_nodes
            ]
            if declared:
                candidates[source] = declared

        position = dict.fromkeys(candidates, 0)
        first_refusal: Dict[Address, Tuple[Address, str]] = {}

        while True:
            proposals = {
                source: candidates[source][index]
                for source, index in position.items()
                if index < len(candidates[source])
            }
            contenders: Dict[Address, List[Tuple[int, str, Address]]] = defaultdict(list)
            for source, (target, distance) in proposals.items():
                contenders[target].append((distance, source.sort_key, source))

            accepted: Dict[Address, Optional[Address]] = {}
            refused: Dict[Address, Tuple[str, bool]] = {}

            def resolve(source: Address) -> Optional[Address]:
                if source in accepted:
                    return accepted[source]
                if source not in proposals:
                    accepted[source] = None
                    return None

                target, _ = proposals[source]
                result: Optional[Address] = target
                occupant_stays = (
                    target in prior_nodes and target not in removals and resolve(target) is None
                )
                if occupant_stays:
                    result = None
                    # The occupant may still vacate once it falls back to a closer hop.
                    refused[source] = ("an object already exists there", target not in proposals)
                else:
                    winner = min(contenders[target])[2]
                    if winner != source:
                        result = None
                        refused[source] = (f"{winner} is moved there instead", True)

                accepted[source] = result
                return result

            for source in _sort(proposals):
                resolve(source)

            settled = _sort(source for source, (_, final) in refused.items() if final)
            if not settled:
                break
            for source in settled:
                target, _ = proposals[source]
                first_refusal.setdefault(source, (target, refused[source][0]))
                position[source] += 1

        resolved: Dict[Address, Address] = {}
        for source in _sort(candidates):
            target = accepted.get(source)
            if target is not None:
                resolved[source] = target
                if source in first_refusal:
                    logger.debug(
                        "Moving %s to %s instead of %s", source, target, first_refusal[source][0]
                    )
                continue

            blocked, reason = first_refusal[source]
            diagnostics.add(
                Diagnostic.warning(
                    DiagnosticCode.MOVE_BLOCKED,
                    f"Cannot move {source} to {blocked}: {reason}",
                    source,
                    blocked,
                )
            )
            logger.debug("Skipping move of %s to %s", source, blocked)
        return resolved


__all__ = ["GraphMatcher", "MatchError"]
