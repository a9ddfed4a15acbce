"""Structural validation of ``moved``, ``import`` and ``removed`` directives."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from ..models import (
    Address,
    Diagnostic,
    DiagnosticCode,
    DiagnosticError,
    Diagnostics,
    Directive,
    ImportDirective,
    MovedDirective,
    RemovedDirective,
)

logger = logging.getLogger(__name__)


class DirectiveValidationError(DiagnosticError):
    """Raised when a directive set breaks one or more structural rules."""


@dataclass(frozen=True, slots=True)
class ValidatedSet:
    """Directives that passed validation, expanded and sorted by address."""

    moves: Mapping[Address, Address] = field(default_factory=dict)
    imports: Tuple[ImportDirective, ...] = ()
    removals: Tuple[RemovedDirective, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.moves, MappingProxyType):
            object.__setattr__(self, "moves", MappingProxyType(dict(self.moves)))

    def chain(self, start: Address) -> List[Address]:
        """Return every hop reachable from ``start`` by following moves, in order."""

        hops: List[Address] = []
        current = start
        while current in self.moves:
            current = self.moves[current]
            hops.append(current)
        return hops


def _sorted_addresses(addresses: Iterable[Address]) -> List[Address]:
    return sorted(addresses, key=lambda address: address.sort_key)


class DirectiveValidator:
    """Check a directive list against the refactoring rules.

    Validation never partially succeeds: either every directive is accepted and
    a :class:`ValidatedSet` is returned, or :class:`DirectiveValidationError`
    is raised with every problem found.
    """

    def validate(self, directives: Sequence[Directive]) -> ValidatedSet:
        moved: List[MovedDirective] = []
        imports: List[ImportDirective] = []
        removed: List[RemovedDirective] = []

        for directive in directives:
            if isinstance(directive, MovedDirective):
                moved.append(directive)
            elif isinstance(directive, ImportDirective):
                imports.append(directive)
            elif isinstance(directive, RemovedDirective):
                removed.append(directive)
            else:
                raise TypeError(f"Unsupported directive type: {type(directive).__name__}")

        diagnostics = Diagnostics()
        moves = self._check_moves(moved, diagnostics)
        expanded_imports = self._check_imports(imports, moves, diagnostics)
        expanded_removals = self._check_removals(removed, moves, expanded_imports, diagnostics)

        if diagnostics.has_errors:
            logger.debug("Directive validation failed with %d diagnostic(s)", len(diagnostics))
            raise DirectiveValidationError("Directive validation failed", diagnostics.to_list())

        logger.debug(
            "Validated %d move(s), %d import(s), %d removal(s)",
            len(moves),
            len(expanded_imports),
            len(expanded_removals),
        )
        return ValidatedSet(
            moves=moves,
            imports=tuple(expanded_imports),
            removals=tuple(expanded_removals),
        )

    # ------------------------------------------------------------------
    def _check_moves(
        self, moved: Sequence[MovedDirective], diagnostics: Diagnostics
    ) -> Dict[Address, Address]:
        unique = sorted(set(moved), key=lambda item: (item.from_.sort_key, item.to.sort_key))

        by_target: Dict[Address, List[Address]] = defaultdict(list)
        by_source: Dict[Address, List[Address]] = defaultdict(list)
        for directive in unique:
            by_target[directive.to].append(directive.from_)
            by_source[directive.from_].append(directive.to)

        for target in _sorted_addresses(by_target):
            sources = by_target[target]
            if len(sources) > 1:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.DUPLICATE_DESTINATION,
                        f"Multiple moved blocks target {target}: "
                        + ", ".join(str(source) for source in sources),
                        target,
                        *sources,
                    )
                )

        for source in _sorted_addresses(by_source):
            targets = by_source[source]
            if len(targets) > 1:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.AMBIGUOUS_SOURCE,
                        f"Multiple moved blocks move {source}: "
                        + ", ".join(str(target) for target in targets),
                        source,
                        *targets,
                    )
                )

        edges = {source: targets[0] for source, targets in by_source.items()}
        for cycle in self._find_cycles(edges):
            diagnostics.add(
                Diagnostic.error(
                    DiagnosticCode.MOVED_CYCLE,
                    "Moved blocks form a cycle: "
                    + " -> ".join(str(address) for address in [*cycle, cycle[0]]),
                    *cycle,
                )
            )

        return edges

    def _find_cycles(self, edges: Mapping[Address, Address]) -> List[List[Address]]:
        cycles: List[List[Address]] = []
        finished: Set[Address] = set()

        for start in _sorted_addresses(edges):
            path: List[Address] = []
            on_path: Dict[Address, int] = {}
            current = start
            while current in edges and current not in finished:
                if current in on_path:
                    cycles.append(path[on_path[current]:])
                    break
                on_path[current] = len(path)
                path.append(current)
                current = edges[current]
            finished.update(path)

        return cycles

    def _check_imports(
        self,
        imports: Sequence[ImportDirective],
        moves: Mapping[Address, Address],
        diagnostics: Diagnostics,
    ) -> List[ImportDirective]:
        by_target: Dict[Address, List[ImportDirective]] = defaultdict(list)
        for directive in imports:
            for concrete in directive.expand():
                if concrete not in by_target[concrete.to]:
                    by_target[concrete.to].append(concrete)

        move_targets = set(moves.values())
        expanded: List[ImportDirective] = []
        for target in _sorted_addresses(by_target):
            candidates = by_target[target]
            if len(candidates) > 1:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.DUPLICATE_DESTINATION,
                        f"Multiple import blocks target {target} with ids "
                        + ", ".join(repr(item.id) for item in candidates),
                        target,
                    )
                )
            if target in move_targets:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.DUPLICATE_DESTINATION,
                        f"{target} is the target of both a moved block and an import block",
                        target,
                    )
                )
            expanded.append(candidates[0])

        return expanded

    def _check_removals(
        self,
        removed: Sequence[RemovedDirective],
        moves: Mapping[Address, Address],
        imports: Sequence[ImportDirective],
        diagnostics: Diagnostics,
    ) -> List[RemovedDirective]:
        by_address: Dict[Address, Set[bool]] = defaultdict(set)

        for directive in removed:
            if directive.from_.instance_key is not None:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.INDEXED_REMOVAL_FORBIDDEN,
                        f"Removed block for {directive.from_} must not include an instance key",
                        directive.from_,
                    )
                )
                continue
            for concrete in directive.expand():
                by_address[concrete.from_].add(concrete.destroy)

        endpoints = set(moves) | set(moves.values()) | {item.to for item in imports}

        expanded: List[RemovedDirective] = []
        for address in _sorted_addresses(by_address):
            flags = by_address[address]
            if len(flags) > 1:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.CONFLICTING_DIRECTIVES,
                        f"Removed blocks for {address} disagree on destroy",
                        address,
                    )
                )
                continue

            if address.instance_key is None:
                clashes = [other for other in endpoints if other.same_resource(address)]
            else:
                clashes = [other for other in endpoints if other == address]
            if clashes:
                diagnostics.add(
                    Diagnostic.error(
                        DiagnosticCode.CONFLICTING_DIRECTIVES,
                        f"{address} is removed but also used by a moved or import block",
                        address,
                        *_sorted_addresses(clashes),
                    )
                )
                continue

            expanded.append(RemovedDirective(from_=address, destroy=flags.pop()))

        return expanded


__all__ = ["DirectiveValidationError", "DirectiveValidator", "ValidatedSet"]
