"""Correspondence and plan models produced by matching and plan building."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .address import Address
from .diagnostic import Diagnostic


class MutationKind(str, Enum):
    """Enumeration of the state mutations a plan can contain."""

    REMOVE_FROM_STATE = "remove_from_state"
    MOVE = "move"
    BIND = "bind"
    DESTROY = "destroy"
    CREATE = "create"


@dataclass(frozen=True, slots=True)
class Correspondence:
    """How prior-state addresses line up with desired addresses.

    ``matches`` maps a prior address to the desired address it becomes; entries
    whose key equals their value are plain identity matches. ``explicit``
    holds the prior addresses whose match came from a ``moved`` directive.
    """

    matches: Mapping[Address, Address] = field(default_factory=dict)
    explicit: frozenset[Address] = frozenset()
    imports: Mapping[Address, str] = field(default_factory=dict)
    removals: Mapping[Address, bool] = field(default_factory=dict)
    creates: Tuple[Address, ...] = ()
    destroys: Tuple[Address, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __post_init__(self) -> None:
        for name in ("matches", "imports", "removals"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def renames(self) -> Dict[Address, Address]:
        """Return the matches that change an address."""

        return {prior: desired for prior, desired in self.matches.items() if prior != desired}


@dataclass(frozen=True, slots=True)
class MutationOp:
    """A single state mutation."""

    kind: MutationKind
    address: Address
    source: Optional[Address] = None
    import_id: Optional[str] = None
    destroy: Optional[bool] = None
    implicit: bool = False
    provider: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "address": str(self.address)}
        if self.source is not None:
            payload["source"] = str(self.source)
        if self.import_id is not None:
            payload["import_id"] = self.import_id
        if self.destroy is not None:
            payload["destroy"] = self.destroy
        if self.implicit:
            payload["implicit"] = True
        if self.provider:
            payload["provider"] = self.provider
        return payload

    def describe(self) -> str:
        if self.kind is MutationKind.MOVE:
            return f"{self.source} -> {self.address}"
        if self.kind is MutationKind.BIND:
            return f"{self.address} <- {self.import_id}"
        if self.kind is MutationKind.REMOVE_FROM_STATE:
            suffix = "destroy" if self.destroy else "keep object"
            return f"{self.address} ({suffix})"
        return str(self.address)


@dataclass(frozen=True, slots=True)
class Plan:
    """Ordered mutations that turn the prior state into the desired state."""

    operations: Tuple[MutationOp, ...] = ()

    def __iter__(self) -> Iterator[MutationOp]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    @property
    def is_empty(self) -> bool:
        return not self.operations

    def of_kind(self, kind: MutationKind) -> List[MutationOp]:
        return [op for op in self.operations if op.kind is kind]

    def counts(self) -> Dict[str, int]:
        counts = {kind.value: 0 for kind in MutationKind}
        for op in self.operations:
            counts[op.kind.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.counts(),
            "operations": [op.to_dict() for op in self.operations],
        }

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


__all__ = ["Correspondence", "MutationKind", "MutationOp", "Plan"]
