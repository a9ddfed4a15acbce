"""Refactor directives: the ``moved``, ``import`` and ``removed`` blocks."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

from .address import Address, InstanceKey


@dataclass(frozen=True, slots=True)
class MovedDirective:
    """Record that the object previously at ``from_`` now lives at ``to``."""

    from_: Address
    to: Address


@dataclass(frozen=True, slots=True)
class ImportDirective:
    """Bind an existing infrastructure object to ``to`` by its external id.

    When ``for_each`` is supplied, the directive is a template: each key
    produces one concrete import into ``to[key]`` whose id is ``id`` with
    ``${each.key}`` and ``${each.value}`` substituted.
    """

    to: Address
    id: str = ""
    for_each: Optional[Mapping[InstanceKey, str]] = None

    def __post_init__(self) -> None:
        if self.for_each is not None and not isinstance(self.for_each, MappingProxyType):
            object.__setattr__(self, "for_each", MappingProxyType(dict(self.for_each)))

    def __hash__(self) -> int:
        items = tuple(sorted((str(k), v) for k, v in (self.for_each or {}).items()))
        return hash((self.to, self.id, items))

    def expand(self) -> Tuple["ImportDirective", ...]:
        if self.for_each is None:
            return (self,)

        expanded = []
        for key, value in self.for_each.items():
            import_id = self.id or "${each.value}"
            import_id = import_id.replace("${each.key}", str(key)).replace("${each.value}", str(value))
            expanded.append(ImportDirective(to=self.to.with_key(key), id=import_id))
        return tuple(expanded)


@dataclass(frozen=True, slots=True)
class RemovedDirective:
    """Drop ``from_`` from state, optionally destroying the real object.

    ``from_`` names a whole resource. ``for_each`` limits the removal to the
    listed instance keys of that resource.
    """

    from_: Address
    destroy: bool = True
    for_each: Optional[Tuple[InstanceKey, ...]] = None

    def __post_init__(self) -> None:
        if self.for_each is not None and not isinstance(self.for_each, tuple):
            object.__setattr__(self, "for_each", tuple(self.for_each))

    def expand(self) -> Tuple["RemovedDirective", ...]:
        if self.for_each is None:
            return (self,)
        return tuple(
            RemovedDirective(from_=self.from_.with_key(key), destroy=self.destroy)
            for key in self.for_each
        )


Directive = Union[MovedDirective, ImportDirective, RemovedDirective]


__all__ = ["Directive", "ImportDirective", "MovedDirective", "RemovedDirective"]
