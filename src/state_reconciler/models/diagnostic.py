"""Structured diagnostics shared by the validator, matcher and service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from .address import Address


class DiagnosticSeverity(str, Enum):
    """Severity levels reported by the reconciliation pipeline."""

    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    """Stable identifiers for every problem the pipeline can report."""

    DUPLICATE_DESTINATION = "duplicate_destination"
    MOVED_CYCLE = "moved_cycle"
    INDEXED_REMOVAL_FORBIDDEN = "indexed_removal_forbidden"
    AMBIGUOUS_SOURCE = "ambiguous_source"
    CONFLICTING_DIRECTIVES = "conflicting_directives"
    REMOVED_STILL_DECLARED = "removed_still_declared"
    IMPORT_TARGET_UNDECLARED = "import_target_undeclared"
    DANGLING_MOVE = "dangling_move"
    MOVE_BLOCKED = "move_blocked"
    IMPORT_TARGET_MANAGED = "import_target_managed"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single error or warning, independent of any source location."""

    code: DiagnosticCode
    severity: DiagnosticSeverity
    message: str
    addresses: Tuple[Address, ...] = field(default_factory=tuple)

    @classmethod
    def error(cls, code: DiagnosticCode, message: str, *addresses: Address) -> "Diagnostic":
        return cls(code, DiagnosticSeverity.ERROR, message, tuple(addresses))

    @classmethod
    def warning(cls, code: DiagnosticCode, message: str, *addresses: Address) -> "Diagnostic":
        return cls(code, DiagnosticSeverity.WARNING, message, tuple(addresses))

    @property
    def is_error(self) -> bool:
        return self.severity is DiagnosticSeverity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "addresses": [str(address) for address in self.addresses],
        }


class Diagnostics:
    """Ordered collection of diagnostics gathered during one pipeline stage."""

    def __init__(self, items: Iterable[Diagnostic] | None = None) -> None:
        self._items: List[Diagnostic] = list(items or [])

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def add(self, diagnostic: Diagnostic) -> None:
        self._items.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self._items.extend(diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [item for item in self._items if item.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [item for item in self._items if not item.is_error]

    @property
    def has_errors(self) -> bool:
        return any(item.is_error for item in self._items)

    def codes(self) -> List[DiagnosticCode]:
        return [item.code for item in self._items]

    def to_list(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._items)


class DiagnosticError(RuntimeError):
    """Base error for pipeline stages that fail with one or more diagnostics."""

    def __init__(self, message: str, diagnostics: Sequence[Diagnostic]) -> None:
        super().__init__(message)
        self.diagnostics: Tuple[Diagnostic, ...] = tuple(diagnostics)

    def __str__(self) -> str:
        base = super().__str__()
        details = "; ".join(f"[{item.code.value}] {item.message}" for item in self.diagnostics)
        return f"{base}: {details}" if details else base

    @property
    def codes(self) -> List[DiagnosticCode]:
        return [item.code for item in self.diagnostics]


__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticError",
    "DiagnosticSeverity",
    "Diagnostics",
]
