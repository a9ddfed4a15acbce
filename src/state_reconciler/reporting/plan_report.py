"""Human and machine readable renderings of a reconciliation plan."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any, List, Mapping, MutableMapping, Sequence

from ..models import Diagnostic, DiagnosticSeverity, MutationKind, MutationOp, Plan


@dataclass(slots=True)
class PlanReport:
    """A plan plus the diagnostics and metadata gathered while building it."""

    plan: Plan
    diagnostics: Sequence[Diagnostic] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        return any(item.severity is DiagnosticSeverity.WARNING for item in self.diagnostics)

    def counts_by_severity(self) -> dict[str, int]:
        counts: MutableMapping[DiagnosticSeverity, int] = {
            severity: 0 for severity in DiagnosticSeverity
        }
        for diagnostic in self.diagnostics:
            counts[diagnostic.severity] += 1
        return {severity.value: count for severity, count in counts.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": dict(self.metadata),
            "summary": {
                "total_operations": len(self.plan),
                "operations": self.plan.counts(),
                "diagnostics": self.counts_by_severity(),
            },
            "operations": [op.to_dict() for op in self.plan],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }

    def render_table(self) -> str:
        """Render the plan as a simple text table for terminal output."""

        if self.plan.is_empty:
            lines = ["No changes. State already matches the configuration."]
        else:
            headers = ("Action", "Address", "Detail")
            rows = [headers]
            for op in self.plan:
                rows.append((op.kind.value, str(op.address), _detail(op)))

            widths = [max(len(row[idx]) for row in rows) for idx in range(len(headers))]

            def format_row(values: tuple[str, str, str]) -> str:
                return "  ".join(
                    value.ljust(width) for value, width in zip(values, widths, strict=True)
                ).rstrip()

            lines = [format_row(headers)]
            lines.append("  ".join("=" * width for width in widths))
            for row in rows[1:]:
                lines.append(format_row(row))

        for diagnostic in self.diagnostics:
            lines.append(f"{diagnostic.severity.value.upper()}: {diagnostic.message}")
        return "\n".join(lines)

    def state_commands(self, state_path: str | None = None) -> List[str]:
        """Return Terraform CLI commands equivalent to the state mutations in the plan.

        Creates and destroys are left to ``terraform apply`` and have no
        equivalent state command. Removals that also destroy are listed as a
        targeted destroy.
        """

        state_flag = f"-state={shlex.quote(state_path)} " if state_path else ""
        commands: List[str] = []
        for op in self.plan:
            address = shlex.quote(str(op.address))
            if op.kind is MutationKind.MOVE:
                source = shlex.quote(str(op.source))
                commands.append(f"terraform state mv {state_flag}{source} {address}")
            elif op.kind is MutationKind.BIND:
                import_id = shlex.quote(op.import_id or "")
                commands.append(f"terraform import {state_flag}{address} {import_id}")
            elif op.kind is MutationKind.REMOVE_FROM_STATE:
                if op.destroy:
                    commands.append(f"terraform destroy {state_flag}-target={address}")
                else:
                    commands.append(f"terraform state rm {state_flag}{address}")
        return commands

    def state_script(self, state_path: str | None = None, shell: str = "#!/usr/bin/env bash") -> str:
        """Return :meth:`state_commands` as an executable shell script."""

        lines = [shell, "set -euo pipefail", ""]
        lines.extend(self.state_commands(state_path))
        return "\n".join(lines) + "\n"


def _detail(op: MutationOp) -> str:
    if op.kind is MutationKind.MOVE:
        suffix = " (implicit)" if op.implicit else ""
        return f"from {op.source}{suffix}"
    if op.kind is MutationKind.BIND:
        return f"import id {op.import_id}"
    if op.kind is MutationKind.REMOVE_FROM_STATE:
        return "destroy object" if op.destroy else "keep object"
    return op.provider or "-"


__all__ = ["PlanReport"]
