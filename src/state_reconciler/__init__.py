"""state_reconciler - plan Terraform state refactors from moved, import and removed blocks.

Quick start::

    from state_reconciler import ReconciliationService, parse_address
    from state_reconciler.models import MovedDirective, ResourceNode

    service = ReconciliationService()
    result = service.reconcile(
        prior=[ResourceNode(parse_address("aws_instance.old"))],
        desired=[ResourceNode(parse_address("aws_instance.new"))],
        directives=[
            MovedDirective(
                from_=parse_address("aws_instance.old"),
                to=parse_address("aws_instance.new"),
            )
        ],
    )
    for op in result.plan:
        print(op.kind.value, op.describe())
"""

from .matching import GraphMatcher, MatchError
from .models import (
    Address,
    AddressParseError,
    Diagnostic,
    DiagnosticCode,
    DiagnosticSeverity,
    ImportDirective,
    MovedDirective,
    MutationKind,
    MutationOp,
    Plan,
    RemovedDirective,
    ResourceNode,
    format_address,
    parse_address,
)
from .planning import PlanBuilder
from .reporting import PlanReport
from .service import ReconciliationError, ReconciliationResult, ReconciliationService
from .validation import DirectiveValidationError, DirectiveValidator, ValidatedSet

__all__ = [
    "Address",
    "AddressParseError",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticSeverity",
    "DirectiveValidationError",
    "DirectiveValidator",
    "GraphMatcher",
    "ImportDirective",
    "MatchError",
    "MovedDirective",
    "MutationKind",
    "MutationOp",
    "Plan",
    "PlanBuilder",
    "PlanReport",
    "ReconciliationError",
    "ReconciliationResult",
    "ReconciliationService",
    "RemovedDirective",
    "ResourceNode",
    "ValidatedSet",
    "format_address",
    "parse_address",
]
__version__ = "0.1.0"
