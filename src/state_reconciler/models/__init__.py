"""Data models for addresses, graphs, directives, plans and diagnostics."""

from .address import (
    Address,
    AddressParseError,
    InstanceKey,
    ModuleStep,
    format_address,
    format_module_path,
    parse_address,
    parse_module_path,
)
from .diagnostic import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticError,
    DiagnosticSeverity,
    Diagnostics,
)
from .directive import Directive, ImportDirective, MovedDirective, RemovedDirective
from .plan import Correspondence, MutationKind, MutationOp, Plan
from .resource import ResourceNode, index_nodes

__all__ = [
    "Address",
    "AddressParseError",
    "Correspondence",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticError",
    "DiagnosticSeverity",
    "Diagnostics",
    "Directive",
    "ImportDirective",
    "InstanceKey",
    "ModuleStep",
    "MovedDirective",
    "MutationKind",
    "MutationOp",
    "Plan",
    "RemovedDirective",
    "ResourceNode",
    "format_address",
    "format_module_path",
    "index_nodes",
    "parse_address",
    "parse_module_path",
]
