"""Orchestration layer that runs validation, matching and plan building."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, MutableMapping, Sequence

from .adapters import ManifestError, ManifestLoader, StateLoader, StateLoaderError
from .matching import GraphMatcher, MatchError
from .models import Diagnostic, DiagnosticError, Directive, Plan, ResourceNode
from .normalization import StateNormalizationError, StateNormalizer
from .planning import PlanBuilder
from .validation import DirectiveValidationError, DirectiveValidator

logger = logging.getLogger(__name__)


class ReconciliationError(DiagnosticError):
    """Raised in strict mode when a plan was built but warnings were reported."""


@dataclass(slots=True)
class ReconciliationResult:
    """Result returned by :class:`ReconciliationService` runs."""

    plan: Plan
    diagnostics: Sequence[Diagnostic]
    metadata: Mapping[str, Any]


StateLoaderFactory = Callable[..., StateLoader]


class ReconciliationService:
    """High level service that turns graphs and directives into a plan."""

    def __init__(
        self,
        *,
        validator: DirectiveValidator | None = None,
        matcher: GraphMatcher | None = None,
        builder: PlanBuilder | None = None,
        state_loader_factory: StateLoaderFactory | None = None,
        normalizer: StateNormalizer | None = None,
        manifest_loader: ManifestLoader | None = None,
        fail_on_warnings: bool = False,
    ) -> None:
        self._validator = validator or DirectiveValidator()
        self._matcher = matcher or GraphMatcher()
        self._builder = builder or PlanBuilder()
        self._state_loader_factory = state_loader_factory or StateLoader
        self._normalizer = normalizer or StateNormalizer()
        self._manifest_loader = manifest_loader or ManifestLoader()
        self._fail_on_warnings = fail_on_warnings

    # ------------------------------------------------------------------
    def reconcile(
        self,
        prior: Iterable[ResourceNode],
        desired: Iterable[ResourceNode],
        directives: Sequence[Directive],
    ) -> ReconciliationResult:
        """Validate ``directives``, match the graphs and build the plan.

        Raises :class:`DirectiveValidationError` or :class:`MatchError` when
        fatal problems are found; no partial plan is returned in that case.
        """

        prior_nodes = list(prior)
        desired_nodes = list(desired)

        validated = self._validator.validate(directives)
        correspondence = self._matcher.match(prior_nodes, desired_nodes, validated)
        plan = self._builder.build(correspondence, prior_nodes, desired_nodes)

        diagnostics = list(correspondence.diagnostics)
        for diagnostic in diagnostics:
            logger.warning("[%s] %s", diagnostic.code.value, diagnostic.message)

        if diagnostics and self._fail_on_warnings:
            raise ReconciliationError("Reconciliation produced warnings in strict mode", diagnostics)

        metadata: dict[str, Any] = {
            "prior_count": len(prior_nodes),
            "desired_count": len(desired_nodes),
            "directive_count": len(directives),
            "operation_counts": plan.counts(),
        }
        logger.debug("Built plan with %d operation(s)", len(plan))

        return ReconciliationResult(plan=plan, diagnostics=diagnostics, metadata=metadata)

    def reconcile_files(
        self,
        working_dir: Path,
        *,
        state_path: Path | None = None,
        manifests: Sequence[Path | str] | None = None,
        env: Mapping[str, str] | None = None,
        inherit_environment: bool = False,
        terraform_bin: str = "terraform",
    ) -> ReconciliationResult:
        """Load prior state and manifests from disk, then reconcile them."""

        loader_kwargs: MutableMapping[str, Any] = {
            "working_dir": working_dir,
            "state_path": state_path,
            "inherit_environment": inherit_environment,
            "terraform_bin": terraform_bin,
        }
        if env:
            loader_kwargs["env"] = dict(env)

        loader = self._state_loader_factory(**loader_kwargs)
        prior = self._normalizer.normalize(loader.load_state())
        manifest = self._manifest_loader.load(manifests)

        result = self.reconcile(prior, manifest.resources, manifest.directives)

        metadata = dict(result.metadata)
        metadata["working_dir"] = str(working_dir)
        metadata["manifests"] = [str(path) for path in manifest.sources]
        result.metadata = metadata
        return result


__all__ = [
    "DirectiveValidationError",
    "ManifestError",
    "MatchError",
    "ReconciliationError",
    "ReconciliationResult",
    "ReconciliationService",
    "StateLoaderError",
    "StateNormalizationError",
]
