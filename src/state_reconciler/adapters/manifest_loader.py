"""Load reconciliation manifests describing the desired graph and refactor directives.

A manifest is a YAML (or JSON) mapping::

    resources:
      - address: aws_s3_bucket.buckets["one"]
        provider: registry.terraform.io/hashicorp/aws
    moved:
      - from: aws_s3_bucket.buckets[0]
        to: aws_s3_bucket.buckets["one"]
    import:
      - to: aws_instance.web
        id: i-0123456789abcdef0
    removed:
      - from: aws_instance.legacy
        destroy: false
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml

from ..models import (
    Directive,
    ImportDirective,
    MovedDirective,
    RemovedDirective,
    ResourceNode,
    parse_address,
)


class ManifestError(RuntimeError):
    """Raised when reconciliation manifests cannot be loaded or parsed."""


@dataclass(slots=True)
class ReconciliationManifest:
    """Desired resources and directives gathered from one or more manifests."""

    resources: List[ResourceNode] = field(default_factory=list)
    directives: List[Directive] = field(default_factory=list)
    sources: List[Path] = field(default_factory=list)


class ManifestLoader:
    """Read manifests and merge them in order."""

    def __init__(self, default_manifests: Sequence[Path | str] | None = None) -> None:
        self._default_manifests = [Path(path) for path in default_manifests or []]

    # ------------------------------------------------------------------
    def load(self, manifests: Sequence[Path | str] | None = None) -> ReconciliationManifest:
        """Return the merged contents of the default and supplied manifests."""

        manifest_paths = list(self._default_manifests)
        if manifests:
            manifest_paths.extend(Path(path) for path in manifests)

        merged = ReconciliationManifest()
        for manifest_path in manifest_paths:
            data = self._load_manifest(manifest_path)
            try:
                merged.resources.extend(self._resources(data.get("resources")))
                merged.directives.extend(self._moved(data.get("moved")))
                merged.directives.extend(self._imports(data.get("import")))
                merged.directives.extend(self._removed(data.get("removed")))
            except ValueError as exc:
                raise ManifestError(f"{manifest_path}: {exc}") from exc
            merged.sources.append(manifest_path)

        return merged

    def parse(self, data: Mapping[str, Any]) -> ReconciliationManifest:
        """Build a manifest from an already-loaded mapping."""

        try:
            return ReconciliationManifest(
                resources=self._resources(data.get("resources")),
                directives=[
                    *self._moved(data.get("moved")),
                    *self._imports(data.get("import")),
                    *self._removed(data.get("removed")),
                ],
            )
        except ValueError as exc:
            raise ManifestError(str(exc)) from exc

    # ------------------------------------------------------------------
    def _load_manifest(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ManifestError(f"Reconciliation manifest not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem errors surfaced to caller
            raise ManifestError(f"Failed to read reconciliation manifest {path}") from exc

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise ManifestError(f"Invalid YAML in reconciliation manifest {path}") from exc

        if not isinstance(data, Mapping):
            raise ManifestError(f"Reconciliation manifest must be a mapping: {path}")

        return dict(data)

    def _entries(self, section: str, value: Any) -> List[Mapping[str, Any]]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
            raise ManifestError(f"'{section}' must be a list of mappings")
        return value

    def _required(self, section: str, entry: Mapping[str, Any], key: str) -> str:
        value = entry.get(key)
        if not isinstance(value, str) or not value:
            raise ManifestError(f"'{section}' entry is missing '{key}'")
        return value

    def _check_keys(self, section: str, keys: Sequence[Any]) -> None:
        for key in keys:
            valid = isinstance(key, str) or (
                isinstance(key, int) and not isinstance(key, bool) and key >= 0
            )
            if not valid:
                raise ManifestError(
                    f"'{section}' for_each keys must be non-negative integers or strings: {key!r}"
                )

    def _resources(self, value: Any) -> List[ResourceNode]:
        nodes: List[ResourceNode] = []
        for entry in self._entries("resources", value):
            attributes = entry.get("attributes") or {}
            if not isinstance(attributes, Mapping):
                raise ManifestError("'resources' attributes must be a mapping")
            nodes.append(
                ResourceNode(
                    address=parse_address(self._required("resources", entry, "address")),
                    provider=str(entry.get("provider") or ""),
                    attributes=dict(attributes),
                )
            )
        return nodes

    def _moved(self, value: Any) -> List[MovedDirective]:
        return [
            MovedDirective(
                from_=parse_address(self._required("moved", entry, "from")),
                to=parse_address(self._required("moved", entry, "to")),
            )
            for entry in self._entries("moved", value)
        ]

    def _imports(self, value: Any) -> List[ImportDirective]:
        directives: List[ImportDirective] = []
        for entry in self._entries("import", value):
            for_each = entry.get("for_each")
            if for_each is not None and not isinstance(for_each, Mapping):
                raise ManifestError("'import' for_each must be a mapping of key to id")
            if for_each is None and not entry.get("id"):
                raise ManifestError("'import' entry is missing 'id'")
            if for_each is not None:
                self._check_keys("import", list(for_each))

            directives.append(
                ImportDirective(
                    to=parse_address(self._required("import", entry, "to")),
                    id=str(entry.get("id") or ""),
                    for_each=(
                        {key: str(item) for key, item in for_each.items()}
                        if for_each is not None
                        else None
                    ),
                )
            )
        return directives

    def _removed(self, value: Any) -> List[RemovedDirective]:
        directives: List[RemovedDirective] = []
        for entry in self._entries("removed", value):
            for_each = entry.get("for_each")
            if isinstance(for_each, Mapping):
                for_each = list(for_each)
            if for_each is not None and not isinstance(for_each, list):
                raise ManifestError("'removed' for_each must be a list or mapping of keys")
            if for_each is not None:
                self._check_keys("removed", for_each)
            destroy = entry.get("destroy", True)
            if not isinstance(destroy, bool):
                raise ManifestError(f"'removed' destroy must be true or false: {destroy!r}")

            directives.append(
                RemovedDirective(
                    from_=parse_address(self._required("removed", entry, "from")),
                    destroy=destroy,
                    for_each=tuple(for_each) if for_each is not None else None,
                )
            )
        return directives


__all__ = ["ManifestError", "ManifestLoader", "ReconciliationManifest"]
