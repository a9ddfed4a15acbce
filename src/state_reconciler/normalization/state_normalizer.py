"""Conversion helpers that turn raw Terraform state JSON into resource nodes."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from ..models import Address, AddressParseError, ResourceNode, parse_module_path

SUPPORTED_STATE_VERSION = 4


class StateNormalizationError(RuntimeError):
    """Raised when a state document cannot be converted into resource nodes."""


class StateNormalizer:
    """Normalize Terraform state (format version 4) into :class:`ResourceNode` instances."""

    def normalize(self, state: Mapping[str, Any]) -> List[ResourceNode]:
        """Return one node per managed resource instance in ``state``."""

        version = state.get("version", SUPPORTED_STATE_VERSION)
        if version != SUPPORTED_STATE_VERSION:
            raise StateNormalizationError(
                f"Unsupported state format version {version!r}; expected {SUPPORTED_STATE_VERSION}"
            )

        resources: Iterable[Dict[str, Any]] = state.get("resources", []) or []
        nodes: List[ResourceNode] = []
        for resource in resources:
            if resource.get("mode", "managed") != "managed":
                continue
            nodes.extend(self._normalize_resource(resource))
        return nodes

    # ------------------------------------------------------------------
    def _normalize_resource(self, resource: Dict[str, Any]) -> List[ResourceNode]:
        try:
            module_path = parse_module_path(resource.get("module"))
        except AddressParseError as exc:
            raise StateNormalizationError(f"Invalid module path in state: {exc}") from exc

        resource_type = resource.get("type", "")
        resource_name = resource.get("name", "")
        if not resource_type or not resource_name:
            raise StateNormalizationError("State resource is missing 'type' or 'name'")

        provider = resource.get("provider", "")
        nodes: List[ResourceNode] = []
        for instance in resource.get("instances", []) or []:
            try:
                address = Address(
                    resource_type=resource_type,
                    resource_name=resource_name,
                    module_path=module_path,
                    instance_key=instance.get("index_key"),
                )
            except (TypeError, ValueError) as exc:
                raise StateNormalizationError(
                    f"Invalid index key for {resource_type}.{resource_name}: {exc}"
                ) from exc

            nodes.append(
                ResourceNode(
                    address=address,
                    provider=provider,
                    attributes=dict(instance.get("attributes") or {}),
                )
            )
        return nodes


__all__ = ["SUPPORTED_STATE_VERSION", "StateNormalizationError", "StateNormalizer"]
