"""Adapter layer for reading prior state and reconciliation manifests."""

from .manifest_loader import ManifestError, ManifestLoader, ReconciliationManifest
from .state_loader import StateLoader, StateLoaderError

__all__ = [
    "ManifestError",
    "ManifestLoader",
    "ReconciliationManifest",
    "StateLoader",
    "StateLoaderError",
]
