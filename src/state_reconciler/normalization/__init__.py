"""Normalization of persisted Terraform state into resource nodes."""

from .state_normalizer import SUPPORTED_STATE_VERSION, StateNormalizationError, StateNormalizer

__all__ = ["SUPPORTED_STATE_VERSION", "StateNormalizationError", "StateNormalizer"]
