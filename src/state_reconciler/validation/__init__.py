"""Directive validation."""

from .directive_validator import DirectiveValidationError, DirectiveValidator, ValidatedSet

__all__ = ["DirectiveValidationError", "DirectiveValidator", "ValidatedSet"]
